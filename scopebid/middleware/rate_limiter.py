"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter. The Limiter instance
is created in scopebid/__init__.py with no default limits; this module
applies limits per route category.

Usage:
    from scopebid.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

AI_LIMIT = "10/minute"
WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints (per remote IP).

        - AI risk analysis: 10/minute  (one LLM call per selected item)
        - Scope (bid submission): 60/minute
        - Dashboard reads: 200/minute
        - Health check: exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name, limit in (("ai", AI_LIMIT), ("scope", WRITE_LIMIT), ("dashboard", READ_LIMIT)):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(limit)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — AI: %s, scope: %s, dashboard: %s",
        AI_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
