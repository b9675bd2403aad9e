"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — database + AI provider status
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from scopebid.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe — always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except Exception as exc:
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check — database failed: %s", exc)

    # ── AI providers (configured, not probed) ────────────────────────
    gateway = current_app.extensions.get("llm_gateway")
    if gateway is not None:
        _, name = gateway._get_provider(gateway.DEFAULT_CHAT_MODEL)
        checks["ai"] = {"status": "ok", "model": gateway.DEFAULT_CHAT_MODEL, "provider": name}

    # ── App info ─────────────────────────────────────────────────────
    checks["app"] = {
        "name": "Renovation Scope Bidding Service",
        "debug": current_app.debug,
        "testing": current_app.testing,
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code
