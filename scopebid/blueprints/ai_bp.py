"""
Renovation Scope Bidding Service
AI blueprint — owner-triggered risk analysis.

Endpoints:
    POST /api/v1/ai/risk-analysis   — body: repeated form key ``selected`` or
                                      JSON {"selected": [ids]}

Responses:
    200 {"analysis", "segments", "failed_ids", "error": null}
    400 EmptySelection — nothing was selected; no AI call was made
    503 CriticalFailure — scope data could not be loaded
"""

import logging

from flask import Blueprint, current_app, jsonify

from scopebid.ai.assistants.risk_annotation import RiskAnnotator
from scopebid.blueprints import selected_ids
from scopebid.core.exceptions import CRITICAL_FAILURE, EMPTY_SELECTION
from scopebid.services.scope_store import ScopeStore
from scopebid.utils.errors import E, api_error

logger = logging.getLogger(__name__)

ai_bp = Blueprint("ai", __name__, url_prefix="/api/v1/ai")


def _annotator() -> RiskAnnotator:
    cfg = current_app.config
    gateway = current_app.extensions["llm_gateway"]
    return RiskAnnotator(
        gateway.infer,
        ScopeStore(),
        prompt_prefix=cfg["RISK_PROMPT_PREFIX"],
        max_output_tokens=cfg["AI_MAX_OUTPUT_TOKENS"],
        timeout=cfg["AI_TIMEOUT_SECONDS"],
        max_workers=cfg["AI_MAX_WORKERS"],
    )


@ai_bp.route("/risk-analysis", methods=["POST"])
def risk_analysis():
    """Generate and store AI risk narratives for the selected scope items."""
    report = _annotator().annotate(selected_ids())

    if report.error_code == EMPTY_SELECTION:
        return api_error(E.EMPTY_SELECTION, report.error)
    if report.error_code == CRITICAL_FAILURE:
        return api_error(E.CRITICAL, report.error)

    return jsonify(report.to_dict()), 200
