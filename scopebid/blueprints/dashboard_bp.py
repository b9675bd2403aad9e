"""
Renovation Scope Bidding Service
Owner dashboard blueprint — read-only figures for the ROI views.

Endpoints:
    GET /api/v1/dashboard/roi              — items with ROI
    GET /api/v1/dashboard/chart            — target cost vs. bid per item
    GET /api/v1/dashboard/compare          — Smart Flip vs. Dream House totals
    GET /api/v1/dashboard/latest-analysis  — most recent stored AI narrative
"""

import logging

from flask import Blueprint, jsonify

import scopebid.services.dashboard_service as dash
from scopebid.core.exceptions import StoreError
from scopebid.services.scope_store import ScopeStore
from scopebid.utils.errors import E, api_error

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/v1/dashboard")


@dashboard_bp.errorhandler(StoreError)
def _handle_store_error(error: StoreError):
    return api_error(E.DATABASE, str(error))


@dashboard_bp.route("/roi", methods=["GET"])
def roi():
    return jsonify({"items": dash.roi_rows(ScopeStore())})


@dashboard_bp.route("/chart", methods=["GET"])
def chart():
    return jsonify({"series": dash.chart_data(ScopeStore())})


@dashboard_bp.route("/compare", methods=["GET"])
def compare():
    return jsonify(dash.compare_scenarios(ScopeStore()))


@dashboard_bp.route("/latest-analysis", methods=["GET"])
def latest_analysis():
    return jsonify({"analysis": dash.latest_analysis(ScopeStore())})
