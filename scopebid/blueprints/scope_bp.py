"""
Renovation Scope Bidding Service
Scope blueprint — scope item reads & contractor bid submission.

Endpoints:
    GET  /api/v1/scope              — all items with ROI
    GET  /api/v1/scope/<id>         — one item
    POST /api/v1/scope/bids         — bulk bid/timeline submission
                                      (form-encoded or JSON: bid-<id>, timeline-<id>)

Service layer (bid_service / ScopeStore) owns validation and commits.
"""

import logging

from flask import Blueprint, jsonify

from scopebid.blueprints import form_or_json
from scopebid.core.exceptions import NotFoundError, StoreError
from scopebid.services.bid_service import submit_bids
from scopebid.services.scope_store import ScopeStore
from scopebid.utils.errors import E, api_error

logger = logging.getLogger(__name__)

scope_bp = Blueprint("scope", __name__, url_prefix="/api/v1/scope")


# ── Error handlers ────────────────────────────────────────────────────────────


@scope_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@scope_bp.errorhandler(StoreError)
def _handle_store_error(error: StoreError):
    return api_error(E.DATABASE, str(error))


# ═════════════════════════════════════════════════════════════════════════
# Reads
# ═════════════════════════════════════════════════════════════════════════


@scope_bp.route("", methods=["GET"])
def list_scope():
    """List every scope item with computed ROI."""
    items = ScopeStore().fetch_all()
    return jsonify({"items": [i.to_dict() for i in items], "total": len(items)})


@scope_bp.route("/<int:item_id>", methods=["GET"])
def get_scope_item(item_id):
    """Return one scope item."""
    return jsonify(ScopeStore().get(item_id).to_dict())


# ═════════════════════════════════════════════════════════════════════════
# Bulk bid submission
# ═════════════════════════════════════════════════════════════════════════


@scope_bp.route("/bids", methods=["POST"])
def submit_bid_batch():
    """Validate and save contractor bids/timelines for many items at once.

    Body: flat mapping {"bid-<id>": "...", "timeline-<id>": "..."}.
    Returns: {"ok": true, "saved_ids": [...]} (200) or the same with
             "errors": {"<field>-<id>": message} (422). Valid rows are saved
             even when sibling rows fail.
    """
    store = ScopeStore()
    result = submit_bids(form_or_json(), store, known_ids=store.known_ids())
    return jsonify(result.to_dict()), (200 if result.ok else 422)
