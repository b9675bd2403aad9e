"""Scope store — persistence boundary for renovation line items.

The bid updater and the risk annotator never touch ``db.session`` directly;
they receive a store and call three operations:

    fetch_all()                                  → list[ScopeItem]
    update_bid_fields(item_id, bid, timeline)    → bool (False = no row matched)
    update_risk_text(item_id, text)              → bool

Rules:
  - Every write commits on its own, so one failed row never rolls back a
    sibling row that was already written.
  - Database errors are rolled back, logged and re-raised as StoreError.
"""

from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from scopebid.core.exceptions import NotFoundError, StoreError
from scopebid.models import db
from scopebid.models.scope import ScopeItem

logger = logging.getLogger(__name__)


class ScopeStore:
    """SQLAlchemy-backed scope store bound to a session."""

    def __init__(self, session=None):
        self.session = session or db.session

    # ── Reads ─────────────────────────────────────────────────────────────

    def fetch_all(self) -> list[ScopeItem]:
        """Return every scope item ordered by id."""
        try:
            return list(
                self.session.execute(select(ScopeItem).order_by(ScopeItem.id)).scalars()
            )
        except SQLAlchemyError as exc:
            logger.error("Scope store read failed: %s", exc)
            self.session.rollback()
            raise StoreError("fetch_all", message="Could not retrieve renovation scope data.") from exc

    def get(self, item_id: int) -> ScopeItem:
        """Return one scope item or raise NotFoundError."""
        try:
            item = self.session.get(ScopeItem, item_id)
        except SQLAlchemyError as exc:
            logger.error("Scope store read failed for id=%s: %s", item_id, exc)
            self.session.rollback()
            raise StoreError("get", item_id, "Could not retrieve renovation scope data.") from exc
        if item is None:
            raise NotFoundError(resource="ScopeItem", resource_id=item_id)
        return item

    def known_ids(self) -> set[int]:
        return {item.id for item in self.fetch_all()}

    # ── Writes ────────────────────────────────────────────────────────────

    def update_bid_fields(self, item_id: int, contractor_bid: float | None,
                          timeline_weeks: int | None) -> bool:
        """Write bid + timeline for one item. Returns False when no row matched."""
        return self._update(
            "update_bid_fields", item_id,
            {"contractor_bid": contractor_bid, "timeline_weeks": timeline_weeks},
            "Failed to update contractor bid. Please try again.",
        )

    def update_risk_text(self, item_id: int, text: str) -> bool:
        """Write the AI risk narrative for one item. Returns False when no row matched."""
        return self._update(
            "update_risk_text", item_id,
            {"ai_risk_assessment": text},
            "Failed to update AI risk assessment.",
        )

    def _update(self, operation: str, item_id: int, values: dict, message: str) -> bool:
        try:
            result = self.session.execute(
                update(ScopeItem).where(ScopeItem.id == item_id).values(**values)
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Scope store %s failed for id=%s: %s", operation, item_id, exc)
            raise StoreError(operation, item_id, message) from exc

        matched = result.rowcount > 0
        if not matched:
            logger.warning("Scope store %s matched no row for id=%s", operation, item_id)
        return matched
