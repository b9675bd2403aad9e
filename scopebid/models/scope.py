"""
Renovation Scope Bidding Service
Scope domain model — renovation line items.

Models:
    - ScopeItem: one renovation line item with baseline cost/value,
      contractor bid, timeline and AI risk narrative.

Ownership of mutable columns:
    contractor_bid / timeline_weeks  → bid_service (validated bulk submission)
    ai_risk_assessment               → RiskAnnotator (AI orchestrator)
"""

from datetime import datetime, timezone

from scopebid.models import db


# ── Constants ────────────────────────────────────────────────────────────────

CATEGORIES = {"Phase 1 Essential", "Phase 2 Discretionary", "Deal Killer"}
PERMIT_TYPES = {"OTC", "OTC with Plans", "Full Plan Check", "Site Permit"}

# Bid validation limits
MAX_CONTRACTOR_BID = 10_000_000
MAX_TIMELINE_WEEKS = 156


class ScopeItem(db.Model):
    """
    Renovation line item.

    Descriptive fields (name, category, constraint, permit, flags) and the
    baselines (target_cost, est_value_add) are set at creation and never
    written by the bid or risk workflows.
    """

    __tablename__ = "renovation_scope"

    id = db.Column(db.Integer, primary_key=True)
    item_name = db.Column(db.String(200), nullable=False)
    category = db.Column(
        db.String(40), nullable=False, default="Phase 1 Essential",
        comment="Phase 1 Essential | Phase 2 Discretionary | Deal Killer",
    )
    critical_constraint = db.Column(db.Text, default="")
    permit_type = db.Column(
        db.String(30), nullable=False, default="OTC",
        comment="OTC | OTC with Plans | Full Plan Check | Site Permit",
    )
    regulatory_flags = db.Column(db.Text, default="")
    target_cost = db.Column(db.Float, nullable=False, default=0.0)
    est_value_add = db.Column(db.Float, nullable=False, default=0.0)

    contractor_bid = db.Column(db.Float, nullable=True)
    timeline_weeks = db.Column(db.Integer, nullable=True)
    ai_risk_assessment = db.Column(db.Text, nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def roi(self):
        """Return (value add − bid) / bid, or None when no bid is recorded."""
        if not self.contractor_bid:
            return None
        return (self.est_value_add - self.contractor_bid) / self.contractor_bid

    def to_dict(self):
        roi = self.roi
        return {
            "id": self.id,
            "item_name": self.item_name,
            "category": self.category,
            "critical_constraint": self.critical_constraint,
            "permit_type": self.permit_type,
            "regulatory_flags": self.regulatory_flags,
            "target_cost": self.target_cost,
            "est_value_add": self.est_value_add,
            "contractor_bid": self.contractor_bid,
            "timeline_weeks": self.timeline_weeks,
            "ai_risk_assessment": self.ai_risk_assessment,
            "roi": roi,
            "roi_pct": round(roi * 100) if roi is not None else None,
        }

    def __repr__(self):
        return f"<ScopeItem {self.id}: {self.item_name}>"
