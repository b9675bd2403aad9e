"""Demo scope seed — 126 Colby St (San Francisco) renovation line items.

Used by the ``flask seed-scope`` CLI command and scripts/seed_scope.py.
Idempotent: items are matched by name and only missing ones are inserted.
"""

import logging

from scopebid.models import db
from scopebid.models.scope import ScopeItem

logger = logging.getLogger(__name__)

# ═════════════════════════════════════════════════════════════════════════════
# SCOPE ITEMS: baselines only; bids, timelines and AI text start empty
# ═════════════════════════════════════════════════════════════════════════════

SCOPE_DATA = [
    {"item_name": "Ceiling Raise", "category": "Phase 1 Essential",
     "critical_constraint": "40 ft height limit; raising the roofline triggers Section 311 notice",
     "permit_type": "Site Permit", "regulatory_flags": "Section 311, Height Limit",
     "target_cost": 85000, "est_value_add": 180000},
    {"item_name": "JADU Conversion", "category": "Phase 1 Essential",
     "critical_constraint": "Junior ADU must stay within 500 sq ft of the existing envelope",
     "permit_type": "Full Plan Check", "regulatory_flags": "ADU Ordinance",
     "target_cost": 120000, "est_value_add": 250000},
    {"item_name": "Illegal Plumbing", "category": "Deal Killer",
     "critical_constraint": "Unpermitted bathroom must be legalized before sale",
     "permit_type": "OTC with Plans", "regulatory_flags": "NOV Risk",
     "target_cost": 25000, "est_value_add": 60000},
    {"item_name": "Lot Line Skylight", "category": "Phase 2 Discretionary",
     "critical_constraint": "Openings within 3 ft of the lot line require fire-rated glazing",
     "permit_type": "OTC with Plans", "regulatory_flags": "Fire Separation",
     "target_cost": 18000, "est_value_add": 30000},
    {"item_name": "Backyard Drainage", "category": "Phase 1 Essential",
     "critical_constraint": "Stormwater must discharge to the street, not the neighbour's lot",
     "permit_type": "OTC", "regulatory_flags": "",
     "target_cost": 15000, "est_value_add": 20000},
    {"item_name": "Juliette Deck", "category": "Phase 2 Discretionary",
     "critical_constraint": "Rear-yard projection limited; may need Variance",
     "permit_type": "Site Permit", "regulatory_flags": "Variance, Section 311",
     "target_cost": 12000, "est_value_add": 25000},
    {"item_name": "Kitchen Remodel", "category": "Phase 2 Discretionary",
     "critical_constraint": "Gas-to-electric conversion required by the all-electric code",
     "permit_type": "OTC with Plans", "regulatory_flags": "All-Electric",
     "target_cost": 95000, "est_value_add": 110000},
    {"item_name": "Seismic Retrofit", "category": "Deal Killer",
     "critical_constraint": "Soft-story retrofit deadline under the mandatory program",
     "permit_type": "Full Plan Check", "regulatory_flags": "Soft Story Program",
     "target_cost": 140000, "est_value_add": 90000},
]


def seed_scope_items(data=None) -> int:
    """Insert any demo scope items that are not present yet. Returns the number inserted."""
    data = SCOPE_DATA if data is None else data
    existing = {name for (name,) in db.session.query(ScopeItem.item_name)}

    created = 0
    for row in data:
        if row["item_name"] in existing:
            continue
        db.session.add(ScopeItem(**row))
        created += 1

    db.session.commit()
    logger.info("Seeded %d scope items (%d already present)", created, len(data) - created)
    return created
