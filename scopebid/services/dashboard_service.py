"""Owner dashboard figures — ROI table, target vs. bid chart, scenario compare.

Pure read-side aggregation over the scope store; nothing here writes.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

# Items included in the "Smart Flip" scenario; "Dream House" is everything.
SMART_FLIP_ITEMS = (
    "Ceiling Raise",
    "JADU Conversion",
    "Illegal Plumbing",
    "Lot Line Skylight",
    "Backyard Drainage",
    "Juliette Deck",
)


def roi_rows(store) -> list[dict]:
    """All scope items serialised with roi / roi_pct."""
    return [item.to_dict() for item in store.fetch_all()]


def chart_data(store) -> list[dict]:
    """Target cost vs. contractor bid per item (missing bid plotted as 0)."""
    return [
        {
            "name": item.item_name,
            "target": item.target_cost,
            "bid": item.contractor_bid or 0,
        }
        for item in store.fetch_all()
    ]


def _scenario_totals(items) -> dict:
    cost = 0.0
    value = 0.0
    for item in items:
        cost += item.contractor_bid if item.contractor_bid is not None else item.target_cost
        value += item.est_value_add
    return {"cost": cost, "value": value, "net": value - cost, "item_count": len(items)}


def compare_scenarios(store, smart_flip_items=SMART_FLIP_ITEMS) -> dict:
    """Smart Flip (fixed subset) vs. Dream House (all items).

    Cost per item is the contractor bid when one is recorded, else the target cost.
    """
    items = store.fetch_all()
    wanted = set(smart_flip_items)
    smart_flip = [item for item in items if item.item_name in wanted]

    return {
        "smart_flip": {
            "label": "Smart Flip",
            "included_items": list(smart_flip_items),
            **_scenario_totals(smart_flip),
        },
        "dream_house": {
            "label": "Dream House",
            **_scenario_totals(items),
        },
    }


def latest_analysis(store) -> str | None:
    """First stored AI risk assessment in item order, if any."""
    for item in store.fetch_all():
        if item.ai_risk_assessment:
            return item.ai_risk_assessment
    return None
