"""
Renovation Scope Bidding Service
Tests — AI risk annotation.

Covers:
    - Response normalization (text, structured, nested, unrecognized)
    - Prompt construction
    - RiskAnnotator: empty selection, per-item isolation, timeout,
      store failures, persistence rules, segment order
"""

import pytest

from scopebid.ai.assistants.risk_annotation import (
    EMPTY_SELECTION_MESSAGE,
    SEGMENT_FAILED,
    SEGMENT_OK,
    SEGMENT_UNAVAILABLE,
    RiskAnnotator,
    RiskReport,
    RiskSegment,
    build_prompt,
)
from scopebid.ai.response import (
    STRUCTURED,
    TEXT,
    UNAVAILABLE_TEXT,
    UNRECOGNIZED,
    normalize_response,
)
from scopebid.config import DEFAULT_RISK_PROMPT_PREFIX
from scopebid.core.exceptions import CRITICAL_FAILURE, EMPTY_SELECTION, StoreError
from scopebid.models import db
from scopebid.models.scope import ScopeItem
from scopebid.services.scope_store import ScopeStore


class _Item:
    def __init__(self, item_id, name, constraint="", permit="OTC"):
        self.id = item_id
        self.item_name = name
        self.critical_constraint = constraint
        self.permit_type = permit


class MemoryStore:
    """Minimal store: fixed items, records risk writes."""

    def __init__(self, items, fail_fetch=False, fail_write_ids=()):
        self.items = items
        self.fail_fetch = fail_fetch
        self.fail_write_ids = set(fail_write_ids)
        self.risk_writes = {}

    def fetch_all(self):
        if self.fail_fetch:
            raise StoreError("fetch_all", message="Could not retrieve renovation scope data.")
        return list(self.items)

    def update_risk_text(self, item_id, text):
        if item_id in self.fail_write_ids:
            raise StoreError("update_risk_text", item_id, "Failed to update AI risk assessment.")
        self.risk_writes[item_id] = text
        return True


ITEMS = [
    _Item(1, "Ceiling Raise", "40 ft height limit", "Site Permit"),
    _Item(2, "JADU Conversion", "500 sq ft cap", "Full Plan Check"),
    _Item(3, "Juliette Deck", "May need Variance", "Site Permit"),
]


# ═════════════════════════════════════════════════════════════════════════════
# RESPONSE NORMALIZATION
# ═════════════════════════════════════════════════════════════════════════════

class TestNormalizeResponse:

    def test_plain_text(self):
        resp = normalize_response("  High risk.  ")
        assert resp.kind == TEXT
        assert resp.text == "High risk."
        assert resp.recognized

    def test_structured_result(self):
        resp = normalize_response({"result": "Medium risk."})
        assert resp.kind == STRUCTURED
        assert resp.text == "Medium risk."

    def test_nested_workers_ai_shape(self):
        resp = normalize_response({"result": {"response": "Low risk."}})
        assert resp.kind == STRUCTURED
        assert resp.text == "Low risk."

    @pytest.mark.parametrize("raw", [
        None, 42, {"answer": "x"}, {"result": 5}, ["a"],
        "", "   ", {"result": ""}, {"result": "  \n"}, {"result": {"response": ""}},
    ])
    def test_unrecognized_shapes(self, raw):
        resp = normalize_response(raw)
        assert resp.kind == UNRECOGNIZED
        assert resp.text == UNAVAILABLE_TEXT
        assert not resp.recognized


# ═════════════════════════════════════════════════════════════════════════════
# PROMPT
# ═════════════════════════════════════════════════════════════════════════════

class TestBuildPrompt:

    def test_prompt_lines(self):
        prompt = build_prompt(ITEMS[0])
        assert prompt.startswith(DEFAULT_RISK_PROMPT_PREFIX)
        assert "Item: Ceiling Raise\n" in prompt
        assert "Critical Constraint: 40 ft height limit\n" in prompt
        assert prompt.endswith("Permit Type: Site Permit")

    def test_prompt_is_deterministic(self):
        assert build_prompt(ITEMS[1], "P") == build_prompt(ITEMS[1], "P")


# ═════════════════════════════════════════════════════════════════════════════
# ANNOTATOR (in-memory store)
# ═════════════════════════════════════════════════════════════════════════════

class TestRiskAnnotator:

    def test_empty_selection_makes_no_calls(self, fake_infer):
        store = MemoryStore(ITEMS)
        report = RiskAnnotator(fake_infer, store).annotate([])
        assert report.error_code == EMPTY_SELECTION
        assert report.error == EMPTY_SELECTION_MESSAGE
        assert report.segments == []
        assert fake_infer.prompts == []

    def test_one_call_per_selected_item(self, fake_infer):
        store = MemoryStore(ITEMS)
        report = RiskAnnotator(fake_infer, store).annotate([1, 3])
        assert len(fake_infer.prompts) == 2
        assert [s.item_id for s in report.segments] == [1, 3]
        assert report.error_code is None

    def test_unknown_ids_dropped(self, fake_infer):
        store = MemoryStore(ITEMS)
        report = RiskAnnotator(fake_infer, store).annotate([2, 999])
        assert [s.item_id for s in report.segments] == [2]
        assert len(fake_infer.prompts) == 1

    def test_only_unknown_ids_yields_empty_report(self, fake_infer):
        report = RiskAnnotator(fake_infer, MemoryStore(ITEMS)).annotate([404])
        assert report.error_code is None
        assert report.segments == []
        assert report.analysis == ""

    def test_failure_isolated_to_its_item(self, fake_infer):
        fake_infer.responses = {"JADU Conversion": RuntimeError("boom")}
        store = MemoryStore(ITEMS)
        report = RiskAnnotator(fake_infer, store).annotate([1, 2, 3])

        assert len(report.segments) == 3
        assert report.failed_ids == [2]
        assert report.segments[1].text == "Risk analysis failed for JADU Conversion."
        assert report.segments[1].status == SEGMENT_FAILED
        assert sorted(store.risk_writes) == [1, 3]
        assert [s.persisted for s in report.segments] == [True, False, True]

    def test_segments_follow_store_order(self, fake_infer):
        fake_infer.responses = {"Ceiling Raise": "A", "JADU Conversion": "B", "Juliette Deck": "C"}
        report = RiskAnnotator(fake_infer, MemoryStore(ITEMS)).annotate([3, 1, 2])
        assert report.analysis == RiskReport.SEPARATOR.join(["A", "B", "C"])

    def test_structured_response_persisted(self, fake_infer):
        fake_infer.default = {"result": "Structured narrative."}
        store = MemoryStore(ITEMS)
        RiskAnnotator(fake_infer, store).annotate([1])
        assert store.risk_writes == {1: "Structured narrative."}

    def test_unrecognized_response_not_persisted(self, fake_infer):
        fake_infer.default = {"unexpected": True}
        store = MemoryStore(ITEMS)
        report = RiskAnnotator(fake_infer, store).annotate([1])
        assert report.segments[0].status == SEGMENT_UNAVAILABLE
        assert report.segments[0].text == UNAVAILABLE_TEXT
        assert store.risk_writes == {}

    def test_timeout_becomes_placeholder(self, fake_infer):
        fake_infer.block = {"JADU Conversion"}
        store = MemoryStore(ITEMS)
        report = RiskAnnotator(fake_infer, store, timeout=0.2).annotate([1, 2, 3])
        fake_infer.release.set()

        statuses = {s.item_id: s.status for s in report.segments}
        assert statuses == {1: SEGMENT_OK, 2: SEGMENT_FAILED, 3: SEGMENT_OK}
        assert 2 not in store.risk_writes

    def test_store_unreachable_is_critical(self, fake_infer):
        report = RiskAnnotator(fake_infer, MemoryStore(ITEMS, fail_fetch=True)).annotate([1])
        assert report.error_code == CRITICAL_FAILURE
        assert report.segments == []
        assert fake_infer.prompts == []

    def test_write_failure_keeps_segment(self, fake_infer):
        store = MemoryStore(ITEMS, fail_write_ids={1})
        report = RiskAnnotator(fake_infer, store).annotate([1, 2])
        assert [s.text for s in report.segments] == ["Low risk.", "Low risk."]
        assert [s.persisted for s in report.segments] == [False, True]

    def test_to_dict_shape(self):
        report = RiskReport(segments=[RiskSegment(1, "A", "x"), RiskSegment(2, "B", "y", SEGMENT_FAILED)])
        body = report.to_dict()
        assert body["analysis"] == "x\n\n---\n\ny"
        assert body["failed_ids"] == [2]
        assert body["error"] is None
        assert len(body["segments"]) == 2


# ═════════════════════════════════════════════════════════════════════════════
# ANNOTATOR (SQLAlchemy store)
# ═════════════════════════════════════════════════════════════════════════════

class TestRiskAnnotatorPersistence:

    def test_narratives_stored_on_items(self, scope_items, fake_infer):
        fake_infer.responses = {"Ceiling Raise": RuntimeError("provider down")}
        ids = [i.id for i in scope_items[:3]]
        report = RiskAnnotator(fake_infer, ScopeStore()).annotate(ids)

        assert len(report.segments) == 3
        assert sum(1 for s in report.segments if s.persisted) == 2
        stored = {i.id: i.ai_risk_assessment for i in ScopeItem.query.filter(ScopeItem.id.in_(ids))}
        assert stored[ids[0]] is None
        assert stored[ids[1]] == "Low risk."
        assert stored[ids[2]] == "Low risk."

    def test_failure_keeps_previous_assessment(self, make_item, fake_infer):
        item = make_item(ai_risk_assessment="Earlier narrative.")
        fake_infer.default = RuntimeError("boom")
        RiskAnnotator(fake_infer, ScopeStore()).annotate([item.id])
        assert db.session.get(ScopeItem, item.id).ai_risk_assessment == "Earlier narrative."

    def test_rerun_overwrites_narrative(self, make_item, fake_infer):
        item = make_item()
        fake_infer.default = "First."
        RiskAnnotator(fake_infer, ScopeStore()).annotate([item.id])
        fake_infer.default = "Second."
        RiskAnnotator(fake_infer, ScopeStore()).annotate([item.id])
        assert db.session.get(ScopeItem, item.id).ai_risk_assessment == "Second."

    def test_blank_reply_keeps_previous_assessment(self, make_item, fake_infer):
        item = make_item(ai_risk_assessment="Earlier narrative.")
        fake_infer.default = {"result": ""}
        report = RiskAnnotator(fake_infer, ScopeStore()).annotate([item.id])
        assert report.segments[0].status == SEGMENT_UNAVAILABLE
        assert db.session.get(ScopeItem, item.id).ai_risk_assessment == "Earlier narrative."
