"""
Renovation Scope Bidding Service
Risk Annotation Assistant.

Pipeline:
    1. Reject an empty selection before touching the store or the LLM
    2. Load all scope items and keep the selected ones (unknown ids dropped)
    3. Build one prompt per item (fixed prefix + name, constraint, permit)
    4. Call the LLM for every item concurrently; a failure or timeout on one
       item becomes a placeholder segment and never affects its siblings
    5. Persist each narrative onto ScopeItem.ai_risk_assessment
    6. Return the segments joined into one report
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field

from scopebid.ai.response import normalize_response
from scopebid.config import DEFAULT_RISK_PROMPT_PREFIX
from scopebid.core.exceptions import (
    COLLABORATOR_FAILURE,
    CRITICAL_FAILURE,
    EMPTY_SELECTION,
    StoreError,
)

logger = logging.getLogger(__name__)

SEGMENT_OK = "ok"
SEGMENT_UNAVAILABLE = "unavailable"
SEGMENT_FAILED = "failed"

EMPTY_SELECTION_MESSAGE = "Select at least one row to analyze."
CRITICAL_FAILURE_MESSAGE = "Could not load renovation scope data. Please try again."


@dataclass
class RiskSegment:
    item_id: int
    item_name: str
    text: str
    status: str = SEGMENT_OK
    persisted: bool = False

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "item_name": self.item_name,
            "text": self.text,
            "status": self.status,
            "persisted": self.persisted,
        }


@dataclass
class RiskReport:
    """Combined outcome of one risk annotation request."""

    segments: list[RiskSegment] = field(default_factory=list)
    error_code: str | None = None
    error: str | None = None

    SEPARATOR = "\n\n---\n\n"

    @property
    def analysis(self) -> str:
        return self.SEPARATOR.join(s.text for s in self.segments)

    @property
    def failed_ids(self) -> list[int]:
        return [s.item_id for s in self.segments if s.status == SEGMENT_FAILED]

    def to_dict(self) -> dict:
        return {
            "analysis": self.analysis,
            "segments": [s.to_dict() for s in self.segments],
            "failed_ids": self.failed_ids,
            "error": self.error,
            "code": self.error_code,
        }


def build_prompt(item, prefix: str = DEFAULT_RISK_PROMPT_PREFIX) -> str:
    """Deterministic per-item prompt."""
    return (
        f"{prefix}\n\n"
        f"Item: {item.item_name}\n"
        f"Critical Constraint: {item.critical_constraint}\n"
        f"Permit Type: {item.permit_type}"
    )


class RiskAnnotator:
    """
    AI risk narratives for a selection of scope items.

    Collaborators are injected so tests can substitute them:
        infer — callable(prompt, max_output_tokens) → str | {"result": str}; may raise
        store — object with fetch_all() and update_risk_text(item_id, text)
    """

    def __init__(self, infer, store, *, prompt_prefix=DEFAULT_RISK_PROMPT_PREFIX,
                 max_output_tokens=256, timeout=30.0, max_workers=4):
        self.infer = infer
        self.store = store
        self.prompt_prefix = prompt_prefix
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout
        self.max_workers = max_workers

    def annotate(self, selected_ids) -> RiskReport:
        """
        Run risk annotation for the selected item ids.

        Returns:
            RiskReport: segments in store order; error/error_code set only for
            request-level failures (empty selection, store unreachable).
        """
        wanted = set(selected_ids or ())
        if not wanted:
            return RiskReport(error_code=EMPTY_SELECTION, error=EMPTY_SELECTION_MESSAGE)

        try:
            items = [item for item in self.store.fetch_all() if item.id in wanted]
        except StoreError:
            logger.exception("Risk annotation aborted: scope store unreachable")
            return RiskReport(error_code=CRITICAL_FAILURE, error=CRITICAL_FAILURE_MESSAGE)

        report = RiskReport(segments=self._run_calls(items))

        for segment in report.segments:
            if segment.status != SEGMENT_OK:
                continue
            try:
                segment.persisted = self.store.update_risk_text(segment.item_id, segment.text)
            except StoreError as exc:
                logger.warning("Risk text not saved for item %s: %s", segment.item_id, exc,
                               extra={"item_id": segment.item_id})

        logger.info(
            "Risk annotation done: selected=%d items=%d failed=%d saved=%d",
            len(wanted), len(items), len(report.failed_ids),
            sum(1 for s in report.segments if s.persisted),
        )
        return report

    def _run_calls(self, items) -> list[RiskSegment]:
        if not items:
            return []

        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(items)),
            thread_name_prefix="risk-annotation",
        )
        try:
            futures = [
                executor.submit(self.infer, build_prompt(item, self.prompt_prefix), self.max_output_tokens)
                for item in items
            ]
            deadline = time.monotonic() + self.timeout
            return [
                self._collect(item, future, max(0.0, deadline - time.monotonic()))
                for item, future in zip(items, futures)
            ]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _collect(self, item, future, timeout) -> RiskSegment:
        try:
            raw = future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("%s: AI call timed out for item %s", COLLABORATOR_FAILURE, item.id,
                           extra={"item_id": item.id})
            return self._placeholder(item)
        except Exception as exc:
            logger.warning("%s: AI call failed for item %s: %s", COLLABORATOR_FAILURE, item.id, exc,
                           extra={"item_id": item.id})
            return self._placeholder(item)

        response = normalize_response(raw, context=f"item {item.id}")
        status = SEGMENT_OK if response.recognized else SEGMENT_UNAVAILABLE
        return RiskSegment(item.id, item.item_name, response.text, status)

    @staticmethod
    def _placeholder(item) -> RiskSegment:
        return RiskSegment(
            item.id, item.item_name,
            f"Risk analysis failed for {item.item_name}.",
            SEGMENT_FAILED,
        )
