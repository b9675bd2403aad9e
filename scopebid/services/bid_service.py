"""
Bulk Bid Service — contractor bid/timeline submission.

Validates a batch of ``bid-<id>`` / ``timeline-<id>`` form fields and writes
each row on its own.

Rules:
  - Keys whose id suffix is not a positive integer are skipped silently.
  - Each field is validated independently; errors are collected, never raised
    to the caller, and keyed ``"<field>-<item_id>"``.
  - A row is written only when both of its fields pass. A row with both
    fields empty is not written at all.
  - A store failure on one row becomes a ``row-<id>`` error; the batch goes on.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Mapping

from scopebid.core.exceptions import (
    INVALID_FORMAT,
    PERSISTENCE_FAILURE,
    RANGE_EXCEEDED,
    StoreError,
    ValidationError,
)
from scopebid.models.scope import MAX_CONTRACTOR_BID, MAX_TIMELINE_WEEKS

logger = logging.getLogger(__name__)

BID_PREFIX = "bid-"
TIMELINE_PREFIX = "timeline-"

# Plain ASCII decimal: no digit grouping, no full-width or superscript digits
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$", re.ASCII)


# ═══════════════════════════════════════════════════════════════
# Result types
# ═══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FieldError:
    item_id: int
    field: str
    kind: str
    message: str

    @property
    def key(self) -> str:
        return f"{self.field}-{self.item_id}"


@dataclass
class BatchResult:
    """Outcome of one bulk submission. ``ok`` is True iff no errors were collected."""

    errors: list[FieldError] = field(default_factory=list)
    saved_ids: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, item_id: int, field_name: str, kind: str, message: str) -> None:
        self.errors.append(FieldError(item_id, field_name, kind, message))

    def error_map(self) -> dict[str, str]:
        return {e.key: e.message for e in self.errors}

    def to_dict(self) -> dict:
        body = {"ok": self.ok, "saved_ids": self.saved_ids}
        if self.errors:
            body["errors"] = self.error_map()
        return body


@dataclass
class BidRow:
    item_id: int
    raw_bid: str | None = None
    raw_timeline: str | None = None


# ═══════════════════════════════════════════════════════════════
# Parsing
# ═══════════════════════════════════════════════════════════════

def parse_item_id(suffix: str) -> int | None:
    """Return the positive integer id encoded in a key suffix, else None."""
    suffix = (suffix or "").strip()
    if not (suffix.isascii() and suffix.isdecimal()):
        return None
    item_id = int(suffix)
    return item_id if item_id > 0 else None


def collect_rows(form: Mapping[str, object]) -> list[BidRow]:
    """Group ``bid-<id>`` / ``timeline-<id>`` keys into one row per item id.

    Rows come back in first-seen key order. Malformed keys are dropped.
    """
    rows: dict[int, BidRow] = {}
    for key in form.keys():
        if key.startswith(BID_PREFIX):
            attr, suffix = "raw_bid", key[len(BID_PREFIX):]
        elif key.startswith(TIMELINE_PREFIX):
            attr, suffix = "raw_timeline", key[len(TIMELINE_PREFIX):]
        else:
            continue

        item_id = parse_item_id(suffix)
        if item_id is None:
            logger.debug("Skipping malformed bid form key %r", key)
            continue

        row = rows.setdefault(item_id, BidRow(item_id))
        value = form.get(key)
        setattr(row, attr, None if value is None else str(value))
    return list(rows.values())


# ═══════════════════════════════════════════════════════════════
# Field validation
# ═══════════════════════════════════════════════════════════════

def _parse_number(raw: str, field_name: str, label: str) -> float:
    if not _NUMBER_RE.match(raw):
        raise ValidationError(f"{label} must be a number.", kind=INVALID_FORMAT, field=field_name)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number.", kind=INVALID_FORMAT, field=field_name)
    if not math.isfinite(value):
        raise ValidationError(f"{label} must be a number.", kind=INVALID_FORMAT, field=field_name)
    if value < 0:
        raise ValidationError(f"{label} cannot be negative.", kind=INVALID_FORMAT, field=field_name)
    return value


def validate_bid(raw: str | None) -> float | None:
    """Return the bid as a float, None for empty input, or raise ValidationError."""
    if raw is None or not raw.strip():
        return None
    value = _parse_number(raw.strip(), "bid", "Bid")
    if value > MAX_CONTRACTOR_BID:
        raise ValidationError(
            f"Bid cannot exceed ${MAX_CONTRACTOR_BID:,}.", kind=RANGE_EXCEEDED, field="bid",
        )
    return value


def validate_timeline(raw: str | None) -> int | None:
    """Return the timeline in whole weeks, None for empty input, or raise ValidationError."""
    if raw is None or not raw.strip():
        return None
    value = _parse_number(raw.strip(), "timeline", "Timeline")
    if not value.is_integer():
        raise ValidationError(
            "Timeline must be a whole number of weeks.", kind=INVALID_FORMAT, field="timeline",
        )
    if value > MAX_TIMELINE_WEEKS:
        raise ValidationError(
            f"Timeline cannot exceed {MAX_TIMELINE_WEEKS} weeks.", kind=RANGE_EXCEEDED, field="timeline",
        )
    return int(value)


# ═══════════════════════════════════════════════════════════════
# Bulk submission
# ═══════════════════════════════════════════════════════════════

def submit_bids(form: Mapping[str, object], store, known_ids=None) -> BatchResult:
    """
    Validate and persist a contractor bid submission.

    Args:
        form: Flat key → value mapping (``bid-<id>``, ``timeline-<id>``).
        store: Scope store exposing ``update_bid_fields(id, bid, timeline)``.
        known_ids: Optional set of existing item ids; other ids are skipped.

    Returns:
        BatchResult with every field-scoped error and the ids written.
    """
    result = BatchResult()
    rows = collect_rows(form)

    for row in rows:
        if known_ids is not None and row.item_id not in known_ids:
            logger.debug("Skipping bid row for unknown item id=%s", row.item_id)
            continue

        values = {}
        for field_name, validator, raw in (
            ("bid", validate_bid, row.raw_bid),
            ("timeline", validate_timeline, row.raw_timeline),
        ):
            try:
                values[field_name] = validator(raw)
            except ValidationError as exc:
                result.add(row.item_id, field_name, exc.kind, str(exc))

        if len(values) < 2:
            continue
        if values["bid"] is None and values["timeline"] is None:
            continue

        try:
            matched = store.update_bid_fields(row.item_id, values["bid"], values["timeline"])
        except StoreError as exc:
            result.add(row.item_id, "row", PERSISTENCE_FAILURE, str(exc))
            continue
        if matched:
            result.saved_ids.append(row.item_id)

    log_extra = {"batch_size": len(rows), "error_count": len(result.errors)}
    if result.ok:
        logger.info("Bid batch saved: rows=%d written=%d", len(rows), len(result.saved_ids), extra=log_extra)
    else:
        logger.info(
            "Bid batch partially saved: rows=%d written=%d errors=%d",
            len(rows), len(result.saved_ids), len(result.errors),
            extra=log_extra,
        )
    return result
