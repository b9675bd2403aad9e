"""
Renovation Scope Bidding Service
AI response normalization.

Inference back-ends answer in one of several shapes. ``normalize_response``
maps each to a tagged ``AIResponse``:

    TEXT          plain string response
    STRUCTURED    mapping carrying a "result" field
    UNRECOGNIZED  anything else, including blank text (falls back to UNAVAILABLE_TEXT)
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

TEXT = "text"
STRUCTURED = "structured"
UNRECOGNIZED = "unrecognized"

UNAVAILABLE_TEXT = "AI risk assessment unavailable."


@dataclass(frozen=True)
class AIResponse:
    kind: str
    text: str

    @property
    def recognized(self) -> bool:
        return self.kind != UNRECOGNIZED


def normalize_response(raw, *, context: str = "") -> AIResponse:
    """Classify a raw inference response and extract its narrative text."""
    if isinstance(raw, str) and raw.strip():
        return AIResponse(TEXT, raw.strip())

    if isinstance(raw, Mapping) and "result" in raw:
        result = raw["result"]
        if isinstance(result, str) and result.strip():
            return AIResponse(STRUCTURED, result.strip())
        # Workers AI nests the narrative one level down: {"result": {"response": "..."}}
        if (isinstance(result, Mapping) and isinstance(result.get("response"), str)
                and result["response"].strip()):
            return AIResponse(STRUCTURED, result["response"].strip())

    logger.warning("Unrecognized AI response shape%s: %s",
                   f" ({context})" if context else "", describe_payload(raw))
    return AIResponse(UNRECOGNIZED, UNAVAILABLE_TEXT)


def describe_payload(payload) -> str:
    """Compact, log-safe description of an unexpected provider payload."""
    try:
        text = json.dumps(payload, default=str)
    except (TypeError, ValueError):
        text = repr(payload)
    return text[:200]
