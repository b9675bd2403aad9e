"""
Service-wide exception hierarchy.

Services raise these types; blueprints register handlers against them once
and get consistent HTTP status codes everywhere.

Usage:
    from scopebid.core.exceptions import NotFoundError, StoreError, ValidationError

    raise NotFoundError(resource="ScopeItem", resource_id=42)
    raise ValidationError("Bid must be a number", kind=INVALID_FORMAT, field="bid")
"""

# ── Field-scoped error kinds ─────────────────────────────────────────────
INVALID_FORMAT = "InvalidFormat"
RANGE_EXCEEDED = "RangeExceeded"
PERSISTENCE_FAILURE = "PersistenceFailure"

# ── Request-level error kinds ────────────────────────────────────────────
EMPTY_SELECTION = "EmptySelection"
CRITICAL_FAILURE = "CriticalFailure"

# ── Item-scoped, substituted with a placeholder ──────────────────────────
COLLABORATOR_FAILURE = "CollaboratorFailure"


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable model/entity name (e.g. "ScopeItem").
        resource_id: The PK that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a single submitted field fails its check.

    Carries the error kind (``INVALID_FORMAT`` / ``RANGE_EXCEEDED``) and the
    field name so the bulk updater can file it under ``"<field>-<item_id>"``.
    """

    def __init__(self, message: str, *, kind: str = INVALID_FORMAT,
                 field: str | None = None, details: dict | None = None) -> None:
        self.kind = kind
        self.field = field
        self.details = details or {}
        super().__init__(message)


class StoreError(Exception):
    """Raised when the scope store cannot complete a read or write.

    Distinct from a write that matched zero rows, which is reported as a
    ``False`` return value by the store.
    """

    def __init__(self, operation: str, item_id: int | None = None,
                 message: str = "Scope store unavailable") -> None:
        self.operation = operation
        self.item_id = item_id
        super().__init__(message)
