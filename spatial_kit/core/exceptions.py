"""Unified spatial exception taxonomy.

Provides a shared base exception hierarchy for every operation, reader
and collaborator in the toolkit. Every domain exception inherits from
``SpatialError`` and carries structured context fields so callers can
make consistent retry and reporting decisions.

Taxonomy categories
-------------------
- ``ValidationError``: invalid input values, never retryable.
- ``TransientError``: temporary failures (network, throttle), retryable.
- ``PermanentError``: unrecoverable failures, not retryable.
- ``ContractError``: operands disagree (CRS, schema), never retryable.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload.
"""

from __future__ import annotations


class SpatialError(Exception):
    """Base exception for all toolkit errors.

    Attributes:
        message: Human-readable error description.
        operation: Operation where the error occurred
            (e.g. ``"interpolate"``, ``"read_file"``).
        code: Machine-readable error code (e.g. ``"CRS_MISMATCH"``).
        retryable: Whether a caller may reasonably retry the call.
    """

    #: Default operation for subclasses (override via class attribute or kwarg).
    default_operation: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        operation: str = "",
        code: str = "",
        retryable: bool = False,
    ) -> None:
        self.message = message
        self.operation = operation or self.default_operation
        self.code = code or self.default_code
        self.retryable = retryable
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "operation": self.operation,
            "message": self.message,
            "retryable": self.retryable,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(SpatialError):
    """Input or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(SpatialError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(SpatialError):
    """Unrecoverable failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(SpatialError):
    """Operands that disagree on CRS or schema. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class UnknownCRS(ValidationError):
    """Raised when a CRS identifier does not resolve to a registered system."""

    default_operation = "crs"
    default_code = "UNKNOWN_CRS"

    def __init__(self, crs: object, detail: str = "") -> None:
        self.crs = crs
        msg = f"Unknown CRS: {crs!r}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


class ProjectionUndefined(PermanentError):
    """Raised when no transformation path exists between two CRS."""

    default_operation = "transform"
    default_code = "PROJECTION_UNDEFINED"

    def __init__(self, source: str, target: str, detail: str = "") -> None:
        self.source = source
        self.target = target
        msg = f"No transformation from {source} to {target}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class CRSMismatch(ContractError):
    """Raised when two operands carry different CRS tags."""

    default_code = "CRS_MISMATCH"

    def __init__(self, left: str, right: str, *, operation: str = "") -> None:
        self.left = left
        self.right = right
        super().__init__(
            f"CRS mismatch: {left} vs {right}; transform one operand first",
            operation=operation,
        )


class CRSNotProjected(ValidationError):
    """Raised when a linear-unit operation is attempted on a geographic CRS."""

    default_code = "CRS_NOT_PROJECTED"

    def __init__(self, crs: str, *, operation: str = "") -> None:
        self.crs = crs
        super().__init__(
            f"{operation or 'Operation'} requires a projected CRS with linear units, "
            f"got geographic {crs}",
            operation=operation,
        )


class SchemaFieldMissing(ContractError):
    """Raised when a referenced attribute is absent from a collection."""

    default_code = "SCHEMA_FIELD_MISSING"

    def __init__(self, field: str, available: list[str] | None = None, *, operation: str = "") -> None:
        self.field = field
        self.available = sorted(available or [])
        msg = f"Field {field!r} is missing"
        if self.available:
            msg = f"{msg}; available: {', '.join(self.available)}"
        super().__init__(msg, operation=operation)


class MalformedGeometry(ValidationError):
    """Raised for unclosed rings, empty or invalid geometries."""

    default_operation = "geometry"
    default_code = "MALFORMED_GEOMETRY"
