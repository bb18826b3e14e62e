from __future__ import annotations


class EstimationError(Exception):
    """Base class for every error raised by the estimation engine."""


class NotFoundError(EstimationError):
    """Upstream data (configuration, timeline) the caller asked for does not exist."""

    def __init__(self, kind: str, identifier: str | None = None) -> None:
        self.kind = kind
        self.identifier = identifier
        detail = f"{kind} not found" if identifier is None else f"{kind} not found: {identifier}"
        super().__init__(detail)


class NoValidEstimateError(EstimationError):
    """An item produced no usable estimation column."""

    def __init__(self, item_id: str, reason: str = "no usable estimation columns") -> None:
        self.item_id = item_id
        self.reason = reason
        super().__init__(f"No valid estimate for item {item_id!r}: {reason}")


class UnsupportedFieldError(EstimationError, ValueError):
    """Goal-seek adjustable/target key outside the fixed registry."""

    def __init__(self, field: str, key: str | None) -> None:
        self.field = field
        self.key = key
        super().__init__(f"Unsupported {field} field: {key!r}")


__all__ = ["EstimationError", "NotFoundError", "NoValidEstimateError", "UnsupportedFieldError"]
