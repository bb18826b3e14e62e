from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def _decimal(value: float) -> Decimal:
    return Decimal(repr(float(value)))


def round_half_away(value: float, digits: int = 0) -> float:
    """Round to ``digits`` decimals, sending exact halves away from zero."""
    quantum = Decimal(1).scaleb(-digits)
    return float(_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round_to_step(value: float, step: float) -> float:
    """Round to the nearest multiple of ``step`` (halves away from zero)."""
    step_dec = _decimal(step)
    units = (_decimal(value) / step_dec).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return float(units * step_dec)


def round_money(value: float) -> float:
    return round(value, 2)


__all__ = ["round_half_away", "round_to_step", "round_money"]
