from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from .models.scope import Category, ScopeItem, normalize_category


@dataclass(frozen=True)
class ReferenceStats:
    median: float | None = None
    geometric_mean: float | None = None
    sample_size: int = 0
    matched_on: str | None = None

    @property
    def baseline(self) -> float | None:
        return choose_reference_baseline(self.median, self.geometric_mean)


def median(values: Sequence[float]) -> float | None:
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2.0
    return ordered[mid]


def geometric_mean(values: Iterable[float]) -> float | None:
    positive = [value for value in values if value > 0]
    if not positive:
        return None
    return math.exp(sum(math.log(value) for value in positive) / len(positive))


def choose_reference_baseline(median_value: float | None, geo_mean: float | None) -> float | None:
    """Prefer the smaller statistic when both exist."""
    if median_value is not None and geo_mean is not None:
        return min(median_value, geo_mean)
    return median_value if median_value is not None else geo_mean


def _usable(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def compute_reference_stats(
    references: Iterable[ScopeItem],
    item_id: str,
    category: Category | str,
    column: str,
) -> ReferenceStats:
    """Median and geometric mean of historical hours for one column.

    Samples from the same item id win; otherwise all samples from the same
    category are used. Non-positive values never enter the sample.
    """
    target_category = normalize_category(category)
    folded_id = (item_id or "").casefold()
    per_item: list[float] = []
    per_category: list[float] = []

    for reference in references:
        value = reference.estimates.get(column)
        if not _usable(value):
            continue
        if reference.item_id.casefold() == folded_id:
            per_item.append(value)
        elif reference.category == target_category:
            per_category.append(value)

    if per_item:
        source, matched_on = per_item, "item"
    elif per_category:
        source, matched_on = per_category, "category"
    else:
        return ReferenceStats()

    return ReferenceStats(
        median=median(source),
        geometric_mean=geometric_mean(source),
        sample_size=len(source),
        matched_on=matched_on,
    )


__all__ = [
    "ReferenceStats",
    "median",
    "geometric_mean",
    "choose_reference_baseline",
    "compute_reference_stats",
]
