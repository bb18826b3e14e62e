from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from .casemap import CaseInsensitiveDict
from .dictionaries import HOURS_PER_MAN_DAY, UNASSIGNED_ROLE
from .models.scope import NormalizedItem


def _positive_hours(estimates: Mapping[str, float | None]) -> Iterable[tuple[str, float]]:
    for column, hours in estimates.items():
        if hours is None or hours <= 0:
            continue
        name = (column or "").strip()
        if name:
            yield name, hours


def aggregate_column_effort(items: Iterable[NormalizedItem]) -> CaseInsensitiveDict[float]:
    result: CaseInsensitiveDict[float] = CaseInsensitiveDict()
    for item in items:
        if not item.is_needed:
            continue
        for column, hours in _positive_hours(item.estimates):
            result[column] = result.get(column, 0.0) + hours / HOURS_PER_MAN_DAY
    return result


def aggregate_item_effort(items: Iterable[NormalizedItem]) -> CaseInsensitiveDict[float]:
    result: CaseInsensitiveDict[float] = CaseInsensitiveDict()
    for item in items:
        name = (item.item_name or "").strip()
        if not item.is_needed or not name:
            continue
        total_hours = sum(hours for _, hours in _positive_hours(item.estimates))
        if total_hours <= 0:
            continue
        result[name] = result.get(name, 0.0) + total_hours / HOURS_PER_MAN_DAY
    return result


def calculate_role_man_days(
    items: Iterable[NormalizedItem],
    column_roles: Mapping[str, Sequence[str]],
) -> CaseInsensitiveDict[float]:
    """Split each column's man-days evenly over the roles mapped to it."""
    mapping = CaseInsensitiveDict(column_roles)
    result: CaseInsensitiveDict[float] = CaseInsensitiveDict()
    for column, man_days in aggregate_column_effort(items).items():
        roles = CaseInsensitiveDict(
            (role.strip(), None) for role in mapping.get(column, ()) if role and role.strip()
        )
        if not roles:
            result[UNASSIGNED_ROLE] = result.get(UNASSIGNED_ROLE, 0.0) + man_days
            continue
        share = man_days / len(roles)
        for role in roles:
            result[role] = result.get(role, 0.0) + share
    return result


__all__ = ["aggregate_column_effort", "aggregate_item_effort", "calculate_role_man_days"]
