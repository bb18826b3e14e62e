from __future__ import annotations

import logging
from typing import Iterable, Sequence

from .casemap import CaseInsensitiveDict
from .dictionaries import MINIMUM_SPECIAL_ROLE_EFFORT, SPECIAL_ROLES
from .models.timeline import DailyAllocation, PresalesRole, RoleAllocation, TimelineTask
from .roles import role_matches

logger = logging.getLogger(__name__)

MINIMUM_KEPT_MAN_DAYS = 0.01


def total_project_days(tasks: Iterable[TimelineTask], configured_total: int = 0) -> int:
    last_day = max((task.end_day for task in tasks), default=0)
    return max(configured_total, last_day, 0)


def is_special_role(role: str) -> bool:
    return any(role_matches(role, special) for special in SPECIAL_ROLES)


def _apply_special_role_floor(allocation: CaseInsensitiveDict[list[float]]) -> None:
    """Keep PM and Architect rows at half a day or more on every project day."""
    for role, values in allocation.items():
        if not is_special_role(role):
            continue
        for day, value in enumerate(values):
            values[day] = max(value, MINIMUM_SPECIAL_ROLE_EFFORT)


class ResourceAllocator:
    """Turns scheduled tasks into a per-role, per-day effort matrix."""

    def __init__(self, roles: Sequence[PresalesRole] = ()) -> None:
        self._roles = tuple(roles)

    def allocate(self, tasks: Sequence[TimelineTask], total_duration_days: int = 0) -> DailyAllocation:
        total_days = total_project_days(tasks, total_duration_days)
        allocation: CaseInsensitiveDict[list[float]] = CaseInsensitiveDict()

        def ensure_row(role: str) -> list[float]:
            if role not in allocation:
                allocation[role] = [0.0] * total_days
            return allocation[role]

        configured_labels = [role.label for role in self._roles if role.label]
        for label in configured_labels:
            ensure_row(label)

        for task in tasks:
            if task.duration_days <= 0:
                continue
            actors = task.actors
            per_day = task.per_day_effort
            if not actors or per_day <= 0:
                continue
            per_actor = per_day / len(actors)
            actor_rows = [ensure_row(actor) for actor in actors]
            for day in range(task.start_day, task.end_day + 1):
                if day <= 0 or day > total_days:
                    continue
                for row in actor_rows:
                    row[day - 1] += per_actor

        _apply_special_role_floor(allocation)

        rows: list[RoleAllocation] = []
        for role, values in allocation.items():
            daily = [round(value, 2) for value in values]
            total = round(sum(daily), 2)
            if total <= MINIMUM_KEPT_MAN_DAYS and not is_special_role(role):
                continue
            rows.append(RoleAllocation(role=role, total_man_days=total, daily_effort=daily))

        order: CaseInsensitiveDict[int] = CaseInsensitiveDict()
        for index, label in enumerate(configured_labels):
            order.setdefault(label, index)
        rows.sort(key=lambda row: (0, order[row.role], "") if row.role in order else (1, 0, row.role.casefold()))

        logger.debug(
            "Allocated %d roles over %d days",
            len(rows),
            total_days,
            extra={"fields": {"roles": [row.role for row in rows], "total_days": total_days}},
        )
        return DailyAllocation(total_duration_days=total_days, allocations=rows)


def allocate_resources(
    tasks: Sequence[TimelineTask],
    roles: Sequence[PresalesRole] = (),
    total_duration_days: int = 0,
) -> DailyAllocation:
    return ResourceAllocator(roles).allocate(tasks, total_duration_days)


__all__ = ["ResourceAllocator", "allocate_resources", "total_project_days", "is_special_role"]
