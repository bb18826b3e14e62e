from __future__ import annotations

from typing import Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..roles import build_label


class PresalesRole(BaseModel):
    model_config = ConfigDict(frozen=True)

    role_name: str
    expected_level: str = ""

    @property
    def label(self) -> str:
        return build_label(self.role_name, self.expected_level)


class TimelineTask(BaseModel):
    """One scheduled task; ``actor`` may name several roles separated by commas."""

    model_config = ConfigDict(frozen=True)

    task_name: str
    actor: str = ""
    man_days: float = 0.0
    start_day: int = 1
    duration_days: int = 0

    @property
    def actors(self) -> list[str]:
        return [part.strip() for part in self.actor.split(",") if part.strip()]

    @property
    def end_day(self) -> int:
        return self.start_day + self.duration_days - 1

    @property
    def per_day_effort(self) -> float:
        if self.duration_days <= 0:
            return 0.0
        return self.man_days / self.duration_days


class RoleAllocation(BaseModel):
    role: str
    total_man_days: float = 0.0
    daily_effort: Sequence[float] = Field(default_factory=list)

    @property
    def peak_daily_effort(self) -> float:
        return max(self.daily_effort, default=0.0)

    @classmethod
    def from_man_days(cls, man_days: Mapping[str, float]) -> list["RoleAllocation"]:
        return [cls(role=role, total_man_days=value) for role, value in man_days.items()]


class DailyAllocation(BaseModel):
    total_duration_days: int
    allocations: Sequence[RoleAllocation] = Field(default_factory=list)

    def for_role(self, role: str) -> RoleAllocation | None:
        folded = role.casefold()
        return next((row for row in self.allocations if row.role.casefold() == folded), None)


class TimelineRecord(BaseModel):
    timeline_id: str
    project_name: str = ""
    total_duration_days: int = 0
    tasks: Sequence[TimelineTask] = Field(default_factory=list)


__all__ = ["PresalesRole", "TimelineTask", "RoleAllocation", "DailyAllocation", "TimelineRecord"]
