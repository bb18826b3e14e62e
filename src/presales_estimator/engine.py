from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from .aggregator import aggregate_column_effort, calculate_role_man_days
from .casemap import CaseInsensitiveDict
from .config import EngineSettings
from .cost_model import CostModel
from .errors import NotFoundError
from .goal_seek import GoalSeeker
from .logging_config import request_scope, setup_logging
from .models.cost import CostEstimationConfiguration, CostEstimationInputs, CostEstimationResult, GoalSeekRequest, GoalSeekResponse
from .models.policy import EstimationPolicy
from .models.scope import NormalizedItem, ScopeItem
from .models.timeline import DailyAllocation, PresalesRole, RoleAllocation, TimelineRecord, TimelineTask
from .normalizer import EffortNormalizer
from .repository import ConfigurationRepository, LocalConfigurationRepository
from .timeline import ResourceAllocator

logger = logging.getLogger(__name__)


@dataclass
class EstimationBundle:
    items: list[NormalizedItem]
    column_man_days: Mapping[str, float]
    role_man_days: Mapping[str, float]
    allocations: list[RoleAllocation]
    cost: CostEstimationResult
    daily_allocation: DailyAllocation | None = None
    goal_seek: GoalSeekResponse | None = None
    project_name: str = ""
    request_id: str | None = None
    notes: list[str] = field(default_factory=list)

    def model_dump(self) -> dict[str, object]:
        return {
            "project_name": self.project_name,
            "request_id": self.request_id,
            "items": [
                {**item.model_dump(), "total_hours": item.total_hours}
                for item in self.items
            ],
            "column_man_days": dict(self.column_man_days.items()),
            "role_man_days": dict(self.role_man_days.items()),
            "allocations": [allocation.model_dump() for allocation in self.allocations],
            "daily_allocation": self.daily_allocation.model_dump() if self.daily_allocation else None,
            "cost": self.cost.model_dump(),
            "goal_seek": self.goal_seek.model_dump() if self.goal_seek else None,
            "notes": list(self.notes),
        }


class PresalesEngine:
    """End-to-end estimation: backlog hours, man-days, daily allocation, cost and goal seek."""

    def __init__(
        self,
        *,
        policy: EstimationPolicy | None = None,
        cost_configuration: CostEstimationConfiguration | None = None,
        roles: Sequence[PresalesRole] = (),
        repository: ConfigurationRepository | None = None,
    ) -> None:
        self._normalizer = EffortNormalizer(policy)
        self._cost_model = CostModel(cost_configuration)
        self._roles = tuple(roles)
        self._repository = repository

    @classmethod
    def from_repository(cls, repository: ConfigurationRepository) -> "PresalesEngine":
        return cls(
            policy=repository.get_estimation_policy(),
            cost_configuration=repository.get_cost_configuration(),
            roles=repository.get_roles(),
            repository=repository,
        )

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None) -> "PresalesEngine":
        settings = settings or EngineSettings.from_env()
        setup_logging(
            environment=settings.environment,
            project_id=settings.project_id,
            use_cloud_logging=settings.use_cloud_logging,
        )
        return cls.from_repository(LocalConfigurationRepository(base_path=settings.data_dir))

    @property
    def policy(self) -> EstimationPolicy:
        return self._normalizer.policy

    @property
    def cost_configuration(self) -> CostEstimationConfiguration:
        return self._cost_model.configuration

    def estimate(
        self,
        items: Iterable[ScopeItem],
        columns: Sequence[str] | None = None,
        references: Sequence[ScopeItem] = (),
    ) -> list[NormalizedItem]:
        return self._normalizer.normalize_backlog(items, columns, references)

    def role_man_days(
        self,
        items: Iterable[NormalizedItem],
        column_roles: Mapping[str, Sequence[str]],
    ) -> CaseInsensitiveDict[float]:
        return calculate_role_man_days(items, column_roles)

    def allocate(
        self,
        tasks: Sequence[TimelineTask],
        roles: Sequence[PresalesRole] | None = None,
        total_duration_days: int = 0,
    ) -> DailyAllocation:
        allocator = ResourceAllocator(self._roles if roles is None else roles)
        return allocator.allocate(tasks, total_duration_days)

    def load_timeline(self, timeline_id: str) -> TimelineRecord:
        if self._repository is None:
            raise NotFoundError("timeline", timeline_id)
        return self._repository.get_timeline(timeline_id)

    def cost(
        self,
        allocations: Sequence[RoleAllocation],
        overrides: CostEstimationInputs | None = None,
        *,
        project_name: str = "",
    ) -> CostEstimationResult:
        inputs = self._cost_model.merge_inputs(overrides)
        return self._cost_model.calculate(allocations, inputs, project_name=project_name)

    def cost_timeline(
        self,
        timeline_id: str,
        overrides: CostEstimationInputs | None = None,
    ) -> CostEstimationResult:
        """Cost a stored timeline; raises ``NotFoundError`` when it cannot be loaded."""
        record = self.load_timeline(timeline_id)
        allocation = self.allocate(record.tasks, total_duration_days=record.total_duration_days)
        return self.cost(allocation.allocations, overrides, project_name=record.project_name)

    def goal_seek(
        self,
        allocations: Sequence[RoleAllocation],
        request: GoalSeekRequest,
        *,
        project_name: str = "",
    ) -> GoalSeekResponse:
        return GoalSeeker(self._cost_model).solve(allocations, request, project_name=project_name)

    def run(
        self,
        items: Iterable[ScopeItem],
        *,
        column_roles: Mapping[str, Sequence[str]],
        columns: Sequence[str] | None = None,
        references: Sequence[ScopeItem] = (),
        tasks: Sequence[TimelineTask] | None = None,
        total_duration_days: int = 0,
        overrides: CostEstimationInputs | None = None,
        goal: GoalSeekRequest | None = None,
        project_name: str = "",
        request_id: str | None = None,
    ) -> EstimationBundle:
        with request_scope(request_id) as bound_request_id:
            normalized = self.estimate(items, columns, references)
            column_man_days = aggregate_column_effort(normalized)
            role_man_days = self.role_man_days(normalized, column_roles)
            notes: list[str] = []

            daily_allocation: DailyAllocation | None = None
            if tasks:
                daily_allocation = self.allocate(tasks, total_duration_days=total_duration_days)
                allocations = list(daily_allocation.allocations)
                notes.append("Costed from the scheduled timeline")
            else:
                allocations = RoleAllocation.from_man_days(role_man_days)
                notes.append("Costed from backlog man-days without a timeline")

            cost = self.cost(allocations, overrides, project_name=project_name)
            goal_response = None
            if goal is not None:
                goal_response = self.goal_seek(allocations, goal, project_name=project_name)
                if not goal_response.converged:
                    notes.append(f"Goal seek on {goal.adjustable_field} did not converge")

            logger.info(
                "Estimation finished for %s",
                project_name or "unnamed project",
                extra={
                    "fields": {
                        "items": len(normalized),
                        "roles": len(allocations),
                        "profit_percent": cost.profitability.profit_percent,
                    }
                },
            )
        return EstimationBundle(
            items=normalized,
            column_man_days=column_man_days,
            role_man_days=role_man_days,
            allocations=allocations,
            cost=cost,
            daily_allocation=daily_allocation,
            goal_seek=goal_response,
            project_name=project_name,
            request_id=bound_request_id,
            notes=notes,
        )


__all__ = ["EstimationBundle", "PresalesEngine"]
