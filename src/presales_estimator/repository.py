from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol, Sequence

from .errors import NotFoundError
from .models.cost import CostEstimationConfiguration
from .models.policy import EstimationPolicy
from .models.scope import ScopeItem
from .models.timeline import PresalesRole, TimelineRecord


class ConfigurationRepository(Protocol):
    def get_estimation_policy(self) -> EstimationPolicy:
        ...

    def get_cost_configuration(self) -> CostEstimationConfiguration:
        ...

    def get_roles(self) -> Sequence[PresalesRole]:
        ...

    def get_timeline(self, timeline_id: str) -> TimelineRecord:
        ...


class LocalConfigurationRepository:
    """Reads configuration and timeline payloads from JSON files under ``base_path``.

    Policy, cost configuration and roles are optional and fall back to model
    defaults; timelines and reference backlogs must exist.
    """

    POLICY_FILE = "estimation_policy.json"
    COST_FILE = "cost_configuration.json"
    ROLES_FILE = "roles.json"

    def __init__(self, *, base_path: Path) -> None:
        self._base_path = base_path

    def get_estimation_policy(self) -> EstimationPolicy:
        data = self._read_optional(self.POLICY_FILE)
        return EstimationPolicy() if data is None else EstimationPolicy.model_validate(data)

    def get_cost_configuration(self) -> CostEstimationConfiguration:
        data = self._read_optional(self.COST_FILE)
        return CostEstimationConfiguration() if data is None else CostEstimationConfiguration.model_validate(data)

    def get_roles(self) -> list[PresalesRole]:
        data = self._read_optional(self.ROLES_FILE) or []
        return [PresalesRole.model_validate(entry) for entry in data]

    def get_timeline(self, timeline_id: str) -> TimelineRecord:
        file_path = self._base_path / "timelines" / f"{timeline_id}.json"
        if not file_path.exists():
            raise NotFoundError("timeline", timeline_id)
        return TimelineRecord.model_validate(self._read(file_path))

    def get_backlog(self, name: str) -> list[ScopeItem]:
        file_path = self._base_path / "backlogs" / f"{name}.json"
        if not file_path.exists():
            raise NotFoundError("backlog", name)
        return [ScopeItem.model_validate(entry) for entry in self._read(file_path)]

    def _read_optional(self, name: str) -> Any:
        file_path = self._base_path / name
        if not file_path.exists():
            return None
        return self._read(file_path)

    @staticmethod
    def _read(file_path: Path) -> Any:
        with file_path.open("r", encoding="utf-8") as fp:
            return json.load(fp)


__all__ = ["ConfigurationRepository", "LocalConfigurationRepository"]
