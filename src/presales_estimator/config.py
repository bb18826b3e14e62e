"""
Runtime settings for the estimation engine.

All values default from environment variables:
- ENVIRONMENT                 dev | staging | prod (default dev)
- PROJECT_ID                  GCP project used for Cloud Logging
- PRESALES_DATA_DIR           directory read by LocalConfigurationRepository
- PRESALES_USE_CLOUD_LOGGING  1/true/yes/y/on to enable the Cloud Logging client
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


def _get_env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class EngineSettings:
    environment: str = "dev"
    project_id: Optional[str] = None
    data_dir: Path = Path("data")
    use_cloud_logging: bool = True

    @classmethod
    def from_env(cls) -> "EngineSettings":
        return cls(
            environment=os.getenv("ENVIRONMENT", "dev"),
            project_id=os.getenv("PROJECT_ID") or None,
            data_dir=Path(os.getenv("PRESALES_DATA_DIR", "data")),
            use_cloud_logging=_get_env_bool("PRESALES_USE_CLOUD_LOGGING", True),
        )

    @property
    def is_dev(self) -> bool:
        return self.environment == "dev"


__all__ = ["EngineSettings"]
