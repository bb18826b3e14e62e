from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from ..casemap import CaseInsensitiveDict, to_case_insensitive
from ..dictionaries import DEFAULT_CATEGORY_BANDS, FALLBACK_BANDS
from .scope import SizeClass


class CategoryBands(BaseModel):
    """Five ordered hour points (XS..XL) used as the size-to-hours basis."""

    model_config = ConfigDict(frozen=True)

    xs: float
    s: float
    m: float
    l: float  # noqa: E741
    xl: float

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            if len(value) != 5:
                raise ValueError("category bands need exactly five points (XS, S, M, L, XL)")
            return dict(zip(("xs", "s", "m", "l", "xl"), value))
        return value

    @model_validator(mode="after")
    def _check_monotonic(self) -> "CategoryBands":
        points = self.points
        if any(later < earlier for earlier, later in zip(points, points[1:])):
            raise ValueError(f"category bands must be non-decreasing, got {points}")
        return self

    @property
    def points(self) -> tuple[float, float, float, float, float]:
        return (self.xs, self.s, self.m, self.l, self.xl)

    def midpoint(self, size: SizeClass) -> float:
        """XS is the XS point itself; larger sizes sit between adjacent points."""
        if size is SizeClass.xs:
            return self.xs
        index = size.rank
        points = self.points
        return (points[index - 1] + points[index]) / 2.0


def _default_bands() -> CaseInsensitiveDict[CategoryBands]:
    return CaseInsensitiveDict(
        {category: CategoryBands.model_validate(points) for category, points in DEFAULT_CATEGORY_BANDS.items()}
    )


class EstimationPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_hours_by_category: Mapping[str, CategoryBands] = Field(default_factory=_default_bands)
    fallback_bands: CategoryBands = Field(default_factory=lambda: CategoryBands.model_validate(FALLBACK_BANDS))

    crud_create_multiplier: float = Field(default=1.0, ge=0)
    crud_read_multiplier: float = Field(default=0.7, ge=0)
    crud_update_multiplier: float = Field(default=0.9, ge=0)
    crud_delete_multiplier: float = Field(default=0.6, ge=0)

    per_field_hours: float = 0.15
    per_integration_hours: float = 6.0
    file_upload_hours: float = 2.0
    auth_roles_hours: float = 3.0
    workflow_step_hours: float = 1.5

    reference_cap_multiplier: float = 1.10
    shrinkage_weight: float = Field(default=0.9, ge=0, le=1)
    hard_max_per_item_hours: float = 80.0
    hard_min_per_item_hours: float = 1.0

    cap_adjust_categories_to_max_m: bool = True
    justification_score_threshold: float = 0.7

    round_to_nearest_hours: float = 0.5

    @field_validator("base_hours_by_category", mode="after")
    @classmethod
    def _case_insensitive_bands(cls, value: Mapping[str, CategoryBands]) -> CaseInsensitiveDict:
        return to_case_insensitive(value)

    @model_validator(mode="after")
    def _check_hard_limits(self) -> "EstimationPolicy":
        if self.hard_min_per_item_hours > self.hard_max_per_item_hours:
            raise ValueError("hard_min_per_item_hours must not exceed hard_max_per_item_hours")
        return self

    @field_serializer("base_hours_by_category")
    def _dump_bands(self, value: Mapping[str, CategoryBands]) -> dict[str, Any]:
        return {key: bands.model_dump() for key, bands in value.items()}

    @property
    def rounding_step(self) -> float:
        return max(0.1, self.round_to_nearest_hours)

    def bands_for(self, category: str) -> CategoryBands:
        return self.base_hours_by_category.get(category, self.fallback_bands)


__all__ = ["CategoryBands", "EstimationPolicy"]
