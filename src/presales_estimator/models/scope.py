from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..casemap import CaseInsensitiveDict, find_case_duplicates, to_case_insensitive
from ..dictionaries import ADJUST_EXISTING_PREFIX, ALLOWED_CATEGORIES


class Category(str, Enum):
    new_ui = "New UI"
    new_interface = "New Interface"
    new_backgrounder = "New Backgrounder"
    adjust_existing_ui = "Adjust Existing UI"
    adjust_existing_logic = "Adjust Existing Logic"

    @property
    def is_adjust_existing(self) -> bool:
        return self.value.startswith(ADJUST_EXISTING_PREFIX)


_CATEGORY_LOOKUP = {category.casefold(): Category(category) for category in ALLOWED_CATEGORIES}


def normalize_category(value: Any) -> Category:
    """Map free-form category text onto the closed set; unknown falls back to New UI."""
    if isinstance(value, Category):
        return value
    text = str(value or "").strip()
    return _CATEGORY_LOOKUP.get(text.casefold(), Category(ALLOWED_CATEGORIES[0]))


class SizeClass(str, Enum):
    xs = "XS"
    s = "S"
    m = "M"
    l = "L"  # noqa: E741
    xl = "XL"

    @property
    def rank(self) -> int:
        return _SIZE_ORDER.index(self)

    @classmethod
    def parse(cls, value: Any) -> "SizeClass | None":
        if isinstance(value, SizeClass):
            return value
        text = str(value or "").strip().upper()
        try:
            return cls(text)
        except ValueError:
            return None


_SIZE_ORDER = (SizeClass.xs, SizeClass.s, SizeClass.m, SizeClass.l, SizeClass.xl)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class ScopeItem(BaseModel):
    item_id: str
    item_name: str = ""
    detail: str = ""
    category: Category = Category.new_ui
    estimates: Mapping[str, float | None] = Field(default_factory=CaseInsensitiveDict)
    is_needed: bool = True
    requested_size: SizeClass | None = None
    justification: str | None = None
    justification_score: float = 0.0
    confidence: float = 0.55

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> Category:
        return normalize_category(value)

    @field_validator("requested_size", mode="before")
    @classmethod
    def _normalize_size(cls, value: Any) -> SizeClass | None:
        return SizeClass.parse(value)

    @field_validator("estimates", mode="before")
    @classmethod
    def _reject_duplicate_columns(cls, value: Any) -> Any:
        if isinstance(value, Mapping) and not isinstance(value, CaseInsensitiveDict):
            duplicates = find_case_duplicates(value.keys())
            if duplicates:
                raise ValueError(f"duplicate estimation columns: {', '.join(duplicates)}")
        return value

    @field_validator("estimates", mode="after")
    @classmethod
    def _case_insensitive_estimates(cls, value: Mapping[str, float | None]) -> CaseInsensitiveDict:
        return to_case_insensitive(value)

    @field_validator("justification_score", "confidence", mode="after")
    @classmethod
    def _clamp_scores(cls, value: float) -> float:
        return _clamp01(value)

    @field_validator("justification", mode="after")
    @classmethod
    def _truncate_justification(cls, value: str | None) -> str | None:
        if value and len(value) > 120:
            return value[:120]
        return value

    @field_serializer("estimates")
    def _dump_estimates(self, value: Mapping[str, float | None]) -> dict[str, float | None]:
        return dict(value.items())


class SignalSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_count: int = 0
    integration_count: int = 0
    workflow_steps: int = 0
    has_upload: bool = False
    has_auth_role: bool = False
    crud_create: bool = False
    crud_read: bool = False
    crud_update: bool = False
    crud_delete: bool = False

    @property
    def crud_count(self) -> int:
        return sum((self.crud_create, self.crud_read, self.crud_update, self.crud_delete))

    @property
    def crud(self) -> str:
        letters = "".join(
            letter
            for letter, flag in zip(
                "CRUD", (self.crud_create, self.crud_read, self.crud_update, self.crud_delete)
            )
            if flag
        )
        return letters or "-"


class DiagnosticMultipliers(BaseModel):
    crud: float = 1.0
    per_field: float = 1.0
    per_integration: float = 1.0
    upload: float = 1.0
    auth: float = 1.0
    per_workflow_step: float = 1.0


class ItemDiagnostics(BaseModel):
    size_class: SizeClass
    complexity_score: float
    signals: SignalSet
    multipliers: DiagnosticMultipliers = Field(default_factory=DiagnosticMultipliers)
    reference_baseline: float | None = None
    justification: str | None = None
    justification_score: float = 0.0
    confidence: float = 0.55
    scope_fit: str = "in"


class NormalizedItem(BaseModel):
    item_id: str
    item_name: str = ""
    category: Category
    is_needed: bool = True
    estimates: Mapping[str, float] = Field(default_factory=CaseInsensitiveDict)
    diagnostics: ItemDiagnostics

    @field_validator("estimates", mode="after")
    @classmethod
    def _case_insensitive_estimates(cls, value: Mapping[str, float]) -> CaseInsensitiveDict:
        return to_case_insensitive(value)

    @field_serializer("estimates")
    def _dump_estimates(self, value: Mapping[str, float]) -> dict[str, float]:
        return dict(value.items())

    @property
    def total_hours(self) -> float:
        return sum(value for value in self.estimates.values() if value > 0)


__all__ = [
    "Category",
    "SizeClass",
    "ScopeItem",
    "SignalSet",
    "DiagnosticMultipliers",
    "ItemDiagnostics",
    "NormalizedItem",
    "normalize_category",
]
