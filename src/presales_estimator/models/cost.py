from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from ..casemap import CaseInsensitiveDict, to_case_insensitive


class CommissionMode(str, Enum):
    manual_amount = "ManualAmount"
    percentage = "Percentage"


class CommissionBracket(BaseModel):
    """Progressive tier; an upper bound of zero or less consumes the remainder."""

    model_config = ConfigDict(frozen=True)

    upper_bound: float
    rate_percent: float

    @property
    def is_terminal(self) -> bool:
        return self.upper_bound <= 0


def _check_terminal_last(brackets: Sequence[CommissionBracket]) -> Sequence[CommissionBracket]:
    for index, bracket in enumerate(brackets):
        if bracket.is_terminal and index != len(brackets) - 1:
            raise ValueError("the remainder bracket (upper_bound <= 0) must be the last bracket")
    return tuple(brackets)


class RateCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    display_name: str = ""
    role_rates: Mapping[str, float] = Field(default_factory=CaseInsensitiveDict)

    @field_validator("role_rates", mode="after")
    @classmethod
    def _case_insensitive(cls, value: Mapping[str, float]) -> CaseInsensitiveDict:
        return to_case_insensitive(value)

    @field_serializer("role_rates")
    def _dump(self, value: Mapping[str, float]) -> dict[str, float]:
        return dict(value.items())


class CostEstimationConfiguration(BaseModel):
    model_config = ConfigDict(frozen=True)

    role_monthly_salaries: Mapping[str, float] = Field(default_factory=CaseInsensitiveDict)
    role_default_headcount: Mapping[str, float] = Field(default_factory=CaseInsensitiveDict)
    rate_cards: Mapping[str, RateCard] = Field(default_factory=CaseInsensitiveDict)
    default_rate_card_key: str = "default"
    default_worst_case_buffer_percent: float = 30.0
    default_annual_interest_rate_percent: float = 30.0
    default_client_payment_delay_months: float = 1.0
    default_overhead_percent: float = 30.0
    default_operational_cost_percent: float = 10.0
    default_tax_percent: float = 1.0
    default_external_commission_percent: float = 0.0
    default_external_commission_mode: CommissionMode = CommissionMode.percentage
    default_multiplier: float = 1.0
    default_discount_percent: float = 0.0
    sales_commission_brackets: Sequence[CommissionBracket] = Field(default_factory=tuple)
    cost_commission_brackets: Sequence[CommissionBracket] = Field(default_factory=tuple)

    @field_validator("role_monthly_salaries", "role_default_headcount", "rate_cards", mode="after")
    @classmethod
    def _case_insensitive(cls, value: Mapping[str, Any]) -> CaseInsensitiveDict:
        return to_case_insensitive(value)

    @field_validator("sales_commission_brackets", "cost_commission_brackets", mode="after")
    @classmethod
    def _terminal_bracket_last(cls, value: Sequence[CommissionBracket]) -> Sequence[CommissionBracket]:
        return _check_terminal_last(value)

    @field_serializer("role_monthly_salaries", "role_default_headcount")
    def _dump_numbers(self, value: Mapping[str, float]) -> dict[str, float]:
        return dict(value.items())

    @field_serializer("rate_cards")
    def _dump_rate_cards(self, value: Mapping[str, RateCard]) -> dict[str, Any]:
        return {key: card.model_dump() for key, card in value.items()}

    def rate_card(self, key: str | None) -> RateCard | None:
        resolved = key if key and key.strip() else self.default_rate_card_key
        return self.rate_cards.get(resolved)


class CostEstimationInputs(BaseModel):
    """Per-estimate knobs; percentages are expressed as 0..100."""

    model_config = ConfigDict(frozen=True)

    worst_case_buffer_percent: float = 0.0
    role_headcounts: Mapping[str, float] = Field(default_factory=CaseInsensitiveDict)
    warranty_analyst_resources: float = 0.0
    warranty_developer_resources: float = 0.0
    warranty_duration_months: int = 0
    annual_interest_rate_percent: float = 0.0
    client_payment_delay_months: float = 0.0
    overhead_percent: float = 0.0
    external_commission_mode: CommissionMode = CommissionMode.percentage
    external_commission_percent: float = 0.0
    external_commission_amount: float = 0.0
    tax_percent: float = 0.0
    operational_cost_percent: float = 0.0
    multiplier: float = 0.0
    discount_percent: float = 0.0
    rate_card_key: str = ""

    @field_validator("role_headcounts", mode="after")
    @classmethod
    def _case_insensitive(cls, value: Mapping[str, float]) -> CaseInsensitiveDict:
        return to_case_insensitive(value)

    @field_serializer("role_headcounts")
    def _dump_headcounts(self, value: Mapping[str, float]) -> dict[str, float]:
        return dict(value.items())


class RoleCostRow(BaseModel):
    role: str
    resources: float
    monthly_salary: float
    best_case_months: float
    worst_case_months: float
    total_cost: float


class WarrantyCostSummary(BaseModel):
    analyst_resources: float = 0.0
    developer_resources: float = 0.0
    duration_months: int = 0
    analyst_monthly_salary: float = 0.0
    developer_monthly_salary: float = 0.0
    total_cost: float = 0.0


class CostComponentSummary(BaseModel):
    financing_cost: float = 0.0
    overhead_cost: float = 0.0
    external_commission: float = 0.0
    operational_cost: float = 0.0
    tax_cost: float = 0.0
    sales_commission: float = 0.0
    cost_commission: float = 0.0


class RevenueRow(BaseModel):
    role: str
    man_days: float
    rate_per_day: float
    man_days_price: float


class RevenueSummary(BaseModel):
    rows: Sequence[RevenueRow] = Field(default_factory=list)
    project_value: float = 0.0
    multiplier: float = 1.0
    discount_percent: float = 0.0
    price_after_multiplier: float = 0.0
    discount_amount: float = 0.0
    price_after_discount: float = 0.0


class ProfitabilitySummary(BaseModel):
    total_cost: float = 0.0
    profit_amount: float = 0.0
    profit_percent: float = 0.0


class CostEstimationResult(BaseModel):
    project_name: str = ""
    inputs: CostEstimationInputs
    role_costs: Sequence[RoleCostRow] = Field(default_factory=list)
    total_salaries: float = 0.0
    project_duration_months: float = 0.0
    warranty: WarrantyCostSummary = Field(default_factory=WarrantyCostSummary)
    components: CostComponentSummary = Field(default_factory=CostComponentSummary)
    revenue: RevenueSummary = Field(default_factory=RevenueSummary)
    profitability: ProfitabilitySummary = Field(default_factory=ProfitabilitySummary)


class GoalSeekRequest(BaseModel):
    inputs: CostEstimationInputs | None = None
    target_field: str
    target_value: float
    adjustable_field: str
    min_value: float | None = None
    max_value: float | None = None


class GoalSeekResponse(BaseModel):
    inputs: CostEstimationInputs
    result: CostEstimationResult
    iterations: int = 0
    converged: bool = False


__all__ = [
    "CommissionMode",
    "CommissionBracket",
    "RateCard",
    "CostEstimationConfiguration",
    "CostEstimationInputs",
    "RoleCostRow",
    "WarrantyCostSummary",
    "CostComponentSummary",
    "RevenueRow",
    "RevenueSummary",
    "ProfitabilitySummary",
    "CostEstimationResult",
    "GoalSeekRequest",
    "GoalSeekResponse",
]
