from __future__ import annotations

import logging
import math
from typing import Any, Callable, Mapping, Sequence

from .casemap import CaseInsensitiveDict
from .dictionaries import WARRANTY_ANALYST_CHAIN, WARRANTY_DEVELOPER_CHAIN, WORKING_DAYS_PER_MONTH
from .models.cost import (
    CommissionBracket,
    CommissionMode,
    CostComponentSummary,
    CostEstimationConfiguration,
    CostEstimationInputs,
    CostEstimationResult,
    ProfitabilitySummary,
    RevenueRow,
    RevenueSummary,
    RoleCostRow,
    WarrantyCostSummary,
)
from .models.timeline import RoleAllocation
from .roles import find_role_value, lookup_first_positive, lookup_role_value
from .rounding import round_money

logger = logging.getLogger(__name__)

MINIMUM_MULTIPLIER = 0.01


# An override replaces the configured default only when the predicate accepts it.
_OVERRIDE_RULES: Mapping[str, Callable[[Any], bool]] = {
    "worst_case_buffer_percent": lambda value: True,
    "warranty_analyst_resources": lambda value: True,
    "warranty_developer_resources": lambda value: True,
    "warranty_duration_months": lambda value: value > 0,
    "annual_interest_rate_percent": lambda value: value > 0,
    "client_payment_delay_months": lambda value: value >= 0,
    "overhead_percent": lambda value: value >= 0,
    "external_commission_mode": lambda value: True,
    "external_commission_percent": lambda value: True,
    "external_commission_amount": lambda value: True,
    "tax_percent": lambda value: value >= 0,
    "operational_cost_percent": lambda value: value >= 0,
    "multiplier": lambda value: value > 0,
    "discount_percent": lambda value: True,
    "rate_card_key": lambda value: bool(value and value.strip()),
}

_NON_NEGATIVE_FIELDS: Sequence[str] = (
    "worst_case_buffer_percent",
    "warranty_analyst_resources",
    "warranty_developer_resources",
    "warranty_duration_months",
    "annual_interest_rate_percent",
    "client_payment_delay_months",
    "overhead_percent",
    "external_commission_percent",
    "external_commission_amount",
    "tax_percent",
    "operational_cost_percent",
    "discount_percent",
)


def merge_inputs(
    configuration: CostEstimationConfiguration,
    overrides: CostEstimationInputs | None = None,
) -> CostEstimationInputs:
    """Seed inputs from configuration defaults, layer explicit overrides, then clamp."""
    values: dict[str, Any] = {
        "worst_case_buffer_percent": configuration.default_worst_case_buffer_percent,
        "warranty_analyst_resources": 0.0,
        "warranty_developer_resources": 0.0,
        "warranty_duration_months": 1,
        "annual_interest_rate_percent": configuration.default_annual_interest_rate_percent,
        "client_payment_delay_months": configuration.default_client_payment_delay_months,
        "overhead_percent": configuration.default_overhead_percent,
        "external_commission_mode": configuration.default_external_commission_mode,
        "external_commission_percent": configuration.default_external_commission_percent,
        "external_commission_amount": 0.0,
        "tax_percent": configuration.default_tax_percent,
        "operational_cost_percent": configuration.default_operational_cost_percent,
        "multiplier": configuration.default_multiplier,
        "discount_percent": configuration.default_discount_percent,
        "rate_card_key": configuration.default_rate_card_key,
    }
    headcounts: CaseInsensitiveDict[float] = CaseInsensitiveDict()

    if overrides is not None:
        supplied = overrides.model_fields_set
        for name, accept in _OVERRIDE_RULES.items():
            if name not in supplied:
                continue
            value = getattr(overrides, name)
            if accept(value):
                values[name] = value
        for role, count in overrides.role_headcounts.items():
            if role and role.strip():
                headcounts[role] = count

    for name in _NON_NEGATIVE_FIELDS:
        values[name] = max(0, values[name])
    values["multiplier"] = max(MINIMUM_MULTIPLIER, values["multiplier"])

    return CostEstimationInputs(role_headcounts=headcounts, **values)


def apply_commission(brackets: Sequence[CommissionBracket] | None, amount: float) -> float:
    """Progressive (tax-bracket style) commission over ``amount``.

    Brackets are walked in order; a bracket with a non-positive upper bound
    takes whatever remains at its rate and ends the walk.
    """
    if amount <= 0 or not brackets:
        return 0.0

    remaining = amount
    total = 0.0
    for bracket in brackets:
        if bracket.is_terminal:
            total += remaining * bracket.rate_percent / 100.0
            break
        applied = min(remaining, bracket.upper_bound)
        total += applied * bracket.rate_percent / 100.0
        remaining -= applied
        if remaining <= 0:
            break
    return total


def resolve_headcount(
    allocation: RoleAllocation,
    inputs: CostEstimationInputs,
    configuration: CostEstimationConfiguration,
) -> float:
    role = allocation.role
    if role and role.strip():
        custom = inputs.role_headcounts.get(role)
        if custom is not None and custom > 0:
            return custom
        default = find_role_value(configuration.role_default_headcount, role)
        if default is not None and default > 0:
            return default

    peak = allocation.peak_daily_effort
    if peak > 0:
        return max(1.0, float(math.ceil(peak)))
    return 1.0


class CostModel:
    """Cost, revenue and profitability for one set of per-role man-days.

    ``calculate`` is pure: every call recomputes from its arguments and the
    configuration is never modified.
    """

    def __init__(self, configuration: CostEstimationConfiguration | None = None) -> None:
        self._configuration = configuration or CostEstimationConfiguration()

    @property
    def configuration(self) -> CostEstimationConfiguration:
        return self._configuration

    def merge_inputs(self, overrides: CostEstimationInputs | None = None) -> CostEstimationInputs:
        return merge_inputs(self._configuration, overrides)

    def calculate(
        self,
        allocations: Sequence[RoleAllocation],
        inputs: CostEstimationInputs,
        *,
        project_name: str = "",
    ) -> CostEstimationResult:
        configuration = self._configuration
        role_costs: list[RoleCostRow] = []
        resolved_headcounts = CaseInsensitiveDict(inputs.role_headcounts)
        total_salary = 0.0
        max_duration = 0.0
        buffer_factor = 1.0 + inputs.worst_case_buffer_percent / 100.0

        for allocation in allocations:
            monthly_salary = lookup_role_value(configuration.role_monthly_salaries, allocation.role, 0.0)
            resources = resolve_headcount(allocation, inputs, configuration)
            best_case_months = allocation.total_man_days / WORKING_DAYS_PER_MONTH
            worst_case_months = best_case_months * buffer_factor
            total = resources * monthly_salary * worst_case_months
            total_salary += total
            max_duration = max(max_duration, worst_case_months)
            if allocation.role and allocation.role.strip():
                resolved_headcounts[allocation.role] = resources

            role_costs.append(
                RoleCostRow(
                    role=allocation.role,
                    resources=round(resources, 2),
                    monthly_salary=monthly_salary,
                    best_case_months=round(best_case_months, 4),
                    worst_case_months=round(worst_case_months, 4),
                    total_cost=round_money(total),
                )
            )

        warranty, warranty_cost = self._warranty(inputs)
        revenue, price_after_discount = self._revenue(allocations, inputs)

        operational_cost = inputs.operational_cost_percent / 100.0 * price_after_discount
        amount_to_finance = total_salary + warranty_cost + operational_cost
        financing_years = (max_duration + inputs.client_payment_delay_months) / 12.0
        financing_cost = inputs.annual_interest_rate_percent / 100.0 * financing_years * amount_to_finance
        overhead_cost = inputs.overhead_percent / 100.0 * (total_salary + warranty_cost + financing_cost)

        if inputs.external_commission_mode is CommissionMode.manual_amount:
            external_commission = inputs.external_commission_amount
        else:
            external_commission = inputs.external_commission_percent / 100.0 * price_after_discount

        tax_cost = inputs.tax_percent / 100.0 * price_after_discount
        sales_commission = apply_commission(configuration.sales_commission_brackets, price_after_discount)

        base_cost = (
            total_salary
            + warranty_cost
            + financing_cost
            + overhead_cost
            + external_commission
            + operational_cost
            + tax_cost
            + sales_commission
        )
        cost_commission = apply_commission(configuration.cost_commission_brackets, base_cost)
        total_cost = base_cost + cost_commission
        profit_amount = price_after_discount - total_cost
        if round_money(price_after_discount) == 0:
            profit_percent = 0.0
        else:
            profit_percent = profit_amount / price_after_discount * 100.0

        logger.debug(
            "Cost model evaluated",
            extra={
                "fields": {
                    "roles": len(role_costs),
                    "price_after_discount": round_money(price_after_discount),
                    "total_cost": round_money(total_cost),
                    "profit_percent": round_money(profit_percent),
                }
            },
        )

        return CostEstimationResult(
            project_name=project_name,
            inputs=inputs.model_copy(update={"role_headcounts": resolved_headcounts}),
            role_costs=role_costs,
            total_salaries=round_money(total_salary),
            project_duration_months=round_money(max_duration),
            warranty=warranty,
            components=CostComponentSummary(
                financing_cost=round_money(financing_cost),
                overhead_cost=round_money(overhead_cost),
                external_commission=round_money(external_commission),
                operational_cost=round_money(operational_cost),
                tax_cost=round_money(tax_cost),
                sales_commission=round_money(sales_commission),
                cost_commission=round_money(cost_commission),
            ),
            revenue=revenue,
            profitability=ProfitabilitySummary(
                total_cost=round_money(total_cost),
                profit_amount=round_money(profit_amount),
                profit_percent=round_money(profit_percent),
            ),
        )

    def _warranty(self, inputs: CostEstimationInputs) -> tuple[WarrantyCostSummary, float]:
        salaries = self._configuration.role_monthly_salaries
        analyst_salary = lookup_first_positive(salaries, WARRANTY_ANALYST_CHAIN)
        developer_salary = lookup_first_positive(salaries, WARRANTY_DEVELOPER_CHAIN)
        months = inputs.warranty_duration_months
        total = (
            inputs.warranty_analyst_resources * analyst_salary * months
            + inputs.warranty_developer_resources * developer_salary * months
        )
        summary = WarrantyCostSummary(
            analyst_resources=inputs.warranty_analyst_resources,
            developer_resources=inputs.warranty_developer_resources,
            duration_months=months,
            analyst_monthly_salary=analyst_salary,
            developer_monthly_salary=developer_salary,
            total_cost=round_money(total),
        )
        return summary, total

    def _revenue(
        self,
        allocations: Sequence[RoleAllocation],
        inputs: CostEstimationInputs,
    ) -> tuple[RevenueSummary, float]:
        rate_card = self._configuration.rate_card(inputs.rate_card_key)
        rows: list[RevenueRow] = []
        project_value = 0.0
        for allocation in allocations:
            rate = lookup_role_value(rate_card.role_rates, allocation.role, 0.0) if rate_card else 0.0
            price = allocation.total_man_days * rate
            project_value += price
            rows.append(
                RevenueRow(
                    role=allocation.role,
                    man_days=allocation.total_man_days,
                    rate_per_day=rate,
                    man_days_price=round_money(price),
                )
            )

        price_after_multiplier = project_value * inputs.multiplier
        discount_amount = price_after_multiplier * inputs.discount_percent / 100.0
        price_after_discount = price_after_multiplier - discount_amount
        summary = RevenueSummary(
            rows=rows,
            project_value=round_money(project_value),
            multiplier=inputs.multiplier,
            discount_percent=inputs.discount_percent,
            price_after_multiplier=round_money(price_after_multiplier),
            discount_amount=round_money(discount_amount),
            price_after_discount=round_money(price_after_discount),
        )
        return summary, price_after_discount


__all__ = ["CostModel", "merge_inputs", "apply_commission", "resolve_headcount"]
