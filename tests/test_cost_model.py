import pytest

from presales_estimator.cost_model import CostModel, apply_commission, merge_inputs, resolve_headcount
from presales_estimator.models.cost import (
    CommissionBracket,
    CommissionMode,
    CostEstimationConfiguration,
    CostEstimationInputs,
)
from presales_estimator.models.timeline import RoleAllocation


def _configuration(**overrides) -> CostEstimationConfiguration:
    payload = {
        "role_monthly_salaries": {"Dev": 10_000_000},
        "rate_cards": {"default": {"role_rates": {"Dev": 1_500_000}}},
    }
    payload.update(overrides)
    return CostEstimationConfiguration.model_validate(payload)


def _dev(man_days: float = 40, daily: list[float] | None = None) -> list[RoleAllocation]:
    return [RoleAllocation(role="Dev", total_man_days=man_days, daily_effort=daily or [])]


def test_reference_project_figures():
    model = CostModel(_configuration())

    result = model.calculate(_dev(), model.merge_inputs())

    row = result.role_costs[0]
    assert row.resources == 1
    assert row.best_case_months == 2.0
    assert row.worst_case_months == 2.6
    assert result.total_salaries == pytest.approx(26_000_000)
    assert result.revenue.project_value == pytest.approx(60_000_000)
    assert result.components.operational_cost == pytest.approx(6_000_000)
    assert result.components.financing_cost == pytest.approx(2_880_000)
    assert result.components.overhead_cost == pytest.approx(8_664_000)
    assert result.components.tax_cost == pytest.approx(600_000)
    assert result.profitability.total_cost == pytest.approx(44_144_000)
    assert result.profitability.profit_amount == pytest.approx(15_856_000)
    assert result.profitability.profit_percent == pytest.approx(26.43)
    assert result.inputs.role_headcounts["dev"] == 1


def test_headcount_resolution_order():
    configuration = _configuration(role_default_headcount={"Dev": 3})
    allocation = RoleAllocation(role="Dev", total_man_days=40, daily_effort=[2.4] * 20)

    explicit = CostEstimationInputs(role_headcounts={"dev": 2})
    assert resolve_headcount(allocation, explicit, configuration) == 2
    assert resolve_headcount(allocation, CostEstimationInputs(), configuration) == 3
    assert resolve_headcount(allocation, CostEstimationInputs(), _configuration()) == 3.0
    assert resolve_headcount(RoleAllocation(role="QA"), CostEstimationInputs(), configuration) == 1.0


def test_peak_daily_effort_scales_salary_cost():
    model = CostModel(_configuration())

    result = model.calculate(_dev(daily=[2.0] * 20), model.merge_inputs())

    assert result.role_costs[0].resources == 2
    assert result.total_salaries == pytest.approx(52_000_000)


def test_merge_inputs_keeps_defaults_for_rejected_overrides():
    configuration = _configuration()
    overrides = CostEstimationInputs(
        multiplier=0,
        annual_interest_rate_percent=0,
        warranty_duration_months=0,
        client_payment_delay_months=-1,
        discount_percent=-5,
        rate_card_key="  ",
        role_headcounts={"Dev": 2, " ": 4},
    )

    inputs = merge_inputs(configuration, overrides)

    assert inputs.multiplier == 1.0
    assert inputs.annual_interest_rate_percent == 30.0
    assert inputs.warranty_duration_months == 1
    assert inputs.client_payment_delay_months == 1.0
    assert inputs.discount_percent == 0
    assert inputs.rate_card_key == "default"
    assert inputs.role_headcounts.to_dict() == {"Dev": 2}


def test_merge_inputs_applies_only_supplied_fields():
    inputs = merge_inputs(_configuration(), CostEstimationInputs(discount_percent=15, worst_case_buffer_percent=0))

    assert inputs.discount_percent == 15
    assert inputs.worst_case_buffer_percent == 0
    assert inputs.overhead_percent == 30.0
    assert inputs.tax_percent == 1.0
    assert inputs.external_commission_mode is CommissionMode.percentage


def test_progressive_commission_brackets():
    brackets = [
        CommissionBracket(upper_bound=100, rate_percent=10),
        CommissionBracket(upper_bound=200, rate_percent=5),
        CommissionBracket(upper_bound=0, rate_percent=2),
    ]

    assert apply_commission(brackets, 50) == pytest.approx(5)
    assert apply_commission(brackets, 500) == pytest.approx(24)
    assert apply_commission(brackets[:2], 500) == pytest.approx(20)
    assert apply_commission(brackets, 0) == 0
    assert apply_commission([], 500) == 0


def test_commission_never_exceeds_highest_rate():
    brackets = [CommissionBracket(upper_bound=1_000, rate_percent=3), CommissionBracket(upper_bound=0, rate_percent=1)]
    for amount in (1, 999, 1_000, 1_001, 250_000):
        assert 0 <= apply_commission(brackets, amount) <= amount * 0.03 + 1e-9


def test_remainder_bracket_must_be_last():
    with pytest.raises(ValueError):
        _configuration(
            sales_commission_brackets=[
                {"upper_bound": 0, "rate_percent": 1},
                {"upper_bound": 100, "rate_percent": 2},
            ]
        )


def test_warranty_uses_first_positive_salary_in_chain():
    configuration = _configuration(
        role_monthly_salaries={"Business Analyst – Junior": 0, "BA Junior": 8_000_000, "Dev::Junior": 9_000_000}
    )
    model = CostModel(configuration)
    inputs = model.merge_inputs(
        CostEstimationInputs(warranty_analyst_resources=1, warranty_developer_resources=2, warranty_duration_months=3)
    )

    result = model.calculate([], inputs)

    assert result.warranty.analyst_monthly_salary == 8_000_000
    assert result.warranty.developer_monthly_salary == 9_000_000
    assert result.warranty.total_cost == pytest.approx(78_000_000)


def test_manual_commission_and_discount():
    model = CostModel(_configuration())
    inputs = model.merge_inputs(
        CostEstimationInputs(
            external_commission_mode=CommissionMode.manual_amount,
            external_commission_amount=1_000_000,
            discount_percent=10,
            multiplier=1.2,
        )
    )

    result = model.calculate(_dev(), inputs)

    assert result.components.external_commission == 1_000_000
    assert result.revenue.price_after_multiplier == pytest.approx(72_000_000)
    assert result.revenue.discount_amount == pytest.approx(7_200_000)
    assert result.revenue.price_after_discount == pytest.approx(64_800_000)


def test_sales_and_cost_commission_feed_total_cost():
    model = CostModel(
        _configuration(
            sales_commission_brackets=[
                {"upper_bound": 50_000_000, "rate_percent": 1},
                {"upper_bound": 0, "rate_percent": 0.5},
            ],
            cost_commission_brackets=[{"upper_bound": 0, "rate_percent": 2}],
        )
    )

    result = model.calculate(_dev(), model.merge_inputs())

    # 1% of the first 50M plus 0.5% of the remaining 10M
    assert result.components.sales_commission == pytest.approx(550_000)
    # 2% of the 44,694,000 cost base, which already carries the sales commission
    assert result.components.cost_commission == pytest.approx(893_880)
    assert result.profitability.total_cost == pytest.approx(45_587_880)
    assert result.profitability.profit_amount == pytest.approx(14_412_120)
    assert result.profitability.profit_percent == pytest.approx(24.02)


def test_unknown_rate_card_prices_nothing():
    model = CostModel(_configuration())

    result = model.calculate(_dev(), model.merge_inputs(CostEstimationInputs(rate_card_key="partner")))

    assert result.revenue.project_value == 0
    assert result.profitability.profit_percent == 0
    assert result.profitability.profit_amount < 0


def test_calculate_is_repeatable():
    model = CostModel(_configuration())
    inputs = model.merge_inputs()

    assert model.calculate(_dev(), inputs) == model.calculate(_dev(), inputs)


def test_larger_buffer_never_shortens_or_cheapens_the_project():
    model = CostModel(_configuration())
    previous = None
    for buffer in (0, 10, 30, 75, 150, 200):
        result = model.calculate(_dev(), model.merge_inputs(CostEstimationInputs(worst_case_buffer_percent=buffer)))
        if previous is not None:
            assert result.project_duration_months >= previous.project_duration_months
            assert result.total_salaries >= previous.total_salaries
        previous = result
