import pytest

from presales_estimator.cost_model import CostModel
from presales_estimator.errors import UnsupportedFieldError
from presales_estimator.goal_seek import AdjustableField, GoalSeeker, TargetField
from presales_estimator.models.cost import CostEstimationConfiguration, CostEstimationInputs, GoalSeekRequest
from presales_estimator.models.timeline import RoleAllocation

ALLOCATIONS = [RoleAllocation(role="Dev", total_man_days=40)]


def _seeker() -> GoalSeeker:
    configuration = CostEstimationConfiguration.model_validate(
        {
            "role_monthly_salaries": {"Dev": 10_000_000},
            "rate_cards": {"default": {"role_rates": {"Dev": 1_500_000}}},
        }
    )
    return GoalSeeker(CostModel(configuration))


def test_discount_converges_on_profit_percent():
    request = GoalSeekRequest(target_field="profitPercent", target_value=20, adjustable_field="discountPercent")

    response = _seeker().solve(ALLOCATIONS, request)

    assert response.converged
    assert 1 <= response.iterations <= 30
    assert abs(response.result.profitability.profit_percent - 20) <= 0.01
    assert 9 < response.inputs.discount_percent < 10


def test_unreachable_target_keeps_current_value():
    request = GoalSeekRequest(target_field="profitPercent", target_value=90, adjustable_field="discount")

    response = _seeker().solve(ALLOCATIONS, request)

    assert not response.converged
    assert response.iterations == 1
    assert response.inputs.discount_percent == 0
    assert response.result.profitability.profit_percent == pytest.approx(26.43)


def test_exact_bound_is_adopted():
    request = GoalSeekRequest(target_field="profit%", target_value=0, adjustable_field="discount")

    response = _seeker().solve(ALLOCATIONS, request)

    assert response.converged
    assert response.iterations == 1
    assert response.inputs.discount_percent == 100


def test_already_on_target_returns_without_iterating():
    request = GoalSeekRequest(
        inputs=CostEstimationInputs(discount_percent=0),
        target_field="profitpercent",
        target_value=26.43,
        adjustable_field="discount",
    )

    response = _seeker().solve(ALLOCATIONS, request)

    assert response.converged
    assert response.iterations == 0


def test_custom_bounds_are_clamped_into_field_range():
    request = GoalSeekRequest(
        target_field="profitPercent",
        target_value=20,
        adjustable_field="multiplier",
        min_value=0.01,
        max_value=50,
    )

    response = _seeker().solve(ALLOCATIONS, request)

    assert response.converged
    assert 0.1 <= response.inputs.multiplier <= 10
    assert abs(response.result.profitability.profit_percent - 20) <= 0.01


def test_larger_buffer_meets_lower_margin():
    request = GoalSeekRequest(target_field="profitPercent", target_value=10, adjustable_field="worstCaseBuffer")

    response = _seeker().solve(ALLOCATIONS, request)

    assert response.converged
    assert response.inputs.worst_case_buffer_percent > 30
    assert abs(response.result.profitability.profit_percent - 10) <= 0.1


def test_key_parsing():
    assert AdjustableField.parse(" DiscountPercent ") is AdjustableField.discount_percent
    assert AdjustableField.parse("buffer") is AdjustableField.worst_case_buffer
    assert TargetField.parse("TotalCost") is TargetField.total_cost
    assert TargetField.parse("profit") is TargetField.profit_amount


def test_unknown_keys_raise():
    with pytest.raises(UnsupportedFieldError) as excinfo:
        AdjustableField.parse("tax")
    assert excinfo.value.key == "tax"

    with pytest.raises(ValueError):
        TargetField.parse(None)

    request = GoalSeekRequest(target_field="margin", target_value=1, adjustable_field="discount")
    with pytest.raises(UnsupportedFieldError):
        _seeker().solve(ALLOCATIONS, request)
