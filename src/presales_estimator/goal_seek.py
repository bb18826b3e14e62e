"""Bisection goal seek over a single cost-model input."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Sequence

from .cost_model import CostModel
from .errors import UnsupportedFieldError
from .models.cost import CostEstimationInputs, CostEstimationResult, GoalSeekRequest, GoalSeekResponse
from .models.timeline import RoleAllocation

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 30


@dataclass(frozen=True)
class AdjustableSpec:
    attribute: str
    min_value: float
    max_value: float
    tolerance: float

    def get(self, inputs: CostEstimationInputs) -> float:
        return getattr(inputs, self.attribute)

    def set(self, inputs: CostEstimationInputs, value: float) -> CostEstimationInputs:
        clamped = max(self.min_value, min(self.max_value, value))
        return inputs.model_copy(update={self.attribute: clamped})


class AdjustableField(str, Enum):
    discount_percent = "discountPercent"
    multiplier = "multiplier"
    worst_case_buffer = "worstCaseBuffer"

    @classmethod
    def parse(cls, key: str | None) -> "AdjustableField":
        field = _ADJUSTABLE_KEYS.get((key or "").strip().lower())
        if field is None:
            raise UnsupportedFieldError("adjustable", key)
        return field

    @property
    def spec(self) -> AdjustableSpec:
        return ADJUSTABLE_SPECS[self]


class TargetField(str, Enum):
    profit_amount = "profitAmount"
    profit_percent = "profitPercent"
    total_cost = "totalCost"

    @classmethod
    def parse(cls, key: str | None) -> "TargetField":
        field = _TARGET_KEYS.get((key or "").strip().lower())
        if field is None:
            raise UnsupportedFieldError("target", key)
        return field

    def read(self, result: CostEstimationResult) -> float:
        if self is TargetField.profit_amount:
            return result.profitability.profit_amount
        if self is TargetField.profit_percent:
            return result.profitability.profit_percent
        return result.profitability.total_cost


ADJUSTABLE_SPECS: Mapping[AdjustableField, AdjustableSpec] = {
    AdjustableField.discount_percent: AdjustableSpec("discount_percent", 0.0, 100.0, 0.01),
    AdjustableField.multiplier: AdjustableSpec("multiplier", 0.1, 10.0, 0.01),
    AdjustableField.worst_case_buffer: AdjustableSpec("worst_case_buffer_percent", 0.0, 200.0, 0.1),
}

_ADJUSTABLE_KEYS: Mapping[str, AdjustableField] = {
    "discount": AdjustableField.discount_percent,
    "discountpercent": AdjustableField.discount_percent,
    "multiplier": AdjustableField.multiplier,
    "buffer": AdjustableField.worst_case_buffer,
    "worstcasebuffer": AdjustableField.worst_case_buffer,
}

_TARGET_KEYS: Mapping[str, TargetField] = {
    "profit": TargetField.profit_amount,
    "profitamount": TargetField.profit_amount,
    "profitpercent": TargetField.profit_percent,
    "profit%": TargetField.profit_percent,
    "totalcost": TargetField.total_cost,
}


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


class GoalSeeker:
    def __init__(self, model: CostModel, *, max_iterations: int = MAX_ITERATIONS) -> None:
        self._model = model
        self._max_iterations = max_iterations

    def solve(
        self,
        allocations: Sequence[RoleAllocation],
        request: GoalSeekRequest,
        *,
        project_name: str = "",
    ) -> GoalSeekResponse:
        """Find the adjustable input value that brings the target within tolerance.

        When the bounds do not bracket the target the current input is kept
        and the response is returned with ``converged=False``.
        """
        adjustable = AdjustableField.parse(request.adjustable_field)
        target = TargetField.parse(request.target_field)
        spec = adjustable.spec
        target_value = request.target_value
        lower = spec.min_value if request.min_value is None else request.min_value
        upper = spec.max_value if request.max_value is None else request.max_value

        base_inputs = self._model.merge_inputs(request.inputs)

        def evaluate(value: float) -> tuple[CostEstimationResult, float]:
            result = self._model.calculate(allocations, spec.set(base_inputs, value), project_name=project_name)
            return result, target.read(result) - target_value

        current_result = self._model.calculate(allocations, base_inputs, project_name=project_name)
        if abs(target.read(current_result) - target_value) <= spec.tolerance:
            return GoalSeekResponse(inputs=current_result.inputs, result=current_result, iterations=0, converged=True)

        lower_result, lower_eval = evaluate(lower)
        upper_result, upper_eval = evaluate(upper)

        if lower_eval == 0:
            return GoalSeekResponse(inputs=lower_result.inputs, result=lower_result, iterations=1, converged=True)
        if upper_eval == 0:
            return GoalSeekResponse(inputs=upper_result.inputs, result=upper_result, iterations=1, converged=True)
        if _sign(lower_eval) == _sign(upper_eval):
            logger.warning(
                "Goal seek target is not bracketed by the bounds; keeping the current value",
                extra={
                    "fields": {
                        "adjustable": adjustable.value,
                        "target": target.value,
                        "target_value": target_value,
                        "lower": lower,
                        "upper": upper,
                    }
                },
            )
            return GoalSeekResponse(inputs=current_result.inputs, result=current_result, iterations=1, converged=False)

        converged = False
        iterations = 0
        while iterations < self._max_iterations:
            iterations += 1
            mid = (lower + upper) / 2.0
            current_result, diff = evaluate(mid)
            logger.debug("Goal seek iteration %d: %s=%s deviation=%s", iterations, adjustable.value, mid, diff)
            if abs(diff) <= spec.tolerance:
                converged = True
                break
            if _sign(diff) == _sign(lower_eval):
                lower, lower_eval = mid, diff
            else:
                upper = mid

        return GoalSeekResponse(
            inputs=current_result.inputs,
            result=current_result,
            iterations=iterations,
            converged=converged,
        )


__all__ = ["AdjustableField", "AdjustableSpec", "TargetField", "GoalSeeker", "ADJUSTABLE_SPECS", "MAX_ITERATIONS"]
