from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from .casemap import CaseInsensitiveDict
from .dictionaries import DEFAULT_ESTIMATION_COLUMN
from .errors import NoValidEstimateError
from .models.policy import EstimationPolicy
from .models.scope import DiagnosticMultipliers, ItemDiagnostics, NormalizedItem, ScopeItem, SignalSet, SizeClass
from .reference_stats import compute_reference_stats
from .rounding import round_half_away, round_to_step
from .signals import classify_size, complexity_score, extract_signals

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdditiveHours:
    fields: float
    integrations: float
    upload: float
    auth: float
    workflow: float

    @property
    def total(self) -> float:
        return self.fields + self.integrations + self.upload + self.auth + self.workflow


def clamp_hours(value: float, policy: EstimationPolicy) -> float:
    return max(policy.hard_min_per_item_hours, min(policy.hard_max_per_item_hours, value))


def round_hours(value: float, policy: EstimationPolicy) -> float:
    return round_to_step(value, policy.rounding_step)


def apply_reference_shrinkage(candidate: float, baseline: float | None, policy: EstimationPolicy) -> float:
    """Pull ``candidate`` toward ``baseline`` by the policy's shrinkage weight.

    The result never exceeds ``baseline * reference_cap_multiplier`` unless the
    weight is zero, in which case the candidate passes through untouched.
    """
    if baseline is None or baseline <= 0:
        return candidate
    weight = policy.shrinkage_weight
    shrunk = candidate - weight * (candidate - baseline)
    if weight == 0:
        return shrunk
    return min(shrunk, baseline * policy.reference_cap_multiplier)


def crud_multiplier(signals: SignalSet, policy: EstimationPolicy) -> float:
    multiplier = 1.0
    if signals.crud_create:
        multiplier *= policy.crud_create_multiplier
    if signals.crud_read:
        multiplier *= policy.crud_read_multiplier
    if signals.crud_update:
        multiplier *= policy.crud_update_multiplier
    if signals.crud_delete:
        multiplier *= policy.crud_delete_multiplier
    return multiplier


def additive_hours(signals: SignalSet, policy: EstimationPolicy) -> AdditiveHours:
    return AdditiveHours(
        fields=signals.field_count * policy.per_field_hours,
        integrations=signals.integration_count * policy.per_integration_hours,
        upload=policy.file_upload_hours if signals.has_upload else 0.0,
        auth=policy.auth_roles_hours if signals.has_auth_role else 0.0,
        workflow=signals.workflow_steps * policy.workflow_step_hours,
    )


def collect_columns(template_columns: Iterable[str] | None, items: Iterable[ScopeItem] = ()) -> list[str]:
    """Template columns if configured, else the union of item columns, else EffortHours."""
    columns: CaseInsensitiveDict[None] = CaseInsensitiveDict()
    for column in template_columns or ():
        if column and column.strip():
            columns.setdefault(column, None)
    if columns:
        return list(columns)

    for item in items:
        for column in item.estimates:
            if column and column.strip():
                columns.setdefault(column, None)
    return list(columns) or [DEFAULT_ESTIMATION_COLUMN]


def _ratio(addition: float, base: float) -> float:
    if addition == 0:
        return 1.0
    return round_half_away(1 + addition / base, 3)


def _provided_value(item: ScopeItem, column: str) -> float | None:
    value = item.estimates.get(column)
    if value is None or not math.isfinite(value):
        return None
    return value


class EffortNormalizer:
    def __init__(self, policy: EstimationPolicy | None = None) -> None:
        self._policy = policy or EstimationPolicy()

    @property
    def policy(self) -> EstimationPolicy:
        return self._policy

    def normalize(
        self,
        item: ScopeItem,
        columns: Sequence[str],
        references: Sequence[ScopeItem] = (),
    ) -> NormalizedItem:
        usable_columns = [column for column in columns if column and column.strip()]
        if not usable_columns:
            raise NoValidEstimateError(item.item_id)

        policy = self._policy
        signals = extract_signals(item.detail)
        score = complexity_score(signals)
        size = classify_size(
            signals,
            item.category,
            policy,
            requested=item.requested_size,
            justification_score=item.justification_score,
            score=score,
        )

        base = policy.bands_for(item.category).midpoint(size)
        crud = crud_multiplier(signals, policy)
        base_with_crud = base * crud
        additions = additive_hours(signals, policy)
        raw = base_with_crud + additions.total
        ratio_base = max(base_with_crud, 1e-6)

        estimates: CaseInsensitiveDict[float] = CaseInsensitiveDict()
        baseline_used: float | None = None
        for column in usable_columns:
            if not item.is_needed:
                estimates[column] = 0.0
                continue

            baseline = compute_reference_stats(references, item.item_id, item.category, column).baseline
            if baseline_used is None and baseline is not None:
                baseline_used = baseline

            candidate = raw
            provided = _provided_value(item, column)
            if provided is not None:
                candidate = min(candidate, provided)

            shrunk = apply_reference_shrinkage(candidate, baseline, policy)
            estimates[column] = round_hours(clamp_hours(shrunk, policy), policy)

        diagnostics = ItemDiagnostics(
            size_class=size,
            complexity_score=round_half_away(score, 2),
            signals=signals,
            multipliers=DiagnosticMultipliers(
                crud=round_half_away(crud, 3),
                per_field=_ratio(additions.fields, ratio_base),
                per_integration=_ratio(additions.integrations, ratio_base),
                upload=_ratio(additions.upload, ratio_base),
                auth=_ratio(additions.auth, ratio_base),
                per_workflow_step=_ratio(additions.workflow, ratio_base),
            ),
            reference_baseline=baseline_used,
            justification=item.justification,
            justification_score=item.justification_score,
            confidence=item.confidence,
            scope_fit="in" if item.is_needed else "out",
        )

        logger.debug(
            "Item %s normalized with size %s (category %s) => %s",
            item.item_id,
            size.value,
            item.category.value,
            ", ".join(f"{column}:{value}" for column, value in estimates.items()),
        )
        return NormalizedItem(
            item_id=item.item_id,
            item_name=item.item_name,
            category=item.category,
            is_needed=item.is_needed,
            estimates=estimates,
            diagnostics=diagnostics,
        )

    def normalize_backlog(
        self,
        items: Iterable[ScopeItem],
        columns: Sequence[str] | None = None,
        references: Sequence[ScopeItem] = (),
    ) -> list[NormalizedItem]:
        """Normalize every item, dropping those without a valid estimate."""
        backlog = list(items)
        resolved_columns = collect_columns(columns, backlog)
        normalized: list[NormalizedItem] = []
        for item in backlog:
            try:
                normalized.append(self.normalize(item, resolved_columns, references))
            except NoValidEstimateError as exc:
                logger.warning(
                    "Dropping item without a valid estimate",
                    extra={"fields": {"item_id": exc.item_id, "reason": exc.reason}},
                )
        if not normalized:
            raise NoValidEstimateError("*", "no item in the backlog produced an estimate")
        return normalized


__all__ = [
    "AdditiveHours",
    "EffortNormalizer",
    "clamp_hours",
    "round_hours",
    "apply_reference_shrinkage",
    "crud_multiplier",
    "additive_hours",
    "collect_columns",
]
