"""Signal extraction, complexity scoring and size classification for scope items."""
from __future__ import annotations

import logging

from .dictionaries import (
    AUTH_KEYWORDS,
    CRUD_KEYWORDS,
    FIELD_KEYWORDS,
    INTEGRATION_KEYWORDS,
    UPLOAD_KEYWORDS,
    WORKFLOW_KEYWORDS,
)
from .models.policy import EstimationPolicy
from .models.scope import Category, SignalSet, SizeClass, normalize_category

logger = logging.getLogger(__name__)

MAX_COMPLEXITY = 100.0

# Upper score bound (inclusive) for each size class; above the last is XL.
SCORE_THRESHOLDS: tuple[tuple[float, SizeClass], ...] = (
    (8, SizeClass.xs),
    (18, SizeClass.s),
    (32, SizeClass.m),
    (55, SizeClass.l),
)


def extract_signals(detail: str | None) -> SignalSet:
    text = (detail or "").lower()
    return SignalSet(
        field_count=FIELD_KEYWORDS.count(text),
        integration_count=INTEGRATION_KEYWORDS.count(text),
        workflow_steps=WORKFLOW_KEYWORDS.count(text),
        has_upload=UPLOAD_KEYWORDS.present(text),
        has_auth_role=AUTH_KEYWORDS.present(text),
        crud_create=CRUD_KEYWORDS["C"].present(text),
        crud_read=CRUD_KEYWORDS["R"].present(text),
        crud_update=CRUD_KEYWORDS["U"].present(text),
        crud_delete=CRUD_KEYWORDS["D"].present(text),
    )


def complexity_score(signals: SignalSet) -> float:
    score = signals.field_count * 1.8 + signals.integration_count * 15 + signals.workflow_steps * 6
    if signals.has_upload:
        score += 6
    if signals.has_auth_role:
        score += 10
    score += signals.crud_count * 4
    return min(MAX_COMPLEXITY, score)


def map_score_to_size(score: float) -> SizeClass:
    for upper, size in SCORE_THRESHOLDS:
        if score <= upper:
            return size
    return SizeClass.xl


def _at_least(size: SizeClass, floor: SizeClass) -> SizeClass:
    return floor if size.rank < floor.rank else size


def apply_minimum_sizes(size: SizeClass, signals: SignalSet) -> SizeClass:
    """Raise the size to the floor implied by integration and field counts."""
    if signals.integration_count >= 2:
        size = _at_least(size, SizeClass.m)
    if signals.integration_count >= 3:
        size = _at_least(size, SizeClass.l)
    if signals.field_count >= 25:
        size = _at_least(size, SizeClass.l)
    return size


def apply_escalation(size: SizeClass, signals: SignalSet) -> SizeClass:
    size = apply_minimum_sizes(size, signals)
    if signals.field_count <= 3 and size.rank > SizeClass.s.rank:
        size = SizeClass.s
    return size


def guardrail_active(category: Category | str, justification_score: float, policy: EstimationPolicy) -> bool:
    return (
        normalize_category(category).is_adjust_existing
        and policy.cap_adjust_categories_to_max_m
        and justification_score < policy.justification_score_threshold
    )


def classify_size(
    signals: SignalSet,
    category: Category | str,
    policy: EstimationPolicy,
    *,
    requested: SizeClass | str | None = None,
    justification_score: float = 0.0,
    score: float | None = None,
) -> SizeClass:
    """Pick the final size class for an item.

    A valid requested size replaces the score-derived size but still gets the
    integration/field floors. The Adjust Existing guardrail caps both at M.
    """
    requested_size = SizeClass.parse(requested)
    if requested_size is not None:
        size = apply_minimum_sizes(requested_size, signals)
    else:
        if score is None:
            score = complexity_score(signals)
        size = apply_escalation(map_score_to_size(score), signals)

    if guardrail_active(category, justification_score, policy) and size.rank > SizeClass.m.rank:
        logger.debug("Guardrail capped %s to M for category %s", size.value, normalize_category(category).value)
        size = SizeClass.m
    return size


__all__ = [
    "extract_signals",
    "complexity_score",
    "map_score_to_size",
    "apply_minimum_sizes",
    "apply_escalation",
    "guardrail_active",
    "classify_size",
]
