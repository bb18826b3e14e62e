from presales_estimator.dictionaries import CRUD_KEYWORDS, FIELD_KEYWORDS, UPLOAD_KEYWORDS
from presales_estimator.models.policy import EstimationPolicy
from presales_estimator.models.scope import Category, SignalSet, SizeClass
from presales_estimator.signals import (
    apply_escalation,
    classify_size,
    complexity_score,
    extract_signals,
    map_score_to_size,
)


def test_extract_signals_counts_distinct_keywords():
    signals = extract_signals("Integrasi API payment gateway, input field dan upload; role permission; tambah/ubah/hapus")

    assert signals.integration_count == 3
    assert signals.field_count == 2
    assert signals.has_upload
    assert signals.has_auth_role
    assert signals.crud == "CUD"
    assert signals.crud_count == 3


def test_extract_signals_empty_detail():
    signals = extract_signals(None)

    assert signals == SignalSet()
    assert signals.crud == "-"
    assert complexity_score(signals) == 0


def test_complexity_score_is_capped():
    signals = SignalSet(field_count=40, integration_count=4, workflow_steps=4, has_upload=True, has_auth_role=True)

    assert complexity_score(signals) == 100


def test_score_thresholds_are_inclusive():
    assert map_score_to_size(8) is SizeClass.xs
    assert map_score_to_size(8.1) is SizeClass.s
    assert map_score_to_size(18) is SizeClass.s
    assert map_score_to_size(32) is SizeClass.m
    assert map_score_to_size(55) is SizeClass.l
    assert map_score_to_size(55.5) is SizeClass.xl


def test_size_never_decreases_as_score_grows():
    ranks = [map_score_to_size(score).rank for score in range(0, 101)]

    assert ranks == sorted(ranks)


def test_escalation_floors_and_small_form_cap():
    assert apply_escalation(SizeClass.xs, SignalSet(field_count=10, integration_count=2)) is SizeClass.m
    assert apply_escalation(SizeClass.s, SignalSet(field_count=25)) is SizeClass.l
    # Few fields pull an inflated size back to S even with integrations present
    assert apply_escalation(SizeClass.xl, SignalSet(field_count=2, integration_count=3)) is SizeClass.s


def test_requested_size_still_gets_integration_and_field_floors():
    policy = EstimationPolicy()
    signals = SignalSet(field_count=30, integration_count=3)

    size = classify_size(signals, Category.new_ui, policy, requested="S")

    assert size is SizeClass.l


def test_requested_size_is_not_capped_by_field_count():
    size = classify_size(SignalSet(field_count=1), "New UI", EstimationPolicy(), requested=SizeClass.xl)

    assert size is SizeClass.xl


def test_guardrail_caps_adjust_existing_without_justification():
    policy = EstimationPolicy()
    signals = SignalSet(field_count=30, integration_count=3)

    assert classify_size(signals, "Adjust Existing Logic", policy) is SizeClass.m
    assert classify_size(signals, "Adjust Existing Logic", policy, justification_score=0.7) is SizeClass.xl
    assert classify_size(signals, "New UI", policy) is SizeClass.xl


def test_guardrail_can_be_disabled():
    policy = EstimationPolicy(cap_adjust_categories_to_max_m=False)

    size = classify_size(SignalSet(field_count=30, integration_count=3), "Adjust Existing UI", policy)

    assert size is SizeClass.xl


def test_keyword_tables_count_distinct_substrings():
    assert FIELD_KEYWORDS.count("input field dengan kolom input") == 3
    assert CRUD_KEYWORDS["R"].present("lihat daftar")
    assert not UPLOAD_KEYWORDS.present("download laporan")
