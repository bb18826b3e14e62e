import pytest

from presales_estimator.aggregator import aggregate_column_effort, aggregate_item_effort, calculate_role_man_days
from presales_estimator.models.scope import ItemDiagnostics, NormalizedItem, SignalSet, SizeClass


def _item(item_id: str, estimates: dict[str, float], *, name: str = "", is_needed: bool = True) -> NormalizedItem:
    return NormalizedItem(
        item_id=item_id,
        item_name=name or item_id,
        category="New UI",
        is_needed=is_needed,
        estimates=estimates,
        diagnostics=ItemDiagnostics(size_class=SizeClass.s, complexity_score=0, signals=SignalSet()),
    )


def test_column_effort_converts_hours_to_man_days():
    items = [
        _item("A", {"Backend": 16, "Frontend": 8}),
        _item("B", {"backend": 8, "Frontend": 0}),
        _item("C", {"Backend": 80}, is_needed=False),
    ]

    result = aggregate_column_effort(items)

    assert result.to_dict() == {"Backend": 3.0, "Frontend": 1.0}


def test_item_effort_groups_by_item_name():
    items = [
        _item("A", {"Backend": 16, "Frontend": 8}, name="Login"),
        _item("B", {"Backend": 4}, name="login"),
        _item("C", {"Backend": 0}, name="Reports"),
    ]

    result = aggregate_item_effort(items)

    assert list(result) == ["Login"]
    assert result["LOGIN"] == pytest.approx(3.5)


def test_role_man_days_split_evenly_and_unmapped_go_to_unassigned():
    items = [_item("A", {"Backend": 16, "Frontend": 8, "QA": 4})]

    result = calculate_role_man_days(items, {"backend": ["Dev", "Architect"], "Frontend": ["Dev", " "]})

    assert result["Dev"] == pytest.approx(2.0)
    assert result["Architect"] == pytest.approx(1.0)
    assert result["Unassigned"] == pytest.approx(0.5)


def test_role_man_days_conserve_total():
    items = [_item("A", {"Backend": 24, "Frontend": 12}), _item("B", {"Backend": 6})]

    result = calculate_role_man_days(items, {"Backend": ["Dev", "Lead", "QA"]})

    assert sum(result.values()) == pytest.approx(42 / 8)
