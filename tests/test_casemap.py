from presales_estimator.casemap import CaseInsensitiveDict, find_case_duplicates


def test_lookup_ignores_case_and_keeps_first_casing():
    mapping = CaseInsensitiveDict({"Backend": 1.0})
    mapping["BACKEND"] = 2.0
    mapping["Frontend"] = 3.0

    assert mapping["backend"] == 2.0
    assert list(mapping) == ["Backend", "Frontend"]
    assert "frontEND" in mapping
    assert 42 not in mapping


def test_equality_is_case_insensitive():
    assert CaseInsensitiveDict({"PM": 1}) == {"pm": 1}
    assert CaseInsensitiveDict({"PM": 1}) != {"pm": 2}


def test_delete_and_copy():
    mapping = CaseInsensitiveDict([("Dev", 1), ("QA", 2)])
    clone = mapping.copy()
    del mapping["dev"]

    assert mapping.to_dict() == {"QA": 2}
    assert clone.to_dict() == {"Dev": 1, "QA": 2}


def test_find_case_duplicates():
    assert find_case_duplicates(["Backend", "QA", "backend"]) == ["backend"]
    assert find_case_duplicates(["A", "B"]) == []
