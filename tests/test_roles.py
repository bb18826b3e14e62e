from presales_estimator.roles import (
    build_label,
    enumerate_lookup_keys,
    enumerate_lookup_keys_from_label,
    find_role_value,
    lookup_first_positive,
    lookup_role_value,
    role_matches,
    split_label,
)


def test_labels_use_en_dash_separator():
    assert build_label("Developer", "Senior") == "Developer – Senior"
    assert build_label("PM", "") == "PM"
    assert build_label("  ", "Senior") == ""
    assert split_label("Developer – Senior") == ("Developer", "Senior")
    assert split_label("Developer::Senior") == ("Developer", "Senior")


def test_lookup_keys_order():
    assert enumerate_lookup_keys("Developer", "Senior") == [
        "Developer – Senior",
        "Developer Senior",
        "Developer::Senior",
        "Developer",
    ]
    assert enumerate_lookup_keys_from_label("Developer – Senior")[0] == "Developer – Senior"
    assert enumerate_lookup_keys_from_label("QA") == ["QA"]


def test_lookup_role_value_falls_back_to_base_role():
    salaries = {"Developer": 9_000_000, "QA Junior": 5_000_000}

    assert lookup_role_value(salaries, "Developer – Senior", 0) == 9_000_000
    assert lookup_role_value(salaries, "QA – Junior", 0) == 5_000_000
    assert lookup_role_value(salaries, "Designer", -1) == -1


def test_find_role_value_reports_missing_roles_as_none():
    headcounts = {"PM": 2, "Dev": 0}

    assert find_role_value(headcounts, "PM – Senior") == 2
    assert find_role_value(headcounts, "Dev") == 0
    assert find_role_value(headcounts, "Designer") is None
    assert find_role_value(headcounts, None) is None
    assert lookup_role_value(headcounts, "Dev", 5) == 0


def test_first_positive_chain_skips_zero_salaries():
    salaries = {"Business Analyst – Junior": 0, "BA Junior": 8_000_000}

    assert lookup_first_positive(salaries, [("Business Analyst", "Junior"), ("BA", "Junior")]) == 8_000_000
    assert lookup_first_positive({}, [("BA", "Junior")]) == 0.0


def test_role_matching_for_special_roles():
    assert role_matches("pm", "PM")
    assert role_matches("PM – Senior", "PM")
    assert role_matches("Project Manager – Lead", "PM")
    assert role_matches("Architect::Principal", "Architect")
    assert not role_matches("Dev", "PM")
    assert not role_matches("", "PM")
