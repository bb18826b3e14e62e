from __future__ import annotations

from typing import Iterable, Mapping, Sequence, TypeVar

from .dictionaries import SPECIAL_ROLE_ALIASES

LABEL_SEPARATOR = " – "
VALUE_SEPARATOR = "::"

T = TypeVar("T")


def build_label(role_name: str | None, expected_level: str | None = None) -> str:
    name = (role_name or "").strip()
    if not name:
        return ""
    level = (expected_level or "").strip()
    return f"{name}{LABEL_SEPARATOR}{level}" if level else name


def split_label(label: str | None) -> tuple[str, str]:
    text = (label or "").strip()
    for separator in (LABEL_SEPARATOR, VALUE_SEPARATOR):
        if separator in text:
            name, _, level = text.partition(separator)
            return name.strip(), level.strip()
    return text, ""


def extract_base_role(label: str | None) -> str:
    return split_label(label)[0]


def enumerate_lookup_keys(role_name: str | None, expected_level: str | None = None) -> list[str]:
    """Candidate keys for a (name, level) pair, most specific first."""
    name = (role_name or "").strip()
    if not name:
        return []
    level = (expected_level or "").strip()
    keys: list[str] = []
    if level:
        keys.extend(
            [
                f"{name}{LABEL_SEPARATOR}{level}",
                f"{name} {level}",
                f"{name}{VALUE_SEPARATOR}{level}",
            ]
        )
    keys.append(name)
    return _dedupe(keys)


def enumerate_lookup_keys_from_label(label: str | None) -> list[str]:
    text = (label or "").strip()
    if not text:
        return []
    name, level = split_label(text)
    return _dedupe([text, *enumerate_lookup_keys(name, level)])


def find_role_value(source: Mapping[str, T], label: str | None) -> T | None:
    for key in enumerate_lookup_keys_from_label(label):
        if key in source:
            return source[key]
    return None


def lookup_role_value(source: Mapping[str, T], label: str | None, default: T) -> T:
    value = find_role_value(source, label)
    return default if value is None else value


def lookup_role_value_from_parts(
    source: Mapping[str, T],
    role_name: str,
    expected_level: str,
    default: T,
) -> T:
    for key in enumerate_lookup_keys(role_name, expected_level):
        if key in source:
            return source[key]
    return default


def lookup_first_positive(source: Mapping[str, float], chain: Sequence[tuple[str, str]]) -> float:
    """Walk an ordered (name, level) chain and return the first salary above zero."""
    for role_name, level in chain:
        value = lookup_role_value_from_parts(source, role_name, level, 0.0)
        if value > 0:
            return value
    return 0.0


def role_matches(candidate: str | None, target: str | None) -> bool:
    if not candidate or not candidate.strip() or not target or not target.strip():
        return False
    folded_target = target.casefold()
    if candidate.casefold() == folded_target:
        return True
    base = extract_base_role(candidate)
    if not base:
        return False
    if base.casefold() == folded_target:
        return True
    aliases = SPECIAL_ROLE_ALIASES.get(target, ())
    return any(base.casefold() == alias.casefold() for alias in aliases)


def _dedupe(keys: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for key in keys:
        if key not in seen:
            seen.add(key)
            ordered.append(key)
    return ordered


__all__ = [
    "build_label",
    "split_label",
    "extract_base_role",
    "enumerate_lookup_keys",
    "enumerate_lookup_keys_from_label",
    "lookup_role_value",
    "find_role_value",
    "lookup_role_value_from_parts",
    "lookup_first_positive",
    "role_matches",
]
