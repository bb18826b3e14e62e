from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence


ALLOWED_CATEGORIES: Sequence[str] = (
    "New UI",
    "New Interface",
    "New Backgrounder",
    "Adjust Existing UI",
    "Adjust Existing Logic",
)

ADJUST_EXISTING_PREFIX = "Adjust Existing"

DEFAULT_ESTIMATION_COLUMN = "EffortHours"

HOURS_PER_MAN_DAY = 8.0
WORKING_DAYS_PER_MONTH = 20.0


# XS, S, M, L, XL hour points per category.
DEFAULT_CATEGORY_BANDS: Mapping[str, tuple[float, float, float, float, float]] = {
    "New UI": (4, 8, 16, 32, 56),
    "New Interface": (6, 12, 24, 48, 80),
    "New Backgrounder": (6, 12, 24, 48, 80),
    "Adjust Existing UI": (2, 4, 8, 16, 28),
    "Adjust Existing Logic": (2, 4, 8, 16, 28),
}

FALLBACK_BANDS: tuple[float, float, float, float, float] = (4, 8, 16, 32, 56)


@dataclass(frozen=True)
class SignalKeywords:
    """Lower-case substrings whose presence in an item detail marks a signal."""

    keywords: Sequence[str]

    def count(self, text: str) -> int:
        return sum(1 for keyword in self.keywords if keyword in text)

    def present(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


FIELD_KEYWORDS = SignalKeywords(("field", "kolom", "input"))
INTEGRATION_KEYWORDS = SignalKeywords(("integrasi", "api", "webhook", "gateway"))
WORKFLOW_KEYWORDS = SignalKeywords(("approval", "review", "step", "tahap"))
UPLOAD_KEYWORDS = SignalKeywords(("upload",))
AUTH_KEYWORDS = SignalKeywords(("role", "otorisasi", "permission"))

CRUD_KEYWORDS: Mapping[str, SignalKeywords] = {
    "C": SignalKeywords(("create", "tambah", "buat")),
    "R": SignalKeywords(("read", "lihat", "daftar")),
    "U": SignalKeywords(("update", "ubah", "edit")),
    "D": SignalKeywords(("delete", "hapus")),
}


PM_ROLE = "PM"
ARCHITECT_ROLE = "Architect"
SPECIAL_ROLES: Sequence[str] = (PM_ROLE, ARCHITECT_ROLE)
SPECIAL_ROLE_ALIASES: Mapping[str, Sequence[str]] = {
    PM_ROLE: ("Project Manager",),
    ARCHITECT_ROLE: (),
}
MINIMUM_SPECIAL_ROLE_EFFORT = 0.5

UNASSIGNED_ROLE = "Unassigned"


# Ordered (role name, level) candidates; the first positive salary wins.
WARRANTY_ANALYST_CHAIN: Sequence[tuple[str, str]] = (
    ("Business Analyst", "Junior"),
    ("BA", "Junior"),
)
WARRANTY_DEVELOPER_CHAIN: Sequence[tuple[str, str]] = (
    ("Developer", "Junior"),
    ("Dev", "Junior"),
)


__all__ = [
    "ALLOWED_CATEGORIES",
    "ADJUST_EXISTING_PREFIX",
    "DEFAULT_ESTIMATION_COLUMN",
    "HOURS_PER_MAN_DAY",
    "WORKING_DAYS_PER_MONTH",
    "DEFAULT_CATEGORY_BANDS",
    "FALLBACK_BANDS",
    "SignalKeywords",
    "FIELD_KEYWORDS",
    "INTEGRATION_KEYWORDS",
    "WORKFLOW_KEYWORDS",
    "UPLOAD_KEYWORDS",
    "AUTH_KEYWORDS",
    "CRUD_KEYWORDS",
    "PM_ROLE",
    "ARCHITECT_ROLE",
    "SPECIAL_ROLES",
    "SPECIAL_ROLE_ALIASES",
    "MINIMUM_SPECIAL_ROLE_EFFORT",
    "UNASSIGNED_ROLE",
    "WARRANTY_ANALYST_CHAIN",
    "WARRANTY_DEVELOPER_CHAIN",
]
