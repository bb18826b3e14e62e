from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping, MutableMapping, TypeVar

V = TypeVar("V")


class CaseInsensitiveDict(MutableMapping[str, V]):
    """Insertion-ordered mapping whose string keys compare case-insensitively.

    The casing of the first insertion of a key is the one reported by
    iteration; later writes with a different casing only replace the value.
    """

    def __init__(self, data: Mapping[str, V] | Iterable[tuple[str, V]] | None = None, **kwargs: V) -> None:
        self._store: dict[str, tuple[str, V]] = {}
        if data is not None:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    @staticmethod
    def _fold(key: str) -> str:
        return key.casefold()

    def __setitem__(self, key: str, value: V) -> None:
        folded = self._fold(key)
        existing = self._store.get(folded)
        self._store[folded] = (existing[0] if existing else key, value)

    def __getitem__(self, key: str) -> V:
        return self._store[self._fold(key)][1]

    def __delitem__(self, key: str) -> None:
        del self._store[self._fold(key)]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._fold(key) in self._store

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        other_ci = CaseInsensitiveDict(other)
        return dict(self.folded_items()) == dict(other_ci.folded_items())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"

    def folded_items(self) -> Iterator[tuple[str, V]]:
        return ((folded, value) for folded, (_, value) in self._store.items())

    def copy(self) -> "CaseInsensitiveDict[V]":
        return CaseInsensitiveDict(self.items())

    def to_dict(self) -> dict[str, V]:
        return dict(self.items())


def find_case_duplicates(keys: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for key in keys:
        folded = key.casefold()
        if folded in seen:
            duplicates.append(key)
        seen.add(folded)
    return duplicates


def to_case_insensitive(value: Any) -> CaseInsensitiveDict[Any]:
    if isinstance(value, CaseInsensitiveDict):
        return value.copy()
    return CaseInsensitiveDict(value or {})


__all__ = ["CaseInsensitiveDict", "find_case_duplicates", "to_case_insensitive"]
