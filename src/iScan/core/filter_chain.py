"""Ordered, user-built list of filters with stable entry handles."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, replace
from typing import Iterator, Optional

from .filters.kinds import FilterKind, FilterParams, resolve_params, validate_strength


@dataclass(frozen=True)
class AppliedFilter:
    """One configured filter inside a :class:`FilterChain`.

    ``entry_id`` identifies the entry for its whole lifetime, so a UI that is
    configuring an entry keeps a valid handle across removals and reorders of
    other entries.
    """

    entry_id: int
    kind: FilterKind
    strength: int
    params: Optional[FilterParams] = None

    def __post_init__(self) -> None:
        validate_strength(self.kind, self.strength)
        object.__setattr__(self, "params", resolve_params(self.kind, self.params))

    @property
    def cache_key(self) -> tuple[object, ...]:
        """Identify the computation this entry performs, ignoring its handle."""

        return (self.kind, self.strength, self.params)


class FilterChain:
    """Mutable recipe whose insertion order is the execution order."""

    def __init__(self) -> None:
        self._entries: list[AppliedFilter] = []
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AppliedFilter]:
        return iter(tuple(self._entries))

    def snapshot(self) -> tuple[AppliedFilter, ...]:
        """Return an immutable copy for a recomputation to read."""

        return tuple(self._entries)

    def add(
        self,
        kind: FilterKind,
        strength: Optional[int] = None,
        params: Optional[FilterParams] = None,
    ) -> AppliedFilter:
        """Append *kind* at *strength* (its default when omitted)."""

        value = kind.default_strength if strength is None else strength
        entry = AppliedFilter(next(self._ids), kind, value, params)
        self._entries.append(entry)
        return entry

    def get(self, entry_id: int) -> AppliedFilter:
        return self._entries[self.index_of(entry_id)]

    def index_of(self, entry_id: int) -> int:
        for index, entry in enumerate(self._entries):
            if entry.entry_id == entry_id:
                return index
        raise KeyError(f"No filter entry with id {entry_id}")

    def remove(self, entry_id: int) -> AppliedFilter:
        return self._entries.pop(self.index_of(entry_id))

    def change_strength(self, entry_id: int, strength: int) -> AppliedFilter:
        """Replace the strength of *entry_id*; invalid values leave the chain untouched."""

        index = self.index_of(entry_id)
        updated = replace(self._entries[index], strength=strength)
        self._entries[index] = updated
        return updated

    def set_params(self, entry_id: int, params: Optional[FilterParams]) -> AppliedFilter:
        index = self.index_of(entry_id)
        updated = replace(self._entries[index], params=params)
        self._entries[index] = updated
        return updated

    def move(self, entry_id: int, new_index: int) -> AppliedFilter:
        """Move *entry_id* to *new_index*, clamped to the valid range."""

        entry = self._entries.pop(self.index_of(entry_id))
        target = max(0, min(int(new_index), len(self._entries)))
        self._entries.insert(target, entry)
        return entry

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["AppliedFilter", "FilterChain"]
