"""Selection state for bulk-unhiding hidden resources."""

from __future__ import annotations

from collections.abc import Iterable


class BulkSelector:
    """Tracks which hidden-resource ids are selected.

    The selection is always a subset of the ids last supplied through the
    constructor or :meth:`replace_items`. Every change builds a new
    frozenset, so a ``selected_ids`` value read earlier is never altered.
    """

    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: tuple[str, ...] = tuple(dict.fromkeys(ids))
        self._selected: frozenset[str] = frozenset()

    @property
    def ids(self) -> tuple[str, ...]:
        return self._ids

    @property
    def selected_ids(self) -> frozenset[str]:
        return self._selected

    @property
    def total(self) -> int:
        return len(self._ids)

    @property
    def count(self) -> int:
        return len(self._selected)

    @property
    def all_selected(self) -> bool:
        """True iff every known id is selected (vacuously true when empty)."""
        return len(self._selected) == len(self._ids)

    def is_selected(self, item_id: str) -> bool:
        return item_id in self._selected

    def ordered_selection(self) -> list[str]:
        """Selected ids in the order of the supplied id list."""
        return [i for i in self._ids if i in self._selected]

    def toggle_one(self, item_id: str, checked: bool) -> None:
        """Select or deselect one id. Unknown ids are ignored."""
        if item_id not in self._ids:
            return
        if checked:
            self._selected = self._selected | {item_id}
        else:
            self._selected = self._selected - {item_id}

    def toggle_all(self, checked: bool) -> None:
        self._selected = frozenset(self._ids) if checked else frozenset()

    def clear(self) -> None:
        self._selected = frozenset()

    def replace_items(self, ids: Iterable[str]) -> None:
        """Swap in a new id list, dropping selections that disappeared."""
        self._ids = tuple(dict.fromkeys(ids))
        self._selected = self._selected & frozenset(self._ids)
