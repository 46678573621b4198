"""Row lifecycle of repeated fields and map entries."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from protoform import log
from protoform.engine.path import MISSING, delete_at, get_at, index_path
from protoform.engine.state import UIStateMap


@dataclass(frozen=True)
class MapRow:
    """One key/value row of a map field."""

    key: Any = ""
    value: Any = ""

    def to_entry(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value}


def entries_to_rows(entries: Any) -> list[MapRow]:
    """
    Turn stored map entries into editor rows, preserving order.

    Entries that are not mappings (e.g. gaps left by sparse writes) become empty rows.
    """
    if not isinstance(entries, list):
        return []
    rows = []
    for entry in entries:
        if isinstance(entry, dict):
            rows.append(MapRow(key=entry.get("key", ""), value=entry.get("value", "")))
        else:
            rows.append(MapRow())
    return rows


def rows_to_entries(rows: Iterable[MapRow]) -> list[dict[str, Any]]:
    """Turn editor rows back into stored `{key, value}` entries, preserving order."""
    return [row.to_entry() for row in rows]


class RepeatedItemManager:
    """Keeps the rows of a repeated field and the stored list aligned.

    Row `i` of the editor always edits element `i` of the stored list. Adding a
    row only grows the placeholder list; the element appears once the row is
    edited. Removing a row splices the placeholders, the stored list and the
    UI state of the rows below in one step.
    """

    def __init__(self, states: UIStateMap) -> None:
        self.states = states

    def count(self, path: str) -> int:
        state = self.states.get(path)
        return len(state.items) if state is not None else 0

    def add_item(self, path: str) -> int:
        """
        Append an empty row to the repeated field at `path`.

        Returns:
            The index of the new row

        Raises:
            KeyError: If the field has not been mounted
        """
        state = self.states.get(path)
        if state is None:
            raise KeyError(f"Field '{path}' is not mounted")
        state.items.append(self.states.new_placeholder())
        log.debug(f"Added row {len(state.items) - 1} to '{path}'")
        return len(state.items) - 1

    def remove_item(self, path: str, index: int, value: Any) -> Any:
        """
        Remove row `index` of the repeated field at `path`.

        Elements after `index` shift down by one; elements before it are unchanged.

        Returns:
            The updated value

        Raises:
            KeyError: If the field has not been mounted
            IndexError: If there is no row `index`
        """
        state = self.states.get(path)
        if state is None:
            raise KeyError(f"Field '{path}' is not mounted")
        if not 0 <= index < len(state.items):
            raise IndexError(f"Row {index} out of range for '{path}' with {len(state.items)} rows")

        del state.items[index]
        self.states.shift_rows(path, index)
        updated = delete_at(value, index_path(path, index))
        log.debug(f"Removed row {index} from '{path}'")
        return updated

    def sync(self, path: str, value: Any) -> None:
        """Grow the rows of `path` to cover every element already stored."""
        state = self.states.get(path)
        stored = get_at(value, path)
        if state is None or stored is MISSING or not isinstance(stored, list):
            return
        missing_rows = len(stored) - len(state.items)
        if missing_rows > 0:
            state.items.extend(self.states.placeholders(missing_rows))
