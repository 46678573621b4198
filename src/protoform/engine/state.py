"""Per-field editor state, held in one flat map keyed by field path."""

import itertools
import re
from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass
class FieldUIState:
    """Editor state of one rendered field.

    Args:
        enabled: Whether writes to the field reach the value
        expanded: Whether the field's children/rows are shown
        items: One opaque placeholder per repeated row; only the length matters
    """

    enabled: bool = False
    expanded: bool = False
    items: list[int] = field(default_factory=list)


def _is_descendant(path: str, ancestor: str) -> bool:
    return path.startswith(f"{ancestor}.") or path.startswith(f"{ancestor}[")


class UIStateMap:
    """Flat map from field path to FieldUIState, owned by the form.

    Keeping the state outside the rendered nodes means a collapsed (unrendered)
    subtree keeps its state, and tests can assert on the whole map.
    """

    def __init__(self) -> None:
        self._states: dict[str, FieldUIState] = {}
        self._placeholder_ids = itertools.count()

    def __contains__(self, path: object) -> bool:
        return path in self._states

    def __iter__(self) -> Iterator[str]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def get(self, path: str) -> FieldUIState | None:
        return self._states.get(path)

    def put(self, path: str, state: FieldUIState) -> FieldUIState:
        self._states[path] = state
        return state

    def as_dict(self) -> dict[str, FieldUIState]:
        return dict(self._states)

    def new_placeholder(self) -> int:
        return next(self._placeholder_ids)

    def placeholders(self, count: int) -> list[int]:
        return [self.new_placeholder() for _ in range(count)]

    def drop_descendants(self, path: str) -> None:
        """Forget the state of every field below `path` (not `path` itself)."""
        for key in [k for k in self._states if _is_descendant(k, path)]:
            del self._states[key]

    def clear(self) -> None:
        self._states.clear()

    def shift_rows(self, path: str, removed_index: int) -> None:
        """
        Re-key the state of rows below a removed row.

        State under `path[removed_index]` is dropped and state under `path[j]`
        for j > removed_index moves to `path[j - 1]`.
        """
        row_re = re.compile(rf"^{re.escape(path)}\[(\d+)\](.*)$")
        moved: dict[str, FieldUIState] = {}
        for key in list(self._states):
            match = row_re.match(key)
            if not match:
                continue
            row = int(match.group(1))
            state = self._states.pop(key)
            if row > removed_index:
                moved[f"{path}[{row - 1}]{match.group(2)}"] = state
        self._states.update(moved)
