"""Enabled/disabled state machine deciding whether a field contributes to the value."""

from collections.abc import Callable
from typing import Any

from protoform import log
from protoform.engine.path import delete_at, field_paths, get_at, has_at
from protoform.engine.state import FieldUIState, UIStateMap


class PresenceController:
    """
    Tracks, per field path, whether the field is enabled.

    The enabled flag is independent of the value: a field may be enabled
    without a value (nothing typed yet, or only empty rows staged). Disabling
    always removes whatever value is there.
    """

    def __init__(self, states: UIStateMap, on_cleared: Callable[[str], None] | None = None) -> None:
        self.states = states
        self.on_cleared = on_cleared

    def mount(self, path: str, value: Any, *, always_enabled: bool = False, expanded: bool = False) -> FieldUIState:
        """
        Return the state of `path`, creating it on first use.

        A new state starts enabled iff the value already holds something at
        `path` (e.g. a restored request). Rows are restored from an existing list.
        """
        state = self.states.get(path)
        if state is not None:
            return state

        current = get_at(value, path)
        state = FieldUIState(
            enabled=always_enabled or has_at(value, path),
            expanded=expanded,
            items=self.states.placeholders(len(current)) if isinstance(current, list) else [],
        )
        return self.states.put(path, state)

    def is_enabled(self, path: str) -> bool:
        state = self.states.get(path)
        return state is not None and state.enabled

    def is_writable(self, path: str) -> bool:
        """True if `path` and every field it is nested in are enabled."""
        return all(self.is_enabled(p) for p in field_paths(path))

    def enable(self, path: str, value: Any) -> bool:
        """
        DISABLED -> ENABLED. The value is left untouched.

        Returns:
            True if the state changed
        """
        state = self.mount(path, value)
        if state.enabled:
            return False
        state.enabled = True
        log.debug(f"Enabled field '{path}'")
        return True

    def disable(self, path: str, value: Any) -> Any:
        """
        ENABLED -> DISABLED, removing the field's value and staged rows.

        Returns:
            The value without the field (the same object if nothing was there)
        """
        state = self.mount(path, value)
        was_enabled = state.enabled
        state.enabled = False
        state.items = []
        self.states.drop_descendants(path)

        updated = delete_at(value, path)
        if was_enabled or updated is not value:
            log.debug(f"Disabled field '{path}'")
            if self.on_cleared is not None:
                self.on_cleared(path)
        return updated
