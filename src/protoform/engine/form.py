"""The form engine: one editable value shaped by a message schema."""

import asyncio
import json
import time
from collections.abc import Callable
from typing import Any, TYPE_CHECKING

from protoform import log
from protoform.config import EngineConfig
from protoform.engine.coerce import coerce_scalar
from protoform.engine.notify import ChangeNotifier
from protoform.engine.path import MISSING, Step, field_paths, get_at, index_path, join_path, parse_path, set_at
from protoform.engine.presence import PresenceController
from protoform.engine.repeated import RepeatedItemManager
from protoform.engine.state import FieldUIState, UIStateMap
from protoform.schema.models import FieldSchema, MessageSchema
from protoform.schema.variant import FieldVariant, get_field_variant, is_simple
from protoform.wellknown import get_transcoder

if TYPE_CHECKING:
    from protoform.render.dispatch import RenderNode

_ROW_OWNING_VARIANTS = {FieldVariant.MAP, FieldVariant.WELL_KNOWN}


class DynamicForm:
    """
    Editable value for one message schema.

    All writes go through the path addressor and produce a new top-level value.
    Edits are reported to `on_change` after the debounce period; enabling,
    disabling, adding and removing rows are reported at once. `on_field_cleared`
    receives the path of every field that gets disabled.

    Args:
        schema: Schema of the message being built
        initial_value: Previously saved value used to seed content and enabled state
        on_change: Receives the whole new value
        on_field_cleared: Receives the path of a disabled field
        config: Engine configuration
        clock: Monotonic time source used by the debounce
        loop: Optional asyncio loop driving the debounce
    """

    def __init__(
        self,
        schema: MessageSchema,
        initial_value: dict[str, Any] | None = None,
        *,
        on_change: Callable[[Any], None] | None = None,
        on_field_cleared: Callable[[str], None] | None = None,
        config: EngineConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.schema = schema
        self.on_field_cleared = on_field_cleared
        self.states = UIStateMap()
        self.presence = PresenceController(self.states, on_cleared=self._field_cleared)
        self.items = RepeatedItemManager(self.states)
        self.notifier = ChangeNotifier(on_change, self.config.debounce_seconds, clock=clock, loop=loop)
        self._value: dict[str, Any] = initial_value if isinstance(initial_value, dict) else {}

    @property
    def value(self) -> dict[str, Any]:
        return self._value

    def _field_cleared(self, path: str) -> None:
        if self.on_field_cleared is not None:
            self.on_field_cleared(path)

    # ========== SCHEMA RESOLUTION ==========

    def resolve(self, path: str) -> tuple[FieldSchema, bool]:
        """
        Find the schema of the field addressed by `path`.

        Returns:
            The field and whether the path addresses one element of it

        Raises:
            KeyError: If the path does not follow the schema
        """
        steps = parse_path(path)
        if not steps:
            raise KeyError("Empty path")

        *parents, last = steps
        message = self.schema
        for step in parents:
            field = self._step_field(message, step, path)
            if field.nested_schema is None or (field.repeated and step.index is None):
                raise KeyError(f"Cannot descend into '{step}' in path '{path}'")
            message = field.nested_schema

        return self._step_field(message, last, path), last.index is not None

    @staticmethod
    def _step_field(message: MessageSchema, step: Step, path: str) -> FieldSchema:
        if message.circular:
            raise KeyError(f"Path '{path}' enters recursive message '{message.message}'")
        field = message.get_field(step.key)
        if field is None:
            raise KeyError(f"Unknown field '{step.key}' in path '{path}'")
        if step.index is not None and not field.repeated:
            raise KeyError(f"Field '{step.key}' in path '{path}' is not repeated")
        return field

    def field_at(self, path: str) -> FieldSchema:
        return self.resolve(path)[0]

    def _field(self, path: str) -> FieldSchema:
        field, is_item = self.resolve(path)
        if is_item:
            raise KeyError(f"Path '{path}' addresses a row, not a field")
        return field

    # ========== UI STATE ==========

    def is_toggleable(self, path: str) -> bool:
        """
        True if the field at `path` has a checkbox of its own.

        Plain messages, and the inputs of a map row or of a well-known type,
        have none and are always enabled.
        """
        field = self.field_at(path)
        if not get_field_variant(field).value.has_toggle:
            return False
        owners = field_paths(path)
        return len(owners) < 2 or get_field_variant(self.field_at(owners[-2])) not in _ROW_OWNING_VARIANTS

    def mount(self, path: str) -> FieldUIState:
        """Return the UI state of the field at `path`, creating it on first use."""
        state = self.states.get(path)
        if state is not None:
            return state

        field = self.field_at(path)
        expanded = len(field_paths(path)) == 1 and self.config.expand_simple_root_fields and is_simple(field)
        return self.presence.mount(
            path, self._value, always_enabled=not self.is_toggleable(path), expanded=expanded
        )

    def is_enabled(self, path: str) -> bool:
        return self.mount(path).enabled

    def is_writable(self, path: str) -> bool:
        """True if the field at `path` and every field enclosing it are enabled."""
        for owner in field_paths(path):
            self.mount(owner)
        return self.presence.is_writable(path)

    def toggle_expanded(self, path: str) -> bool:
        state = self.mount(path)
        state.expanded = not state.expanded
        return state.expanded

    def row_count(self, path: str) -> int:
        self.mount(path)
        return self.items.count(path)

    # ========== WRITES ==========

    def _commit(self, value: dict[str, Any]) -> None:
        self._value = value

    def _structural_change(self, updated: dict[str, Any]) -> None:
        if updated is not self._value:
            self._commit(updated)
            self.notifier.changed_now(self._value)
        elif self.notifier.pending:
            self.notifier.flush()

    def _to_stored(self, field: FieldSchema, raw: Any) -> Any:
        variant = get_field_variant(field)
        if variant == FieldVariant.WELL_KNOWN and field.well_known_type is not None:
            return get_transcoder(field.well_known_type).from_editable(raw)
        if variant in (FieldVariant.SCALAR, FieldVariant.ENUM):
            return coerce_scalar(field, raw)
        if variant in (FieldVariant.REPEATED, FieldVariant.MAP):
            return raw if isinstance(raw, list) else MISSING
        if variant == FieldVariant.MESSAGE:
            return raw if isinstance(raw, dict) else MISSING
        return MISSING

    def set_value(self, path: str, raw: Any) -> bool:
        """
        Write editor input at `path`.

        Scalars are coerced to the field's kind and well-known types are
        transcoded from their display form. Writes to a disabled field, and
        input that cannot be coerced, are ignored.

        Returns:
            True if the value was written

        Raises:
            KeyError: If the path does not follow the schema
        """
        field, is_item = self.resolve(path)
        if not self.is_writable(path):
            log.debug(f"Ignoring write to disabled field '{path}'")
            return False

        target = field.as_item() if is_item else field
        stored = self._to_stored(target, raw)
        if stored is MISSING:
            log.debug(f"Ignoring input {raw!r} for '{path}' ({target.display_type})")
            return False

        self._commit(set_at(self._value, path, stored))
        for owner in field_paths(path):
            if self.field_at(owner).repeated:
                self.items.sync(owner, self._value)
        self.notifier.changed(self._value)
        return True

    def enable(self, path: str) -> bool:
        self._field(path)
        for owner in field_paths(path)[:-1]:
            self.mount(owner)
        self.mount(path)
        changed = self.presence.enable(path, self._value)
        self._structural_change(self._value)
        return changed

    def disable(self, path: str) -> bool:
        """
        Disable the field at `path`, removing its value and rows.

        Returns:
            True if the value changed
        """
        self._field(path)
        self.mount(path)
        updated = self.presence.disable(path, self._value)
        changed = updated is not self._value
        self._structural_change(updated)
        return changed

    def add_item(self, path: str) -> int | None:
        """
        Add an empty row to the repeated field at `path`.

        Returns:
            The new row index, or None if the field is disabled
        """
        field = self._field(path)
        if not field.repeated:
            raise KeyError(f"Field '{path}' is not repeated")
        if not self.is_writable(path):
            log.debug(f"Ignoring add to disabled field '{path}'")
            return None
        index = self.items.add_item(path)
        self._structural_change(self._value)
        return index

    def remove_item(self, path: str, index: int) -> bool:
        """
        Remove row `index` of the repeated field at `path`.

        Returns:
            False if the field is disabled, True otherwise

        Raises:
            IndexError: If there is no such row
        """
        field = self._field(path)
        if not field.repeated:
            raise KeyError(f"Field '{path}' is not repeated")
        if not self.is_writable(path):
            log.debug(f"Ignoring remove from disabled field '{path}'")
            return False
        self._structural_change(self.items.remove_item(path, index, self._value))
        return True

    # ========== READS ==========

    def stored_value(self, path: str) -> Any:
        return get_at(self._value, path)

    def editable_value(self, path: str) -> Any:
        """Display form of the value at `path` ("" when a plain field is absent)."""
        field, is_item = self.resolve(path)
        target = field.as_item() if is_item else field
        stored = get_at(self._value, path)
        if target.well_known_type is not None and not target.repeated:
            return get_transcoder(target.well_known_type).to_editable(None if stored is MISSING else stored)
        return "" if stored is MISSING else stored

    def missing_required(self) -> list[str]:
        """Paths of required fields whose value is absent or a blank string."""
        missing: list[str] = []
        self._collect_missing(self.schema, "", self._value, missing)
        return missing

    def _collect_missing(self, message: MessageSchema, base: str, value: Any, missing: list[str]) -> None:
        if message.circular:
            return
        for field in message.fields:
            path = join_path(base, field.name)
            stored = value.get(field.name, MISSING) if isinstance(value, dict) else MISSING
            if field.required and (stored is MISSING or (isinstance(stored, str) and not stored.strip())):
                missing.append(path)
            if field.nested_schema is None or field.is_map or field.well_known_type is not None:
                continue
            if field.repeated and isinstance(stored, list):
                for i, item in enumerate(stored):
                    self._collect_missing(field.nested_schema, index_path(path, i), item, missing)
            elif isinstance(stored, dict):
                self._collect_missing(field.nested_schema, path, stored, missing)

    def to_json(self) -> str:
        return json.dumps(self._value, indent=self.config.json_indent or None)

    def render(self) -> list["RenderNode"]:
        from protoform.render.dispatch import FormRenderer

        return FormRenderer(self).render()

    # ========== LIFECYCLE ==========

    def poll(self) -> bool:
        """Deliver a pending edit notification whose debounce period has elapsed."""
        return self.notifier.poll()

    def flush(self) -> bool:
        """Deliver a pending edit notification now."""
        return self.notifier.flush()

    def reset(self, schema: MessageSchema | None = None, initial_value: dict[str, Any] | None = None) -> None:
        """
        Replace the value and UI state wholesale, e.g. when another method is selected.

        A pending notification for the old value is discarded.
        """
        self.notifier.cancel()
        self.states.clear()
        if schema is not None:
            self.schema = schema
        self._value = initial_value if isinstance(initial_value, dict) else {}
        log.debug("Form reset")

    def close(self) -> None:
        self.notifier.cancel()
