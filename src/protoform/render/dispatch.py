"""Turn a form into a tree of render nodes, one handler per field variant."""

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TYPE_CHECKING

from protoform.engine.path import MISSING, index_path, join_path
from protoform.engine.repeated import MapRow, entries_to_rows
from protoform.schema.models import INTEGER_KINDS, NUMERIC_KINDS, FieldKind, FieldSchema, MessageSchema, WellKnownType
from protoform.schema.variant import FieldVariant, get_field_variant
from protoform.wellknown import get_transcoder


if TYPE_CHECKING:
    from protoform.engine.form import DynamicForm


class ControlKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    SELECT = "select"
    DATETIME = "datetime"
    JSON = "json"
    TYPE_URL_PAYLOAD = "type_url_payload"
    READ_ONLY = "read_only"
    GROUP = "group"
    ROWS = "rows"
    KEY_VALUE = "key_value"
    PLACEHOLDER = "placeholder"


WELL_KNOWN_CONTROLS = {
    WellKnownType.TIMESTAMP: ControlKind.DATETIME,
    WellKnownType.DURATION: ControlKind.NUMBER,
    WellKnownType.STRUCT: ControlKind.JSON,
    WellKnownType.VALUE: ControlKind.JSON,
    WellKnownType.LIST_VALUE: ControlKind.JSON,
    WellKnownType.ANY: ControlKind.TYPE_URL_PAYLOAD,
    WellKnownType.NULL_VALUE: ControlKind.READ_ONLY,
    WellKnownType.EMPTY: ControlKind.READ_ONLY,
}


@dataclass
class RenderRow:
    """One row of a repeated or map field."""

    index: int
    placeholder: int
    path: str
    control: ControlKind
    value: Any = None
    children: list["RenderNode"] = field(default_factory=list)


@dataclass
class RenderNode:
    """Everything a view needs to draw one field."""

    path: str
    name: str
    variant: FieldVariant
    control: ControlKind
    label: str
    type_label: str
    description: str = ""
    required: bool = False
    missing: bool = False
    toggleable: bool = True
    enabled: bool = False
    expanded: bool = False
    read_only: bool = False
    value: Any = None
    placeholder: str = ""
    options: list[str] = field(default_factory=list)
    rows: list[RenderRow] = field(default_factory=list)
    children: list["RenderNode"] = field(default_factory=list)
    summary: str = ""
    note: str = ""

    def find(self, path: str) -> "RenderNode | None":
        """Find the node for `path` in this subtree."""
        if self.path == path:
            return self
        nested = self.children + [child for row in self.rows for child in row.children]
        for child in nested:
            found = child.find(path)
            if found is not None:
                return found
        return None


def scalar_control(field: FieldSchema) -> ControlKind:
    if field.kind == FieldKind.BOOL:
        return ControlKind.CHECKBOX
    if field.kind in NUMERIC_KINDS:
        return ControlKind.NUMBER
    return ControlKind.TEXT


def _plural(count: int, word: str, plural: str | None = None) -> str:
    return f"{count} {word if count == 1 else plural or word + 's'}"


class FormRenderer:
    """
    Builds render nodes for a form.

    Children and rows are produced only for expanded fields, so recursive
    message types are walked one level at a time as the user expands them.
    """

    def __init__(self, form: "DynamicForm") -> None:
        self.form = form
        self._handlers: dict[FieldVariant, Callable[[FieldSchema, str, int], RenderNode]] = {
            FieldVariant.SCALAR: self._render_scalar,
            FieldVariant.ENUM: self._render_enum,
            FieldVariant.MESSAGE: self._render_message,
            FieldVariant.MAP: self._render_map,
            FieldVariant.REPEATED: self._render_repeated,
            FieldVariant.WELL_KNOWN: self._render_well_known,
        }

    def render(self) -> list[RenderNode]:
        if self.form.schema.circular:
            return []
        return [self.render_field(f, f.name, 0) for f in self.form.schema.fields]

    def render_field(self, field: FieldSchema, path: str, depth: int = 0) -> RenderNode:
        handler = self._handlers.get(get_field_variant(field), self._render_unsupported)
        return handler(field, path, depth)

    def _can_descend(self, depth: int) -> bool:
        max_depth = self.form.config.max_render_depth
        return max_depth is None or depth + 1 < max_depth

    def _node(self, field: FieldSchema, path: str, control: ControlKind) -> RenderNode:
        state = self.form.mount(path)
        stored = self.form.stored_value(path)
        missing = field.required and (stored is MISSING or (isinstance(stored, str) and not stored.strip()))
        return RenderNode(
            path=path,
            name=field.name,
            variant=get_field_variant(field),
            control=control,
            label=field.name,
            type_label=field.display_type,
            description=field.description,
            required=field.required,
            missing=missing,
            toggleable=self.form.is_toggleable(path),
            enabled=state.enabled,
            expanded=state.expanded,
        )

    def _children(self, message: MessageSchema, base: str, depth: int) -> list[RenderNode]:
        return [self.render_field(f, join_path(base, f.name), depth + 1) for f in message.fields]

    # ========== HANDLERS ==========

    def _render_scalar(self, field: FieldSchema, path: str, depth: int) -> RenderNode:
        node = self._node(field, path, scalar_control(field))
        node.value = self.form.editable_value(path)
        if field.kind in INTEGER_KINDS:
            node.placeholder = "0"
        return node

    def _render_enum(self, field: FieldSchema, path: str, depth: int) -> RenderNode:
        node = self._node(field, path, ControlKind.SELECT)
        node.options = field.enum_names
        node.value = self.form.editable_value(path)
        return node

    def _render_well_known(self, field: FieldSchema, path: str, depth: int) -> RenderNode:
        if field.well_known_type is None:
            return self._render_unsupported(field, path, depth)
        transcoder = get_transcoder(field.well_known_type)
        node = self._node(field, path, WELL_KNOWN_CONTROLS[field.well_known_type])
        node.value = self.form.editable_value(path)
        node.placeholder = transcoder.placeholder
        node.read_only = transcoder.read_only
        node.note = transcoder.label
        return node

    def _render_message(self, field: FieldSchema, path: str, depth: int) -> RenderNode:
        nested = field.nested_schema
        if nested is None:
            return self._render_unsupported(field, path, depth)
        node = self._node(field, path, ControlKind.GROUP)
        if nested.circular:
            node.note = f"Recursive reference to {field.display_type}"
            return node

        stored = self.form.stored_value(path)
        filled = sum(1 for f in nested.fields if isinstance(stored, dict) and f.name in stored)
        node.summary = _plural(len(nested.fields), "field") + (f" ● {filled} filled" if filled else "")
        if node.expanded and self._can_descend(depth):
            node.children = self._children(nested, path, depth)
        return node

    def _render_repeated(self, field: FieldSchema, path: str, depth: int) -> RenderNode:
        item = field.as_item()
        item_variant = get_field_variant(item)
        node = self._node(field, path, ControlKind.ROWS)
        node.summary = f"Array field ● {_plural(self.form.row_count(path), 'item')}"
        if item_variant == FieldVariant.ENUM:
            node.options = item.enum_names
        if not node.expanded or not self._can_descend(depth):
            return node

        placeholders = self.form.mount(path).items
        for index, placeholder in enumerate(placeholders):
            row_path = index_path(path, index)
            if item_variant == FieldVariant.MESSAGE and item.nested_schema is not None:
                row = RenderRow(index, placeholder, row_path, ControlKind.GROUP, self.form.stored_value(row_path))
                if not item.nested_schema.circular:
                    row.children = self._children(item.nested_schema, row_path, depth)
            else:
                control = self._item_control(item)
                row = RenderRow(index, placeholder, row_path, control, self.form.editable_value(row_path))
            node.rows.append(row)
        return node

    def _item_control(self, item: FieldSchema) -> ControlKind:
        variant = get_field_variant(item)
        if variant == FieldVariant.ENUM:
            return ControlKind.SELECT
        if variant == FieldVariant.WELL_KNOWN and item.well_known_type is not None:
            return WELL_KNOWN_CONTROLS[item.well_known_type]
        if variant == FieldVariant.SCALAR:
            return scalar_control(item)
        return ControlKind.PLACEHOLDER

    def _render_map(self, field: FieldSchema, path: str, depth: int) -> RenderNode:
        nested = field.nested_schema
        if nested is None:
            return self._render_unsupported(field, path, depth)
        node = self._node(field, path, ControlKind.KEY_VALUE)
        node.summary = f"Map field ● {_plural(self.form.row_count(path), 'entry', 'entries')}"
        if not node.expanded or not self._can_descend(depth):
            return node

        rows = entries_to_rows(self.form.stored_value(path))
        for index, placeholder in enumerate(self.form.mount(path).items):
            row_path = index_path(path, index)
            entry = rows[index] if index < len(rows) else MapRow()
            row = RenderRow(index, placeholder, row_path, ControlKind.KEY_VALUE, entry.to_entry())
            row.children = self._children(nested, row_path, depth)
            node.rows.append(row)
        return node

    def _render_unsupported(self, field: FieldSchema, path: str, depth: int) -> RenderNode:
        node = self._node(field, path, ControlKind.PLACEHOLDER)
        node.note = f"Need handling of {field.display_type}"
        return node
