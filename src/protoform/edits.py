"""Scripted edits: replay a list of form operations from a YAML or JSON file."""

import json
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, TypeAdapter, model_validator

from protoform import log
from protoform.engine.form import DynamicForm


class EditOperation(BaseModel):
    """One user action on the form."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    op: Literal["set", "enable", "disable", "add", "remove", "expand"]
    path: str
    value: Any = None
    index: int | None = None

    @model_validator(mode="after")
    def validate_index(self) -> "EditOperation":
        if self.op == "remove" and self.index is None:
            raise ValueError(f"'remove' on '{self.path}' needs an index")
        return self


_EDITS_ADAPTER = TypeAdapter(list[EditOperation])


def parse_edits(data: Any) -> list[EditOperation]:
    """
    Validate raw edit data.

    Accepts a list of operations or a mapping with an `edits` list.

    Raises:
        ValidationError: If an operation is malformed
    """
    if isinstance(data, dict) and "edits" in data:
        data = data["edits"]
    if data is None:
        return []
    return _EDITS_ADAPTER.validate_python(data)


def load_edits(edits_path: Path) -> list[EditOperation]:
    with edits_path.open("r", encoding="utf-8") as f:
        if edits_path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    return parse_edits(data)


def apply_edit(form: DynamicForm, edit: EditOperation) -> bool:
    """
    Apply one operation to the form.

    Returns:
        False if the form ignored the operation (e.g. a write to a disabled field)

    Raises:
        KeyError: If the path does not follow the schema
        IndexError: If a removed row does not exist
    """
    if edit.op == "set":
        return form.set_value(edit.path, edit.value)
    if edit.op == "enable":
        form.enable(edit.path)
        return True
    if edit.op == "disable":
        form.disable(edit.path)
        return True
    if edit.op == "add":
        return form.add_item(edit.path) is not None
    if edit.op == "remove":
        if edit.index is None:
            raise ValueError(f"Remove at '{edit.path}' needs an index")
        return form.remove_item(edit.path, edit.index)
    form.toggle_expanded(edit.path)
    return True


def apply_edits(form: DynamicForm, edits: list[EditOperation]) -> int:
    """
    Apply operations in order and deliver any pending notification.

    Returns:
        The number of operations the form ignored
    """
    ignored = 0
    for number, edit in enumerate(edits, start=1):
        if not apply_edit(form, edit):
            log.warning(f"Edit #{number} ({edit.op} '{edit.path}') was ignored")
            ignored += 1
    form.flush()
    return ignored
