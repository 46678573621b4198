"""Read, write and delete values inside a nested value using `a.b[2].c` paths.

All mutations are copy-on-write: the containers along the path are copied and
everything else is shared, so every write yields a new top-level object and the
caller can compare references to detect a change.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

_INDEXED_SEGMENT_RE = re.compile(r"^(?P<key>[^\[\]]+)\[(?P<index>\d+)\]$")


class _Missing:
    """Marker for an absent value. Distinct from None, which is JSON null."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Step:
    """One segment of a path: a key, optionally followed by a list index."""

    key: str
    index: int | None = None

    def __str__(self) -> str:
        return self.key if self.index is None else f"{self.key}[{self.index}]"


@lru_cache(maxsize=4096)
def parse_path(path: str) -> tuple[Step, ...]:
    """
    Parse a path such as `a.b[2].c` into steps.

    The path is split on `.` first and a trailing `[n]` is then extracted from
    each segment. A segment with a malformed bracket expression (`a[x]`, `a[1`,
    `[2]`) is kept as a plain key. Empty segments are ignored.

    Args:
        path: Dotted/bracketed path

    Returns:
        tuple[Step, ...]: The parsed steps
    """
    steps: list[Step] = []
    for segment in path.split("."):
        if not segment:
            continue
        match = _INDEXED_SEGMENT_RE.match(segment)
        if match:
            steps.append(Step(match.group("key"), int(match.group("index"))))
        else:
            steps.append(Step(segment))
    return tuple(steps)


def format_path(steps: tuple[Step, ...] | list[Step]) -> str:
    return ".".join(str(step) for step in steps)


def join_path(parent: str, key: str) -> str:
    """Path of the child `key` below `parent` (`parent.key`)."""
    return f"{parent}.{key}" if parent else key


def index_path(path: str, index: int) -> str:
    """Path of element `index` of the list at `path` (`path[index]`)."""
    return f"{path}[{index}]"


def field_paths(path: str) -> list[str]:
    """
    The field paths traversed by `path`, outermost first.

    `a[2].b.c` traverses the fields `a`, `a[2].b` and `a[2].b.c`; list
    elements are not fields of their own.
    """
    steps = parse_path(path)
    return [format_path(steps[:i]) + ("." if i else "") + steps[i].key for i in range(len(steps))]


def get_at(container: Any, path: str, default: Any = MISSING) -> Any:
    """
    Get the value at `path`.

    Returns:
        The value, or `default` when any step of the path is absent
    """
    node = container
    for step in parse_path(path):
        if not isinstance(node, dict) or step.key not in node:
            return default
        node = node[step.key]
        if step.index is not None:
            if not isinstance(node, list) or step.index >= len(node):
                return default
            node = node[step.index]
    return node


def has_at(container: Any, path: str) -> bool:
    return get_at(container, path) is not MISSING


def set_at(container: Any, path: str, value: Any) -> Any:
    """
    Set `value` at `path`, creating intermediate containers as needed.

    A map is created at each non-terminal key step and a list at each index
    step. Lists are grown by indexed assignment; skipped positions are filled
    with None.

    Args:
        container: The current value (None is treated as an empty map)
        path: Destination path
        value: Value to store

    Returns:
        A new top-level container holding the value
    """
    steps = parse_path(path)
    if not steps:
        return value
    return _set(container, steps, value)


def _set(node: Any, steps: tuple[Step, ...], value: Any) -> dict[str, Any]:
    step, rest = steps[0], steps[1:]
    mapping = dict(node) if isinstance(node, dict) else {}

    if step.index is None:
        mapping[step.key] = _set(mapping.get(step.key), rest, value) if rest else value
        return mapping

    existing = mapping.get(step.key)
    items = list(existing) if isinstance(existing, list) else []
    if step.index >= len(items):
        items.extend([None] * (step.index + 1 - len(items)))
    items[step.index] = _set(items[step.index], rest, value) if rest else value
    mapping[step.key] = items
    return mapping


def delete_at(container: Any, path: str) -> Any:
    """
    Remove the value at `path`.

    A map key is removed; a list element is spliced out so that later elements
    shift down by one. Nothing is copied when the path is absent.

    Returns:
        A new top-level container, or `container` itself when nothing was removed
    """
    steps = parse_path(path)
    if not steps:
        return container
    return _delete(container, steps)


def _delete(node: Any, steps: tuple[Step, ...]) -> Any:
    step, rest = steps[0], steps[1:]
    if not isinstance(node, dict) or step.key not in node:
        return node
    child = node[step.key]

    if step.index is None:
        if rest:
            updated_child = _delete(child, rest)
            if updated_child is child:
                return node
            return {**node, step.key: updated_child}
        return {k: v for k, v in node.items() if k != step.key}

    if not isinstance(child, list) or step.index >= len(child):
        return node
    items = list(child)
    if rest:
        updated_item = _delete(items[step.index], rest)
        if updated_item is items[step.index]:
            return node
        items[step.index] = updated_item
    else:
        del items[step.index]
    return {**node, step.key: items}
