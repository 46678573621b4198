"""Draw render nodes as a rich tree."""

import json
from typing import Any

from rich.markup import escape
from rich.tree import Tree

from protoform.render.dispatch import ControlKind, RenderNode, RenderRow


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return escape(repr(value))
    return escape(json.dumps(value, default=str))


def node_label(node: RenderNode) -> str:
    """One line describing a field: checkbox, name, type and value or summary."""
    parts = []
    if node.toggleable:
        parts.append("[green]\\[x][/green]" if node.enabled else "[dim]\\[ ][/dim]")
    name = f"[bold]{escape(node.label)}[/bold]"
    if node.required:
        name += "[red]*[/red]" if node.missing else "*"
    parts.append(name)
    parts.append(f"[dim]{escape(node.type_label)}[/dim]")

    if node.control == ControlKind.PLACEHOLDER or (node.note and node.control == ControlKind.GROUP):
        parts.append(f"[yellow]{escape(node.note)}[/yellow]")
    elif node.summary:
        if not node.expanded:
            parts.append(f"[cyan]{node.summary}[/cyan]")
    elif node.enabled:
        parts.append(_format_value(node.value))

    if node.missing:
        parts.append("[red]required[/red]")
    return " ".join(parts)


def _row_label(row: RenderRow) -> str:
    if row.control == ControlKind.GROUP:
        return f"[dim]\\[{row.index}][/dim]"
    return f"[dim]\\[{row.index}][/dim] {_format_value(row.value)}"


def add_node(tree: Tree, node: RenderNode) -> None:
    branch = tree.add(node_label(node))
    for child in node.children:
        add_node(branch, child)
    for row in node.rows:
        row_branch = branch.add(_row_label(row))
        if row.control == ControlKind.KEY_VALUE:
            continue
        for child in row.children:
            add_node(row_branch, child)


def build_tree(nodes: list[RenderNode], title: str = "message") -> Tree:
    """Build a rich Tree for the given top-level nodes."""
    tree = Tree(f"[bold cyan]{escape(title)}[/bold cyan]")
    for node in nodes:
        add_node(tree, node)
    return tree
