"""Render nodes for a form and their console drawing."""

from .console import build_tree
from .dispatch import ControlKind, FormRenderer, RenderNode, RenderRow

__all__ = ["ControlKind", "FormRenderer", "RenderNode", "RenderRow", "build_tree"]
