"""
Tools for agent sessions.

Local bodies (read, write, edit, apply_patch, exec, process) plus delegated
tools whose execution lives in caller-supplied backends.
"""

from .aliases import AliasGroup, add_aliases, alias_tool, normalize_args, with_aliases
from .base import ImageContent, TextContent, Tool, ToolParams, ToolResult
from .browser import without_host_control
from .execution import ProcessRegistry
from .filesystem import WorkspaceRoot
from .registry import CATALOG, CatalogEntry, ToolCatalogBuilder, ToolKind

__all__ = [
    "AliasGroup",
    "CATALOG",
    "CatalogEntry",
    "ImageContent",
    "ProcessRegistry",
    "TextContent",
    "Tool",
    "ToolCatalogBuilder",
    "ToolKind",
    "ToolParams",
    "ToolResult",
    "WorkspaceRoot",
    "add_aliases",
    "alias_tool",
    "normalize_args",
    "with_aliases",
    "without_host_control",
]
