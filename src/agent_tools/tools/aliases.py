"""
Parameter aliasing for tools.

Models trained on other agent harnesses call the file tools with their own
argument names (``file_path`` for ``path``, ``old_string`` for ``oldText``).
Aliases are accepted at runtime and advertised in the schema, but never
made schema-required: a group is satisfied by any one of its keys, which
JSON Schema cannot express without unions.
"""

import copy
import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from ..errors import MissingParameterError
from .base import Tool, ToolResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AliasGroup:
    """
    Interchangeable argument keys for one parameter.

    Attributes:
        keys: Accepted keys in lookup order; the first one is canonical.
        allow_empty: Whether an empty or whitespace-only string counts as a value.
    """

    keys: tuple[str, ...]
    allow_empty: bool = False

    def __post_init__(self) -> None:
        if not self.keys:
            raise ValueError("AliasGroup needs at least one key")

    @property
    def canonical(self) -> str:
        return self.keys[0]

    @property
    def aliases(self) -> tuple[str, ...]:
        return self.keys[1:]


def _is_present(value: Any, allow_empty: bool = False) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not allow_empty:
        return bool(value.strip())
    return True


def normalize_args(
    args: Mapping[str, Any],
    groups: Sequence[AliasGroup],
    required: Sequence[str] = (),
    tool_name: str | None = None,
) -> dict[str, Any]:
    """
    Resolve alias groups in an argument mapping.

    Args:
        args: Arguments as sent by the model (not mutated).
        groups: Alias groups to resolve.
        required: Canonical keys that must end up with a value.
        tool_name: Tool name for error messages.

    Returns:
        New mapping with every group bound to its canonical key.

    Raises:
        MissingParameterError: If a required group has no usable value.
    """
    normalized = dict(args)
    for group in groups:
        found = next(
            (
                args[key]
                for key in group.keys
                if key in args and _is_present(args[key], group.allow_empty)
            ),
            None,
        )
        for key in group.keys:
            normalized.pop(key, None)
        if found is not None:
            normalized[group.canonical] = found
        elif group.canonical in required:
            raise MissingParameterError(group.canonical, tool_name, group.keys)
    return normalized


def with_aliases(tool: Tool, groups: Sequence[AliasGroup]) -> Tool:
    """
    Wrap a tool so its execute accepts alias keys.

    The required set is read from ``tool.parameters`` at wrap time, so wrap
    before :func:`add_aliases` rewrites the schema.

    Args:
        tool: Tool to wrap.
        groups: Alias groups to resolve on every call.

    Returns:
        New tool with the same schema and an alias-resolving execute.
    """
    required = tuple(tool.parameters.get("required") or ())
    inner = tool.execute

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        normalized = normalize_args(args or {}, groups, required, tool.name)
        return inner(request_id, normalized, context, cancel)

    return replace(tool, execute=execute)


def add_aliases(tool: Tool, alias_map: Mapping[str, Sequence[str]]) -> Tool:
    """
    Advertise alias names in a tool's parameter schema.

    Each alias becomes a sibling property with the canonical definition,
    placed right after it. Canonical names with aliases are dropped from
    ``required``; aliases are never added to it.

    Args:
        tool: Tool whose schema is patched.
        alias_map: Canonical name -> alias names.

    Returns:
        New tool with the patched schema.
    """
    schema = copy.deepcopy(tool.parameters)
    properties = schema.get("properties") or {}

    patched: dict[str, Any] = {}
    for name, definition in properties.items():
        patched[name] = definition
        for alias in alias_map.get(name, ()):
            if alias not in properties:
                patched[alias] = copy.deepcopy(definition)
    schema["properties"] = patched

    if "required" in schema:
        aliased = {name for name, aliases in alias_map.items() if aliases}
        schema["required"] = [r for r in schema["required"] if r not in aliased]

    return replace(tool, parameters=schema)


def alias_tool(tool: Tool, groups: Sequence[AliasGroup]) -> Tool:
    """
    Apply runtime alias resolution and schema aliases together.

    Args:
        tool: Tool to patch.
        groups: Alias groups.

    Returns:
        Tool accepting and advertising every alias.
    """
    wrapped = with_aliases(tool, groups)
    patched = add_aliases(
        wrapped, {group.canonical: group.aliases for group in groups if group.aliases}
    )
    logger.debug(
        f"  📋 Aliases for '{tool.name}': "
        + ", ".join("/".join(group.keys) for group in groups)
    )
    return patched
