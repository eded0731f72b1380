"""
Tool Catalog for Agent Sessions

Declarative catalog of every tool the package can produce. Each entry pairs
a ToolKind with the predicate deciding whether it applies to a context and
the producer that builds it. ``ToolCatalogBuilder.build`` evaluates the
catalog in order and returns fresh tool instances for one session/turn.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..context import PolicyContext
from ..providers import model_matches, supports_apply_patch
from ..session_key import is_subagent_session
from .aliases import AliasGroup, alias_tool
from .automation import create_cron_tool, create_gateway_tool, create_nodes_tool
from .base import Tool
from .browser import create_browser_tool, create_canvas_tool
from .execution import CommandRunner, ProcessRegistry, create_exec_tool, create_process_tool
from .filesystem import WorkspaceRoot, create_edit_tool, create_read_tool, create_write_tool
from .media import create_image_tool
from .memory import create_memory_get_tool, create_memory_search_tool
from .messaging import create_message_tool
from .patch import create_apply_patch_tool
from .sessions import (
    create_agents_list_tool,
    create_session_status_tool,
    create_sessions_history_tool,
    create_sessions_list_tool,
    create_sessions_send_tool,
    create_sessions_spawn_tool,
)

logger = logging.getLogger(__name__)

PATH_ALIASES = AliasGroup(("path", "file_path"))

READ_ALIASES = (PATH_ALIASES,)
WRITE_ALIASES = (PATH_ALIASES, AliasGroup(("content",), allow_empty=True))
EDIT_ALIASES = (
    PATH_ALIASES,
    AliasGroup(("oldText", "old_string")),
    AliasGroup(("newText", "new_string"), allow_empty=True),
)


class ToolKind(str, Enum):
    """Every tool the catalog can produce; the value is the tool name."""

    READ = "read"
    WRITE = "write"
    EDIT = "edit"
    APPLY_PATCH = "apply_patch"
    EXEC = "exec"
    PROCESS = "process"
    BROWSER = "browser"
    CANVAS = "canvas"
    NODES = "nodes"
    CRON = "cron"
    MESSAGE = "message"
    GATEWAY = "gateway"
    AGENTS_LIST = "agents_list"
    SESSIONS_LIST = "sessions_list"
    SESSIONS_HISTORY = "sessions_history"
    SESSIONS_SEND = "sessions_send"
    SESSIONS_SPAWN = "sessions_spawn"
    SESSION_STATUS = "session_status"
    MEMORY_SEARCH = "memory_search"
    MEMORY_GET = "memory_get"
    IMAGE = "image"


@dataclass(frozen=True)
class BuildState:
    """
    Per-build inputs shared by producers.

    Attributes:
        context: Invocation context.
        root: Workspace root resolved once at build entry.
        processes: Background sessions shared by exec and process.
    """

    context: PolicyContext
    root: WorkspaceRoot
    processes: ProcessRegistry


@dataclass(frozen=True)
class CatalogEntry:
    """
    One catalog row.

    Attributes:
        kind: Tool produced by this entry.
        predicate: Whether the tool applies to a context.
        producer: Builds the tool.
    """

    kind: ToolKind
    predicate: Callable[[PolicyContext], bool]
    producer: Callable[[BuildState], Tool]


def _always(context: PolicyContext) -> bool:
    return True


def _not_subagent(context: PolicyContext) -> bool:
    return not is_subagent_session(context.session_key)


def apply_patch_enabled(context: PolicyContext) -> bool:
    """
    Decide whether apply_patch is exposed.

    Args:
        context: Invocation context.

    Returns:
        True if the feature is enabled, the provider is patch-idiomatic and
        the model passes the optional allow-list.
    """
    gate = context.config.tools.exec.apply_patch
    if not gate.enabled:
        return False
    if not supports_apply_patch(context.provider, context.model_auth_mode):
        return False
    return model_matches(context.model_id, context.provider, gate.allow_models)


def _exec_runner(state: BuildState) -> CommandRunner:
    settings = state.context.config.tools.exec
    return CommandRunner(
        state.root,
        state.context.effective_sandbox,
        timeout_sec=settings.timeout_sec,
        max_output_chars=settings.max_output_chars,
    )


CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(
        ToolKind.READ, _always, lambda s: alias_tool(create_read_tool(s.root), READ_ALIASES)
    ),
    CatalogEntry(
        ToolKind.WRITE, _always, lambda s: alias_tool(create_write_tool(s.root), WRITE_ALIASES)
    ),
    CatalogEntry(
        ToolKind.EDIT, _always, lambda s: alias_tool(create_edit_tool(s.root), EDIT_ALIASES)
    ),
    CatalogEntry(
        ToolKind.APPLY_PATCH, apply_patch_enabled, lambda s: create_apply_patch_tool(s.root)
    ),
    CatalogEntry(
        ToolKind.EXEC, _always, lambda s: create_exec_tool(_exec_runner(s), s.processes)
    ),
    CatalogEntry(ToolKind.PROCESS, _always, lambda s: create_process_tool(s.processes)),
    CatalogEntry(ToolKind.BROWSER, _always, lambda s: create_browser_tool(s.context.backends)),
    CatalogEntry(ToolKind.CANVAS, _always, lambda s: create_canvas_tool(s.context.backends)),
    CatalogEntry(ToolKind.NODES, _always, lambda s: create_nodes_tool(s.context.backends)),
    CatalogEntry(ToolKind.CRON, _always, lambda s: create_cron_tool(s.context.backends)),
    CatalogEntry(
        ToolKind.MESSAGE,
        _always,
        lambda s: create_message_tool(s.context.messaging, s.context.message_provider),
    ),
    CatalogEntry(ToolKind.GATEWAY, _always, lambda s: create_gateway_tool(s.context.backends)),
    CatalogEntry(
        ToolKind.AGENTS_LIST, _always, lambda s: create_agents_list_tool(s.context.backends)
    ),
    CatalogEntry(
        ToolKind.SESSIONS_LIST,
        _not_subagent,
        lambda s: create_sessions_list_tool(s.context.backends),
    ),
    CatalogEntry(
        ToolKind.SESSIONS_HISTORY,
        _not_subagent,
        lambda s: create_sessions_history_tool(s.context.backends),
    ),
    CatalogEntry(
        ToolKind.SESSIONS_SEND,
        _not_subagent,
        lambda s: create_sessions_send_tool(s.context.backends),
    ),
    CatalogEntry(
        ToolKind.SESSIONS_SPAWN,
        _not_subagent,
        lambda s: create_sessions_spawn_tool(s.context.backends),
    ),
    CatalogEntry(
        ToolKind.SESSION_STATUS, _always, lambda s: create_session_status_tool(s.context.backends)
    ),
    CatalogEntry(
        ToolKind.MEMORY_SEARCH, _always, lambda s: create_memory_search_tool(s.context.backends)
    ),
    CatalogEntry(
        ToolKind.MEMORY_GET, _always, lambda s: create_memory_get_tool(s.context.backends)
    ),
    CatalogEntry(ToolKind.IMAGE, _always, lambda s: create_image_tool(s.context.backends)),
)


class ToolCatalogBuilder:
    """
    Assembles the raw tool set for a context.

    Usage:
        tools = ToolCatalogBuilder().build(context)
    """

    def __init__(self, catalog: tuple[CatalogEntry, ...] = CATALOG) -> None:
        """
        Initialize builder.

        Args:
            catalog: Catalog entries to evaluate, in output order.
        """
        self.catalog = catalog

    def build(self, context: PolicyContext) -> list[Tool]:
        """
        Build fresh tool instances for a context.

        Args:
            context: Invocation context.

        Returns:
            Tools whose predicates hold, in catalog order.

        Raises:
            ValueError: If two entries produce the same tool name.
        """
        state = BuildState(
            context=context,
            root=WorkspaceRoot.from_context(context),
            processes=ProcessRegistry(),
        )

        tools: list[Tool] = []
        names: set[str] = set()
        for entry in self.catalog:
            if not entry.predicate(context):
                logger.debug(f"  📋 Skipping '{entry.kind.value}' for this context")
                continue
            tool = entry.producer(state)
            if tool.name in names:
                raise ValueError(f"Tool '{tool.name}' is already registered")
            names.add(tool.name)
            tools.append(tool)

        logger.info(
            f"🔧 Tool catalog built with {len(tools)} tools "
            f"(provider={context.provider}, root={state.root.root}, "
            f"sandboxed={state.root.sandboxed})"
        )
        return tools
