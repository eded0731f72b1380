"""Entry point: build and resolve the tool catalog for one session/turn."""

import logging

from .context import PolicyContext
from .policy.engine import PolicyResolver
from .tools.base import Tool
from .tools.registry import ToolCatalogBuilder

logger = logging.getLogger(__name__)


def create_agent_tools(
    context: PolicyContext,
    builder: ToolCatalogBuilder | None = None,
    resolver: PolicyResolver | None = None,
) -> list[Tool]:
    """
    Create the tools visible in an invocation context.

    Args:
        context: Invocation context (provider, model, session, sandbox, config).
        builder: Catalog builder (default: the built-in catalog).
        resolver: Policy resolver.

    Returns:
        Filtered tools with provider-compatible schemas.
    """
    builder = builder or ToolCatalogBuilder()
    resolver = resolver or PolicyResolver()
    tools = resolver.resolve(builder.build(context), context)
    logger.debug(f"🔧 Tools for session {context.session_key!r}: {[t.name for t in tools]}")
    return tools
