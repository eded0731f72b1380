"""
Agent Tools

Builds the set of tools an agent may call in a given context and makes
their parameter schemas acceptable to the target model provider.

Usage:
    from agent_tools import PolicyContext, create_agent_tools

    tools = create_agent_tools(PolicyContext(model_provider="openai", model_id="gpt-5.2"))
"""

from .config import AgentToolsConfig, ConfigParser, SandboxPolicy
from .context import PolicyContext
from .errors import (
    AgentToolsError,
    MissingParameterError,
    PatchError,
    SandboxViolationError,
    ToolUnavailableError,
)
from .factory import create_agent_tools
from .policy import PolicyResolver
from .schema import clean_schema
from .tools import Tool, ToolCatalogBuilder, ToolResult

__version__ = "0.1.0"

__all__ = [
    "AgentToolsConfig",
    "AgentToolsError",
    "ConfigParser",
    "MissingParameterError",
    "PatchError",
    "PolicyContext",
    "PolicyResolver",
    "SandboxPolicy",
    "SandboxViolationError",
    "Tool",
    "ToolCatalogBuilder",
    "ToolResult",
    "ToolUnavailableError",
    "clean_schema",
    "create_agent_tools",
]
