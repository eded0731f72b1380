"""Configuration system for agent tools."""

from .parser import ConfigParser
from .schema import (
    AgentConfig,
    AgentToolsConfig,
    ApplyPatchConfig,
    ExecToolConfig,
    SandboxDockerConfig,
    SandboxPolicy,
    SubagentToolsConfig,
    ToolPolicy,
    ToolsConfig,
)

__all__ = [
    "ConfigParser",
    "AgentConfig",
    "AgentToolsConfig",
    "ApplyPatchConfig",
    "ExecToolConfig",
    "SandboxDockerConfig",
    "SandboxPolicy",
    "SubagentToolsConfig",
    "ToolPolicy",
    "ToolsConfig",
]
