"""
Policy Resolver for Agent Tool Filtering.

Decides which tools a session sees: profile presets, global or per-agent
allow/deny, sub-agent restrictions and the sandbox ceiling, followed by
schema cleaning for the model provider.
"""

from .engine import (
    DEFAULT_SANDBOX_ALLOW,
    DEFAULT_SANDBOX_DENY,
    DEFAULT_SUBAGENT_DENY,
    PolicyContext,
    PolicyResolver,
)
from .profiles import PROFILES, TOOL_GROUPS, TOOL_NAME_ALIASES, ProfileDef, expand_entries

__all__ = [
    "DEFAULT_SANDBOX_ALLOW",
    "DEFAULT_SANDBOX_DENY",
    "DEFAULT_SUBAGENT_DENY",
    "PROFILES",
    "PolicyContext",
    "PolicyResolver",
    "ProfileDef",
    "TOOL_GROUPS",
    "TOOL_NAME_ALIASES",
    "expand_entries",
]
