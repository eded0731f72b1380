"""
Tool Policy Resolver: staged filter over the raw catalog.

Stages run in order over an immutable tuple of tool names; each either
replaces the working set or restricts it:

    1. Profile (replace)            agent profile if the agent policy applies, else global
    2. Allow/deny (restrict)        groups, name aliases and wildcards expanded first
    3. Sub-agent (restrict)         configured allow/deny plus the default deny list
    4. Sandbox ceiling (restrict)   sandbox allow/deny, read-only removals, host browser
    5. Schema cleaning              per-provider compatibility profile

A configured agent with its own tools section replaces the global policy
for stages 1-2. Tools can never be re-added once a stage removed them.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace

from ..config.schema import SandboxPolicy, ToolPolicy
from ..context import PolicyContext
from ..schema import clean_schema, schema_profile_for
from ..session_key import is_subagent_session, parse_session_key
from ..tools.base import Tool
from ..tools.browser import without_host_control
from .profiles import PROFILES, expand_entries, matches_any

logger = logging.getLogger(__name__)

DEFAULT_SUBAGENT_DENY: tuple[str, ...] = ("gateway", "agents_list", "session_status", "cron")

DEFAULT_SANDBOX_ALLOW: tuple[str, ...] = (
    "exec",
    "process",
    "read",
    "write",
    "edit",
    "apply_patch",
    "image",
    "sessions_list",
    "sessions_history",
    "sessions_send",
    "sessions_spawn",
    "session_status",
)
DEFAULT_SANDBOX_DENY: tuple[str, ...] = ("browser", "canvas", "nodes", "cron", "gateway")

READ_ONLY_DENY: tuple[str, ...] = ("write", "edit", "apply_patch")

__all__ = [
    "DEFAULT_SANDBOX_ALLOW",
    "DEFAULT_SANDBOX_DENY",
    "DEFAULT_SUBAGENT_DENY",
    "PolicyContext",
    "PolicyResolver",
]


class PolicyResolver:
    """
    Filters a raw catalog for a context and cleans the surviving schemas.

    Usage:
        tools = PolicyResolver().resolve(ToolCatalogBuilder().build(ctx), ctx)
    """

    def resolve(self, raw_tools: Sequence[Tool], context: PolicyContext) -> list[Tool]:
        """
        Apply every policy stage and return the final tool list.

        Args:
            raw_tools: Output of the catalog builder.
            context: Invocation context.

        Returns:
            Surviving tools in catalog order, schemas cleaned for the provider.
        """
        by_name = {tool.name: tool for tool in raw_tools}
        names = tuple(by_name)
        initial_count = len(names)

        policy, source = self.effective_policy(context)
        names = self.apply_profile(names, policy.profile, source)
        names = self.apply_allow_deny(names, policy.allow, policy.deny, source)

        if is_subagent_session(context.session_key):
            names = self.apply_subagent(names, context.config.tools.subagents.tools)

        sandbox = context.effective_sandbox
        if sandbox is not None and sandbox.enabled:
            names = self.apply_sandbox(names, sandbox)

        tools = [by_name[name] for name in names]
        if sandbox is not None and sandbox.enabled and not sandbox.browser_allow_host_control:
            tools = [without_host_control(t) if t.name == "browser" else t for t in tools]

        compat = schema_profile_for(context.provider, context.config.tools.schema_compat)
        tools = [replace(t, parameters=clean_schema(t.parameters, compat)) for t in tools]

        logger.info(
            f"🔒 Policy filter: {initial_count} → {len(tools)} tools "
            f"(policy={source}, provider={context.provider}, schema={compat.name})"
        )
        return tools

    def effective_policy(self, context: PolicyContext) -> tuple[ToolPolicy, str]:
        """
        Pick the agent policy or the global one.

        Args:
            context: Invocation context.

        Returns:
            (policy, source label) where source is "global" or "agent:<id>".
        """
        config = context.config
        parsed = parse_session_key(context.session_key)

        if parsed is not None and parsed.agent_id:
            agent = config.get_agent(parsed.agent_id)
            if agent is None and config.agents:
                logger.warning(
                    f"⚠️ Unknown agent '{parsed.agent_id}' in session key, "
                    f"using global tool policy"
                )
        else:
            agent = config.default_agent()

        if agent is not None and agent.tools is not None and not agent.tools.is_empty():
            return agent.tools, f"agent:{agent.id}"
        return config.tools.policy(), "global"

    def apply_profile(
        self,
        names: tuple[str, ...],
        profile_name: str | None,
        source: str = "global",
    ) -> tuple[str, ...]:
        """
        Replace the working set with a profile's tool set.

        Args:
            names: Current tool names.
            profile_name: Profile to apply (None = no-op).
            source: Policy source for logging.

        Returns:
            Names in the profile (all names for "full").
        """
        if not profile_name:
            return names
        profile = PROFILES.get(profile_name.strip().lower())
        if profile is None:
            logger.warning(f"⚠️ Unknown tool profile '{profile_name}' ({source}), ignoring")
            return names
        if profile.allow is None:
            return names
        return self._apply_layer(names, profile.allow, None, f"profile:{profile_name}")

    def apply_allow_deny(
        self,
        names: tuple[str, ...],
        allow: Sequence[str] | None,
        deny: Sequence[str] | None,
        source: str = "global",
    ) -> tuple[str, ...]:
        """
        Apply a configured allow/deny pair.

        Args:
            names: Current tool names.
            allow: Allow entries (None or empty = keep all).
            deny: Deny entries.
            source: Policy source for logging.

        Returns:
            Filtered names.
        """
        return self._apply_layer(names, allow, deny, source)

    def apply_subagent(self, names: tuple[str, ...], policy: ToolPolicy) -> tuple[str, ...]:
        """
        Restrict tools for sub-agent sessions.

        Args:
            names: Current tool names.
            policy: ``tools.subagents.tools`` allow/deny.

        Returns:
            Filtered names; the default sub-agent deny list always applies.
        """
        deny = [*(policy.deny or ()), *DEFAULT_SUBAGENT_DENY]
        return self._apply_layer(names, policy.allow, deny, "subagent")

    def apply_sandbox(self, names: tuple[str, ...], sandbox: SandboxPolicy) -> tuple[str, ...]:
        """
        Apply the sandbox tool ceiling.

        Args:
            names: Current tool names.
            sandbox: Enabled sandbox policy.

        Returns:
            Filtered names.
        """
        allow = sandbox.tools.allow if sandbox.tools.allow is not None else DEFAULT_SANDBOX_ALLOW
        deny = sandbox.tools.deny if sandbox.tools.deny is not None else DEFAULT_SANDBOX_DENY
        names = self._apply_layer(names, allow, deny, "sandbox")
        if sandbox.read_only:
            names = self._apply_layer(names, None, READ_ONLY_DENY, "sandbox:ro")
        return names

    def _apply_layer(
        self,
        names: tuple[str, ...],
        allow: Sequence[str] | None,
        deny: Sequence[str] | None,
        layer_name: str,
    ) -> tuple[str, ...]:
        """
        Apply a single layer of allow/deny filtering.

        Args:
            names: Current tool names.
            allow: Entries to keep (empty = keep all).
            deny: Entries to remove (applied after allow).
            layer_name: Name of this layer (for logging).

        Returns:
            Filtered names.
        """
        before = len(names)
        result = names

        if allow:
            allowed = expand_entries(allow)
            result = tuple(n for n in result if matches_any(n, allowed))

        if deny:
            denied = expand_entries(deny)
            result = tuple(n for n in result if not matches_any(n, denied))

        if before != len(result):
            logger.debug(
                f"  📋 Layer '{layer_name}': {before} → {len(result)} tools "
                f"(allow={list(allow) if allow else None}, deny={list(deny) if deny else None})"
            )
        return result
