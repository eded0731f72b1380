"""
Unit tests for PolicyResolver.

Tests cover every stage of the pipeline: profile presets, allow/deny with
groups and aliases, per-agent override, sub-agent restrictions, the sandbox
ceiling and schema cleaning.
"""

import logging

import pytest

from agent_tools.config.schema import (
    AgentConfig,
    AgentToolsConfig,
    SandboxPolicy,
    SubagentToolsConfig,
    ToolPolicy,
    ToolsConfig,
)
from agent_tools.errors import SandboxViolationError
from agent_tools.policy.engine import PolicyContext, PolicyResolver
from agent_tools.tools.base import Tool, ToolResult

ALL_NAMES = (
    "read",
    "write",
    "edit",
    "apply_patch",
    "exec",
    "process",
    "browser",
    "canvas",
    "nodes",
    "cron",
    "message",
    "gateway",
    "agents_list",
    "sessions_list",
    "sessions_history",
    "sessions_send",
    "sessions_spawn",
    "session_status",
    "memory_search",
    "memory_get",
    "image",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _echo(request_id, args, context=None, cancel=None):
    return ToolResult.from_text(f"called with {args}")


def make_tool(name: str, parameters: dict | None = None) -> Tool:
    """
    Create a tool with the given name.

    Args:
        name: Tool name.
        parameters: Optional schema (default: empty object).

    Returns:
        Tool that echoes its arguments.
    """
    return Tool(
        name=name,
        description=f"{name} tool",
        parameters=parameters or {"type": "object", "properties": {}},
        execute=_echo,
    )


def make_tools(names=ALL_NAMES) -> list[Tool]:
    return [make_tool(n) for n in names]


def resolve(context: PolicyContext, names=ALL_NAMES) -> list[str]:
    return [t.name for t in PolicyResolver().resolve(make_tools(names), context)]


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestNoPolicy:
    """Tests for the default (unrestricted) configuration."""

    def test_everything_passes(self):
        """Test no policy keeps every tool in order."""
        assert resolve(PolicyContext()) == list(ALL_NAMES)


class TestProfileStage:
    """Tests for profile presets."""

    def test_minimal_profile(self):
        """Test minimal keeps only session_status."""
        config = AgentToolsConfig(tools=ToolsConfig(profile="minimal"))
        assert resolve(PolicyContext(config=config)) == ["session_status"]

    def test_coding_profile(self):
        """Test coding keeps fs/runtime/sessions/memory/image."""
        config = AgentToolsConfig(tools=ToolsConfig(profile="coding"))
        names = resolve(PolicyContext(config=config))
        assert "exec" in names and "apply_patch" in names and "image" in names
        assert "browser" not in names
        assert "message" not in names

    def test_profile_intersects_raw_tools(self):
        """Test profile never adds tools the catalog did not produce."""
        config = AgentToolsConfig(tools=ToolsConfig(profile="coding"))
        assert resolve(PolicyContext(config=config), names=("read", "browser")) == ["read"]

    def test_unknown_profile_is_noop(self, caplog):
        """Test unknown profile logs a warning and keeps the set."""
        config = AgentToolsConfig(tools=ToolsConfig(profile="superuser"))
        with caplog.at_level(logging.WARNING):
            names = resolve(PolicyContext(config=config))
        assert names == list(ALL_NAMES)
        assert "Unknown tool profile 'superuser'" in caplog.text


class TestAllowDenyStage:
    """Tests for global allow/deny."""

    def test_allow_keeps_exact_set(self):
        """Test non-empty allow keeps exactly the matched names."""
        config = AgentToolsConfig(tools=ToolsConfig(allow=["read", "exec"]))
        assert resolve(PolicyContext(config=config)) == ["read", "exec"]

    def test_deny_removes(self):
        """Test deny removes matched names."""
        config = AgentToolsConfig(tools=ToolsConfig(deny=["group:ui", "sessions_*"]))
        names = resolve(PolicyContext(config=config))
        assert "browser" not in names and "canvas" not in names
        assert not any(n.startswith("sessions_") for n in names)
        assert "session_status" in names

    def test_deny_wins_over_allow(self):
        """Test a name in both lists is removed."""
        config = AgentToolsConfig(tools=ToolsConfig(allow=["group:fs"], deny=["write"]))
        assert resolve(PolicyContext(config=config)) == ["read", "edit", "apply_patch"]

    def test_bash_alias_in_allow(self):
        """Test 'bash' selects exec."""
        config = AgentToolsConfig(tools=ToolsConfig(allow=["bash", "apply-patch"]))
        assert resolve(PolicyContext(config=config)) == ["apply_patch", "exec"]

    def test_unknown_names_match_nothing(self):
        """Test unknown deny entries are ignored and unknown allow entries match nothing."""
        deny_config = AgentToolsConfig(tools=ToolsConfig(deny=["does_not_exist"]))
        assert resolve(PolicyContext(config=deny_config)) == list(ALL_NAMES)

        allow_config = AgentToolsConfig(tools=ToolsConfig(allow=["read", "does_not_exist"]))
        assert resolve(PolicyContext(config=allow_config)) == ["read"]

    def test_profile_then_allow(self):
        """Test allow narrows the profile set."""
        config = AgentToolsConfig(tools=ToolsConfig(profile="coding", allow=["read", "browser"]))
        assert resolve(PolicyContext(config=config)) == ["read"]

    def test_group_fs_allow_is_exact(self):
        """Test group:fs keeps exactly the filesystem tools."""
        config = AgentToolsConfig(tools=ToolsConfig(allow=["group:fs"]))
        names = resolve(PolicyContext(config=config))

        assert names == ["read", "write", "edit", "apply_patch"]
        assert "exec" not in names and "browser" not in names

    def test_messaging_profile_before_allow_deny(self):
        """Test the messaging profile applies first and allow/deny narrow it."""
        config = AgentToolsConfig(tools=ToolsConfig(profile="messaging"))
        names = resolve(PolicyContext(config=config))

        assert "message" in names and "sessions_send" in names
        assert "sessions_spawn" not in names
        assert "exec" not in names and "browser" not in names

    def test_messaging_profile_then_deny_message(self):
        """Test denying message after the messaging profile removes it."""
        config = AgentToolsConfig(tools=ToolsConfig(profile="messaging", deny=["message"]))
        names = resolve(PolicyContext(config=config))

        assert "message" not in names
        assert names == ["sessions_list", "sessions_history", "sessions_send", "session_status"]


class TestAgentOverride:
    """Tests for per-agent policies."""

    def make_config(self) -> AgentToolsConfig:
        return AgentToolsConfig(
            tools=ToolsConfig(profile="coding", deny=["exec"]),
            agents=[
                AgentConfig(id="main", default=True),
                AgentConfig(id="chat", tools=ToolPolicy(profile="messaging")),
                AgentConfig(id="ops", tools=ToolPolicy(allow=["exec", "process"])),
            ],
        )

    def test_agent_profile_replaces_global(self):
        """Test agent profile overrides global profile."""
        context = PolicyContext(config=self.make_config(), session_key="agent:chat:main")
        assert resolve(context) == [
            "message",
            "sessions_list",
            "sessions_history",
            "sessions_send",
            "session_status",
        ]

    def test_agent_policy_ignores_global_deny(self):
        """Test agent allow/deny fully replaces the global policy."""
        context = PolicyContext(config=self.make_config(), session_key="agent:ops:main")
        assert resolve(context) == ["exec", "process"]

    def test_agent_without_tools_uses_global(self):
        """Test agents without a tools section fall back to global."""
        context = PolicyContext(config=self.make_config(), session_key="agent:main:main")
        names = resolve(context)
        assert "exec" not in names
        assert "read" in names

    def test_unknown_agent_falls_back(self, caplog):
        """Test unknown agent ids warn and use the global policy."""
        context = PolicyContext(config=self.make_config(), session_key="agent:ghost:main")
        with caplog.at_level(logging.WARNING):
            names = resolve(context)
        assert "exec" not in names and "read" in names
        assert "Unknown agent 'ghost'" in caplog.text

    def test_agent_id_case_insensitive(self):
        """Test agent lookup ignores case."""
        context = PolicyContext(config=self.make_config(), session_key="agent:OPS:main")
        assert resolve(context) == ["exec", "process"]

    def test_key_without_agent_uses_default_agent(self):
        """Test session keys without an agent segment use the default agent."""
        config = AgentToolsConfig(
            agents=[AgentConfig(id="solo", default=True, tools=ToolPolicy(allow=["read"]))]
        )
        assert resolve(PolicyContext(config=config, session_key="main")) == ["read"]


class TestSubagentStage:
    """Tests for sub-agent restrictions."""

    def test_default_subagent_deny(self):
        """Test gateway, agents_list, session_status and cron are removed."""
        names = resolve(PolicyContext(session_key="agent:main:subagent:abc"))
        for denied in ("gateway", "agents_list", "session_status", "cron"):
            assert denied not in names
        assert "read" in names

    def test_subagent_allow_only(self):
        """Test sub-agent allow-only policy yields exactly the allowed tools."""
        config = AgentToolsConfig(
            tools=ToolsConfig(subagents=SubagentToolsConfig(tools=ToolPolicy(allow=["read"])))
        )
        context = PolicyContext(config=config, session_key="agent:main:subagent:abc")
        assert resolve(context) == ["read"]

    def test_subagent_deny(self):
        """Test configured sub-agent deny adds to the defaults."""
        config = AgentToolsConfig(
            tools=ToolsConfig(subagents=SubagentToolsConfig(tools=ToolPolicy(deny=["exec"])))
        )
        context = PolicyContext(config=config, session_key="agent:main:subagent:abc")
        names = resolve(context)
        assert "exec" not in names and "cron" not in names

    def test_main_session_unaffected(self):
        """Test sub-agent policy does not apply to main sessions."""
        config = AgentToolsConfig(
            tools=ToolsConfig(subagents=SubagentToolsConfig(tools=ToolPolicy(allow=["read"])))
        )
        assert resolve(PolicyContext(config=config, session_key="agent:main:main")) == list(
            ALL_NAMES
        )


class TestSandboxStage:
    """Tests for the sandbox ceiling."""

    def test_default_sandbox_policy(self):
        """Test default sandbox allow/deny lists."""
        context = PolicyContext(sandbox=SandboxPolicy(enabled=True, workspace_access="rw"))
        names = resolve(context)
        assert names == [
            "read",
            "write",
            "edit",
            "apply_patch",
            "exec",
            "process",
            "sessions_list",
            "sessions_history",
            "sessions_send",
            "sessions_spawn",
            "session_status",
            "image",
        ]

    def test_disabled_sandbox_ignored(self):
        """Test a disabled sandbox does not restrict."""
        assert resolve(PolicyContext(sandbox=SandboxPolicy(enabled=False))) == list(ALL_NAMES)

    def test_sandbox_allow_bash_keeps_exec(self):
        """Test sandbox allow 'bash' keeps exec."""
        sandbox = SandboxPolicy(enabled=True, tools=ToolPolicy(allow=["bash"], deny=[]))
        assert resolve(PolicyContext(sandbox=sandbox)) == ["exec"]

    def test_read_only_removes_write_tools(self):
        """Test ro access hard-removes write, edit and apply_patch."""
        sandbox = SandboxPolicy(
            enabled=True, workspace_access="ro", tools=ToolPolicy(allow=["group:fs", "exec"])
        )
        assert resolve(PolicyContext(sandbox=sandbox)) == ["read", "exec"]

    def test_sandbox_from_config(self):
        """Test the config sandbox applies when the context has none."""
        config = AgentToolsConfig(
            sandbox=SandboxPolicy(enabled=True, tools=ToolPolicy(allow=["read"]))
        )
        assert resolve(PolicyContext(config=config)) == ["read"]

    def test_host_browser_removed_when_control_disabled(self):
        """Test browser target enum loses 'host' and host calls are rejected."""
        browser = make_tool(
            "browser",
            {
                "type": "object",
                "properties": {
                    "target": {
                        "anyOf": [
                            {"type": "string", "enum": ["sandbox", "host", "custom"]},
                            {"type": "null"},
                        ],
                        "default": None,
                    }
                },
            },
        )
        sandbox = SandboxPolicy(enabled=True, tools=ToolPolicy(allow=["browser"], deny=[]))
        [tool] = PolicyResolver().resolve([browser], PolicyContext(sandbox=sandbox))

        assert tool.parameters["properties"]["target"]["enum"] == ["sandbox", "custom"]
        with pytest.raises(SandboxViolationError):
            tool.execute("r1", {"target": "host"})
        assert "sandbox" in tool.execute("r2", {"target": "sandbox"}).text()

    def test_host_browser_kept_when_control_allowed(self):
        """Test browser_allow_host_control keeps the host target."""
        browser = make_tool(
            "browser",
            {"type": "object", "properties": {"target": {"type": "string", "enum": ["sandbox", "host"]}}},
        )
        sandbox = SandboxPolicy(
            enabled=True,
            browser_allow_host_control=True,
            tools=ToolPolicy(allow=["browser"], deny=[]),
        )
        [tool] = PolicyResolver().resolve([browser], PolicyContext(sandbox=sandbox))

        assert tool.parameters["properties"]["target"]["enum"] == ["sandbox", "host"]
        tool.execute("r1", {"target": "host"})


class TestSchemaStage:
    """Tests for schema cleaning."""

    SCHEMA = {
        "type": "object",
        "properties": {"path": {"type": "string", "minLength": 1}},
        "additionalProperties": False,
    }

    def test_strict_by_default(self):
        """Test schemas are cleaned with the strict profile by default."""
        [tool] = PolicyResolver().resolve(
            [make_tool("read", self.SCHEMA)], PolicyContext(model_provider="openai")
        )
        assert tool.parameters == {"type": "object", "properties": {"path": {"type": "string"}}}

    def test_tolerant_override(self):
        """Test schemaCompat override keeps validation keywords."""
        config = AgentToolsConfig(tools=ToolsConfig(schema_compat={"openai": "tolerant"}))
        [tool] = PolicyResolver().resolve(
            [make_tool("read", self.SCHEMA)],
            PolicyContext(model_provider="openai", config=config),
        )
        assert tool.parameters == self.SCHEMA

    def test_raw_tool_untouched(self):
        """Test resolution returns new tools without mutating the input."""
        raw = make_tool("read", self.SCHEMA)
        PolicyResolver().resolve([raw], PolicyContext())
        assert raw.parameters["properties"]["path"]["minLength"] == 1
