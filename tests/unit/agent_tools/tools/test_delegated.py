"""
Unit tests for backend-delegated tools.

Tests cover backend dispatch, argument validation, missing backends and
the host-control restriction of the browser tool.
"""

import pytest
from pydantic import ValidationError

from agent_tools.errors import SandboxViolationError, ToolUnavailableError
from agent_tools.tools.automation import create_cron_tool, create_gateway_tool, create_nodes_tool
from agent_tools.tools.base import delegated_tool, parameters_from
from agent_tools.tools.browser import create_browser_tool, create_canvas_tool, without_host_control
from agent_tools.tools.media import create_image_tool
from agent_tools.tools.memory import (
    MemoryGetParams,
    MemorySearchParams,
    create_memory_get_tool,
    create_memory_search_tool,
)
from agent_tools.tools.sessions import (
    create_agents_list_tool,
    create_session_status_tool,
    create_sessions_history_tool,
    create_sessions_list_tool,
    create_sessions_send_tool,
    create_sessions_spawn_tool,
)

FACTORIES = [
    (create_browser_tool, "browser", {"action": "status"}),
    (create_canvas_tool, "canvas", {"action": "hide"}),
    (create_cron_tool, "cron", {"action": "list"}),
    (create_gateway_tool, "gateway", {"action": "restart"}),
    (create_nodes_tool, "nodes", {"action": "status"}),
    (create_agents_list_tool, "agents_list", {}),
    (create_sessions_list_tool, "sessions_list", {}),
    (create_sessions_history_tool, "sessions_history", {"sessionKey": "agent:main:x"}),
    (create_sessions_send_tool, "sessions_send", {"message": "hi"}),
    (create_sessions_spawn_tool, "sessions_spawn", {"task": "do it"}),
    (create_session_status_tool, "session_status", {}),
    (create_memory_search_tool, "memory_search", {"query": "notes"}),
    (create_memory_get_tool, "memory_get", {"path": "MEMORY.md"}),
    (create_image_tool, "image", {"image": "shot.png"}),
]


class TestDelegatedTools:
    """Tests shared by every delegated tool."""

    @pytest.mark.parametrize("factory,name,args", FACTORIES)
    def test_dispatches_to_backend(self, factory, name, args, recording_backend):
        """Test calls reach the backend registered under the tool name."""
        tool = factory({name: recording_backend})

        result = tool.execute("r1", args)

        assert tool.name == name
        assert tool.parameters["type"] == "object"
        assert result.text() == "ok"
        assert recording_backend.calls == [("r1", args)]

    @pytest.mark.parametrize("factory,name,args", FACTORIES)
    def test_missing_backend(self, factory, name, args):
        """Test a missing backend raises ToolUnavailableError."""
        tool = factory({})

        with pytest.raises(ToolUnavailableError) as exc_info:
            tool.execute("r1", args)
        assert exc_info.value.tool_name == name

    def test_backend_resolved_at_call_time(self, recording_backend):
        """Test backends registered after creation are used."""
        backends = {}
        tool = create_cron_tool(backends)
        backends["cron"] = recording_backend

        tool.execute("r1", {"action": "status"})

        assert len(recording_backend.calls) == 1

    def test_invalid_arguments(self, recording_backend):
        """Test arguments are validated before dispatch."""
        tool = create_cron_tool({"cron": recording_backend})

        with pytest.raises(ValidationError):
            tool.execute("r1", {"action": "explode"})
        assert recording_backend.calls == []

    def test_payload_uses_wire_names(self, recording_backend):
        """Test payloads are camelCase with unset fields dropped."""
        tool = create_sessions_spawn_tool({"sessions_spawn": recording_backend})

        tool.execute("r1", {"task": "t", "run_timeout_seconds": 30})

        assert recording_backend.calls[0][1] == {"task": "t", "runTimeoutSeconds": 30}

    def test_memory_get_from_alias(self, recording_backend):
        """Test the 'from' keyword argument round-trips."""
        tool = create_memory_get_tool({"memory_get": recording_backend})

        tool.execute("r1", {"path": "MEMORY.md", "from": 10, "lines": 5})

        assert recording_backend.calls[0][1] == {"path": "MEMORY.md", "from": 10, "lines": 5}
        assert "from" in parameters_from(MemoryGetParams)["properties"]

    def test_default_label(self):
        """Test labels derive from the name when not given."""
        tool = delegated_tool("memory_search", "d", MemorySearchParams, {})
        assert tool.label == "Memory Search"


class TestBrowserTool:
    """Tests for browser-specific behaviour."""

    def test_act_request_fields_alias(self, recording_backend):
        """Test act requests keep the 'fields' wire name."""
        tool = create_browser_tool({"browser": recording_backend})
        request = {"kind": "fill", "fields": [{"ref": "e1", "value": "x"}]}

        tool.execute("r1", {"action": "act", "request": request})

        assert recording_backend.calls[0][1] == {"action": "act", "request": request}

    def test_without_host_control_schema(self):
        """Test the host target disappears from the schema."""
        tool = without_host_control(create_browser_tool({}))

        target = tool.parameters["properties"]["target"]
        enums = [v.get("enum") for v in target["anyOf"] if "enum" in v]
        assert enums == [["sandbox", "custom"]]

    def test_without_host_control_keeps_original(self):
        """Test the source tool schema is not modified."""
        original = create_browser_tool({})
        without_host_control(original)

        target = original.parameters["properties"]["target"]
        assert any("host" in (v.get("enum") or ()) for v in target["anyOf"])

    def test_host_target_rejected(self, recording_backend):
        """Test host-targeted calls raise before the backend runs."""
        tool = without_host_control(create_browser_tool({"browser": recording_backend}))

        with pytest.raises(SandboxViolationError):
            tool.execute("r1", {"action": "status", "target": "host"})
        assert recording_backend.calls == []

    def test_sandbox_target_allowed(self, recording_backend):
        """Test non-host targets still dispatch."""
        tool = without_host_control(create_browser_tool({"browser": recording_backend}))

        tool.execute("r1", {"action": "snapshot", "target": "sandbox"})

        assert len(recording_backend.calls) == 1
