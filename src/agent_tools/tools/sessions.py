"""
Session and agent tools.

sessions_list, sessions_history, sessions_send and sessions_spawn manage
other sessions and are withheld from sub-agent sessions by the catalog
builder; agents_list and session_status are always produced.
"""

from collections.abc import Mapping
from typing import Literal

from pydantic import Field

from .base import Tool, ToolExecutor, ToolParams, delegated_tool


class AgentsListParams(ToolParams):
    pass


class SessionsListParams(ToolParams):
    kinds: list[str] | None = Field(None, description="Session kinds to include")
    limit: int | None = Field(None, ge=1, description="Maximum sessions to return")
    active_minutes: int | None = Field(
        None, ge=1, description="Only sessions active within this many minutes"
    )
    message_limit: int | None = Field(
        None, ge=0, description="Recent messages to include per session"
    )


class SessionsHistoryParams(ToolParams):
    session_key: str = Field(..., description="Session to read")
    limit: int | None = Field(None, ge=1, description="Maximum messages")
    include_tools: bool | None = Field(None, description="Include tool calls and results")


class SessionsSendParams(ToolParams):
    session_key: str | None = Field(None, description="Target session key")
    label: str | None = Field(None, description="Target session label")
    agent_id: str | None = None
    message: str = Field(..., description="Message to send")
    timeout_seconds: int | None = Field(
        None, ge=0, description="Wait for a reply (0 = fire and forget)"
    )


class SessionsSpawnParams(ToolParams):
    task: str = Field(..., description="Task for the sub-agent")
    label: str | None = Field(None, description="Label for the spawned session")
    agent_id: str | None = Field(None, description="Agent to run the task")
    model: str | None = Field(None, description="Model override")
    thinking: str | None = None
    run_timeout_seconds: int | None = Field(None, ge=0)
    cleanup: Literal["delete", "keep"] | None = Field(
        None, description="What to do with the session when it finishes"
    )


class SessionStatusParams(ToolParams):
    session_key: str | None = Field(None, description="Session to inspect (default: current)")
    model: str | None = Field(None, description="Set the session model override")


def create_agents_list_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "agents_list",
        "List the agent ids that sessions_spawn may target.",
        AgentsListParams,
        backends,
        label="Agents",
    )


def create_sessions_list_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "sessions_list",
        "List sessions with optional filters and recent messages.",
        SessionsListParams,
        backends,
        label="Sessions",
    )


def create_sessions_history_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "sessions_history",
        "Fetch the message history of a session.",
        SessionsHistoryParams,
        backends,
        label="Session History",
    )


def create_sessions_send_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "sessions_send",
        "Send a message into another session, optionally waiting for the reply.",
        SessionsSendParams,
        backends,
        label="Session Send",
    )


def create_sessions_spawn_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "sessions_spawn",
        "Spawn a background sub-agent run for a task in an isolated session.",
        SessionsSpawnParams,
        backends,
        label="Spawn Sub-agent",
    )


def create_session_status_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "session_status",
        "Show session status (model, usage, time) or set the session model override.",
        SessionStatusParams,
        backends,
        label="Session Status",
    )
