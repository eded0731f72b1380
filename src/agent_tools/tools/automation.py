"""
Automation tools: cron, gateway, nodes.

Schemas only; execution is delegated to the gateway backends supplied by
the caller.
"""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import Field

from .base import Tool, ToolExecutor, ToolParams, delegated_tool


class CronParams(ToolParams):
    action: Literal["status", "list", "add", "update", "remove", "run", "runs", "wake"] = (
        Field(..., description="Cron action")
    )
    include_disabled: bool | None = Field(None, description="Include disabled jobs (list)")
    job: dict[str, Any] | None = Field(None, description="Job definition (add)")
    job_id: str | None = Field(None, description="Job id (update/remove/run/runs)")
    patch: dict[str, Any] | None = Field(None, description="Partial job update (update)")
    text: str | None = Field(None, description="Wake text (wake)")
    mode: Literal["now", "next-heartbeat"] | None = Field(
        None, description="When to deliver a wake event"
    )


class GatewayParams(ToolParams):
    action: Literal[
        "restart", "config.get", "config.schema", "config.apply", "update.run"
    ] = Field(..., description="Gateway action")
    delay_ms: int | None = Field(None, description="Restart delay")
    reason: str | None = Field(None, description="Reason shown to the user")
    raw: str | None = Field(None, description="Full config text (config.apply)")
    session_key: str | None = Field(None, description="Session to notify after restart")
    note: str | None = None
    restart_delay_ms: int | None = None
    timeout_ms: int | None = None


class NodesParams(ToolParams):
    action: Literal[
        "status",
        "describe",
        "pending",
        "approve",
        "reject",
        "notify",
        "camera_snap",
        "camera_list",
        "camera_clip",
        "screen_record",
        "location_get",
        "run",
    ] = Field(..., description="Node action")
    node: str | None = Field(None, description="Node id or name")
    request_id: str | None = Field(None, description="Pairing request id (approve/reject)")
    title: str | None = None
    body: str | None = None
    sound: str | None = None
    priority: Literal["passive", "active", "timeSensitive"] | None = None
    delivery: Literal["system", "overlay", "auto"] | None = None
    facing: Literal["front", "back", "both"] | None = None
    max_width: int | None = None
    quality: float | None = None
    delay_ms: int | None = None
    device_id: str | None = None
    duration: str | None = None
    duration_ms: int | None = None
    include_audio: bool | None = None
    screen_index: int | None = None
    fps: float | None = None
    out_path: str | None = None
    max_age_ms: int | None = None
    location_timeout_ms: int | None = None
    desired_accuracy: Literal["coarse", "balanced", "precise"] | None = None
    command: list[str] | None = Field(None, description="argv to run on the node (run)")
    cwd: str | None = None
    env: list[str] | None = Field(None, description="KEY=VALUE entries")
    command_timeout_ms: int | None = None
    invoke_timeout_ms: int | None = None
    needs_screen_recording: bool | None = None


def create_cron_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "cron",
        "Manage scheduled jobs and wake events: status, list, add, update, remove, "
        "run now, list runs, or send a wake event.",
        CronParams,
        backends,
        label="Cron",
    )


def create_gateway_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "gateway",
        "Restart the gateway, read or apply its configuration, or run an update.",
        GatewayParams,
        backends,
        label="Gateway",
    )


def create_nodes_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "nodes",
        "Discover and control paired nodes: status, describe, pairing approval, "
        "notifications, camera, screen recording, location, and remote commands.",
        NodesParams,
        backends,
        label="Nodes",
    )
