"""
Browser and canvas tools.

Both dispatch to caller-supplied backends. The browser tool can target the
sandbox browser, the host browser or a custom CDP endpoint; when host control
is disabled for a sandboxed session, :func:`without_host_control` removes the
host target from the schema and rejects host-targeted calls.
"""

import copy
import logging
import threading
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Literal

from pydantic import Field

from ..errors import SandboxViolationError
from .base import Tool, ToolExecutor, ToolParams, ToolResult, delegated_tool

logger = logging.getLogger(__name__)

HOST_TARGET = "host"

BrowserAction = Literal[
    "status",
    "start",
    "stop",
    "profiles",
    "tabs",
    "open",
    "focus",
    "close",
    "snapshot",
    "screenshot",
    "navigate",
    "console",
    "pdf",
    "upload",
    "dialog",
    "act",
]

BrowserActKind = Literal[
    "click",
    "type",
    "press",
    "hover",
    "drag",
    "select",
    "fill",
    "resize",
    "wait",
    "evaluate",
    "close",
]


class BrowserActRequest(ToolParams):
    """UI interaction for ``action=act``."""

    kind: BrowserActKind = Field(..., description="Interaction kind")
    target_id: str | None = Field(None, description="Tab id")
    ref: str | None = Field(None, description="Element ref from the last snapshot")
    double_click: bool | None = None
    button: str | None = None
    modifiers: list[str] | None = None
    text: str | None = Field(None, description="Text to type")
    submit: bool | None = None
    slowly: bool | None = None
    key: str | None = Field(None, description="Key to press")
    start_ref: str | None = None
    end_ref: str | None = None
    values: list[str] | None = None
    form_fields: list[dict[str, Any]] | None = Field(None, alias="fields")
    width: int | None = None
    height: int | None = None
    time_ms: int | None = None
    text_gone: str | None = None
    fn: str | None = Field(None, description="JavaScript function body for evaluate")


class BrowserParams(ToolParams):
    action: BrowserAction = Field(..., description="Browser action")
    target: Literal["sandbox", "host", "custom"] | None = Field(
        None, description="Which browser to control"
    )
    profile: str | None = Field(None, description="Browser profile name")
    controller_url: str | None = Field(None, description="CDP endpoint for target=custom")
    target_url: str | None = Field(None, description="URL for open/navigate")
    target_id: str | None = Field(None, description="Tab id")
    limit: int | None = None
    max_chars: int | None = Field(None, description="Snapshot size limit")
    format: Literal["aria", "ai"] | None = Field(None, description="Snapshot format")
    ref: str | None = None
    element: str | None = None
    type: Literal["png", "jpeg"] | None = Field(None, description="Screenshot format")
    full_page: bool | None = None
    paths: list[str] | None = Field(None, description="Files for upload")
    input_ref: str | None = None
    timeout_ms: int | None = None
    accept: bool | None = Field(None, description="Accept or dismiss a dialog")
    prompt_text: str | None = None
    request: BrowserActRequest | None = Field(None, description="Interaction for action=act")


CanvasAction = Literal[
    "present", "hide", "navigate", "eval", "snapshot", "a2ui_push", "a2ui_reset"
]


class CanvasParams(ToolParams):
    action: CanvasAction = Field(..., description="Canvas action")
    node: str | None = Field(None, description="Node id or name hosting the canvas")
    target: str | None = Field(None, description="Target URL or path to present")
    url: str | None = None
    x: int | None = None
    y: int | None = None
    width: int | None = None
    height: int | None = None
    java_script: str | None = Field(None, description="Script for action=eval")
    output_format: Literal["png", "jpg", "jpeg"] | None = None
    max_width: int | None = None
    quality: float | None = None
    delay_ms: int | None = None
    jsonl: str | None = Field(None, description="A2UI JSONL payload for a2ui_push")
    jsonl_path: str | None = None


def create_browser_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    """
    Create the browser tool.

    Args:
        backends: Tool name -> backend handler.

    Returns:
        Delegated browser tool.
    """
    return delegated_tool(
        "browser",
        "Control a web browser: status/start/stop, tabs, open/navigate, "
        "snapshot (aria or ai format), screenshot, console, pdf, upload, dialog "
        "handling, and UI interactions via action=act with a request object. "
        "Use snapshot refs for act requests.",
        BrowserParams,
        backends,
        label="Browser",
    )


def create_canvas_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    """
    Create the canvas tool.

    Args:
        backends: Tool name -> backend handler.

    Returns:
        Delegated canvas tool.
    """
    return delegated_tool(
        "canvas",
        "Control node canvases: present/hide content, navigate, eval JavaScript, "
        "take snapshots, and push A2UI updates.",
        CanvasParams,
        backends,
        label="Canvas",
    )


def _drop_enum_value(schema: dict[str, Any], value: Any) -> None:
    if isinstance(schema.get("enum"), list):
        schema["enum"] = [v for v in schema["enum"] if v != value]
    for keyword in ("anyOf", "oneOf"):
        for variant in schema.get(keyword) or ():
            if isinstance(variant, dict):
                _drop_enum_value(variant, value)


def without_host_control(tool: Tool) -> Tool:
    """
    Remove the host target from a browser tool.

    Args:
        tool: Browser tool.

    Returns:
        Tool whose schema no longer offers ``target=host`` and whose execute
        rejects host-targeted calls.
    """
    parameters = copy.deepcopy(tool.parameters)
    target = (parameters.get("properties") or {}).get("target")
    if isinstance(target, dict):
        _drop_enum_value(target, HOST_TARGET)

    inner = tool.execute

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        if (args or {}).get("target") == HOST_TARGET:
            raise SandboxViolationError(
                HOST_TARGET, "host browser control is disabled for this sandbox"
            )
        return inner(request_id, args, context, cancel)

    logger.debug(f"  📋 Host browser target removed from '{tool.name}'")
    return replace(tool, parameters=parameters, execute=execute)
