"""
Unified message tool.

A single ``message`` tool covers every chat platform; the platform comes
from the call's ``channel`` argument or the session's message provider and
selects the handler in ``PolicyContext.messaging``. No per-platform tools
are ever produced.
"""

import logging
import threading
from collections.abc import Mapping
from typing import Any

from pydantic import Field

from ..errors import ToolUnavailableError
from .base import Tool, ToolExecutor, ToolParams, ToolResult, parameters_from

logger = logging.getLogger(__name__)

MESSAGE_PLATFORMS = (
    "discord",
    "slack",
    "telegram",
    "whatsapp",
    "signal",
    "imessage",
    "msteams",
    "googlechat",
)

MESSAGE_ACTIONS = (
    "send",
    "poll",
    "react",
    "reactions",
    "read",
    "edit",
    "delete",
    "pin",
    "unpin",
    "list-pins",
    "permissions",
    "thread-create",
    "thread-list",
    "thread-reply",
    "search",
    "member-info",
    "channel-info",
    "channel-list",
)


class MessageParams(ToolParams):
    action: str = Field(..., description="Message action")
    channel: str | None = Field(
        None, description="Platform to use (defaults to the current session's platform)"
    )
    to: str | None = Field(None, description="Recipient or channel id")
    message: str | None = Field(None, description="Message text")
    message_id: str | None = Field(None, description="Target message id")
    thread_id: str | None = None
    reply_to: str | None = None
    media: str | None = Field(None, description="Media path or URL to attach")
    emoji: str | None = None
    remove: bool | None = None
    poll_question: str | None = None
    poll_options: list[str] | None = None
    poll_multi: bool | None = None
    query: str | None = Field(None, description="Search query")
    limit: int | None = Field(None, ge=1)
    user_id: str | None = None
    guild_id: str | None = None
    channel_id: str | None = None
    thread_name: str | None = None
    silent: bool | None = None


def _literal_choice(values: tuple[str, ...], description: str) -> dict[str, Any]:
    return {"anyOf": [{"const": value} for value in values], "description": description}


def message_parameters() -> dict[str, Any]:
    """
    Build the message tool schema.

    ``action`` and ``channel`` are advertised as unions of string literals;
    the schema cleaner collapses them into plain enums.

    Returns:
        Parameter schema.
    """
    schema = parameters_from(MessageParams)
    properties = schema["properties"]
    properties["action"] = _literal_choice(MESSAGE_ACTIONS, "Message action")
    properties["channel"] = {
        "anyOf": [*_literal_choice(MESSAGE_PLATFORMS, "")["anyOf"], {"type": "null"}],
        "default": None,
        "description": "Platform to use (defaults to the current session's platform)",
    }
    return schema


def create_message_tool(
    messaging: Mapping[str, ToolExecutor],
    default_provider: str | None = None,
) -> Tool:
    """
    Create the unified message tool.

    Args:
        messaging: Platform -> handler mapping.
        default_provider: Platform of the current session.

    Returns:
        Tool dispatching to the platform handler.
    """

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        params = MessageParams.model_validate(args)
        if params.action not in MESSAGE_ACTIONS:
            return ToolResult.from_text(f"❌ Error: Unknown message action: {params.action}")

        platform = (params.channel or default_provider or "").strip().lower()
        if not platform:
            raise ToolUnavailableError(
                "message", "no channel given and no session message provider"
            )
        handler = messaging.get(platform)
        if handler is None:
            raise ToolUnavailableError("message", f"no handler for platform '{platform}'")

        payload = params.model_dump(by_alias=True, exclude_none=True)
        payload["channel"] = platform
        logger.debug(f"🔧 message {request_id}: {params.action} via {platform}")
        return handler(request_id, payload, context, cancel)

    return Tool(
        name="message",
        label="Message",
        description=(
            "Send and manage messages on chat platforms (send, react, edit, delete, "
            "pin, threads, polls, search). Defaults to the current session's platform."
        ),
        parameters=message_parameters(),
        execute=execute,
    )
