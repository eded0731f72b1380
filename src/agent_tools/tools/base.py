"""
Tool contract shared by every catalog entry.

A Tool is a named, schema-described capability. ``parameters`` is the JSON
Schema the model sees; ``execute`` receives the raw argument mapping the
model produced. Content blocks and results are pydantic models so they
serialize straight onto the wire.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import ToolUnavailableError

logger = logging.getLogger(__name__)


class ToolParams(BaseModel):
    """Base for tool argument models; wire names are camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TextContent(BaseModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    """Base64 image content block."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["image"] = "image"
    mime_type: str = Field(..., alias="mimeType")
    data: str


ContentBlock = Annotated[TextContent | ImageContent, Field(discriminator="type")]


class ToolResult(BaseModel):
    """Result of a tool invocation."""

    content: list[ContentBlock] = Field(default_factory=list)
    details: dict[str, Any] | None = None

    @classmethod
    def from_text(cls, text: str, **details: Any) -> "ToolResult":
        """
        Build a single-text-block result.

        Args:
            text: Result text.
            **details: Structured details for the caller (not sent to the model).

        Returns:
            Tool result.
        """
        return cls(content=[TextContent(text=text)], details=details or None)

    def text(self) -> str:
        """
        Concatenate every text block.

        Returns:
            Text blocks joined with newlines.
        """
        return "\n".join(b.text for b in self.content if isinstance(b, TextContent))


ToolExecutor = Callable[
    [str, dict[str, Any], Any, threading.Event | None], ToolResult
]


@dataclass(frozen=True)
class Tool:
    """
    A callable tool as exposed to the model.

    Attributes:
        name: Unique name within a catalog.
        description: Model-facing description.
        parameters: JSON Schema of the arguments (top-level type "object").
        execute: ``execute(request_id, args, context, cancel) -> ToolResult``.
        label: Human-readable label for UIs.
    """

    name: str
    description: str
    parameters: dict[str, Any]
    execute: ToolExecutor
    label: str | None = None


def parameters_from(model: type[BaseModel]) -> dict[str, Any]:
    """
    Generate a parameter schema from a pydantic model.

    Args:
        model: Pydantic model describing the arguments.

    Returns:
        JSON Schema dictionary (may contain $defs, anyOf and validation
        keywords; the policy resolver cleans it per provider).
    """
    schema = model.model_json_schema()
    schema.pop("title", None)
    return schema


def delegated_tool(
    name: str,
    description: str,
    params: type[BaseModel],
    backends: Mapping[str, ToolExecutor],
    label: str | None = None,
) -> Tool:
    """
    Create a tool whose body lives in a caller-supplied backend.

    The backend is looked up at call time so the catalog itself does not
    depend on which backends are wired.

    Args:
        name: Tool name (also the backend key).
        description: Model-facing description.
        params: Argument model.
        backends: Tool name -> handler mapping.
        label: Optional UI label.

    Returns:
        Tool that forwards validated arguments to its backend.
    """

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        handler = backends.get(name)
        if handler is None:
            raise ToolUnavailableError(name)
        validated = params.model_validate(args).model_dump(
            by_alias=True, exclude_none=True
        )
        logger.debug(f"🔧 Delegating '{name}' call {request_id} to backend")
        return handler(request_id, validated, context, cancel)

    return Tool(
        name=name,
        description=description,
        parameters=parameters_from(params),
        execute=execute,
        label=label or name.replace("_", " ").title(),
    )
