"""Image analysis tool (delegated to a vision-capable backend)."""

from collections.abc import Mapping

from pydantic import Field

from .base import Tool, ToolExecutor, ToolParams, delegated_tool


class ImageParams(ToolParams):
    prompt: str | None = Field(None, description="What to analyze in the image")
    image: str = Field(..., description="Image path or URL")
    model: str | None = Field(None, description="Vision model override")
    max_bytes_mb: float | None = Field(None, gt=0, description="Maximum image size in MB")


def create_image_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "image",
        "Analyze an image with a vision model. Only use this for images that are "
        "not already attached to the conversation.",
        ImageParams,
        backends,
        label="Image",
    )
