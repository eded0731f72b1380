"""Memory tools: semantic search over memory files and snippet retrieval."""

from collections.abc import Mapping

from pydantic import Field

from .base import Tool, ToolExecutor, ToolParams, delegated_tool


class MemorySearchParams(ToolParams):
    query: str = Field(..., description="What to look for")
    max_results: int | None = Field(None, ge=1, description="Maximum hits")
    min_score: float | None = Field(None, ge=0, le=1, description="Minimum similarity")


class MemoryGetParams(ToolParams):
    path: str = Field(..., description="Memory file path from a search hit")
    from_line: int | None = Field(None, alias="from", ge=1, description="First line")
    lines: int | None = Field(None, ge=1, description="Number of lines")


def create_memory_search_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "memory_search",
        "Semantically search memory files (MEMORY.md and memory/*.md) before "
        "answering questions about prior work, decisions, people or preferences.",
        MemorySearchParams,
        backends,
        label="Memory Search",
    )


def create_memory_get_tool(backends: Mapping[str, ToolExecutor]) -> Tool:
    return delegated_tool(
        "memory_get",
        "Read a snippet of a memory file, typically after memory_search.",
        MemoryGetParams,
        backends,
        label="Memory Get",
    )
