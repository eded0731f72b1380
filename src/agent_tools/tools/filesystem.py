"""
Filesystem tools: read, write, edit.

Paths are resolved against a WorkspaceRoot fixed at catalog build time.
When sandboxing is enabled the root is the sandbox workspace and any path
escaping it is rejected before I/O; ordinary failures (missing files,
permission problems) are reported in the result text.
"""

import base64
import logging
import mimetypes
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import Field

from ..errors import SandboxViolationError
from .base import ImageContent, TextContent, Tool, ToolParams, ToolResult, parameters_from

logger = logging.getLogger(__name__)

DEFAULT_READ_LIMIT = 2000

# Magic-byte prefixes checked before falling back to the file extension.
_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
)


@dataclass(frozen=True)
class WorkspaceRoot:
    """
    Base directory for relative tool paths.

    Attributes:
        root: Absolute, resolved base directory.
        sandboxed: Whether paths must stay below root.
        read_only: Whether writes are rejected (sandbox ``ro`` access).
    """

    root: Path
    sandboxed: bool = False
    read_only: bool = False

    @classmethod
    def from_context(cls, context: Any) -> "WorkspaceRoot":
        """
        Resolve the workspace root for a policy context.

        Prefers the sandbox workspace when sandboxing is enabled, then
        ``context.workspace_dir``, then the current working directory.

        Args:
            context: PolicyContext of the build.

        Returns:
            Workspace root.
        """
        sandbox = context.effective_sandbox
        if sandbox is not None and sandbox.enabled:
            base = sandbox.workspace_dir or context.workspace_dir or os.getcwd()
            return cls(
                root=Path(base).expanduser().resolve(),
                sandboxed=True,
                read_only=sandbox.read_only,
            )
        base = context.workspace_dir or os.getcwd()
        return cls(root=Path(base).expanduser().resolve())

    def resolve(self, path: str, write: bool = False) -> Path:
        """
        Resolve a tool path against the root.

        Args:
            path: Absolute or root-relative path.
            write: Whether the caller is about to modify the path.

        Returns:
            Absolute resolved path.

        Raises:
            SandboxViolationError: If the path leaves a sandboxed root or a
                write targets a read-only sandbox.
        """
        candidate = Path(path).expanduser()
        if not candidate.is_absolute():
            candidate = self.root / candidate
        resolved = candidate.resolve()

        if self.sandboxed:
            if not resolved.is_relative_to(self.root):
                raise SandboxViolationError(path, f"path escapes sandbox root {self.root}")
            if write and self.read_only:
                raise SandboxViolationError(path, "sandbox workspace is read-only")
        return resolved


def detect_image_mime(path: Path, head: bytes) -> str | None:
    """
    Detect an image MIME type from magic bytes, then from the extension.

    Args:
        path: File path (for the extension fallback).
        head: First bytes of the file.

    Returns:
        MIME type, or None for non-images.
    """
    for signature, mime in _IMAGE_SIGNATURES:
        if head.startswith(signature):
            return mime
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed and guessed.startswith("image/"):
        return guessed
    return None


class ReadParams(ToolParams):
    path: str = Field(..., description="Path to the file to read (relative or absolute)")
    offset: int | None = Field(
        None, ge=1, description="Line number to start reading from (1-indexed)"
    )
    limit: int | None = Field(None, ge=1, description="Maximum number of lines to read")


class WriteParams(ToolParams):
    path: str = Field(..., description="Path to the file to write (relative or absolute)")
    content: str = Field(..., description="Content to write to the file")


class EditParams(ToolParams):
    path: str = Field(..., description="Path to the file to edit (relative or absolute)")
    old_text: str = Field(
        ..., description="Exact text to find and replace (must match exactly)"
    )
    new_text: str = Field(..., description="New text to replace the old text with")


def create_read_tool(root: WorkspaceRoot) -> Tool:
    """
    Create tool for reading files.

    Args:
        root: Workspace root for path resolution.

    Returns:
        Tool returning text blocks for text files and an image block for images.
    """

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        params = ReadParams.model_validate(args)
        file_path = root.resolve(params.path)
        try:
            if not file_path.exists():
                return ToolResult.from_text(f"❌ Error: File not found: {params.path}")
            if not file_path.is_file():
                return ToolResult.from_text(f"❌ Error: Not a file: {params.path}")

            raw = file_path.read_bytes()
        except PermissionError:
            return ToolResult.from_text(f"❌ Error: Permission denied: {params.path}")
        except OSError as e:
            return ToolResult.from_text(f"❌ Error reading file: {e}")

        mime = detect_image_mime(file_path, raw[:16])
        if mime is not None:
            return ToolResult(
                content=[
                    TextContent(text=f"Read image file [{mime}]"),
                    ImageContent(
                        mime_type=mime, data=base64.b64encode(raw).decode("ascii")
                    ),
                ],
                details={"path": str(file_path), "mimeType": mime},
            )

        lines = raw.decode("utf-8", errors="replace").splitlines(keepends=True)
        total = len(lines)
        start = (params.offset or 1) - 1
        limit = params.limit or DEFAULT_READ_LIMIT

        if total and start >= total:
            return ToolResult.from_text(
                f"❌ Error: Offset {params.offset} exceeds file length ({total} lines)"
            )

        selected = lines[start : start + limit]
        blocks = [TextContent(text="".join(selected))]
        end = start + len(selected)
        if end < total:
            blocks.append(
                TextContent(
                    text=f"\n[Showing lines {start + 1}-{end} of {total} total lines. "
                    f"Use offset={end + 1} to continue]"
                )
            )
        return ToolResult(
            content=blocks,
            details={"path": str(file_path), "totalLines": total, "truncated": end < total},
        )

    return Tool(
        name="read",
        label="Read",
        description=(
            "Read the contents of a file. Text files are returned as-is; images "
            f"(png, jpeg, gif, webp) are returned as attachments. Reads up to "
            f"{DEFAULT_READ_LIMIT} lines by default; use offset/limit for large files."
        ),
        parameters=parameters_from(ReadParams),
        execute=execute,
    )


def create_write_tool(root: WorkspaceRoot) -> Tool:
    """
    Create tool for writing files.

    Args:
        root: Workspace root for path resolution.

    Returns:
        Tool that creates or overwrites a file (parent directories included).
    """

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        params = WriteParams.model_validate(args)
        file_path = root.resolve(params.path, write=True)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(params.content, encoding="utf-8")
        except PermissionError:
            return ToolResult.from_text(f"❌ Error: Permission denied: {params.path}")
        except OSError as e:
            return ToolResult.from_text(f"❌ Error writing file: {e}")

        bytes_written = len(params.content.encode("utf-8"))
        return ToolResult.from_text(
            f"✅ Successfully wrote {bytes_written:,} bytes to {params.path}",
            path=str(file_path),
            bytes=bytes_written,
        )

    return Tool(
        name="write",
        label="Write",
        description=(
            "Write content to a file. Creates the file if it doesn't exist, "
            "overwrites it if it does. Parent directories are created as needed."
        ),
        parameters=parameters_from(WriteParams),
        execute=execute,
    )


def create_edit_tool(root: WorkspaceRoot) -> Tool:
    """
    Create tool for exact-text replacement edits.

    Args:
        root: Workspace root for path resolution.

    Returns:
        Tool that replaces exactly one occurrence of oldText with newText.
    """

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        params = EditParams.model_validate(args)
        file_path = root.resolve(params.path, write=True)
        if not params.old_text:
            return ToolResult.from_text("❌ Error: oldText cannot be empty")

        try:
            if not file_path.is_file():
                return ToolResult.from_text(f"❌ Error: File not found: {params.path}")
            text = file_path.read_text(encoding="utf-8")

            occurrences = text.count(params.old_text)
            if occurrences == 0:
                return ToolResult.from_text(
                    f"❌ Error: Could not find the exact text in {params.path}. "
                    "The old text must match exactly including all whitespace and newlines."
                )
            if occurrences > 1:
                return ToolResult.from_text(
                    f"❌ Error: Found {occurrences} occurrences of the text in "
                    f"{params.path}. The text must be unique; add more context."
                )

            file_path.write_text(
                text.replace(params.old_text, params.new_text, 1), encoding="utf-8"
            )
        except PermissionError:
            return ToolResult.from_text(f"❌ Error: Permission denied: {params.path}")
        except UnicodeDecodeError:
            return ToolResult.from_text(f"❌ Error: File is not UTF-8 text: {params.path}")
        except OSError as e:
            return ToolResult.from_text(f"❌ Error editing file: {e}")

        return ToolResult.from_text(
            f"✅ Successfully replaced text in {params.path}", path=str(file_path)
        )

    return Tool(
        name="edit",
        label="Edit",
        description=(
            "Edit a file by replacing exact text. The oldText must match exactly "
            "(including whitespace) and occur exactly once."
        ),
        parameters=parameters_from(EditParams),
        execute=execute,
    )
