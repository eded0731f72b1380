"""
Pytest configuration and fixtures for agent tools tests.
"""

import threading
from pathlib import Path
from typing import Any

import pytest

from agent_tools.tools.base import ToolResult


class RecordingBackend:
    """Backend handler that records every call and answers with fixed text."""

    def __init__(self, reply: str = "ok") -> None:
        self.reply = reply
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def __call__(
        self,
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        self.calls.append((request_id, args))
        return ToolResult.from_text(self.reply)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Workspace directory with a couple of files."""
    root = tmp_path / "workspace"
    root.mkdir()
    (root / "notes.txt").write_text("alpha\nbeta\ngamma\n", encoding="utf-8")
    (root / "src").mkdir()
    (root / "src" / "app.py").write_text("def main():\n    return 1\n", encoding="utf-8")
    return root


@pytest.fixture
def recording_backend() -> RecordingBackend:
    """Backend that records calls."""
    return RecordingBackend()
