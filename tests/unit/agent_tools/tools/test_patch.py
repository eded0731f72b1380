"""
Unit tests for the apply_patch tool.

Tests cover envelope parsing, hunk matching, multi-file changes and
all-or-nothing application.
"""

import pytest

from agent_tools.errors import PatchError, SandboxViolationError
from agent_tools.tools.filesystem import WorkspaceRoot
from agent_tools.tools.patch import (
    Hunk,
    apply_hunks,
    create_apply_patch_tool,
    find_sequence,
    parse_patch,
)


def envelope(*body: str) -> str:
    """Wrap body lines in Begin/End markers."""
    return "\n".join(["*** Begin Patch", *body, "*** End Patch"])


class TestParsePatch:
    """Tests for parse_patch."""

    def test_all_operation_kinds(self):
        """Test add, update with move, and delete sections."""
        ops = parse_patch(
            envelope(
                "*** Add File: new.txt",
                "+hello",
                "+",
                "*** Update File: a.py",
                "*** Move to: b.py",
                "@@ def main():",
                " x = 1",
                "-y = 2",
                "+y = 3",
                "*** Delete File: old.txt",
            )
        )

        assert [(op.kind, op.path) for op in ops] == [
            ("add", "new.txt"),
            ("update", "a.py"),
            ("delete", "old.txt"),
        ]
        assert ops[0].content == "hello\n\n"
        assert ops[1].move_to == "b.py"
        assert ops[1].hunks[0].anchor == "def main():"
        assert ops[1].hunks[0].old_lines == ["x = 1", "y = 2"]
        assert ops[1].hunks[0].new_lines == ["x = 1", "y = 3"]

    def test_end_of_file_marker(self):
        """Test the EOF marker flags the current hunk."""
        ops = parse_patch(
            envelope("*** Update File: a.txt", "@@", "-last", "+LAST", "*** End of File")
        )

        assert ops[0].hunks[0].at_eof is True

    @pytest.mark.parametrize(
        "text,message",
        [
            ("*** Add File: a\n+x\n*** End Patch", "must start with"),
            ("*** Begin Patch\n*** Add File: a\n+x", "must end with"),
            (envelope(), "no file operations"),
            (envelope("*** Add File: a", "no plus"), "Invalid Add File line"),
            (envelope("*** Update File: a"), "has no changes"),
            (envelope("*** Rename File: a"), "Unknown line"),
            (envelope("*** Update File: a", "@@", "?bad"), "Invalid line"),
            (envelope("*** Delete File: a", "*** Delete File: a"), "Duplicate operation"),
        ],
    )
    def test_malformed_patches(self, text, message):
        """Test malformed envelopes and sections raise PatchError."""
        with pytest.raises(PatchError, match=message):
            parse_patch(text)


class TestFindSequence:
    """Tests for fuzzy line matching."""

    def test_exact_match(self):
        """Test exact lines are found from the start index."""
        assert find_sequence(["a", "b", "a", "b"], ["a", "b"], 1) == 2

    def test_whitespace_tolerance(self):
        """Test trailing and surrounding whitespace fallbacks."""
        assert find_sequence(["a  ", "b"], ["a", "b"], 0) == 0
        assert find_sequence(["    a", "b"], ["a", "b"], 0) == 0

    def test_not_found(self):
        """Test missing sequences return -1."""
        assert find_sequence(["a"], ["z"], 0) == -1

    def test_eof_prefers_tail(self):
        """Test at_eof matches the last occurrence."""
        assert find_sequence(["x", "y", "x", ""], ["x"], 0, at_eof=True) == 2


class TestApplyHunks:
    """Tests for apply_hunks."""

    def test_anchor_moves_cursor(self):
        """Test the anchor disambiguates repeated context."""
        text = "def a():\n    return 1\n\ndef b():\n    return 1\n"
        hunk = Hunk(anchor="def b():", lines=[("-", "    return 1"), ("+", "    return 2")])

        result = apply_hunks(text, [hunk], "m.py")

        assert result == "def a():\n    return 1\n\ndef b():\n    return 2\n"

    def test_missing_anchor(self):
        """Test an unknown anchor raises."""
        with pytest.raises(PatchError, match="Could not find anchor"):
            apply_hunks("a\n", [Hunk(anchor="zzz", lines=[("+", "b")])], "f")

    def test_missing_context(self):
        """Test unmatched context raises."""
        with pytest.raises(PatchError, match="Could not find expected lines"):
            apply_hunks("a\n", [Hunk(lines=[("-", "nope")])], "f")


class TestApplyPatchTool:
    """Tests for the apply_patch tool end to end."""

    def test_multi_file_patch(self, workspace):
        """Test add, update and delete in one call."""
        (workspace / "old.txt").write_text("bye\n")
        tool = create_apply_patch_tool(WorkspaceRoot(root=workspace.resolve()))

        result = tool.execute(
            "r1",
            {
                "input": envelope(
                    "*** Add File: docs/new.md",
                    "+# Title",
                    "*** Update File: notes.txt",
                    "@@",
                    " alpha",
                    "-beta",
                    "+BETA",
                    " gamma",
                    "*** Delete File: old.txt",
                )
            },
        )

        assert result.text() == (
            "✅ Success. Updated the following files:\n"
            "A docs/new.md\n"
            "M notes.txt\n"
            "D old.txt"
        )
        assert (workspace / "docs/new.md").read_text() == "# Title\n"
        assert (workspace / "notes.txt").read_text() == "alpha\nBETA\ngamma\n"
        assert not (workspace / "old.txt").exists()

    def test_move(self, workspace):
        """Test Move to renames the updated file."""
        tool = create_apply_patch_tool(WorkspaceRoot(root=workspace.resolve()))

        result = tool.execute(
            "r1",
            {
                "input": envelope(
                    "*** Update File: src/app.py",
                    "*** Move to: src/main.py",
                    "-    return 1",
                    "+    return 2",
                )
            },
        )

        assert "M src/main.py" in result.text()
        assert not (workspace / "src/app.py").exists()
        assert (workspace / "src/main.py").read_text() == "def main():\n    return 2\n"

    def test_failure_writes_nothing(self, workspace):
        """Test a failing section leaves earlier sections unapplied."""
        tool = create_apply_patch_tool(WorkspaceRoot(root=workspace.resolve()))

        with pytest.raises(PatchError):
            tool.execute(
                "r1",
                {
                    "input": envelope(
                        "*** Add File: created.txt",
                        "+x",
                        "*** Update File: notes.txt",
                        "-delta",
                        "+DELTA",
                    )
                },
            )

        assert not (workspace / "created.txt").exists()
        assert (workspace / "notes.txt").read_text() == "alpha\nbeta\ngamma\n"

    def test_add_existing_file(self, workspace):
        """Test adding over an existing file is rejected."""
        tool = create_apply_patch_tool(WorkspaceRoot(root=workspace.resolve()))

        with pytest.raises(PatchError, match="already exists"):
            tool.execute("r1", {"input": envelope("*** Add File: notes.txt", "+x")})

    def test_delete_missing_file(self, workspace):
        """Test deleting a missing file is rejected."""
        tool = create_apply_patch_tool(WorkspaceRoot(root=workspace.resolve()))

        with pytest.raises(PatchError, match="missing file"):
            tool.execute("r1", {"input": envelope("*** Delete File: ghost.txt")})

    def test_sandbox_escape(self, workspace):
        """Test patches cannot leave a sandboxed root."""
        tool = create_apply_patch_tool(WorkspaceRoot(root=workspace.resolve(), sandboxed=True))

        with pytest.raises(SandboxViolationError):
            tool.execute("r1", {"input": envelope("*** Add File: ../evil.txt", "+x")})

    def test_read_only_sandbox(self, workspace):
        """Test ro sandboxes reject every patch."""
        tool = create_apply_patch_tool(
            WorkspaceRoot(root=workspace.resolve(), sandboxed=True, read_only=True)
        )

        with pytest.raises(SandboxViolationError):
            tool.execute("r1", {"input": envelope("*** Delete File: notes.txt")})
        assert (workspace / "notes.txt").exists()
