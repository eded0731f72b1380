"""
apply_patch tool.

Applies a multi-file patch in the envelope format models of the OpenAI
family are trained on:

    *** Begin Patch
    *** Add File: path/to/new.py
    +line
    *** Update File: path/to/existing.py
    *** Move to: path/to/renamed.py
    @@ def anchor():
     context
    -removed
    +added
    *** Delete File: path/to/old.py
    *** End Patch

Every change is computed in memory first; files are only touched once the
whole patch has parsed and matched.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import Field

from ..errors import PatchError
from .base import Tool, ToolParams, ToolResult, parameters_from
from .filesystem import WorkspaceRoot

logger = logging.getLogger(__name__)

BEGIN_MARKER = "*** Begin Patch"
END_MARKER = "*** End Patch"
ADD_PREFIX = "*** Add File: "
DELETE_PREFIX = "*** Delete File: "
UPDATE_PREFIX = "*** Update File: "
MOVE_PREFIX = "*** Move to: "
EOF_MARKER = "*** End of File"


@dataclass
class Hunk:
    """
    One ``@@`` section of an update.

    Attributes:
        anchor: Optional line to locate before matching the context.
        lines: (op, text) pairs with op in " ", "-", "+".
        at_eof: Whether the section must match at the end of the file.
    """

    anchor: str = ""
    lines: list[tuple[str, str]] = field(default_factory=list)
    at_eof: bool = False

    @property
    def old_lines(self) -> list[str]:
        return [text for op, text in self.lines if op != "+"]

    @property
    def new_lines(self) -> list[str]:
        return [text for op, text in self.lines if op != "-"]


@dataclass
class PatchOperation:
    """
    A single file operation.

    Attributes:
        kind: "add", "delete" or "update".
        path: Target path as written in the patch.
        content: Full content for "add".
        move_to: Rename target for "update".
        hunks: Sections for "update".
    """

    kind: str
    path: str
    content: str = ""
    move_to: str | None = None
    hunks: list[Hunk] = field(default_factory=list)


@dataclass
class FileChange:
    """Resolved change ready to be written."""

    kind: str
    path: Path
    content: str | None = None
    move_to: Path | None = None


def parse_patch(text: str) -> list[PatchOperation]:
    """
    Parse patch text into file operations.

    Args:
        text: Patch text including the Begin/End markers.

    Returns:
        Operations in patch order.

    Raises:
        PatchError: If the envelope or a section is malformed.
    """
    lines = [line.rstrip("\r") for line in text.strip().splitlines()]
    if len(lines) < 2 or lines[0].strip() != BEGIN_MARKER:
        raise PatchError(f"Patch must start with '{BEGIN_MARKER}'")
    if lines[-1].strip() != END_MARKER:
        raise PatchError(f"Patch must end with '{END_MARKER}'")

    operations: list[PatchOperation] = []
    seen: set[str] = set()
    index = 1
    body_end = len(lines) - 1

    while index < body_end:
        line = lines[index]
        if not line.strip():
            index += 1
            continue

        if line.startswith(ADD_PREFIX):
            op = PatchOperation(kind="add", path=line[len(ADD_PREFIX) :].strip())
            index += 1
            content: list[str] = []
            while index < body_end and not lines[index].startswith("*** "):
                if not lines[index].startswith("+"):
                    raise PatchError(
                        f"Invalid Add File line (missing '+'): {lines[index]!r}"
                    )
                content.append(lines[index][1:])
                index += 1
            op.content = "".join(f"{entry}\n" for entry in content)
        elif line.startswith(DELETE_PREFIX):
            op = PatchOperation(kind="delete", path=line[len(DELETE_PREFIX) :].strip())
            index += 1
        elif line.startswith(UPDATE_PREFIX):
            op = PatchOperation(kind="update", path=line[len(UPDATE_PREFIX) :].strip())
            index += 1
            if index < body_end and lines[index].startswith(MOVE_PREFIX):
                op.move_to = lines[index][len(MOVE_PREFIX) :].strip()
                index += 1
            index = _parse_hunks(lines, index, body_end, op)
        else:
            raise PatchError(f"Unknown line while parsing patch: {line!r}")

        if not op.path:
            raise PatchError(f"Missing file path in '{line}'")
        if op.path in seen:
            raise PatchError(f"Duplicate operation for file: {op.path}")
        seen.add(op.path)
        operations.append(op)

    if not operations:
        raise PatchError("Patch contains no file operations")
    return operations


def _parse_hunks(lines: list[str], index: int, end: int, op: PatchOperation) -> int:
    hunk: Hunk | None = None
    while index < end:
        line = lines[index]
        if line.startswith("@@"):
            hunk = Hunk(anchor=line[2:].strip())
            op.hunks.append(hunk)
        elif line == EOF_MARKER:
            if hunk is None:
                raise PatchError(f"'{EOF_MARKER}' outside of a hunk in {op.path}")
            hunk.at_eof = True
        elif line.startswith("*** "):
            break
        else:
            if hunk is None:
                hunk = Hunk()
                op.hunks.append(hunk)
            # A bare empty line is an empty context line.
            marker, text = (line[0], line[1:]) if line else (" ", "")
            if marker not in (" ", "-", "+"):
                raise PatchError(f"Invalid line in update section of {op.path}: {line!r}")
            hunk.lines.append((marker, text))
        index += 1

    if not op.hunks or not any(h.lines for h in op.hunks):
        raise PatchError(f"Update File section for {op.path} has no changes")
    return index


def find_sequence(lines: list[str], sequence: list[str], start: int, at_eof: bool = False) -> int:
    """
    Locate a run of lines, tolerating whitespace differences.

    Exact matches win over trailing-whitespace matches, which win over
    matches ignoring surrounding whitespace.

    Args:
        lines: File lines.
        sequence: Lines to find.
        start: First index to consider.
        at_eof: Try the end of the file first.

    Returns:
        Start index of the match, or -1.
    """
    if not sequence:
        return len(lines) if at_eof else start

    if at_eof:
        tail = len(lines) - len(sequence)
        # A trailing newline leaves an empty last element.
        for candidate in (tail, tail - 1):
            if candidate >= start and _matches(lines, sequence, candidate, str.strip):
                return candidate

    for normalize in (None, str.rstrip, str.strip):
        for i in range(start, len(lines) - len(sequence) + 1):
            if _matches(lines, sequence, i, normalize):
                return i
    return -1


def _matches(lines: list[str], sequence: list[str], at: int, normalize: Any) -> bool:
    window = lines[at : at + len(sequence)]
    if len(window) != len(sequence):
        return False
    if normalize is None:
        return window == sequence
    return [normalize(s) for s in window] == [normalize(s) for s in sequence]


def apply_hunks(text: str, hunks: list[Hunk], path: str) -> str:
    """
    Apply update hunks to file text.

    Args:
        text: Original file content.
        hunks: Sections in file order.
        path: Path for error messages.

    Returns:
        Updated content.

    Raises:
        PatchError: If an anchor or context block cannot be found.
    """
    lines = text.split("\n")
    cursor = 0
    for hunk in hunks:
        if hunk.anchor:
            anchor_at = find_sequence(lines, [hunk.anchor], cursor)
            if anchor_at == -1:
                raise PatchError(f"Could not find anchor '{hunk.anchor}' in {path}")
            cursor = anchor_at + 1

        old, new = hunk.old_lines, hunk.new_lines
        at = find_sequence(lines, old, cursor, hunk.at_eof)
        if at == -1:
            context = "\n".join(old)
            raise PatchError(f"Could not find expected lines in {path}:\n{context}")
        lines[at : at + len(old)] = new
        cursor = at + len(new)
    return "\n".join(lines)


def plan_changes(operations: list[PatchOperation], root: WorkspaceRoot) -> list[FileChange]:
    """
    Resolve paths and compute new file contents without touching disk.

    Args:
        operations: Parsed operations.
        root: Workspace root (sandbox guards apply).

    Returns:
        Changes ready to be written.

    Raises:
        PatchError: If a target is missing, already exists, or does not match.
        SandboxViolationError: If a path leaves the sandbox.
    """
    changes: list[FileChange] = []
    for op in operations:
        target = root.resolve(op.path, write=True)
        if op.kind == "add":
            if target.exists():
                raise PatchError(f"Add File Error - file already exists: {op.path}")
            changes.append(FileChange(kind="add", path=target, content=op.content))
            continue

        if not target.is_file():
            raise PatchError(f"{op.kind.title()} File Error - missing file: {op.path}")
        if op.kind == "delete":
            changes.append(FileChange(kind="delete", path=target))
            continue

        try:
            original = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PatchError(f"Cannot read {op.path}: {e}") from e
        move_to = root.resolve(op.move_to, write=True) if op.move_to else None
        changes.append(
            FileChange(
                kind="update",
                path=target,
                content=apply_hunks(original, op.hunks, op.path),
                move_to=move_to,
            )
        )
    return changes


def commit_changes(changes: list[FileChange]) -> None:
    """
    Write planned changes to disk.

    Args:
        changes: Output of :func:`plan_changes`.
    """
    for change in changes:
        if change.kind == "delete":
            change.path.unlink(missing_ok=True)
            continue
        destination = change.move_to or change.path
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(change.content or "", encoding="utf-8")
        if change.move_to is not None and change.move_to != change.path:
            change.path.unlink(missing_ok=True)


def apply_patch(text: str, root: WorkspaceRoot) -> list[FileChange]:
    """
    Parse, plan and apply a patch.

    Args:
        text: Patch text.
        root: Workspace root.

    Returns:
        Applied changes.
    """
    changes = plan_changes(parse_patch(text), root)
    commit_changes(changes)
    return changes


class ApplyPatchParams(ToolParams):
    input: str = Field(
        ...,
        description="Patch content using the *** Begin Patch/End Patch format.",
    )


def create_apply_patch_tool(root: WorkspaceRoot) -> Tool:
    """
    Create the apply_patch tool.

    Args:
        root: Workspace root for path resolution.

    Returns:
        Tool applying multi-file patches atomically.
    """

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        params = ApplyPatchParams.model_validate(args)
        changes = apply_patch(params.input, root)

        summary = []
        for change in changes:
            marker = {"add": "A", "delete": "D", "update": "M"}[change.kind]
            shown = change.move_to or change.path
            summary.append(f"{marker} {_display(shown, root)}")
        logger.debug(f"🔧 apply_patch {request_id}: {len(changes)} file(s) changed")
        return ToolResult.from_text(
            "✅ Success. Updated the following files:\n" + "\n".join(summary),
            files=[str(c.move_to or c.path) for c in changes],
        )

    return Tool(
        name="apply_patch",
        label="Apply Patch",
        description=(
            "Apply a patch to one or more files using the apply_patch format. "
            "The input should include *** Begin Patch and *** End Patch markers."
        ),
        parameters=parameters_from(ApplyPatchParams),
        execute=execute,
    )


def _display(path: Path, root: WorkspaceRoot) -> str:
    if path.is_relative_to(root.root):
        return str(path.relative_to(root.root))
    return str(path)
