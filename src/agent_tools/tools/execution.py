"""
Execution tools: exec and process.

``exec`` runs a shell command in the foreground (with timeout and
cooperative cancellation) or in the background. Background commands are
tracked in a ProcessRegistry that the ``process`` tool inspects. Inside a
sandbox, commands run in the session container through ``docker exec``.
"""

import logging
import os
import posixpath
import re
import subprocess
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import Field

from ..config.schema import SandboxPolicy
from .base import Tool, ToolParams, ToolResult, parameters_from
from .filesystem import WorkspaceRoot

logger = logging.getLogger(__name__)

POLL_INTERVAL_SEC = 0.2
DEFAULT_LOG_LIMIT = 200
MAX_SESSION_LINES = 10_000
KILL_WAIT_SEC = 5


def format_output(stdout: str, stderr: str, returncode: int | None, max_length: int) -> str:
    """
    Combine command output the way the model sees it.

    Args:
        stdout: Captured standard output.
        stderr: Captured standard error.
        returncode: Exit code (None if unknown).
        max_length: Truncation threshold in characters.

    Returns:
        Output text, "(no output)" when empty.
    """
    output = stdout or ""
    if stderr:
        output += f"\n\n[stderr]\n{stderr}"
    if returncode:
        output += f"\n\n[Exit code: {returncode}]"

    if len(output) > max_length:
        output = output[:max_length] + f"\n\n[Output truncated at {max_length:,} characters]"

    return output if output.strip() else "(no output)"


@dataclass
class ProcessSession:
    """
    A background command and its captured output.

    Attributes:
        id: Session id handed to the model.
        command: Command line as given.
        process: Running child process.
        cwd: Working directory of the command.
        started_at: Monotonic start time.
        lines: Captured output, oldest lines dropped past MAX_SESSION_LINES.
        dropped: Number of lines dropped from the front of ``lines``.
        pump: Thread reading the process output.
    """

    id: str
    command: str
    process: subprocess.Popen
    cwd: str | None = None
    started_at: float = field(default_factory=time.monotonic)
    lines: list[str] = field(default_factory=list)
    cursor: int = 0
    dropped: int = 0
    pump: threading.Thread | None = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def exit_code(self) -> int | None:
        return self.process.poll()

    @property
    def running(self) -> bool:
        return self.exit_code is None

    def append(self, line: str) -> None:
        with self._lock:
            self.lines.append(line)
            overflow = len(self.lines) - MAX_SESSION_LINES
            if overflow > 0:
                del self.lines[:overflow]
                self.cursor = max(0, self.cursor - overflow)
                self.dropped += overflow

    def read_new(self) -> list[str]:
        """Return output produced since the previous call."""
        with self._lock:
            new = self.lines[self.cursor :]
            self.cursor = len(self.lines)
        return new

    def snapshot(self) -> list[str]:
        with self._lock:
            return list(self.lines)

    def kill(self) -> None:
        """Kill the process and wait for the output pump to drain."""
        self.process.kill()
        try:
            self.process.wait(timeout=KILL_WAIT_SEC)
        except subprocess.TimeoutExpired:
            logger.warning(f"⚠️ Process {self.process.pid} did not exit after kill")
        if self.pump is not None:
            self.pump.join(timeout=KILL_WAIT_SEC)


class ProcessRegistry:
    """
    Background sessions of one catalog build.

    Shared by the exec and process tools of the same build; never global.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ProcessSession] = {}
        self._lock = threading.Lock()

    def start(
        self,
        command: str,
        argv: Any,
        cwd: str | None,
        env: dict[str, str] | None,
        shell: bool,
    ) -> ProcessSession:
        """
        Spawn a background command and start pumping its output.

        Args:
            command: Command line (for display).
            argv: What to hand to Popen.
            cwd: Host working directory.
            env: Full environment, or None to inherit.
            shell: Whether argv is a shell string.

        Returns:
            The registered session.
        """
        process = subprocess.Popen(
            argv,
            shell=shell,
            cwd=cwd,
            env=env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
        session = ProcessSession(
            id=uuid.uuid4().hex[:8], command=command, process=process, cwd=cwd
        )
        session.pump = threading.Thread(target=_pump_output, args=(session,), daemon=True)
        session.pump.start()
        with self._lock:
            self._sessions[session.id] = session
        logger.info(f"🔧 Background session {session.id} started (pid={process.pid})")
        return session

    def get(self, session_id: str) -> ProcessSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def sessions(self) -> list[ProcessSession]:
        with self._lock:
            return list(self._sessions.values())

    def remove(self, session_id: str) -> ProcessSession | None:
        with self._lock:
            return self._sessions.pop(session_id, None)


def _pump_output(session: ProcessSession) -> None:
    stream = session.process.stdout
    if stream is None:
        return
    for line in stream:
        session.append(line.rstrip("\n"))


def _container_name(sandbox: SandboxPolicy) -> str:
    if sandbox.container_name:
        return sandbox.container_name
    slug = re.sub(r"[^a-zA-Z0-9_.-]+", "-", sandbox.session_key or "default").strip("-")
    return f"{sandbox.docker.container_prefix}{slug or 'default'}"


class ExecParams(ToolParams):
    command: str = Field(..., description="Shell command to execute")
    workdir: str | None = Field(
        None, description="Working directory (defaults to the workspace root)"
    )
    env: dict[str, str] | None = Field(None, description="Extra environment variables")
    timeout: int | None = Field(
        None, ge=1, description="Timeout in seconds (foreground commands only)"
    )
    background: bool | None = Field(
        None, description="Run in the background and return a session id immediately"
    )


class ProcessParams(ToolParams):
    action: Literal["list", "poll", "log", "kill"] = Field(
        ..., description="Process action"
    )
    session_id: str | None = Field(
        None, description="Session id returned by exec (required except for list)"
    )
    offset: int | None = Field(None, ge=0, description="Log line offset (log only)")
    limit: int | None = Field(None, ge=1, description="Log line limit (log only)")


class CommandRunner:
    """
    Builds and runs exec commands on the host or in the sandbox container.

    Args:
        root: Workspace root (host working directory base).
        sandbox: Active sandbox policy, if any.
        timeout_sec: Default foreground timeout.
        max_output_chars: Output truncation threshold.
    """

    def __init__(
        self,
        root: WorkspaceRoot,
        sandbox: SandboxPolicy | None,
        timeout_sec: int,
        max_output_chars: int,
    ) -> None:
        self.root = root
        self.sandbox = sandbox if sandbox is not None and sandbox.enabled else None
        self.timeout_sec = timeout_sec
        self.max_output_chars = max_output_chars

    def prepare(self, params: ExecParams) -> tuple[Any, str | None, dict[str, str] | None, bool]:
        """
        Translate exec parameters into Popen arguments.

        Args:
            params: Validated exec parameters.

        Returns:
            (argv, host cwd, environment, shell flag).
        """
        extra_env = params.env or {}
        if self.sandbox is None:
            cwd = str(self.root.resolve(params.workdir)) if params.workdir else str(self.root.root)
            env = {**os.environ, **extra_env} if extra_env else None
            return params.command, cwd, env, True

        workdir = self.sandbox.container_workdir
        if params.workdir:
            workdir = posixpath.normpath(posixpath.join(workdir, params.workdir))
        argv = ["docker", "exec", "-i", "-w", workdir]
        for key, value in {**self.sandbox.docker.env, **extra_env}.items():
            argv.extend(["-e", f"{key}={value}"])
        argv.extend([_container_name(self.sandbox), "sh", "-lc", params.command])
        return argv, None, None, False

    def run(self, params: ExecParams, cancel: threading.Event | None) -> str:
        """
        Run a foreground command.

        Args:
            params: Validated exec parameters.
            cancel: Set to terminate the command early.

        Returns:
            Formatted output or an error message.
        """
        timeout = params.timeout or self.timeout_sec
        argv, cwd, env, shell = self.prepare(params)
        try:
            process = subprocess.Popen(
                argv,
                shell=shell,
                cwd=cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            return f"❌ Error executing command: {e}"

        deadline = time.monotonic() + timeout
        while True:
            try:
                stdout, stderr = process.communicate(timeout=POLL_INTERVAL_SEC)
                break
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.is_set():
                    _terminate(process)
                    return "❌ Error: Command cancelled"
                if time.monotonic() >= deadline:
                    _terminate(process)
                    return f"❌ Error: Command timed out after {timeout} seconds"

        return format_output(stdout, stderr, process.returncode, self.max_output_chars)


def _terminate(process: subprocess.Popen) -> None:
    process.kill()
    try:
        process.communicate(timeout=5)
    except subprocess.TimeoutExpired:
        logger.warning(f"⚠️ Process {process.pid} did not exit after kill")


def create_exec_tool(runner: CommandRunner, registry: ProcessRegistry) -> Tool:
    """
    Create the exec tool.

    Args:
        runner: Host/sandbox command runner.
        registry: Background session registry shared with the process tool.

    Returns:
        Tool executing shell commands.
    """

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        params = ExecParams.model_validate(args)
        if not params.command.strip():
            return ToolResult.from_text("❌ Error: Command cannot be empty")

        if params.background:
            argv, cwd, env, shell = runner.prepare(params)
            try:
                session = registry.start(params.command, argv, cwd, env, shell)
            except OSError as e:
                return ToolResult.from_text(f"❌ Error executing command: {e}")
            return ToolResult.from_text(
                f"Command running in background (session {session.id}, "
                f"pid {session.process.pid}). Use process (list/poll/log/kill) to follow up.",
                sessionId=session.id,
                status="running",
            )

        logger.debug(f"🔧 exec {request_id}: {params.command[:80]}")
        return ToolResult.from_text(runner.run(params, cancel))

    return Tool(
        name="exec",
        label="Exec",
        description=(
            "Execute a shell command. Output (stdout, stderr, exit code) is returned "
            "when the command finishes; set background=true for long-running commands "
            "and follow up with the process tool."
        ),
        parameters=parameters_from(ExecParams),
        execute=execute,
    )


def create_process_tool(registry: ProcessRegistry) -> Tool:
    """
    Create the process tool for background sessions.

    Args:
        registry: Session registry shared with exec.

    Returns:
        Tool with list/poll/log/kill actions.
    """

    def execute(
        request_id: str,
        args: dict[str, Any],
        context: Any = None,
        cancel: threading.Event | None = None,
    ) -> ToolResult:
        params = ProcessParams.model_validate(args)

        if params.action == "list":
            sessions = registry.sessions()
            if not sessions:
                return ToolResult.from_text("No running or recent sessions.")
            rows = []
            for s in sessions:
                status = "running" if s.running else f"exited({s.exit_code})"
                runtime = int(time.monotonic() - s.started_at)
                rows.append(f"{s.id}  {status:<12} {runtime:>5}s  {s.command}")
            return ToolResult.from_text("\n".join(rows))

        if not params.session_id:
            return ToolResult.from_text(
                f"❌ Error: sessionId is required for action '{params.action}'"
            )
        session = registry.get(params.session_id)
        if session is None:
            return ToolResult.from_text(
                f"❌ Error: No session found for {params.session_id}"
            )

        if params.action == "poll":
            output = "\n".join(session.read_new()) or "(no new output)"
            if session.running:
                return ToolResult.from_text(
                    f"{output}\n\nProcess still running.", status="running"
                )
            return ToolResult.from_text(
                f"{output}\n\nProcess exited with code {session.exit_code}.",
                status="exited",
                exitCode=session.exit_code,
            )

        if params.action == "log":
            lines = session.snapshot()
            start = params.offset or 0
            window = lines[start : start + (params.limit or DEFAULT_LOG_LIMIT)]
            return ToolResult.from_text("\n".join(window) or "(no output)", totalLines=len(lines))

        # kill
        if session.running:
            session.kill()
        registry.remove(session.id)
        logger.info(f"🔧 Background session {session.id} killed")
        return ToolResult.from_text(f"✅ Killed session {session.id}")

    return Tool(
        name="process",
        label="Process",
        description=(
            "Manage background exec sessions: list, poll new output, read the log, "
            "or kill a session."
        ),
        parameters=parameters_from(ProcessParams),
        execute=execute,
    )
