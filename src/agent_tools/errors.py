"""
Agent tools domain exceptions.

All exceptions raised by catalog tools before or instead of performing work.
Ordinary tool failures (missing files, failing commands) are reported in the
tool result text; these exceptions mark contract violations.
"""


class AgentToolsError(Exception):
    """Base exception for agent tool errors."""

    def __init__(self, message: str, retryable: bool = False) -> None:
        """
        Initialize agent tools error.

        Args:
            message: Error message.
            retryable: Whether the call can be retried as-is.
        """
        self.message = message
        self.retryable = retryable
        super().__init__(message)


class MissingParameterError(AgentToolsError):
    """A required parameter (or every key of its alias group) was absent."""

    def __init__(
        self,
        parameter: str,
        tool_name: str | None = None,
        accepted: tuple[str, ...] = (),
    ) -> None:
        """
        Initialize missing parameter error.

        Args:
            parameter: Canonical parameter name.
            tool_name: Tool that rejected the call.
            accepted: Every argument key that would have satisfied it.
        """
        self.parameter = parameter
        self.tool_name = tool_name
        self.accepted = accepted
        message = f"Missing required parameter: {parameter}"
        if len(accepted) > 1:
            message += f" (accepted: {', '.join(accepted)})"
        if tool_name:
            message += f" [tool={tool_name}]"
        super().__init__(message, retryable=False)


class SandboxViolationError(AgentToolsError):
    """A tool call tried to leave the sandbox boundary."""

    def __init__(self, path: str, reason: str) -> None:
        """
        Initialize sandbox violation error.

        Args:
            path: Offending path or target.
            reason: Why the call was rejected.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Sandbox violation for '{path}': {reason}", retryable=False)


class ToolUnavailableError(AgentToolsError):
    """A delegated tool was invoked without a configured backend."""

    def __init__(self, tool_name: str, detail: str | None = None) -> None:
        """
        Initialize tool unavailable error.

        Args:
            tool_name: Name of the tool (or backend key) that is missing.
            detail: Optional extra context.
        """
        self.tool_name = tool_name
        message = f"No backend configured for tool '{tool_name}'"
        if detail:
            message += f": {detail}"
        super().__init__(message, retryable=False)


class PatchError(AgentToolsError):
    """Patch text could not be parsed or applied."""

    def __init__(self, message: str) -> None:
        """
        Initialize patch error.

        Args:
            message: Error message describing the parse or apply failure.
        """
        super().__init__(message, retryable=False)
