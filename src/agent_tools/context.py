"""
Invocation context for catalog construction.

The caller supplies one PolicyContext per session/turn; nothing in this
package mutates it.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .config.schema import AgentToolsConfig, SandboxPolicy
from .providers import detect_provider, normalize_provider


@dataclass(frozen=True)
class PolicyContext:
    """
    Runtime context for catalog building and policy evaluation.

    Attributes:
        model_provider: Provider id; detected from model_id when missing.
        model_id: Model identifier.
        model_auth_mode: Auth mode ("api-key", "oauth", ...).
        session_key: Session identity (``agent:<id>:...``).
        workspace_dir: Base directory for relative paths. Falls back to the
            current working directory at build time.
        sandbox: Sandbox state; falls back to ``config.sandbox``.
        config: Tool configuration.
        message_provider: Platform the unified message tool talks to.
        backends: Tool name -> handler for delegated tools.
        messaging: Platform -> handler for the message tool.
    """

    model_provider: str | None = None
    model_id: str | None = None
    model_auth_mode: str | None = None
    session_key: str | None = None
    workspace_dir: str | None = None
    sandbox: SandboxPolicy | None = None
    config: AgentToolsConfig = field(default_factory=AgentToolsConfig)
    message_provider: str | None = None
    backends: Mapping[str, Any] = field(default_factory=dict)
    messaging: Mapping[str, Any] = field(default_factory=dict)

    @property
    def provider(self) -> str:
        if self.model_provider:
            return normalize_provider(self.model_provider)
        return detect_provider(self.model_id)

    @property
    def effective_sandbox(self) -> SandboxPolicy | None:
        return self.sandbox if self.sandbox is not None else self.config.sandbox

    @property
    def sandbox_enabled(self) -> bool:
        sandbox = self.effective_sandbox
        return sandbox is not None and sandbox.enabled
