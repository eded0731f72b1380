"""
Configuration Schema for Agent Tools

This module defines the tool policy configuration using dataclasses.
Configuration is loaded from YAML (or an already-parsed mapping) by
ConfigParser and consumed read-only by the catalog builder and resolver.
"""

from dataclasses import dataclass, field

WORKSPACE_ACCESS_MODES = ("none", "ro", "rw")


@dataclass
class ToolPolicy:
    """
    Tool access policy.

    Attributes:
        profile: Named preset (minimal/coding/messaging/full). Unknown names
            are ignored at resolution time.
        allow: Tool names, ``group:<name>`` shorthands or wildcard patterns
            to keep. None or empty keeps everything.
        deny: Same syntax; matching tools are removed.
    """

    profile: str | None = None
    allow: list[str] | None = None
    deny: list[str] | None = None

    def is_empty(self) -> bool:
        """
        Check whether the policy restricts anything.

        Returns:
            True if no profile, allow or deny entry is set.
        """
        return not (self.profile or self.allow or self.deny)


@dataclass
class ApplyPatchConfig:
    """
    Feature gate for the apply_patch tool.

    Attributes:
        enabled: Whether apply_patch may be exposed at all.
        allow_models: Optional model ids (bare or ``provider/model``).
    """

    enabled: bool = False
    allow_models: list[str] = field(default_factory=list)


@dataclass
class ExecToolConfig:
    """
    Settings for the exec/process tool pair.

    Attributes:
        apply_patch: apply_patch feature gate.
        timeout_sec: Default foreground command timeout.
        max_output_chars: Output truncation threshold.
    """

    apply_patch: ApplyPatchConfig = field(default_factory=ApplyPatchConfig)
    timeout_sec: int = 300
    max_output_chars: int = 10000

    def __post_init__(self) -> None:
        """
        Validate exec settings after initialization.

        Raises:
            ValueError: If a limit is not positive.
        """
        if self.timeout_sec <= 0:
            raise ValueError(f"timeoutSec must be positive, got {self.timeout_sec}")
        if self.max_output_chars <= 0:
            raise ValueError(
                f"maxOutputChars must be positive, got {self.max_output_chars}"
            )


@dataclass
class SubagentToolsConfig:
    """
    Extra restrictions for sub-agent sessions.

    Attributes:
        tools: Allow/deny applied on top of the resolved policy.
    """

    tools: ToolPolicy = field(default_factory=ToolPolicy)


@dataclass
class ToolsConfig:
    """
    Global tool configuration (``tools:`` section).

    Attributes:
        profile: Global profile preset.
        allow: Global allow list.
        deny: Global deny list.
        exec: exec/process/apply_patch settings.
        subagents: Sub-agent restrictions.
        schema_compat: Provider -> compatibility profile name overrides.
    """

    profile: str | None = None
    allow: list[str] | None = None
    deny: list[str] | None = None
    exec: ExecToolConfig = field(default_factory=ExecToolConfig)
    subagents: SubagentToolsConfig = field(default_factory=SubagentToolsConfig)
    schema_compat: dict[str, str] = field(default_factory=dict)

    def policy(self) -> ToolPolicy:
        """
        Return the global profile/allow/deny as a ToolPolicy.

        Returns:
            Global tool policy.
        """
        return ToolPolicy(profile=self.profile, allow=self.allow, deny=self.deny)


@dataclass
class AgentConfig:
    """
    Configuration for a single agent.

    Attributes:
        id: Unique agent identifier (matches the session key agent segment).
        name: Human-readable agent name.
        default: Whether this agent handles session keys without an agent id.
        workspace: Agent workspace directory.
        tools: Agent tool policy; replaces the global policy when set.
    """

    id: str
    name: str | None = None
    default: bool = False
    workspace: str | None = None
    tools: ToolPolicy | None = None

    def __post_init__(self) -> None:
        """
        Validate agent config after initialization.

        Raises:
            ValueError: If id is empty.
        """
        if not self.id or not self.id.strip():
            raise ValueError("Agent id cannot be empty")


@dataclass
class SandboxDockerConfig:
    """
    Container settings of a sandbox.

    Attributes:
        image: Sandbox image.
        container_prefix: Prefix for generated container names.
        workdir: Working directory inside the container.
        read_only_root: Mount the root filesystem read-only.
        tmpfs: tmpfs mounts.
        network: Docker network mode.
        user: uid:gid to run as.
        cap_drop: Dropped Linux capabilities.
        env: Extra environment variables.
    """

    image: str = "agent-sandbox:bookworm-slim"
    container_prefix: str = "agent-sbx-"
    workdir: str = "/workspace"
    read_only_root: bool = True
    tmpfs: list[str] = field(default_factory=list)
    network: str = "none"
    user: str | None = None
    cap_drop: list[str] = field(default_factory=lambda: ["ALL"])
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class SandboxPolicy:
    """
    Sandbox state for a session.

    Attributes:
        enabled: Whether sandboxing is active.
        session_key: Session the sandbox belongs to.
        workspace_dir: Host directory mounted as the sandbox workspace.
        agent_workspace_dir: The agent's own (non-sandbox) workspace.
        workspace_access: none, ro or rw.
        container_name: Running container name.
        container_workdir: Working directory inside the container.
        docker: Container settings.
        tools: Sandbox tool ceiling. None entries use the built-in defaults.
        browser_allow_host_control: Whether the browser may target the host.
    """

    enabled: bool = False
    session_key: str | None = None
    workspace_dir: str | None = None
    agent_workspace_dir: str | None = None
    workspace_access: str = "none"
    container_name: str | None = None
    container_workdir: str = "/workspace"
    docker: SandboxDockerConfig = field(default_factory=SandboxDockerConfig)
    tools: ToolPolicy = field(default_factory=ToolPolicy)
    browser_allow_host_control: bool = False

    def __post_init__(self) -> None:
        """
        Validate sandbox policy after initialization.

        Raises:
            ValueError: If workspace_access is not a known mode.
        """
        if self.workspace_access not in WORKSPACE_ACCESS_MODES:
            raise ValueError(
                f"Invalid workspaceAccess '{self.workspace_access}'. "
                f"Must be: none, ro, or rw"
            )

    @property
    def read_only(self) -> bool:
        return self.workspace_access == "ro"


@dataclass
class AgentToolsConfig:
    """
    Root configuration for tool exposure.

    Attributes:
        tools: Global tool configuration.
        agents: Configured agents with optional per-agent policies.
        sandbox: Default sandbox policy (a context may supply its own).
    """

    tools: ToolsConfig = field(default_factory=ToolsConfig)
    agents: list[AgentConfig] = field(default_factory=list)
    sandbox: SandboxPolicy | None = None

    def __post_init__(self) -> None:
        """
        Validate complete config after initialization.

        Raises:
            ValueError: If agent IDs are duplicated or several agents are
                marked as default.
        """
        agent_ids = [agent.id for agent in self.agents]
        if len(agent_ids) != len(set(agent_ids)):
            raise ValueError("Agent IDs must be unique")

        defaults = [agent.id for agent in self.agents if agent.default]
        if len(defaults) > 1:
            raise ValueError(f"Only one default agent allowed, got {defaults}")

    def get_agent(self, agent_id: str) -> AgentConfig | None:
        """
        Get agent configuration by ID (case-insensitive).

        Args:
            agent_id: Agent identifier

        Returns:
            Agent configuration or None if not found
        """
        wanted = agent_id.strip().lower()
        for agent in self.agents:
            if agent.id.lower() == wanted:
                return agent
        return None

    def default_agent(self) -> AgentConfig | None:
        """
        Get the agent used for session keys without an agent segment.

        Returns:
            The agent flagged as default, else the first agent, else None.
        """
        for agent in self.agents:
            if agent.default:
                return agent
        return self.agents[0] if self.agents else None
