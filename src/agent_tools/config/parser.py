"""
Configuration Parser for Agent Tools

Loads YAML configuration files and converts them to typed Python objects.
Supports environment variable expansion using ${VAR} or ${VAR:-default} syntax.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from .schema import (
    AgentConfig,
    AgentToolsConfig,
    ApplyPatchConfig,
    ExecToolConfig,
    SandboxDockerConfig,
    SandboxPolicy,
    SubagentToolsConfig,
    ToolPolicy,
    ToolsConfig,
)

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-(.*?))?\}")


class ConfigParser:
    """
    YAML configuration parser with environment variable expansion.

    Usage:
        config = ConfigParser("config/agent-tools.yaml").load()
        config = ConfigParser().parse({"tools": {"profile": "coding"}})
    """

    def __init__(self, config_path: str | None = None) -> None:
        """
        Initialize parser with an optional configuration file path.

        Args:
            config_path: Path to YAML configuration file

        Raises:
            FileNotFoundError: If a path is given and the file doesn't exist
        """
        self.config_path = Path(config_path) if config_path else None
        if self.config_path is not None and not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

    def load(self) -> AgentToolsConfig:
        """
        Load and parse the configuration file.

        Returns:
            Parsed and validated configuration

        Raises:
            ValueError: If no path was given or the configuration is invalid
            yaml.YAMLError: If YAML parsing fails
        """
        if self.config_path is None:
            raise ValueError("No configuration path given")

        with open(self.config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}
        if not isinstance(raw_config, dict):
            raise ValueError(
                f"Invalid configuration: expected dict, got {type(raw_config)}"
            )

        return self.parse(raw_config)

    def parse(self, raw: dict[str, Any]) -> AgentToolsConfig:
        """
        Parse an already-loaded configuration mapping.

        Args:
            raw: Raw configuration dictionary (camelCase keys)

        Returns:
            Validated configuration object

        Raises:
            ValueError: If configuration is invalid
        """
        expanded = self._expand_env_vars(raw)

        agents_raw = (expanded.get("agents") or {}).get("list") or []
        agents = [
            AgentConfig(
                id=a["id"],
                name=a.get("name"),
                default=bool(a.get("default", False)),
                workspace=a.get("workspace"),
                tools=self._parse_tool_policy(a["tools"]) if a.get("tools") else None,
            )
            for a in agents_raw
        ]

        sandbox_raw = expanded.get("sandbox")
        return AgentToolsConfig(
            tools=self._parse_tools(expanded.get("tools") or {}),
            agents=agents,
            sandbox=self.parse_sandbox(sandbox_raw) if sandbox_raw else None,
        )

    def parse_sandbox(self, raw: dict[str, Any]) -> SandboxPolicy:
        """
        Parse a sandbox section.

        Args:
            raw: Raw sandbox dictionary

        Returns:
            Sandbox policy
        """
        docker_raw = raw.get("docker") or {}
        docker_defaults = SandboxDockerConfig()
        docker = SandboxDockerConfig(
            image=docker_raw.get("image", docker_defaults.image),
            container_prefix=docker_raw.get(
                "containerPrefix", docker_defaults.container_prefix
            ),
            workdir=docker_raw.get("workdir", docker_defaults.workdir),
            read_only_root=docker_raw.get("readOnlyRoot", docker_defaults.read_only_root),
            tmpfs=list(docker_raw.get("tmpfs", [])),
            network=docker_raw.get("network", docker_defaults.network),
            user=docker_raw.get("user"),
            cap_drop=list(docker_raw.get("capDrop", docker_defaults.cap_drop)),
            env=dict(docker_raw.get("env", {})),
        )
        return SandboxPolicy(
            enabled=bool(raw.get("enabled", False)),
            session_key=raw.get("sessionKey"),
            workspace_dir=raw.get("workspaceDir"),
            agent_workspace_dir=raw.get("agentWorkspaceDir"),
            workspace_access=raw.get("workspaceAccess", "none"),
            container_name=raw.get("containerName"),
            container_workdir=raw.get("containerWorkdir", docker.workdir),
            docker=docker,
            tools=self._parse_tool_policy(raw.get("tools") or {}),
            browser_allow_host_control=bool(raw.get("browserAllowHostControl", False)),
        )

    def _expand_env_vars(self, config: Any) -> Any:
        """
        Recursively expand ${ENV_VAR} and ${ENV_VAR:-default} placeholders.

        Args:
            config: Configuration value (can be dict, list, str, etc.)

        Returns:
            Configuration with environment variables expanded
        """

        def replacer(match: re.Match[str]) -> str:
            return os.getenv(match.group(1), match.group(2) or "")

        def expand_value(value: Any) -> Any:
            if isinstance(value, str):
                return _ENV_PATTERN.sub(replacer, value)
            elif isinstance(value, dict):
                return {k: expand_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [expand_value(v) for v in value]
            else:
                return value

        return expand_value(config)

    def _parse_tools(self, raw: dict[str, Any]) -> ToolsConfig:
        exec_raw = raw.get("exec") or {}
        patch_raw = exec_raw.get("applyPatch") or {}
        exec_defaults = ExecToolConfig()
        exec_config = ExecToolConfig(
            apply_patch=ApplyPatchConfig(
                enabled=bool(patch_raw.get("enabled", False)),
                allow_models=list(patch_raw.get("allowModels") or []),
            ),
            timeout_sec=int(exec_raw.get("timeoutSec", exec_defaults.timeout_sec)),
            max_output_chars=int(
                exec_raw.get("maxOutputChars", exec_defaults.max_output_chars)
            ),
        )

        subagents_raw = raw.get("subagents") or {}
        return ToolsConfig(
            profile=raw.get("profile"),
            allow=self._string_list(raw.get("allow")),
            deny=self._string_list(raw.get("deny")),
            exec=exec_config,
            subagents=SubagentToolsConfig(
                tools=self._parse_tool_policy(subagents_raw.get("tools") or {}),
            ),
            schema_compat={
                str(k): str(v) for k, v in (raw.get("schemaCompat") or {}).items()
            },
        )

    def _parse_tool_policy(self, raw: dict[str, Any]) -> ToolPolicy:
        """
        Parse tool policy from dictionary.

        Args:
            raw: Raw tool policy dictionary

        Returns:
            Parsed tool policy object
        """
        return ToolPolicy(
            profile=raw.get("profile"),
            allow=self._string_list(raw.get("allow")),
            deny=self._string_list(raw.get("deny")),
        )

    @staticmethod
    def _string_list(value: Any) -> list[str] | None:
        if value is None:
            return None
        if isinstance(value, str):
            return [value]
        return [str(v) for v in value]
