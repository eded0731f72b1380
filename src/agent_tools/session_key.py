"""
Session key parsing.

Session keys look like ``agent:<agentId>:<scope...>``; a ``subagent``
segment anywhere in the scope marks a nested (spawned) session, e.g.
``agent:main:subagent:3f2c``.
"""

from dataclasses import dataclass

AGENT_PREFIX = "agent"
SUBAGENT_SEGMENT = "subagent"


@dataclass(frozen=True)
class SessionKey:
    """
    Parsed session key.

    Attributes:
        raw: Original key.
        agent_id: Agent segment, or None for keys without one.
        scope: Remaining segments.
    """

    raw: str
    agent_id: str | None
    scope: tuple[str, ...]

    @property
    def is_subagent(self) -> bool:
        return SUBAGENT_SEGMENT in self.scope


def parse_session_key(key: str | None) -> SessionKey | None:
    """
    Parse a session key.

    Args:
        key: Raw session key.

    Returns:
        Parsed key, or None for empty input.
    """
    if not key or not key.strip():
        return None
    segments = [s.strip().lower() for s in key.strip().split(":")]
    if len(segments) >= 2 and segments[0] == AGENT_PREFIX and segments[1]:
        return SessionKey(raw=key, agent_id=segments[1], scope=tuple(segments[2:]))
    return SessionKey(raw=key, agent_id=None, scope=tuple(segments))


def is_subagent_session(key: str | None) -> bool:
    """
    Check whether a session key denotes a sub-agent session.

    Args:
        key: Raw session key.

    Returns:
        True for nested sessions.
    """
    parsed = parse_session_key(key)
    return parsed is not None and parsed.is_subagent
