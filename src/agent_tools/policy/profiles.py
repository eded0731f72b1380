"""
Profile Presets and Tool Groups for Tool Policy.

Profiles are named base allow-lists that replace the working tool set.
Groups are ``group:<name>`` shorthands usable in any allow/deny list.
"""

import fnmatch
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ProfileDef:
    """
    Definition of a tool access profile.

    Attributes:
        allow: Entries (names, groups, patterns) the profile keeps.
            None keeps every tool.
    """

    allow: tuple[str, ...] | None


TOOL_GROUPS: dict[str, tuple[str, ...]] = {
    "fs": ("read", "write", "edit", "apply_patch"),
    "runtime": ("exec", "process"),
    "sessions": (
        "sessions_list",
        "sessions_history",
        "sessions_send",
        "sessions_spawn",
        "session_status",
    ),
    "memory": ("memory_search", "memory_get"),
    "ui": ("browser", "canvas"),
    "automation": ("cron", "gateway"),
    "messaging": ("message",),
    "nodes": ("nodes",),
}
TOOL_GROUPS["all"] = tuple(name for group in TOOL_GROUPS.values() for name in group) + (
    "agents_list",
    "image",
)

# Names other harnesses use for the same tools.
TOOL_NAME_ALIASES: dict[str, str] = {
    "bash": "exec",
    "apply-patch": "apply_patch",
}

PROFILES: dict[str, ProfileDef] = {
    "minimal": ProfileDef(allow=("session_status",)),
    "coding": ProfileDef(
        allow=("group:fs", "group:runtime", "group:sessions", "group:memory", "image")
    ),
    "messaging": ProfileDef(
        allow=(
            "group:messaging",
            "sessions_list",
            "sessions_history",
            "sessions_send",
            "session_status",
        )
    ),
    "full": ProfileDef(allow=None),
}

GROUP_PREFIX = "group:"


def normalize_tool_name(name: str) -> str:
    """
    Normalize a policy entry to a canonical tool name.

    Args:
        name: Entry as configured.

    Returns:
        Lowercased name with harness aliases resolved.
    """
    lowered = name.strip().lower()
    return TOOL_NAME_ALIASES.get(lowered, lowered)


def expand_entries(entries: Iterable[str] | None) -> tuple[str, ...]:
    """
    Expand groups and aliases in a policy list.

    Unknown groups expand to nothing.

    Args:
        entries: Names, ``group:<name>`` shorthands or fnmatch patterns.

    Returns:
        Normalized entries, groups replaced by their members, deduplicated
        in first-seen order.
    """
    expanded: list[str] = []
    for entry in entries or ():
        normalized = normalize_tool_name(entry)
        if not normalized:
            continue
        if normalized.startswith(GROUP_PREFIX):
            members = TOOL_GROUPS.get(normalized[len(GROUP_PREFIX) :], ())
        else:
            members = (normalized,)
        for member in members:
            if member not in expanded:
                expanded.append(member)
    return tuple(expanded)


def matches_any(name: str, entries: Iterable[str]) -> bool:
    """
    Check a tool name against expanded entries (exact or fnmatch pattern).

    Args:
        name: Tool name.
        entries: Output of :func:`expand_entries`.

    Returns:
        True if any entry matches.
    """
    return any(name == entry or fnmatch.fnmatchcase(name, entry) for entry in entries)
