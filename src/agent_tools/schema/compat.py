"""
Provider compatibility profiles for tool parameter schemas.

Which provider needs which profile is policy data, not logic: the built-in
mapping sends every provider to ``strict`` so the default catalog is
keyword-clean everywhere, and configuration (``tools.schemaCompat``) can
relax individual providers to ``tolerant``.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

logger = logging.getLogger(__name__)

STRUCTURAL_KEYWORDS = (
    "patternProperties",
    "additionalProperties",
    "$schema",
    "$id",
    "definitions",
    "examples",
)

VALIDATION_KEYWORDS = (
    "minLength",
    "maxLength",
    "minimum",
    "maximum",
    "multipleOf",
    "pattern",
    "format",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
)


@dataclass(frozen=True)
class CompatibilityProfile:
    """
    Named schema compatibility class.

    Attributes:
        name: Profile name used in configuration.
        strip_keywords: Keywords removed from every schema node.
    """

    name: str
    strip_keywords: frozenset[str] = frozenset()


TOLERANT = CompatibilityProfile(name="tolerant")
STRICT = CompatibilityProfile(
    name="strict",
    strip_keywords=frozenset(STRUCTURAL_KEYWORDS + VALIDATION_KEYWORDS),
)

COMPATIBILITY_PROFILES: dict[str, CompatibilityProfile] = {
    TOLERANT.name: TOLERANT,
    STRICT.name: STRICT,
}

# Providers known to reject the block-listed vocabulary. Anything not listed
# falls back to DEFAULT_SCHEMA_PROFILE.
DEFAULT_SCHEMA_PROFILES: dict[str, CompatibilityProfile] = {
    "google": STRICT,
    "google-gemini-cli": STRICT,
    "google-antigravity": STRICT,
    "google-vertex": STRICT,
}
DEFAULT_SCHEMA_PROFILE = STRICT


def schema_profile_for(
    provider: str | None,
    overrides: Mapping[str, str] | None = None,
) -> CompatibilityProfile:
    """
    Resolve the compatibility profile for a provider.

    Args:
        provider: Provider id (case-insensitive), or None when unknown.
        overrides: Configured provider -> profile-name mapping.

    Returns:
        Compatibility profile to clean schemas with.
    """
    key = (provider or "").strip().lower()
    if overrides:
        normalized = {k.strip().lower(): v for k, v in overrides.items()}
        name = normalized.get(key) or normalized.get("*")
        if name:
            profile = COMPATIBILITY_PROFILES.get(name.strip().lower())
            if profile is not None:
                return profile
            logger.warning(
                f"⚠️ Unknown schema profile '{name}' for provider '{key or '*'}', "
                f"using '{DEFAULT_SCHEMA_PROFILE.name}'"
            )
    return DEFAULT_SCHEMA_PROFILES.get(key, DEFAULT_SCHEMA_PROFILE)
