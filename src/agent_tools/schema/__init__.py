"""Schema compatibility normalizer for tool parameter schemas."""

from .cleaner import clean_schema
from .compat import (
    COMPATIBILITY_PROFILES,
    STRICT,
    TOLERANT,
    CompatibilityProfile,
    schema_profile_for,
)

__all__ = [
    "clean_schema",
    "COMPATIBILITY_PROFILES",
    "CompatibilityProfile",
    "STRICT",
    "TOLERANT",
    "schema_profile_for",
]
