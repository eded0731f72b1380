"""
Unit tests for provider compatibility profiles.
"""

import logging

from agent_tools.schema import STRICT, TOLERANT, schema_profile_for
from agent_tools.schema.compat import DEFAULT_SCHEMA_PROFILE


class TestSchemaProfileFor:
    """Tests for provider -> profile resolution."""

    def test_default_is_strict_for_every_provider(self):
        """Test unknown and known providers default to STRICT."""
        for provider in ("openai", "anthropic", "google", "local", None):
            assert schema_profile_for(provider) is DEFAULT_SCHEMA_PROFILE
        assert DEFAULT_SCHEMA_PROFILE is STRICT

    def test_override_relaxes_provider(self):
        """Test configuration override maps a provider to TOLERANT."""
        assert schema_profile_for("openai", {"openai": "tolerant"}) is TOLERANT
        assert schema_profile_for("google", {"openai": "tolerant"}) is STRICT

    def test_override_is_case_insensitive(self):
        """Test provider keys and profile names ignore case."""
        assert schema_profile_for("OpenAI", {"openai": "Tolerant"}) is TOLERANT

    def test_wildcard_override(self):
        """Test '*' applies to providers without their own entry."""
        overrides = {"*": "tolerant", "google": "strict"}
        assert schema_profile_for("anthropic", overrides) is TOLERANT
        assert schema_profile_for("google", overrides) is STRICT

    def test_unknown_profile_name_falls_back(self, caplog):
        """Test unknown profile names log a warning and use the default."""
        with caplog.at_level(logging.WARNING):
            profile = schema_profile_for("openai", {"openai": "lenient"})

        assert profile is STRICT
        assert "Unknown schema profile 'lenient'" in caplog.text

    def test_strict_block_list(self):
        """Test STRICT covers structural and validation keywords."""
        for keyword in ("additionalProperties", "$schema", "examples", "minLength", "format"):
            assert keyword in STRICT.strip_keywords
        assert not TOLERANT.strip_keywords
