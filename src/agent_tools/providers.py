"""
Provider Detection and Provider Capabilities.

Detects the LLM provider from a model identifier string and answers the
provider-specific questions the catalog builder asks (patch-style editing,
wire-level tool name remapping).
"""

from collections.abc import Sequence

# Providers whose models edit files through the apply_patch envelope.
PATCH_PROVIDERS = frozenset({"openai", "openai-codex", "azure-openai"})

# (provider, auth mode) pairs whose tool names are remapped on the wire
# downstream; the catalog must keep canonical names and no extra edit tools.
CANONICAL_NAME_AUTH_MODES = frozenset({("anthropic", "oauth")})


def detect_provider(model: str | None) -> str:
    """
    Detect LLM provider from model name.

    Args:
        model: Model identifier (e.g., "gpt-4o-mini", "anthropic/claude-opus-4-5").

    Returns:
        Provider name: "openai", "anthropic", "google", or "local".
    """
    if not model:
        return "local"
    lower = model.strip().lower()
    if "/" in lower:
        prefix = lower.split("/", 1)[0]
        if prefix:
            return prefix
    if lower.startswith(("gpt-", "o1", "o3", "o4", "codex-")):
        return "openai"
    if lower.startswith("claude-"):
        return "anthropic"
    if lower.startswith("gemini-"):
        return "google"
    return "local"


def normalize_provider(provider: str | None) -> str:
    """
    Normalize a provider id for comparisons.

    Args:
        provider: Provider id as configured.

    Returns:
        Lowercased, trimmed provider id ("" when missing).
    """
    return (provider or "").strip().lower()


def keeps_canonical_names(provider: str | None, auth_mode: str | None) -> bool:
    """
    Check whether tool names are remapped on the wire for this provider/auth.

    Args:
        provider: Provider id.
        auth_mode: Auth mode ("api-key", "oauth", ...).

    Returns:
        True if the catalog must stick to canonical tool names.
    """
    return (
        normalize_provider(provider),
        (auth_mode or "").strip().lower(),
    ) in CANONICAL_NAME_AUTH_MODES


def supports_apply_patch(provider: str | None, auth_mode: str | None = None) -> bool:
    """
    Check whether patch-style editing is idiomatic for a provider.

    Args:
        provider: Provider id.
        auth_mode: Auth mode of the session.

    Returns:
        True if apply_patch may be offered.
    """
    if keeps_canonical_names(provider, auth_mode):
        return False
    return normalize_provider(provider) in PATCH_PROVIDERS


def model_matches(
    model_id: str | None,
    provider: str | None,
    allow_models: Sequence[str],
) -> bool:
    """
    Match a model against an allow-list of bare or provider-qualified ids.

    Args:
        model_id: Model id of the session.
        provider: Provider id of the session.
        allow_models: Entries like "gpt-5.2" or "openai/gpt-5.2".

    Returns:
        True if the list is empty or an entry matches (case-insensitive).
    """
    if not allow_models:
        return True
    if not model_id:
        return False
    bare = model_id.strip().lower()
    qualified = f"{normalize_provider(provider)}/{bare}"
    allowed = {entry.strip().lower() for entry in allow_models}
    return bare in allowed or qualified in allowed
