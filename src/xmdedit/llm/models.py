# -----------------------------------------------------------------------------
# Model registry for the component-edit operation.
#
# Callers name models by logical alias ("component_edit", "fast", ...) and
# the registry pins each alias to a provider, a concrete model id, an endpoint
# and default sampling parameters. Swapping the model behind component edits
# is a one-line change here (or an XMDEDIT_EDIT_MODEL override).
#
# Pure data; importing this module has no side effects.
# -----------------------------------------------------------------------------
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Provider binding for one model alias.

    Parameters
    ----------
    name:
        Provider model id, e.g. ``"gpt-4o-mini"`` or ``"gemini-2.0-flash"``.
    provider:
        ``"openai"``, ``"deepseek"`` (both OpenAI-compatible) or ``"google"``.
    base_url:
        Default endpoint root; per-provider environment variables override it.
    max_tokens:
        Default completion budget. Component replies are one block of XMD
        wrapped in a small JSON object, so budgets stay small.
    temperature:
        Default sampling temperature. Edits want low values.
    json_output:
        Ask the provider for a JSON-only reply when it supports that.
    """

    name: str
    provider: str = "openai"
    base_url: str = "https://api.openai.com/v1"
    max_tokens: int = 1024
    temperature: float = 0.2
    json_output: bool = False


MODEL_REGISTRY: dict[str, ModelConfig] = {
    # Default model behind component edits: small, fast and JSON-capable.
    "component_edit": ModelConfig(
        name="gpt-4o-mini",
        provider="openai",
        base_url="https://api.openai.com/v1",
        max_tokens=1536,
        temperature=0.2,
        json_output=True,
    ),
    # Larger fallback for big grids and tables.
    "component_edit_large": ModelConfig(
        name="gpt-4o",
        provider="openai",
        base_url="https://api.openai.com/v1",
        max_tokens=4096,
        temperature=0.2,
        json_output=True,
    ),
    "component_edit_gemini": ModelConfig(
        name="gemini-2.0-flash",
        provider="google",
        base_url="https://generativelanguage.googleapis.com/v1beta",
        max_tokens=1536,
        temperature=0.2,
        json_output=True,
    ),
    "component_edit_deepseek": ModelConfig(
        name="deepseek-chat",
        provider="deepseek",
        base_url="https://api.deepseek.com/v1",
        max_tokens=1536,
        temperature=0.2,
        json_output=True,
    ),
    # Generic aliases for scripts and ad-hoc tooling.
    "fast": ModelConfig(name="gpt-4o-mini", max_tokens=1024, temperature=0.4),
    "balanced": ModelConfig(name="gpt-4o", max_tokens=2048, temperature=0.4),
}

#: Alias used when neither the caller nor the settings name a model.
DEFAULT_ALIAS: str = "component_edit"


def get_model(alias_or_name: str) -> ModelConfig:
    """Resolve an alias, or treat an unknown name as an OpenAI model id."""
    if alias_or_name in MODEL_REGISTRY:
        return MODEL_REGISTRY[alias_or_name]
    return ModelConfig(name=alias_or_name)


def all_models() -> Mapping[str, ModelConfig]:
    """Return a shallow copy of the registry (for diagnostics and tests)."""
    return dict(MODEL_REGISTRY)


__all__ = ["DEFAULT_ALIAS", "MODEL_REGISTRY", "ModelConfig", "all_models", "get_model"]
