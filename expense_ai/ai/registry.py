"""
Static catalogue of AI providers.

Every provider is reached through an OpenAI-compatible chat completions
endpoint, so a catalogue entry only needs a base URL, default generation
parameters and the list of selectable models.
"""
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from expense_ai.schemas.ai import ModelConfig, ProviderId

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
ANTHROPIC_OPENAI_BASE_URL = "https://api.anthropic.com/v1/"


@dataclass(frozen=True)
class ProviderSpec:
    """Catalogue entry for one provider."""
    id: ProviderId
    label: str
    base_url: Optional[str]  # None means the OpenAI SDK default
    default_model: str
    models: Tuple[str, ...]
    temperature: float = 0.2
    max_tokens: int = 1024


_PROVIDERS: Dict[ProviderId, ProviderSpec] = {
    ProviderId.GEMINI_LANGCHAIN: ProviderSpec(
        id=ProviderId.GEMINI_LANGCHAIN,
        label="Gemini (vision tuned)",
        base_url=GEMINI_OPENAI_BASE_URL,
        default_model="gemini-1.5-flash-002",
        models=(
            "gemini-1.5-flash-002",
            "gemini-1.5-pro-002",
            "gemini-1.0-pro-vision",
        ),
        max_tokens=2048,
    ),
    ProviderId.GEMINI: ProviderSpec(
        id=ProviderId.GEMINI,
        label="Gemini",
        base_url=GEMINI_OPENAI_BASE_URL,
        default_model="gemini-2.0-flash",
        models=(
            "gemini-2.0-flash",
            "gemini-2.0-pro",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
        ),
    ),
    ProviderId.OPENAI: ProviderSpec(
        id=ProviderId.OPENAI,
        label="OpenAI",
        base_url=None,
        default_model="gpt-4o-mini",
        models=(
            "gpt-4o-mini",
            "gpt-4o",
        ),
    ),
    ProviderId.ANTHROPIC: ProviderSpec(
        id=ProviderId.ANTHROPIC,
        label="Anthropic",
        base_url=ANTHROPIC_OPENAI_BASE_URL,
        default_model="claude-3-opus-20240229",
        models=(
            "claude-3-opus-20240229",
            "claude-3-5-sonnet-20240620",
            "claude-3-haiku-20240307",
        ),
    ),
}

# Display order
_ORDER: Tuple[ProviderId, ...] = (
    ProviderId.GEMINI_LANGCHAIN,
    ProviderId.GEMINI,
    ProviderId.OPENAI,
    ProviderId.ANTHROPIC,
)


def get_provider_spec(provider: ProviderId) -> ProviderSpec:
    return _PROVIDERS[ProviderId(provider)]


def get_default_config(provider: ProviderId) -> ModelConfig:
    """
    Default model parameters for a provider, with an empty API key.

    ModelConfig is frozen, so callers can't mutate the returned value.
    """
    spec = get_provider_spec(provider)
    return ModelConfig(
        api_key="",
        model_name=spec.default_model,
        temperature=spec.temperature,
        max_tokens=spec.max_tokens,
    )


def get_available_providers() -> Tuple[ProviderId, ...]:
    return _ORDER


def get_available_models(provider: ProviderId) -> Tuple[str, ...]:
    return get_provider_spec(provider).models


def parse_provider(value: Optional[str]) -> Optional[ProviderId]:
    """
    Convert a stored provider string back to a ProviderId.

    Returns None for unknown or missing values; stored data is not trusted.
    """
    if not value:
        return None
    try:
        return ProviderId(value)
    except ValueError:
        return None
