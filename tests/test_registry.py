"""
Tests for the static provider catalogue.
"""
import pytest
from pydantic import ValidationError

from expense_ai.ai.registry import (
    get_available_models,
    get_available_providers,
    get_default_config,
    get_provider_spec,
    parse_provider,
)
from expense_ai.schemas.ai import ProviderId


class TestDefaultConfig:
    """Tests for get_default_config."""

    @pytest.mark.parametrize("provider", list(ProviderId))
    def test_default_config_is_stable(self, provider):
        """Two calls return equal values."""
        assert get_default_config(provider) == get_default_config(provider)

    @pytest.mark.parametrize("provider", list(ProviderId))
    def test_default_config_has_empty_api_key(self, provider):
        assert get_default_config(provider).api_key == ""

    def test_default_config_cannot_be_mutated(self):
        """Returned configs are frozen, so callers can't corrupt the defaults."""
        config = get_default_config(ProviderId.GEMINI)
        with pytest.raises(ValidationError):
            config.api_key = "leaked"
        assert get_default_config(ProviderId.GEMINI).api_key == ""

    def test_provider_specific_defaults(self):
        langchain = get_default_config(ProviderId.GEMINI_LANGCHAIN)
        assert langchain.model_name == "gemini-1.5-flash-002"
        assert langchain.max_tokens == 2048

        gemini = get_default_config(ProviderId.GEMINI)
        assert gemini.model_name == "gemini-2.0-flash"
        assert gemini.temperature == 0.2
        assert gemini.max_tokens == 1024

    @pytest.mark.parametrize("provider", list(ProviderId))
    def test_default_model_is_selectable(self, provider):
        assert get_default_config(provider).model_name in get_available_models(provider)


class TestCatalogue:
    """Tests for provider and model listing."""

    def test_available_providers_order(self):
        assert get_available_providers() == (
            ProviderId.GEMINI_LANGCHAIN,
            ProviderId.GEMINI,
            ProviderId.OPENAI,
            ProviderId.ANTHROPIC,
        )

    def test_available_providers_is_deterministic(self):
        assert get_available_providers() == get_available_providers()

    def test_model_lists_differ_between_providers(self):
        assert len(get_available_models(ProviderId.GEMINI)) == 4
        assert len(get_available_models(ProviderId.GEMINI_LANGCHAIN)) == 3
        assert get_available_models(ProviderId.GEMINI) != get_available_models(ProviderId.OPENAI)

    def test_accepts_plain_string_values(self):
        assert get_available_models("gemini") == get_available_models(ProviderId.GEMINI)

    def test_gemini_variants_share_endpoint(self):
        assert get_provider_spec(ProviderId.GEMINI).base_url == get_provider_spec(ProviderId.GEMINI_LANGCHAIN).base_url
        assert get_provider_spec(ProviderId.OPENAI).base_url is None


class TestParseProvider:
    """Tests for converting stored provider strings."""

    def test_known_value(self):
        assert parse_provider("anthropic") is ProviderId.ANTHROPIC

    @pytest.mark.parametrize("value", [None, "", "mistral", "GEMINI"])
    def test_unknown_values_return_none(self, value):
        assert parse_provider(value) is None
