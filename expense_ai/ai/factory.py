"""
Capability service factory.
Maps a (provider, config) pair to a bound service, or to no service when the
config carries no credential.
"""
import logging
from typing import Optional

from expense_ai.ai.base import AIService
from expense_ai.ai.openai_compatible import OpenAICompatibleService
from expense_ai.schemas.ai import ModelConfig, ProviderId

logger = logging.getLogger(__name__)


def create_service(provider: ProviderId, config: ModelConfig) -> Optional[AIService]:
    """
    Factory function to get a capability service for a provider.

    Every provider in the registry is served by OpenAICompatibleService with
    the provider's base URL; the registry is the single source of model lists.

    Returns:
        AIService instance, or None if config.api_key is empty. A handle
        without a credential is never returned.
    """
    if not config.api_key:
        logger.debug(f"No API key for {ProviderId(provider).value}, service not created")
        return None

    service = OpenAICompatibleService(provider, config)
    logger.debug("Created AI service", extra={"event": "service_created", **service.describe()})
    return service
