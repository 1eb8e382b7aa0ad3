"""
Base class for AI capability services.
All providers must implement this interface to ensure compatibility.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Union

from expense_ai.schemas.ai import ModelConfig, ProviderId, ReceiptData, ServiceResult

ImageInput = Union[bytes, str]


class AIService(ABC):
    """
    Abstract base class for capability services.

    A service is bound to exactly one (provider, config) pair, so consumers
    can use whichever provider the user selected without knowing which one.

    All services must implement:
    - generate(): free-form text generation (reports)
    - extract_structured(): structured receipt data from an image
    - get_available_models(): selectable model names for the provider

    Capability methods return a ServiceResult rather than raising; a provider
    failure is an error result for that single call.
    """

    def __init__(self, provider: ProviderId, config: ModelConfig):
        self.provider = ProviderId(provider)
        self.config = config

    @abstractmethod
    async def generate(self, prompt: str) -> ServiceResult[str]:
        """
        Generate text for a prompt.

        Args:
            prompt: Fully rendered prompt

        Returns:
            ServiceResult with the generated text
        """
        pass

    @abstractmethod
    async def extract_structured(
        self,
        image: ImageInput,
        prompt: str = None,
    ) -> ServiceResult[ReceiptData]:
        """
        Extract structured receipt data from an image.

        Args:
            image: Raw image bytes, base64 string or data URL
            prompt: Optional instruction overriding the default

        Returns:
            ServiceResult with ReceiptData
        """
        pass

    @abstractmethod
    def get_available_models(self) -> List[str]:
        """Return the model names selectable for this provider."""
        pass

    def is_configured(self) -> bool:
        """Check if the service has a credential."""
        return bool(self.config.api_key)

    def describe(self) -> Dict[str, Any]:
        """Identity of the binding, safe to log (no API key)."""
        return {
            "provider": self.provider.value,
            "model": self.config.model_name,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    def __eq__(self, other):
        if not isinstance(other, AIService):
            return NotImplemented
        return type(self) is type(other) and self.provider == other.provider and self.config == other.config

    def __hash__(self):
        return hash((type(self), self.provider, self.config))
