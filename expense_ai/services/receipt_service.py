"""
Receipt data extraction on top of the configured AI provider.
"""
import logging
from typing import Optional

from expense_ai.ai.base import ImageInput
from expense_ai.schemas.ai import ReceiptData, ServiceResult
from expense_ai.services.config_coordinator import ConfigCoordinator
from expense_ai.utils.metrics import ai_unconfigured_calls_total

logger = logging.getLogger(__name__)


class ReceiptService:
    """Extracts structured receipt data from scanned images."""

    def __init__(self, coordinator: ConfigCoordinator):
        self.coordinator = coordinator

    async def extract_receipt(
        self,
        image: ImageInput,
        prompt: Optional[str] = None,
    ) -> ServiceResult[ReceiptData]:
        """
        Extract receipt data with the currently bound provider.

        A failed extraction is returned to this caller only; the stored
        configuration is left untouched.
        """
        service = self.coordinator.service
        if service is None:
            ai_unconfigured_calls_total.labels(operation="extract_structured").inc()
            logger.info("Receipt extraction requested without a configured AI provider")
            return ServiceResult[ReceiptData].unconfigured()

        result = await service.extract_structured(image, prompt=prompt)
        if not result.ok:
            logger.warning(f"Receipt extraction failed: {result.error}")
        return result
