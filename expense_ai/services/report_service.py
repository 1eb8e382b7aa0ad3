"""
Report generation on top of the configured AI provider.
"""
import logging

from expense_ai.schemas.ai import ServiceResult
from expense_ai.services.config_coordinator import ConfigCoordinator
from expense_ai.utils.metrics import ai_unconfigured_calls_total

logger = logging.getLogger(__name__)


class ReportService:
    """Generates AI-written spending reports from a rendered prompt."""

    def __init__(self, coordinator: ConfigCoordinator):
        self.coordinator = coordinator

    async def generate_report(self, prompt: str) -> ServiceResult[str]:
        """
        Generate a report with whichever provider is currently bound.

        Returns:
            ServiceResult; status is ``unconfigured`` (no request made) when no
            API key is set, ``error`` when the provider call failed
        """
        service = self.coordinator.service
        if service is None:
            ai_unconfigured_calls_total.labels(operation="generate").inc()
            logger.info("Report generation requested without a configured AI provider")
            return ServiceResult[str].unconfigured()

        return await service.generate(prompt)
