"""
Tests for the report and receipt consumers.
"""
from typing import List

import pytest

from expense_ai.ai.base import AIService
from expense_ai.schemas.ai import ReceiptData, ResultStatus, ServiceResult
from expense_ai.services.receipt_service import ReceiptService
from expense_ai.services.report_service import ReportService


class RecordingService(AIService):
    """Capability service stub recording every call."""

    calls: List[str] = []
    fail = False

    async def generate(self, prompt):
        RecordingService.calls.append(f"generate:{prompt}")
        if RecordingService.fail:
            return ServiceResult[str].failure("Rate limit exceeded. Please try again later.")
        return ServiceResult[str].success(f"report via {self.provider.value}")

    async def extract_structured(self, image, prompt=None):
        RecordingService.calls.append("extract_structured")
        if RecordingService.fail:
            return ServiceResult[ReceiptData].failure("Authentication error. Please check your API key.")
        return ServiceResult[ReceiptData].success(
            ReceiptData(merchant="Shop", date="2024-01-01", total=3.0)
        )

    def get_available_models(self):
        return []


def recording_factory(provider, config):
    if not config.api_key:
        return None
    return RecordingService(provider, config)


@pytest.fixture(autouse=True)
def reset_recording():
    RecordingService.calls = []
    RecordingService.fail = False
    yield


@pytest.fixture
async def coordinator(coordinator_factory):
    coordinator = coordinator_factory(service_factory=recording_factory)
    coordinator.start()
    await coordinator.wait_idle()
    return coordinator


class TestUnconfigured:
    """Consumers short-circuit when no provider key is set."""

    @pytest.mark.asyncio
    async def test_report_unconfigured(self, coordinator):
        result = await ReportService(coordinator).generate_report("Summarize")

        assert result.status == ResultStatus.UNCONFIGURED
        assert result.data is None
        assert "not configured" in result.error
        assert RecordingService.calls == []

    @pytest.mark.asyncio
    async def test_receipt_unconfigured(self, coordinator):
        result = await ReceiptService(coordinator).extract_receipt(b"img")

        assert result.status == ResultStatus.UNCONFIGURED
        assert RecordingService.calls == []


class TestConfigured:
    """Consumers use whichever service is currently bound."""

    @pytest.mark.asyncio
    async def test_report_uses_current_provider(self, coordinator):
        reports = ReportService(coordinator)
        coordinator.set_api_key("k1")

        first = await reports.generate_report("Summarize")
        coordinator.set_provider("openai")
        second = await reports.generate_report("Summarize")

        assert first.data == "report via gemini-langchain"
        assert second.data == "report via openai"

    @pytest.mark.asyncio
    async def test_receipt_success(self, coordinator):
        coordinator.set_api_key("k1")

        result = await ReceiptService(coordinator).extract_receipt(b"img")

        assert result.ok
        assert result.data.merchant == "Shop"

    @pytest.mark.asyncio
    async def test_capability_error_leaves_config_untouched(self, coordinator, fake_store):
        coordinator.set_api_key("k1")
        await coordinator.wait_idle()
        config_before = coordinator.config
        writes_before = len(fake_store.remote_writes)
        RecordingService.fail = True

        report = await ReportService(coordinator).generate_report("Summarize")
        receipt = await ReceiptService(coordinator).extract_receipt(b"img")

        assert report.status == ResultStatus.ERROR
        assert receipt.status == ResultStatus.ERROR
        assert "check your API key" in receipt.error
        assert coordinator.config == config_before
        assert coordinator.is_configured
        assert len(fake_store.remote_writes) == writes_before
