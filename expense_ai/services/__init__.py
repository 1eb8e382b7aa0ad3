"""
Business logic services.
"""
from expense_ai.services.config_store import ConfigStore, SaveOutcome
from expense_ai.services.config_coordinator import (
    ConfigCoordinator,
    CoordinatorPhase,
    CoordinatorSnapshot,
    Notice,
)
from expense_ai.services.report_service import ReportService
from expense_ai.services.receipt_service import ReceiptService

__all__ = [
    "ConfigStore",
    "SaveOutcome",
    "ConfigCoordinator",
    "CoordinatorPhase",
    "CoordinatorSnapshot",
    "Notice",
    "ReportService",
    "ReceiptService",
]
