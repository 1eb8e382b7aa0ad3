"""
Pydantic schemas shared across the AI configuration subsystem.
"""
from expense_ai.schemas.ai import (
    ProviderId,
    ModelConfig,
    CachedConfigEntry,
    AIConfigRecord,
    ReceiptItem,
    ReceiptData,
    ResultStatus,
    ServiceResult,
)

__all__ = [
    "ProviderId",
    "ModelConfig",
    "CachedConfigEntry",
    "AIConfigRecord",
    "ReceiptItem",
    "ReceiptData",
    "ResultStatus",
    "ServiceResult",
]
