"""
Pydantic schemas for AI provider configuration and capability results.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProviderId(str, Enum):
    """Selectable AI backends. Values are persisted, do not rename."""
    GEMINI_LANGCHAIN = "gemini-langchain"
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ModelConfig(BaseModel):
    """Credential plus generation parameters, always handled as one unit."""
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    api_key: str = Field("", repr=False)
    model_name: str
    temperature: float = 0.2
    max_tokens: int = 1024


class CachedConfigEntry(BaseModel):
    """
    Full merged config as written to the local cache and submitted to the
    remote store. Serialized with camelCase keys ({provider, apiKey, modelName}).
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )

    provider: ProviderId
    api_key: str = Field("", repr=False)
    model_name: str


class AIConfigRecord(BaseModel):
    """Schema for the remote ai_config row."""
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: str
    user_id: str
    provider: str
    api_key: str = Field(repr=False)
    model_name: str
    created_at: datetime
    updated_at: datetime


class ReceiptItem(BaseModel):
    """Single line item extracted from a receipt."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    price: float
    quantity: Optional[float] = None
    category: Optional[str] = None


class ReceiptData(BaseModel):
    """Structured receipt data extracted from an image."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    merchant: str
    date: str
    total: float
    items: List[ReceiptItem] = Field(default_factory=list)
    tax_amount: Optional[float] = None
    tip_amount: Optional[float] = None
    payment_method: Optional[str] = None
    category: Optional[str] = None


class ResultStatus(str, Enum):
    OK = "ok"
    ERROR = "error"
    UNCONFIGURED = "unconfigured"


T = TypeVar("T")


class ServiceResult(BaseModel, Generic[T]):
    """
    Outcome of one capability call.

    ``unconfigured`` is not an error: it means no provider credential is set
    and no request was made.
    """
    status: ResultStatus
    data: Optional[T] = None
    error: Optional[str] = None
    raw: Optional[Any] = Field(None, repr=False)

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.OK

    @classmethod
    def success(cls, data: T, raw: Any = None) -> "ServiceResult[T]":
        return cls(status=ResultStatus.OK, data=data, raw=raw)

    @classmethod
    def failure(cls, error: str, raw: Any = None) -> "ServiceResult[T]":
        return cls(status=ResultStatus.ERROR, error=error, raw=raw)

    @classmethod
    def unconfigured(cls) -> "ServiceResult[T]":
        return cls(
            status=ResultStatus.UNCONFIGURED,
            error="AI provider is not configured. Add an API key in settings.",
        )
