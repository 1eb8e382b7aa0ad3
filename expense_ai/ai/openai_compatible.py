"""
OpenAI-compatible capability service.
Uses the OpenAI SDK for chat completions against any provider exposing an
OpenAI-compatible endpoint (OpenAI, Gemini, Anthropic).
"""
import base64
import functools
import json
import logging
import re
import time
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from expense_ai.ai.base import AIService, ImageInput
from expense_ai.ai.registry import get_available_models, get_provider_spec
from expense_ai.config import settings
from expense_ai.exceptions import CapabilityCallError
from expense_ai.schemas.ai import ModelConfig, ProviderId, ReceiptData, ReceiptItem, ServiceResult
from expense_ai.utils.logging import log_provider_failure, log_provider_request
from expense_ai.utils.metrics import (
    ai_provider_failures_total,
    ai_provider_latency_seconds,
    ai_provider_requests_total,
    ai_provider_tokens_total,
)

logger = logging.getLogger(__name__)

DEFAULT_RECEIPT_PROMPT = (
    "Extract information from this receipt. Respond with JSON only, using the keys "
    "merchant, date (YYYY-MM-DD), total, items (name, price, quantity, category), "
    "taxAmount, tipAmount, paymentMethod and category."
)

_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


@functools.lru_cache(maxsize=16)
def _shared_client(base_url: Optional[str], api_key: str) -> AsyncOpenAI:
    """One SDK client, and so one connection pool, per endpoint and credential."""
    return AsyncOpenAI(
        api_key=api_key,
        base_url=base_url,
        timeout=settings.request_timeout_seconds,
    )


def _error_message(exc: Exception) -> Tuple[str, Optional[int]]:
    """Map an SDK exception to a user-facing message and HTTP status."""
    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        if status == 400:
            message = "Invalid request format. Please check your inputs."
        elif status == 401:
            message = "Authentication error. Please check your API key."
        elif status == 403:
            message = "Access forbidden. Your API key may not have permission for this operation."
        elif status == 404:
            message = "Resource not found. The requested model or endpoint may be incorrect."
        elif status == 429:
            message = "Rate limit exceeded. Please try again later."
        elif status >= 500:
            message = "Server error. The AI service may be experiencing issues."
        else:
            message = "An error occurred while processing your request."

        body = exc.body
        if isinstance(body, dict):
            detail = body.get("error", body)
            if isinstance(detail, dict):
                detail = detail.get("message") or json.dumps(detail)
            message += f" Details: {detail}"
        return message, status

    if isinstance(exc, openai.APIConnectionError):
        return "No response received from the AI service. Please check your internet connection.", None

    return str(exc) or "An error occurred while processing your request.", None


def _image_url(image: ImageInput) -> str:
    """Build a data URL from raw bytes, base64 text, or pass a data URL through."""
    if isinstance(image, (bytes, bytearray)):
        encoded = base64.b64encode(bytes(image)).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"
    if image.startswith("data:image"):
        return image
    return f"data:image/jpeg;base64,{image}"


def _extract_json(text: str) -> Any:
    """Parse JSON from a model reply, tolerating markdown code fences."""
    match = _CODE_FENCE.search(text)
    payload = match.group(1) if match else text
    return json.loads(payload.strip())


def _to_receipt(parsed: Any) -> ReceiptData:
    """
    Normalize the shapes models actually return into ReceiptData.

    - a full object with ``items``
    - a bare list of line items ({description, amount, date, category})
    - a single line item object
    """
    today = date.today().isoformat()

    if isinstance(parsed, list):
        items = [
            ReceiptItem(
                name=entry.get("description") or entry.get("name") or "Unknown Item",
                price=abs(float(entry.get("amount", entry.get("price", 0)) or 0)),
                quantity=1,
                category=entry.get("category") or "General Merchandise",
            )
            for entry in parsed
            if isinstance(entry, dict)
        ]
        first = parsed[0] if parsed and isinstance(parsed[0], dict) else {}
        return ReceiptData(
            merchant="Receipt Scan",
            date=first.get("date") or today,
            total=sum(item.price for item in items),
            items=items,
            category="General Merchandise",
        )

    if not isinstance(parsed, dict):
        raise ValueError("Unexpected receipt payload")

    if "items" in parsed:
        return ReceiptData.model_validate(parsed)

    amount = abs(float(parsed.get("amount") or 0))
    category = parsed.get("category") or "General Merchandise"
    return ReceiptData(
        merchant=parsed.get("merchant") or "Receipt Scan",
        date=parsed.get("date") or today,
        total=amount,
        items=[
            ReceiptItem(
                name=parsed.get("description") or "Unknown Item",
                price=amount,
                quantity=1,
                category=category,
            )
        ],
        category=category,
    )


class OpenAICompatibleService(AIService):
    """
    Capability service for one provider reached through the OpenAI SDK.

    The client is built at construction time; no request is made until a
    capability method is awaited.
    """

    def __init__(self, provider: ProviderId, config: ModelConfig):
        super().__init__(provider, config)
        self.spec = get_provider_spec(self.provider)
        # Rebinding on a model or parameter change reuses the existing client
        self.client = _shared_client(self.spec.base_url, config.api_key)

    def get_available_models(self) -> List[str]:
        return list(get_available_models(self.provider))

    async def _complete(self, operation: str, messages: List[Dict[str, Any]]):
        """
        Run one chat completion with metrics and structured logging.

        Returns:
            (text, response) tuple

        Raises:
            CapabilityCallError: If the provider call fails or returns no text
        """
        provider_name = self.provider.value
        start_time = time.time()
        ai_provider_requests_total.labels(provider=provider_name, operation=operation).inc()

        try:
            response = await self.client.chat.completions.create(
                model=self.config.model_name,
                messages=messages,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )
            text = response.choices[0].message.content if response.choices else None
            if not text:
                raise CapabilityCallError("No text found in the AI service response")
        except Exception as e:
            duration = time.time() - start_time
            ai_provider_failures_total.labels(provider=provider_name, operation=operation).inc()
            ai_provider_latency_seconds.labels(provider=provider_name, operation=operation).observe(duration)

            if isinstance(e, CapabilityCallError):
                error = e
            else:
                message, status = _error_message(e)
                error = CapabilityCallError(message, details=str(e), status_code=status)

            log_provider_failure(
                logger,
                provider=provider_name,
                operation=operation,
                error=error.message,
                error_code=error.error_code,
                status_code=error.status_code,
                duration_ms=duration * 1000,
            )
            raise error from e

        duration = time.time() - start_time
        ai_provider_latency_seconds.labels(provider=provider_name, operation=operation).observe(duration)

        usage = getattr(response, "usage", None)
        if usage is not None:
            if getattr(usage, "prompt_tokens", None):
                ai_provider_tokens_total.labels(
                    provider=provider_name, operation=operation, token_type="prompt"
                ).inc(usage.prompt_tokens)
            if getattr(usage, "completion_tokens", None):
                ai_provider_tokens_total.labels(
                    provider=provider_name, operation=operation, token_type="completion"
                ).inc(usage.completion_tokens)

        log_provider_request(
            logger,
            provider=provider_name,
            operation=operation,
            duration_ms=duration * 1000,
            model=self.config.model_name,
        )
        return text, response

    async def generate(self, prompt: str) -> ServiceResult[str]:
        try:
            text, response = await self._complete(
                "generate",
                [{"role": "user", "content": prompt}],
            )
        except CapabilityCallError as e:
            return ServiceResult[str].failure(e.message)
        return ServiceResult[str].success(text, raw=response)

    async def extract_structured(
        self,
        image: ImageInput,
        prompt: str = None,
    ) -> ServiceResult[ReceiptData]:
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt or DEFAULT_RECEIPT_PROMPT},
                    {"type": "image_url", "image_url": {"url": _image_url(image)}},
                ],
            }
        ]

        try:
            text, response = await self._complete("extract_structured", messages)
        except CapabilityCallError as e:
            return ServiceResult[ReceiptData].failure(e.message)

        try:
            receipt = _to_receipt(_extract_json(text))
        except (ValueError, TypeError, ValidationError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Could not parse receipt JSON from {self.provider.value}: {e}")
            return ServiceResult[ReceiptData].failure(
                "Failed to parse the receipt data. The model response was not valid JSON.",
                raw=text,
            )

        return ServiceResult[ReceiptData].success(receipt, raw=response)
