"""
Structured JSON logging for the AI configuration subsystem.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- user_id
- provider
- duration_ms

API keys are never logged. Event helpers only record whether a key is present.

Usage:
    from expense_ai.utils.logging import configure_logging, log_config_loaded

    configure_logging('expense-ai', 'INFO')
    log_config_loaded(logger, source='local', provider='gemini', has_api_key=True)
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _service_name = None
    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.

        Args:
            service_name: Service identifier (e.g. expense-ai)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True

        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    user_id: Optional[str] = None,
    provider: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        user_id: Optional user ID
        provider: Optional provider identifier
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if user_id:
        extra["user_id"] = user_id
    if provider:
        extra["provider"] = provider
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Config event functions

def log_config_loaded(
    logger: logging.Logger,
    source: str,
    provider: str,
    has_api_key: bool,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log adoption of a stored configuration.

    Args:
        logger: Logger instance
        source: Where the config came from ("local" or "remote")
        provider: Provider identifier
        has_api_key: Whether the config carries a credential
        user_id: Optional user ID (remote loads)
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="config_loaded",
        user_id=user_id,
        provider=provider,
        duration_ms=duration_ms,
        source=source,
        has_api_key=has_api_key,
        **kwargs
    )

    logger.info(f"AI config loaded from {source}: {provider}", extra=extra)


def log_config_saved(
    logger: logging.Logger,
    target: str,
    provider: str,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a successful config write to the local cache or remote store."""
    extra = _build_log_extra(
        event="config_saved",
        user_id=user_id,
        provider=provider,
        duration_ms=duration_ms,
        target=target,
        **kwargs
    )

    logger.info(f"AI config saved to {target}: {provider}", extra=extra)


def log_config_save_failed(
    logger: logging.Logger,
    target: str,
    error: str,
    provider: Optional[str] = None,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a failed config write.

    Remote failures are expected (offline, expired session) and are logged as
    warnings because the local cache already holds the mutation.
    """
    extra = _build_log_extra(
        event="config_save_failed",
        user_id=user_id,
        provider=provider,
        duration_ms=duration_ms,
        target=target,
        error=str(error),
        **kwargs
    )

    logger.warning(f"AI config save to {target} failed - {error}", extra=extra)


# Provider event functions

def log_provider_request(
    logger: logging.Logger,
    provider: str,
    operation: str,
    duration_ms: Optional[float] = None,
    model: Optional[str] = None,
    **kwargs
):
    """
    Log AI provider request event.

    Args:
        logger: Logger instance
        provider: Provider identifier (required)
        operation: Operation name (generate, extract_structured) (required)
        duration_ms: Optional duration in milliseconds
        model: Optional model name
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="provider_request",
        provider=provider,
        duration_ms=duration_ms,
        operation=operation,
        **kwargs
    )
    if model:
        extra["model"] = model

    logger.info(f"Provider request: {provider}.{operation}", extra=extra)


def log_provider_failure(
    logger: logging.Logger,
    provider: str,
    operation: str,
    error: str,
    duration_ms: Optional[float] = None,
    include_traceback: bool = False,
    **kwargs
):
    """
    Log AI provider failure event.

    Args:
        logger: Logger instance
        provider: Provider identifier (required)
        operation: Operation name (required)
        error: Error message (required)
        duration_ms: Optional duration in milliseconds
        include_traceback: Whether to include stack trace (default: False for provider failures)
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="provider_failure",
        provider=provider,
        duration_ms=duration_ms,
        operation=operation,
        error=str(error),
        **kwargs
    )

    message = f"Provider failure: {provider}.{operation} - {error}"

    if include_traceback:
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            logger.error(message, extra=extra, exc_info=exc_info)
        else:
            logger.error(message, extra=extra)
    else:
        logger.error(message, extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
