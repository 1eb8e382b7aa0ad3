"""
AI provider abstraction module.
Provides a unified capability interface over interchangeable providers.
"""
from expense_ai.ai.base import AIService
from expense_ai.ai.factory import create_service
from expense_ai.ai.registry import (
    get_available_models,
    get_available_providers,
    get_default_config,
)

__all__ = [
    "AIService",
    "create_service",
    "get_available_models",
    "get_available_providers",
    "get_default_config",
]
