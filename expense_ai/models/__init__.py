"""
Database models package.
"""
from expense_ai.models.base import Base
from expense_ai.models.ai_config import AIConfig

__all__ = [
    "Base",
    "AIConfig",
]
