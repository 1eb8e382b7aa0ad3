"""
Repository layer for database operations.
"""
from expense_ai.repositories.ai_config_repository import AIConfigRepository

__all__ = ["AIConfigRepository"]
