"""
Client-local storage.
"""
from expense_ai.storage.local_cache import LocalConfigCache, AI_CONFIG_KEY

__all__ = ["LocalConfigCache", "AI_CONFIG_KEY"]
