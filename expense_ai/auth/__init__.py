"""
Identity suppliers scoping the remote config record.
"""
from expense_ai.auth.identity import IdentitySupplier, StaticIdentity

__all__ = ["IdentitySupplier", "StaticIdentity"]
