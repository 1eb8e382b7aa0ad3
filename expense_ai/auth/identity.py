"""
Identity supplier contract.

The config subsystem only needs "current user id or none" to scope the remote
record. While it returns None, remote loads and saves are deferred and the
local cache is authoritative.
"""
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class IdentitySupplier(Protocol):
    def current_user_id(self) -> Optional[str]:
        ...


class StaticIdentity:
    """In-process identity, signed in and out explicitly."""

    def __init__(self, user_id: Optional[str] = None):
        self._user_id = user_id

    def current_user_id(self) -> Optional[str]:
        return self._user_id

    def sign_in(self, user_id: str) -> None:
        self._user_id = user_id

    def sign_out(self) -> None:
        self._user_id = None
