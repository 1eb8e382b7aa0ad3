"""
Custom exceptions for the AI configuration subsystem.

Exception Hierarchy:
    ExpenseAIError (base)
    ├── ConfigLoadError      remote load failed; recovered with cache/defaults
    ├── ConfigSaveError      remote save failed; the local write is sufficient
    └── CapabilityCallError  provider call failed; reported to that caller only

None of these is fatal. The store absorbs load/save errors and services turn
capability errors into error results, so they mostly travel inside the
package rather than out of it.
"""
from typing import Any, Dict, Optional


class ExpenseAIError(Exception):
    """
    Base exception for all expense-ai errors.

    Attributes:
        message: Human-readable error message
        details: Additional error details (optional)
        error_code: Machine-readable error code
    """

    default_message: str = "An error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary suitable for logs or API payloads."""
        result = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ConfigLoadError(ExpenseAIError):
    """Remote configuration could not be read."""

    default_message = "Failed to load AI configuration"


class ConfigSaveError(ExpenseAIError):
    """Remote configuration could not be written."""

    default_message = "Failed to save AI configuration"


class CapabilityCallError(ExpenseAIError):
    """
    A provider call failed.

    Attributes:
        status_code: HTTP status returned by the provider, if any
    """

    default_message = "An error occurred while processing your request."

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, details=details)
