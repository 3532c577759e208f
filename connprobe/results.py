"""Uniform outcome of a single probe invocation."""

from __future__ import annotations

from dataclasses import dataclass

UNKNOWN_ERROR = "Unknown error"


@dataclass(frozen=True)
class ConnectionTestResult:
    """Success flag plus an optional, fully formatted failure message.

    ``error_message`` is only ever set on failures.
    """

    success: bool
    error_message: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.error_message:
            raise ValueError("successful results cannot carry an error message")
        if self.success and self.error_message is not None:
            # normalise "" to None so equality stays value based
            object.__setattr__(self, "error_message", None)

    @classmethod
    def ok(cls) -> "ConnectionTestResult":
        return cls(True, None)

    @classmethod
    def fail(cls, message: str | None) -> "ConnectionTestResult":
        return cls(False, message)

    @property
    def display_message(self) -> str | None:
        """Text a shell should show for this result, ``None`` on success."""
        if self.success:
            return None
        return self.error_message or UNKNOWN_ERROR


__all__ = ["ConnectionTestResult", "UNKNOWN_ERROR"]
