"""Error kinds raised by ledger operations.

Every kind carries a stable ``code`` that the HTTP layer reports verbatim in
the structured failure body. Preconditions are checked before any write, so a
raised ``LedgerError`` always means the operation had no effect.
"""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    code = "LedgerError"
    status_code = 400

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"ok": False, "error": self.code, "detail": self.message}
        for key, value in self.context.items():
            if value is not None:
                payload[key] = value
        return payload


class Unauthorized(LedgerError):
    """Reserved: writes are confined to the caller's own key space."""

    code = "Unauthorized"
    status_code = 403


class NotFound(LedgerError):
    code = "NotFound"
    status_code = 404


class AlreadyExists(LedgerError):
    code = "AlreadyExists"
    status_code = 409


class InvalidInput(LedgerError):
    code = "InvalidInput"
    status_code = 422


class InvalidVisibility(LedgerError):
    code = "InvalidVisibility"
    status_code = 422


class InvalidProficiency(LedgerError):
    code = "InvalidProficiency"
    status_code = 422


__all__ = [
    "AlreadyExists",
    "InvalidInput",
    "InvalidProficiency",
    "InvalidVisibility",
    "LedgerError",
    "NotFound",
    "Unauthorized",
]
