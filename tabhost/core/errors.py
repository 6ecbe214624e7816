"""Error taxonomy mapped onto HTTP status codes."""
from __future__ import annotations

from typing import Any


class TabHostError(Exception):
    """Base error carrying the HTTP status it should be reported with."""

    status_code: int = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


class ClientError(TabHostError):
    """Missing or invalid parameter, unknown macro, unknown ref."""

    status_code = 400


class NotFound(TabHostError):
    """Unknown tab, group or session."""

    status_code = 404


class DriverError(TabHostError):
    """Browser driver could not complete the operation."""

    status_code = 500
