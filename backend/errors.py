"""Error taxonomy shared by the service layer.

Services raise these internally. Every mutation and generation operation
converts them into an ``ActionResult`` at its boundary, so callers never see
them as exceptions.
"""

from __future__ import annotations

from typing import Literal

UpstreamKind = Literal["credential", "rate_limit", "empty", "generic"]


class FlashdeckError(Exception):
    """Base class for expected, user-facing failures."""

    code = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class Unauthorized(FlashdeckError):
    code = "unauthorized"
    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class ValidationError(FlashdeckError):
    """A field constraint was violated. ``field`` names the first failing field."""

    code = "validation_error"
    status_code = 422

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class NotFound(FlashdeckError):
    """Record is absent or not owned by the caller (indistinguishable on purpose)."""

    code = "not_found"
    status_code = 404


class LimitReached(FlashdeckError):
    code = "limit_reached"
    status_code = 403


class UpgradeRequired(FlashdeckError):
    code = "upgrade_required"
    status_code = 402


class UpstreamError(FlashdeckError):
    """The generation service failed."""

    code = "upstream_error"
    status_code = 502

    def __init__(self, message: str, kind: UpstreamKind = "generic") -> None:
        self.kind = kind
        super().__init__(message)
        if kind == "rate_limit":
            self.status_code = 429
