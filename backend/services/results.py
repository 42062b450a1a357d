"""Structured result values returned across the service boundary."""

import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, ParamSpec

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.errors import FlashdeckError, LimitReached, UpgradeRequired

logger = logging.getLogger(__name__)

P = ParamSpec("P")


@dataclass
class ActionResult:
    """Outcome of a mutation: ``success`` plus either data or an error."""

    success: bool
    error: str | None = None
    code: str | None = None
    status_code: int = 200
    limit_reached: bool = False
    requires_upgrade: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **data: Any) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def from_error(cls, exc: FlashdeckError) -> "ActionResult":
        return cls(
            success=False,
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            limit_reached=isinstance(exc, LimitReached),
            requires_upgrade=isinstance(exc, UpgradeRequired),
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the wire shape: ``{success, ...data}`` or ``{success, error, ...flags}``."""
        if self.success:
            return {"success": True, **self.data}
        body: dict[str, Any] = {"success": False, "error": self.error, "code": self.code}
        if self.limit_reached:
            body["limit_reached"] = True
        if self.requires_upgrade:
            body["requires_upgrade"] = True
        return body


def service_action(
    failure_message: str,
) -> Callable[[Callable[P, Awaitable[ActionResult]]], Callable[P, Awaitable[ActionResult]]]:
    """Convert taxonomy errors and database failures into an ``ActionResult``.

    The wrapped coroutine must take the ``AsyncSession`` as its first argument
    so it can be rolled back after a database error.
    """

    def decorator(func: Callable[P, Awaitable[ActionResult]]) -> Callable[P, Awaitable[ActionResult]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> ActionResult:
            try:
                return await func(*args, **kwargs)
            except FlashdeckError as exc:
                logger.info("%s rejected: %s (%s)", func.__name__, exc.message, exc.code)
                return ActionResult.from_error(exc)
            except SQLAlchemyError:
                logger.exception("%s failed", func.__name__)
                db = args[0] if args else kwargs.get("db")
                if isinstance(db, AsyncSession):
                    await db.rollback()
                return ActionResult(
                    success=False,
                    error=failure_message,
                    code="internal_error",
                    status_code=500,
                )

        return wrapper

    return decorator
