"""Owns one study session's state and its auto-advance timer."""

from __future__ import annotations

import asyncio
import logging

from backend.study.session import (
    Answer,
    Next,
    Previous,
    Reset,
    StudyEvent,
    StudyState,
    event_for_key,
    reduce,
)

logger = logging.getLogger(__name__)


class StudyController:
    """Applies events to a ``StudyState`` and schedules the advance after an answer.

    The pending advance is cancelled on ``Reset``, on manual navigation and on
    ``close()``, so it never fires into a reset or discarded session.
    """

    def __init__(self, state: StudyState, auto_advance_seconds: float = 0.0) -> None:
        self.state = state
        self.auto_advance_seconds = auto_advance_seconds
        self._pending: asyncio.TimerHandle | None = None
        self._closed = False

    @property
    def has_pending_advance(self) -> bool:
        return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def dispatch(self, event: StudyEvent) -> StudyState:
        """Apply an event and return the new state. Ignored once closed."""
        if self._closed:
            return self.state

        if isinstance(event, Reset | Next | Previous):
            self._cancel_pending()

        previous = self.state
        self.state = reduce(previous, event)

        # Only an accepted answer advances; a rejected one leaves the state untouched.
        if isinstance(event, Answer) and self.state is not previous and self.state.should_auto_advance:
            self._schedule_advance()
        return self.state

    def press(self, key: str) -> StudyState:
        """Apply the event bound to a keyboard key; unbound keys do nothing."""
        event = event_for_key(key)
        if event is None:
            return self.state
        return self.dispatch(event)

    def close(self) -> None:
        """Tear the session down and drop any pending advance."""
        self._cancel_pending()
        self._closed = True

    def _schedule_advance(self) -> None:
        self._cancel_pending()
        if self.auto_advance_seconds <= 0:
            self.state = reduce(self.state, Next())
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to host the timer (sync callers): advance now.
            self.state = reduce(self.state, Next())
            return
        self._pending = loop.call_later(self.auto_advance_seconds, self._advance)

    def _advance(self) -> None:
        self._pending = None
        if self._closed:
            return
        self.state = reduce(self.state, Next())
        logger.debug("Auto-advanced to card %d", self.state.index)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
