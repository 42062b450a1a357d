"""Study session state machine, its timer-owning controller and the session store."""

from backend.study.controller import StudyController
from backend.study.session import (
    KEY_BINDINGS,
    Answer,
    Flip,
    Next,
    Previous,
    Reset,
    StudyCard,
    StudyEvent,
    StudyState,
    StudySummary,
    Verdict,
    event_for_key,
    reduce,
)

__all__ = [
    "KEY_BINDINGS",
    "Answer",
    "Flip",
    "Next",
    "Previous",
    "Reset",
    "StudyCard",
    "StudyController",
    "StudyEvent",
    "StudyState",
    "StudySummary",
    "Verdict",
    "event_for_key",
    "reduce",
]
