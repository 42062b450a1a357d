"""Study session state machine.

A session walks a fixed, ordered list of card snapshots. The learner flips a
card, marks it correct or wrong, and moves on. All state lives in an
immutable ``StudyState``; ``reduce`` applies one event and returns the next
state. Invalid transitions are no-ops, never errors.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType


class Verdict(str, Enum):
    CORRECT = "correct"
    WRONG = "wrong"


@dataclass(frozen=True)
class StudyCard:
    """Snapshot of a card taken when the session starts."""

    id: int
    front: str
    back: str


# --- Events ---


@dataclass(frozen=True)
class Flip:
    pass


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Previous:
    pass


@dataclass(frozen=True)
class Answer:
    verdict: Verdict


@dataclass(frozen=True)
class Reset:
    pass


StudyEvent = Flip | Next | Previous | Answer | Reset

# Presentation bindings; keys go through the same reducer guards as buttons.
KEY_BINDINGS: dict[str, StudyEvent] = {
    " ": Flip(),
    "Enter": Flip(),
    "ArrowLeft": Previous(),
    "ArrowRight": Next(),
}


def event_for_key(key: str) -> StudyEvent | None:
    return KEY_BINDINGS.get(key)


# --- State ---


@dataclass(frozen=True)
class StudySummary:
    total: int
    correct: int
    wrong: int
    score_percentage: int
    message: str


def score_message(score_percentage: int) -> str:
    if score_percentage == 100:
        return "Perfect score! Outstanding work!"
    if score_percentage >= 80:
        return "Great job! You're mastering this deck!"
    if score_percentage >= 60:
        return "Good effort! Keep practicing to improve!"
    return "Keep going! Practice makes perfect!"


@dataclass(frozen=True)
class StudyState:
    """One point in a study session.

    ``awaiting_answer`` is set between flipping a card face-up and recording
    a verdict for it; forward navigation is blocked while it is set.
    """

    cards: tuple[StudyCard, ...]
    index: int = 0
    is_flipped: bool = False
    awaiting_answer: bool = False
    studied: frozenset[int] = frozenset()
    answers: Mapping[int, Verdict] = field(default_factory=lambda: MappingProxyType({}))
    complete: bool = False

    @classmethod
    def start(cls, cards: Sequence[StudyCard]) -> StudyState:
        """Create the initial state.

        Raises:
            ValueError: if ``cards`` is empty.
        """
        if not cards:
            raise ValueError("A study session needs at least one card")
        return cls(cards=tuple(cards))

    @property
    def total(self) -> int:
        return len(self.cards)

    @property
    def current_card(self) -> StudyCard:
        return self.cards[self.index]

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1

    @property
    def progress_percent(self) -> float:
        return 100 * (self.index + 1) / self.total

    @property
    def studied_count(self) -> int:
        return len(self.studied)

    @property
    def correct_count(self) -> int:
        return sum(1 for v in self.answers.values() if v is Verdict.CORRECT)

    @property
    def wrong_count(self) -> int:
        return sum(1 for v in self.answers.values() if v is Verdict.WRONG)

    @property
    def score_percentage(self) -> int:
        if self.total == 0:
            return 0
        return round(100 * self.correct_count / self.total)

    @property
    def can_next(self) -> bool:
        return not self.complete and not self.awaiting_answer and self.index < self.total - 1

    @property
    def can_previous(self) -> bool:
        return not self.complete and self.index > 0

    @property
    def should_auto_advance(self) -> bool:
        """True right after a verdict on a card that is not the last one."""
        return (
            not self.complete
            and not self.awaiting_answer
            and self.current_card.id in self.answers
            and self.can_next
        )

    def summary(self) -> StudySummary:
        score = self.score_percentage
        return StudySummary(
            total=self.total,
            correct=self.correct_count,
            wrong=self.wrong_count,
            score_percentage=score,
            message=score_message(score),
        )


# --- Transitions ---


def _flip(state: StudyState) -> StudyState:
    if state.is_flipped:
        return replace(state, is_flipped=False, awaiting_answer=False)
    return replace(
        state,
        is_flipped=True,
        awaiting_answer=True,
        studied=state.studied | {state.current_card.id},
    )


def _next(state: StudyState) -> StudyState:
    if not state.can_next:
        return state
    return replace(state, index=state.index + 1, is_flipped=False, awaiting_answer=False)


def _previous(state: StudyState) -> StudyState:
    if not state.can_previous:
        return state
    return replace(state, index=state.index - 1, is_flipped=False, awaiting_answer=False)


def _answer(state: StudyState, verdict: Verdict) -> StudyState:
    if not state.awaiting_answer:
        return state
    answers = dict(state.answers)
    answers[state.current_card.id] = Verdict(verdict)
    return replace(
        state,
        answers=MappingProxyType(answers),
        awaiting_answer=False,
        complete=state.is_last,
    )


def reduce(state: StudyState, event: StudyEvent) -> StudyState:
    """Apply one event. Total over valid states: unreachable transitions return ``state``."""
    if isinstance(event, Reset):
        return StudyState.start(state.cards) if state.complete else state
    if state.complete:
        return state
    if isinstance(event, Flip):
        return _flip(state)
    if isinstance(event, Next):
        return _next(state)
    if isinstance(event, Previous):
        return _previous(state)
    if isinstance(event, Answer):
        return _answer(state, event.verdict)
    return state
