"""Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict

from backend.study.session import Verdict

# --- Decks & cards ---


class DeckRequest(BaseModel):
    """Create or edit a deck. Lengths are checked by the service layer."""

    name: str
    description: str | None = None


class CardRequest(BaseModel):
    front: str
    back: str


class DeckSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime
    card_count: int


class DashboardResponse(BaseModel):
    """Deck list plus what the caller's plan allows."""

    decks: list[DeckSummaryResponse]
    deck_count: int
    deck_limit: int | None  # None = unlimited
    can_create_deck: bool
    can_generate_cards: bool


class CardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    deck_id: int
    front: str
    back: str
    created_at: datetime
    updated_at: datetime


class DeckResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class DeckDetailResponse(BaseModel):
    deck: DeckResponse
    cards: list[CardResponse]


# --- Study ---


class StudyCardResponse(BaseModel):
    id: int
    front: str
    back: str | None = None  # only revealed while flipped


class StudySummaryResponse(BaseModel):
    total: int
    correct: int
    wrong: int
    score_percentage: int
    message: str


class StudyStateResponse(BaseModel):
    """Snapshot of a study session after the last event."""

    session_id: str
    deck_id: int
    deck_name: str
    index: int
    total: int
    current_card: StudyCardResponse
    is_flipped: bool
    awaiting_answer: bool
    studied_count: int
    correct_count: int
    wrong_count: int
    progress_percent: float
    can_next: bool
    can_previous: bool
    complete: bool
    summary: StudySummaryResponse | None = None


class StudyEventRequest(BaseModel):
    type: Literal["flip", "next", "previous", "answer", "reset"]
    verdict: Verdict | None = None


class StudyKeyRequest(BaseModel):
    key: str


# --- Pricing ---


class PlanResponse(BaseModel):
    name: str
    deck_limit: int | None
    ai_generated_cards: bool
    features: list[str]


class PricingResponse(BaseModel):
    plans: list[PlanResponse]
    current_plan: str | None
