"""API routes for study sessions."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.schemas import (
    StudyCardResponse,
    StudyEventRequest,
    StudyKeyRequest,
    StudyStateResponse,
    StudySummaryResponse,
)
from backend.auth import AuthContext, get_auth_context
from backend.config import settings
from backend.database import get_session
from backend.queries import get_cards_by_deck_id, get_deck_by_id_for_user
from backend.study import (
    Answer,
    Flip,
    Next,
    Previous,
    Reset,
    StudyCard,
    StudyController,
    StudyEvent,
    StudyState,
)
from backend.study.store import ActiveStudySession, study_sessions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/study", tags=["study"])


def _require_user(ctx: AuthContext) -> str:
    if not ctx.is_authenticated:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return ctx.user_id  # type: ignore[return-value]


def _get_active(session_id: str, user_id: str) -> ActiveStudySession:
    session = study_sessions.get(session_id, user_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Study session not found")
    return session


def _to_event(request: StudyEventRequest) -> StudyEvent:
    if request.type == "answer":
        if request.verdict is None:
            raise HTTPException(status_code=422, detail="An answer needs a verdict")
        return Answer(request.verdict)
    return {"flip": Flip(), "next": Next(), "previous": Previous(), "reset": Reset()}[request.type]


def _state_response(session: ActiveStudySession) -> StudyStateResponse:
    state = session.controller.state
    card = state.current_card
    summary = None
    if state.complete:
        s = state.summary()
        summary = StudySummaryResponse(
            total=s.total,
            correct=s.correct,
            wrong=s.wrong,
            score_percentage=s.score_percentage,
            message=s.message,
        )
    return StudyStateResponse(
        session_id=session.session_id,
        deck_id=session.deck_id,
        deck_name=session.deck_name,
        index=state.index,
        total=state.total,
        current_card=StudyCardResponse(
            id=card.id,
            front=card.front,
            back=card.back if state.is_flipped else None,
        ),
        is_flipped=state.is_flipped,
        awaiting_answer=state.awaiting_answer,
        studied_count=state.studied_count,
        correct_count=state.correct_count,
        wrong_count=state.wrong_count,
        progress_percent=round(state.progress_percent, 2),
        can_next=state.can_next,
        can_previous=state.can_previous,
        complete=state.complete,
        summary=summary,
    )


@router.post("/start/{deck_id}", response_model=StudyStateResponse)
async def study_start(
    deck_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> StudyStateResponse:
    """Start a study session over the deck's current cards."""
    user_id = _require_user(ctx)
    deck = await get_deck_by_id_for_user(db, deck_id, user_id)
    if deck is None:
        raise HTTPException(status_code=404, detail="Deck not found")

    cards = await get_cards_by_deck_id(db, deck_id)
    if not cards:
        raise HTTPException(status_code=409, detail="Add cards to this deck before studying")

    state = StudyState.start([StudyCard(id=c.id, front=c.front, back=c.back) for c in cards])
    controller = StudyController(state, auto_advance_seconds=settings.study_auto_advance_seconds)
    session = study_sessions.create(user_id, deck.id, deck.name, controller)
    return _state_response(session)


@router.get("/{session_id}", response_model=StudyStateResponse)
async def study_state(
    session_id: str,
    ctx: AuthContext = Depends(get_auth_context),
) -> StudyStateResponse:
    session = _get_active(session_id, _require_user(ctx))
    return _state_response(session)


@router.post("/{session_id}/event", response_model=StudyStateResponse)
async def study_event(
    session_id: str,
    request: StudyEventRequest,
    ctx: AuthContext = Depends(get_auth_context),
) -> StudyStateResponse:
    """Apply one transition. Unavailable transitions leave the state unchanged."""
    session = _get_active(session_id, _require_user(ctx))
    session.controller.dispatch(_to_event(request))
    return _state_response(session)


@router.post("/{session_id}/key", response_model=StudyStateResponse)
async def study_key(
    session_id: str,
    request: StudyKeyRequest,
    ctx: AuthContext = Depends(get_auth_context),
) -> StudyStateResponse:
    """Apply the transition bound to a keyboard key (space/enter, arrows)."""
    session = _get_active(session_id, _require_user(ctx))
    session.controller.press(request.key)
    return _state_response(session)


@router.post("/{session_id}/end")
async def study_end(
    session_id: str,
    ctx: AuthContext = Depends(get_auth_context),
) -> dict:
    """End a session and discard its state."""
    session = study_sessions.end(session_id, _require_user(ctx))
    if session is None:
        raise HTTPException(status_code=404, detail="Study session not found")

    state = session.controller.state
    return {
        "status": "ended",
        "studied": state.studied_count,
        "correct": state.correct_count,
        "wrong": state.wrong_count,
        "complete": state.complete,
    }
