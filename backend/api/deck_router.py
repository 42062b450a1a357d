"""API routes for the dashboard, decks, cards and AI generation."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from backend.api.schemas import (
    CardRequest,
    CardResponse,
    DashboardResponse,
    DeckDetailResponse,
    DeckRequest,
    DeckResponse,
    DeckSummaryResponse,
)
from backend.auth import AuthContext, can_create_unlimited_decks, can_generate_cards, get_auth_context
from backend.cache import view_cache
from backend.config import settings
from backend.database import get_session
from backend.queries import get_cards_by_deck_id, get_deck_by_id_for_user, get_user_decks_with_card_counts
from backend.services import decks as deck_service
from backend.services.generation import generate_cards
from backend.services.results import ActionResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["decks"])


def _respond(result: ActionResult, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    code = success_status if result.success else result.status_code
    return JSONResponse(status_code=code, content=result.to_dict())


def _require_user(ctx: AuthContext) -> str:
    if not ctx.is_authenticated:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return ctx.user_id  # type: ignore[return-value]


# --- Reads ---


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> DashboardResponse:
    """List the caller's decks with card counts and plan allowances."""
    user_id = _require_user(ctx)
    key = view_cache.dashboard_key(user_id)
    decks = view_cache.get(key)
    if decks is None:
        rows = await get_user_decks_with_card_counts(db, user_id)
        decks = [DeckSummaryResponse.model_validate(row) for row in rows]
        view_cache.set(key, decks)

    unlimited = can_create_unlimited_decks(ctx)
    deck_limit = None if unlimited else settings.free_deck_limit
    return DashboardResponse(
        decks=decks,
        deck_count=len(decks),
        deck_limit=deck_limit,
        can_create_deck=unlimited or len(decks) < settings.free_deck_limit,
        can_generate_cards=can_generate_cards(ctx),
    )


@router.get("/decks/{deck_id}", response_model=DeckDetailResponse)
async def deck_detail(
    deck_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> DeckDetailResponse:
    """Return a deck and its cards, most recently updated first."""
    user_id = _require_user(ctx)
    key = view_cache.deck_key(deck_id)
    cached = view_cache.get(key)
    if cached is not None:
        owner, detail = cached
        if owner != user_id:
            raise HTTPException(status_code=404, detail="Deck not found")
        return detail

    deck = await get_deck_by_id_for_user(db, deck_id, user_id)
    if deck is None:
        raise HTTPException(status_code=404, detail="Deck not found")
    cards = await get_cards_by_deck_id(db, deck_id)
    detail = DeckDetailResponse(
        deck=DeckResponse.model_validate(deck),
        cards=[CardResponse.model_validate(card) for card in cards],
    )
    view_cache.set(key, (user_id, detail))
    return detail


# --- Deck mutations ---


@router.post("/decks")
async def create_deck(
    request: DeckRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> JSONResponse:
    result = await deck_service.create_deck(db, ctx, request.name, request.description)
    return _respond(result, status.HTTP_201_CREATED)


@router.patch("/decks/{deck_id}")
async def edit_deck(
    deck_id: int,
    request: DeckRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> JSONResponse:
    result = await deck_service.edit_deck(db, ctx, deck_id, request.name, request.description)
    return _respond(result)


@router.delete("/decks/{deck_id}")
async def delete_deck(
    deck_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> JSONResponse:
    result = await deck_service.delete_deck(db, ctx, deck_id)
    return _respond(result)


# --- Card mutations ---


@router.post("/decks/{deck_id}/cards")
async def add_card(
    deck_id: int,
    request: CardRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> JSONResponse:
    result = await deck_service.add_card(db, ctx, deck_id, request.front, request.back)
    return _respond(result, status.HTTP_201_CREATED)


@router.patch("/decks/{deck_id}/cards/{card_id}")
async def edit_card(
    deck_id: int,
    card_id: int,
    request: CardRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> JSONResponse:
    result = await deck_service.edit_card(db, ctx, card_id, deck_id, request.front, request.back)
    return _respond(result)


@router.delete("/decks/{deck_id}/cards/{card_id}")
async def delete_card(
    deck_id: int,
    card_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> JSONResponse:
    result = await deck_service.delete_card(db, ctx, card_id, deck_id)
    return _respond(result)


@router.post("/decks/{deck_id}/generate")
async def generate_deck_cards(
    deck_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> JSONResponse:
    """Fill a deck with AI-generated cards (Pro feature)."""
    result = await generate_cards(db, ctx, deck_id)
    return _respond(result, status.HTTP_201_CREATED)
