"""Deck and card mutations.

Every operation runs the same pipeline: authenticate, validate input, verify
ownership, (for deck creation) enforce the free-plan cap, write, then
invalidate cached views. Failures come back as an ``ActionResult``.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth import AuthContext, can_create_unlimited_decks
from backend.cache import ViewCache, view_cache
from backend.config import settings
from backend.errors import LimitReached
from backend.queries import (
    count_user_decks,
    delete_card_by_id,
    delete_deck_by_id,
    insert_card,
    insert_deck,
    update_card_by_id,
    update_deck_by_id,
)
from backend.services.results import ActionResult, service_action
from backend.services.validation import (
    assert_card_in_deck,
    assert_owned_deck,
    validate_card_fields,
    validate_deck_fields,
)

logger = logging.getLogger(__name__)


async def enforce_deck_limit(db: AsyncSession, ctx: AuthContext, user_id: str) -> None:
    """Raise ``LimitReached`` when a free user already owns the maximum number of decks.

    Count-then-insert is not transactional; two concurrent creations may both
    pass the check.
    """
    if can_create_unlimited_decks(ctx):
        return
    current = await count_user_decks(db, user_id)
    if current >= settings.free_deck_limit:
        raise LimitReached(
            f"You've reached the free plan limit of {settings.free_deck_limit} decks. "
            "Upgrade to Pro for unlimited decks."
        )


@service_action("Failed to create deck. Please try again.")
async def create_deck(
    db: AsyncSession,
    ctx: AuthContext,
    name: str,
    description: str | None = None,
    cache: ViewCache = view_cache,
) -> ActionResult:
    user_id = ctx.require_user()
    clean_name, clean_description = validate_deck_fields(name, description)
    await enforce_deck_limit(db, ctx, user_id)

    deck = await insert_deck(db, user_id, clean_name, clean_description)
    cache.invalidate_dashboard(user_id)
    logger.info("User %s created deck %d", user_id, deck.id)
    return ActionResult.ok(deck_id=deck.id)


@service_action("Failed to update deck")
async def edit_deck(
    db: AsyncSession,
    ctx: AuthContext,
    deck_id: int,
    name: str,
    description: str | None = None,
    cache: ViewCache = view_cache,
) -> ActionResult:
    user_id = ctx.require_user()
    clean_name, clean_description = validate_deck_fields(name, description)
    await assert_owned_deck(db, deck_id, user_id)

    await update_deck_by_id(db, deck_id, clean_name, clean_description)
    cache.invalidate_deck(deck_id)
    cache.invalidate_dashboard(user_id)
    return ActionResult.ok()


@service_action("Failed to delete deck")
async def delete_deck(
    db: AsyncSession,
    ctx: AuthContext,
    deck_id: int,
    cache: ViewCache = view_cache,
) -> ActionResult:
    user_id = ctx.require_user()
    await assert_owned_deck(db, deck_id, user_id)

    await delete_deck_by_id(db, deck_id)
    cache.invalidate_deck(deck_id)
    cache.invalidate_dashboard(user_id)
    logger.info("User %s deleted deck %d", user_id, deck_id)
    return ActionResult.ok()


@service_action("Failed to add card")
async def add_card(
    db: AsyncSession,
    ctx: AuthContext,
    deck_id: int,
    front: str,
    back: str,
    cache: ViewCache = view_cache,
) -> ActionResult:
    user_id = ctx.require_user()
    clean_front, clean_back = validate_card_fields(front, back)
    await assert_owned_deck(db, deck_id, user_id)

    card = await insert_card(db, deck_id, clean_front, clean_back)
    cache.invalidate_deck(deck_id)
    cache.invalidate_dashboard(user_id)  # card counts changed
    return ActionResult.ok(card_id=card.id)


@service_action("Failed to update card")
async def edit_card(
    db: AsyncSession,
    ctx: AuthContext,
    card_id: int,
    deck_id: int,
    front: str,
    back: str,
    cache: ViewCache = view_cache,
) -> ActionResult:
    user_id = ctx.require_user()
    clean_front, clean_back = validate_card_fields(front, back)
    await assert_owned_deck(db, deck_id, user_id)
    await assert_card_in_deck(db, card_id, deck_id)

    await update_card_by_id(db, card_id, clean_front, clean_back)
    cache.invalidate_deck(deck_id)
    return ActionResult.ok()


@service_action("Failed to delete card")
async def delete_card(
    db: AsyncSession,
    ctx: AuthContext,
    card_id: int,
    deck_id: int,
    cache: ViewCache = view_cache,
) -> ActionResult:
    user_id = ctx.require_user()
    await assert_owned_deck(db, deck_id, user_id)
    await assert_card_in_deck(db, card_id, deck_id)

    await delete_card_by_id(db, card_id)
    cache.invalidate_deck(deck_id)
    cache.invalidate_dashboard(user_id)
    return ActionResult.ok()
