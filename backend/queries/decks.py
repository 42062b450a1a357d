"""Deck queries and mutations."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import utcnow
from backend.models.card import Card
from backend.models.deck import Deck


@dataclass
class DeckWithCount:
    """A deck row for the dashboard, with its aggregated card count."""

    id: int
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime
    card_count: int


# --- Reads ---


async def get_user_decks(db: AsyncSession, user_id: str) -> list[Deck]:
    stmt = select(Deck).where(Deck.user_id == user_id).order_by(Deck.updated_at)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_user_decks_with_card_counts(db: AsyncSession, user_id: str) -> list[DeckWithCount]:
    """Return the user's decks with card counts, least recently updated first."""
    stmt = (
        select(
            Deck.id,
            Deck.name,
            Deck.description,
            Deck.created_at,
            Deck.updated_at,
            func.count(Card.id).label("card_count"),
        )
        .outerjoin(Card, Card.deck_id == Deck.id)
        .where(Deck.user_id == user_id)
        .group_by(Deck.id, Deck.name, Deck.description, Deck.created_at, Deck.updated_at)
        .order_by(Deck.updated_at)
    )
    result = await db.execute(stmt)
    return [
        DeckWithCount(
            id=row.id,
            name=row.name,
            description=row.description,
            created_at=row.created_at,
            updated_at=row.updated_at,
            card_count=row.card_count,
        )
        for row in result.all()
    ]


async def get_deck_by_id(db: AsyncSession, deck_id: int) -> Deck | None:
    """Fetch a deck without any ownership check."""
    stmt = select(Deck).where(Deck.id == deck_id).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_deck_by_id_for_user(db: AsyncSession, deck_id: int, user_id: str) -> Deck | None:
    """Fetch a deck only if it belongs to the user."""
    deck = await get_deck_by_id(db, deck_id)
    if deck is None or deck.user_id != user_id:
        return None
    return deck


async def count_user_decks(db: AsyncSession, user_id: str) -> int:
    stmt = select(func.count(Deck.id)).where(Deck.user_id == user_id)
    return (await db.execute(stmt)).scalar() or 0


# --- Writes ---


async def insert_deck(
    db: AsyncSession,
    user_id: str,
    name: str,
    description: str | None = None,
) -> Deck:
    deck = Deck(user_id=user_id, name=name, description=description or None)
    db.add(deck)
    await db.commit()
    await db.refresh(deck)
    return deck


async def update_deck_by_id(
    db: AsyncSession,
    deck_id: int,
    name: str,
    description: str | None = None,
) -> None:
    stmt = (
        update(Deck)
        .where(Deck.id == deck_id)
        .values(name=name, description=description or None, updated_at=utcnow())
    )
    await db.execute(stmt)
    await db.commit()


async def delete_deck_by_id(db: AsyncSession, deck_id: int) -> None:
    """Delete a deck. The foreign key cascade removes its cards in the same statement."""
    await db.execute(delete(Deck).where(Deck.id == deck_id))
    await db.commit()
