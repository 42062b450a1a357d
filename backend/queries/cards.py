"""Card queries and mutations."""

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.config import utcnow
from backend.models.card import Card

# --- Reads ---


async def get_cards_by_deck_id(db: AsyncSession, deck_id: int) -> list[Card]:
    """Return all cards in a deck, most recently updated first."""
    stmt = (
        select(Card)
        .where(Card.deck_id == deck_id)
        .order_by(Card.updated_at.desc(), Card.id.desc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_card_by_id(db: AsyncSession, card_id: int) -> Card | None:
    stmt = select(Card).where(Card.id == card_id).limit(1)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_card_by_id_for_deck(db: AsyncSession, card_id: int, deck_id: int) -> Card | None:
    """Fetch a card only if it belongs to the given deck."""
    card = await get_card_by_id(db, card_id)
    if card is None or card.deck_id != deck_id:
        return None
    return card


# --- Writes ---


async def insert_card(db: AsyncSession, deck_id: int, front: str, back: str) -> Card:
    card = Card(deck_id=deck_id, front=front, back=back)
    db.add(card)
    await db.commit()
    await db.refresh(card)
    return card


async def insert_cards(db: AsyncSession, cards: list[dict[str, str | int]]) -> list[Card]:
    """Insert a batch of cards in a single transaction.

    Args:
        db: Database session.
        cards: Dicts with ``deck_id``, ``front`` and ``back`` keys.

    Returns:
        The inserted cards, refreshed with their ids.
    """
    rows = [Card(deck_id=c["deck_id"], front=c["front"], back=c["back"]) for c in cards]
    db.add_all(rows)
    await db.commit()
    for row in rows:
        await db.refresh(row)
    return rows


async def update_card_by_id(db: AsyncSession, card_id: int, front: str, back: str) -> None:
    stmt = (
        update(Card)
        .where(Card.id == card_id)
        .values(front=front, back=back, updated_at=utcnow())
    )
    await db.execute(stmt)
    await db.commit()


async def delete_card_by_id(db: AsyncSession, card_id: int) -> None:
    await db.execute(delete(Card).where(Card.id == card_id))
    await db.commit()
