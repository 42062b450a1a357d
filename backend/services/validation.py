"""Ownership checks and field validation applied before any mutation."""

from sqlalchemy.ext.asyncio import AsyncSession

from backend.errors import NotFound, ValidationError
from backend.models.card import Card
from backend.models.deck import Deck
from backend.queries import get_card_by_id_for_deck, get_deck_by_id_for_user

MAX_DECK_NAME_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 1000
MAX_CARD_SIDE_LENGTH = 1000


def _require_text(value: str | None, field: str, label: str, max_length: int) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(field, f"{label} is required")
    if len(text) > max_length:
        raise ValidationError(field, f"{label} must be at most {max_length} characters")
    return text


def validate_deck_fields(name: str | None, description: str | None) -> tuple[str, str | None]:
    """Trim and validate deck fields.

    Returns:
        Tuple of (name, description), with an empty description mapped to None.

    Raises:
        ValidationError: naming the first failing field.
    """
    clean_name = _require_text(name, "name", "Deck name", MAX_DECK_NAME_LENGTH)
    clean_description = (description or "").strip()
    if len(clean_description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            "description",
            f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
        )
    return clean_name, clean_description or None


def validate_card_fields(front: str | None, back: str | None) -> tuple[str, str]:
    """Trim and validate both sides of a card."""
    clean_front = _require_text(front, "front", "Card front", MAX_CARD_SIDE_LENGTH)
    clean_back = _require_text(back, "back", "Card back", MAX_CARD_SIDE_LENGTH)
    return clean_front, clean_back


async def assert_owned_deck(db: AsyncSession, deck_id: int, user_id: str) -> Deck:
    deck = await get_deck_by_id_for_user(db, deck_id, user_id)
    if deck is None:
        raise NotFound("Deck not found or access denied")
    return deck


async def assert_card_in_deck(db: AsyncSession, card_id: int, deck_id: int) -> Card:
    card = await get_card_by_id_for_deck(db, card_id, deck_id)
    if card is None:
        raise NotFound("Card not found or does not belong to this deck")
    return card
