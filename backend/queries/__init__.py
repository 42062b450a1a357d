"""Query (read) and mutation (write) functions over decks and cards."""

from backend.queries.cards import (
    delete_card_by_id,
    get_card_by_id,
    get_card_by_id_for_deck,
    get_cards_by_deck_id,
    insert_card,
    insert_cards,
    update_card_by_id,
)
from backend.queries.decks import (
    DeckWithCount,
    count_user_decks,
    delete_deck_by_id,
    get_deck_by_id,
    get_deck_by_id_for_user,
    get_user_decks,
    get_user_decks_with_card_counts,
    insert_deck,
    update_deck_by_id,
)

__all__ = [
    "DeckWithCount",
    "count_user_decks",
    "delete_card_by_id",
    "delete_deck_by_id",
    "get_card_by_id",
    "get_card_by_id_for_deck",
    "get_cards_by_deck_id",
    "get_deck_by_id",
    "get_deck_by_id_for_user",
    "get_user_decks",
    "get_user_decks_with_card_counts",
    "insert_card",
    "insert_cards",
    "insert_deck",
    "update_card_by_id",
    "update_deck_by_id",
]
