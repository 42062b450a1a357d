"""CLI interface for Flashdeck.

Usage:
    python -m flashdeck decks                      List your decks
    python -m flashdeck create "Spanish" -d "..."  Create a deck
    python -m flashdeck add 1 "Dog" "Perro"        Add a card to deck 1
    python -m flashdeck cards 1                    Show the cards in deck 1
    python -m flashdeck delete 1                   Delete deck 1 and its cards
    python -m flashdeck generate 1                 Fill deck 1 with AI cards
    python -m flashdeck study 1                    Study deck 1 in the terminal
"""

import argparse
import asyncio
import logging
import os

from backend.auth import AuthContext
from backend.database import async_session, engine
from backend.errors import FlashdeckError
from backend.models import Base
from backend.queries import get_cards_by_deck_id, get_deck_by_id_for_user, get_user_decks_with_card_counts
from backend.services import decks as deck_service
from backend.services.generation import generate_cards
from backend.services.results import ActionResult
from backend.study import Answer, Flip, Next, Previous, StudyCard, StudyState, Verdict, reduce

DEFAULT_USER = "local"

# Terminal keys for the study loop
STUDY_KEYS = {
    "f": Flip(),
    "n": Next(),
    "p": Previous(),
    "c": Answer(Verdict.CORRECT),
    "w": Answer(Verdict.WRONG),
}


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def build_context(args: argparse.Namespace) -> AuthContext:
    """Local stand-in for the identity provider: the user and entitlements come from flags."""
    return AuthContext(
        user_id=args.user,
        plan=args.plan,
        features=frozenset(args.feature or []),
    )


def _report(result: ActionResult, success: str) -> None:
    if result.success:
        print(f"  {success}")
    else:
        print(f"  Error: {result.error}")
        if result.limit_reached or result.requires_upgrade:
            print("  See the Pro plan for unlimited decks and AI-generated cards.")


async def cmd_decks(args: argparse.Namespace) -> None:
    """List decks with card counts."""
    await ensure_db()
    ctx = build_context(args)
    async with async_session() as db:
        decks = await get_user_decks_with_card_counts(db, ctx.require_user())

    if not decks:
        print("\n  No decks yet. Create one with: python -m flashdeck create NAME\n")
        return

    print("\n  Your Decks")
    for deck in decks:
        print(f"  [{deck.id:>3}] {deck.name:<30} {deck.card_count} cards")
    print()


async def cmd_create(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        result = await deck_service.create_deck(db, build_context(args), args.name, args.description)
    _report(result, f"Created deck {result.data.get('deck_id')}")


async def cmd_add(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        result = await deck_service.add_card(db, build_context(args), args.deck_id, args.front, args.back)
    _report(result, "Added card")


async def cmd_cards(args: argparse.Namespace) -> None:
    """Show every card in a deck."""
    await ensure_db()
    ctx = build_context(args)
    async with async_session() as db:
        deck = await get_deck_by_id_for_user(db, args.deck_id, ctx.require_user())
        if deck is None:
            print("  Deck not found")
            return
        cards = await get_cards_by_deck_id(db, deck.id)

    print(f"\n  {deck.name} ({len(cards)} cards)")
    if deck.description:
        print(f"  {deck.description}")
    print()
    for card in cards:
        print(f"  [{card.id:>4}] {card.front}")
        print(f"         {card.back}")
    print()


async def cmd_delete(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        result = await deck_service.delete_deck(db, build_context(args), args.deck_id)
    _report(result, f"Deleted deck {args.deck_id}")


async def cmd_generate(args: argparse.Namespace) -> None:
    await ensure_db()
    async with async_session() as db:
        result = await generate_cards(db, build_context(args), args.deck_id)
    _report(result, result.data.get("message", ""))


async def cmd_study(args: argparse.Namespace) -> None:
    """Run an interactive study session."""
    await ensure_db()
    ctx = build_context(args)
    async with async_session() as db:
        deck = await get_deck_by_id_for_user(db, args.deck_id, ctx.require_user())
        if deck is None:
            print("  Deck not found")
            return
        cards = await get_cards_by_deck_id(db, deck.id)

    if not cards:
        print("\n  This deck has no cards yet.\n")
        return

    state = StudyState.start([StudyCard(id=c.id, front=c.front, back=c.back) for c in cards])
    print(f"\n  Studying {deck.name}")
    print("  Keys: f=flip  n=next  p=previous  c=correct  w=wrong  q=quit\n")

    while not state.complete:
        card = state.current_card
        print(
            f"  [{state.index + 1}/{state.total}] "
            f"studied {state.studied_count}  correct {state.correct_count}  wrong {state.wrong_count}"
        )
        print(f"  {card.back if state.is_flipped else card.front}")
        if state.awaiting_answer:
            print("  Did you get it right? (c/w)")

        key = input("  > ").strip().lower()
        if key == "q":
            print("\n  Session ended early.")
            return

        event = STUDY_KEYS.get(key)
        if event is None:
            continue
        before = state
        state = reduce(before, event)
        # The terminal advances immediately after an accepted answer.
        if isinstance(event, Answer) and state is not before and state.should_auto_advance:
            state = reduce(state, Next())
        print()

    summary = state.summary()
    print("\n  Study Session Complete!")
    print(f"  Score: {summary.score_percentage}%  Correct: {summary.correct}  Wrong: {summary.wrong}")
    print(f"  {summary.message}\n")


COMMANDS = {
    "decks": cmd_decks,
    "create": cmd_create,
    "add": cmd_add,
    "cards": cmd_cards,
    "delete": cmd_delete,
    "generate": cmd_generate,
    "study": cmd_study,
}


async def run_command(args: argparse.Namespace) -> int:
    """Run one subcommand, printing domain errors instead of raising them."""
    try:
        await COMMANDS[args.command](args)
    except FlashdeckError as exc:
        print(f"  Error: {exc.message}")
        return 1
    return 0


def main() -> None:
    """Entry point for the Flashdeck CLI application."""
    parser = argparse.ArgumentParser(
        prog="flashdeck",
        description="Flashdeck flashcard study tool",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--user", default=os.environ.get("FLASHDECK_USER", DEFAULT_USER))
    parser.add_argument("--plan", default=None, help="Subscription plan, e.g. 'pro'")
    parser.add_argument(
        "--feature",
        action="append",
        help="Entitlement flag (repeatable), e.g. unlimited_decks, ai_generated_cards",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("decks", help="List your decks")

    create_parser = subparsers.add_parser("create", help="Create a deck")
    create_parser.add_argument("name", help="Deck name")
    create_parser.add_argument("-d", "--description", default="", help="Deck description")

    add_parser = subparsers.add_parser("add", help="Add a card to a deck")
    add_parser.add_argument("deck_id", type=int)
    add_parser.add_argument("front", help="Front of the card")
    add_parser.add_argument("back", help="Back of the card")

    cards_parser = subparsers.add_parser("cards", help="Show the cards in a deck")
    cards_parser.add_argument("deck_id", type=int)

    delete_parser = subparsers.add_parser("delete", help="Delete a deck and its cards")
    delete_parser.add_argument("deck_id", type=int)

    generate_parser = subparsers.add_parser("generate", help="Generate cards with AI")
    generate_parser.add_argument("deck_id", type=int)

    study_parser = subparsers.add_parser("study", help="Study a deck")
    study_parser.add_argument("deck_id", type=int)

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    raise SystemExit(asyncio.run(run_command(args)))


if __name__ == "__main__":
    main()
