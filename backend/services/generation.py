"""AI flashcard generation for a deck.

Picks a prompt template from the deck's name and description, asks the LLM
for a fixed number of front/back pairs as JSON, and inserts the whole batch
at once. Nothing is inserted when generation fails.
"""

from __future__ import annotations

import asyncio
import logging

import anthropic
import pydantic
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from backend.auth import AuthContext, can_generate_cards
from backend.cache import ViewCache, view_cache
from backend.config import settings
from backend.errors import UpgradeRequired, UpstreamError, ValidationError
from backend.llm_client import LLMClient, get_llm_client, parse_llm_json_response
from backend.models.deck import Deck
from backend.queries import insert_cards
from backend.services.results import ActionResult, service_action
from backend.services.validation import MAX_CARD_SIDE_LENGTH, assert_owned_deck

logger = logging.getLogger(__name__)

# Substrings that mark a deck as language learning (matched case-insensitively)
LANGUAGE_PATTERNS = (
    "language",
    "vocabulary",
    "words",
    "translation",
    "french",
    "spanish",
    "german",
    "italian",
    "chinese",
    "japanese",
    "korean",
    "arabic",
    "russian",
    "english",
    "portuguese",
    "dutch",
    "swedish",
    "hindi",
    "turkish",
    "polish",
    "learn to speak",
    "learn language",
)

SYSTEM_PROMPT = """\
You are a flashcard author. You write accurate, self-contained study cards.
Return ONLY a JSON object of the form {"cards": [{"front": "...", "back": "..."}]}."""

LANGUAGE_PROMPT = """\
Generate {count} vocabulary flashcards for language learning about: {name}

Additional context: {description}

Requirements for LANGUAGE LEARNING cards:
- Front: English word or short phrase
- Back: Direct translation in the target language (no lengthy explanations)
- Keep it simple and focused on vocabulary
- If helpful, you may include the word type (noun, verb, adjective) in parentheses
- Example format:
  * Front: "Hello"
  * Back: "Bonjour"
  OR
  * Front: "Cat"
  * Back: "Gato (noun)"

Create cards that help users learn the target language from English."""

EDUCATIONAL_PROMPT = """\
Generate {count} educational flashcards about: {name}

Additional context: {description}

Requirements for EDUCATIONAL cards:
- Front: Clear, focused questions that test understanding (e.g., "What is...", "How does...", "Why does...")
- Back: Concise but informative answers (2-4 sentences)
- Coverage: Cover different aspects and key concepts of the topic
- Format: Use simple, clear language appropriate for studying
- Variety: Include different types of questions:
  * Definitions: "What is X?"
  * Explanations: "How does X work?"
  * Applications: "When would you use X?"
  * Comparisons: "What's the difference between X and Y?"
  * Examples: "Give an example of X"

Create cards that promote deep understanding and retention."""


class GeneratedCard(BaseModel):
    front: str
    back: str


class GeneratedCards(BaseModel):
    """Output schema the LLM must follow."""

    cards: list[GeneratedCard]


def is_language_deck(name: str, description: str | None) -> bool:
    """Heuristic: does the deck look like vocabulary practice rather than general study?

    Mixed-topic descriptions may match either way.
    """
    combined = f"{name} {description or ''}".lower()
    return any(pattern in combined for pattern in LANGUAGE_PATTERNS)


def build_generation_prompt(deck: Deck, count: int | None = None) -> str:
    count = count or settings.ai_cards_per_deck
    template = LANGUAGE_PROMPT if is_language_deck(deck.name, deck.description) else EDUCATIONAL_PROMPT
    return template.format(count=count, name=deck.name, description=deck.description)


def parse_generated_cards(response: str) -> list[GeneratedCard]:
    """Validate the LLM output and keep only cards with both sides filled.

    Raises:
        UpstreamError: if the response does not match the output schema.
    """
    data = parse_llm_json_response(response, context="card generation")
    if isinstance(data, list):
        data = {"cards": data}
    try:
        parsed = GeneratedCards.model_validate(data)
    except pydantic.ValidationError as exc:
        raise UpstreamError(f"AI generation error: malformed response ({exc.error_count()} errors)") from exc

    cards = []
    for card in parsed.cards:
        front = card.front.strip()[:MAX_CARD_SIDE_LENGTH]
        back = card.back.strip()[:MAX_CARD_SIDE_LENGTH]
        if front and back:
            cards.append(GeneratedCard(front=front, back=back))
    return cards


def _translate_llm_error(exc: anthropic.APIError) -> UpstreamError:
    if isinstance(exc, anthropic.AuthenticationError | anthropic.PermissionDeniedError):
        return UpstreamError(
            "Invalid Anthropic API key. Please check your API key configuration.",
            kind="credential",
        )
    if isinstance(exc, anthropic.RateLimitError):
        return UpstreamError("Rate limit exceeded. Please try again in a few moments.", kind="rate_limit")
    return UpstreamError(f"AI generation error: {exc.message}")


@service_action("Failed to generate flashcards. Please try again.")
async def generate_cards(
    db: AsyncSession,
    ctx: AuthContext,
    deck_id: int,
    llm: LLMClient | None = None,
    cache: ViewCache = view_cache,
) -> ActionResult:
    """Generate cards for a deck the caller owns and insert them as one batch.

    Returns:
        ``ActionResult`` with ``card_count`` and ``message`` on success.
    """
    user_id = ctx.require_user()
    if not can_generate_cards(ctx):
        raise UpgradeRequired("AI card generation requires a Pro subscription")

    deck = await assert_owned_deck(db, deck_id, user_id)
    if not deck.description or not deck.description.strip():
        raise ValidationError(
            "description",
            "A deck description is required to generate cards with AI. "
            "Please add a description to your deck first.",
        )

    if llm is None:
        llm = get_llm_client()

    count = settings.ai_cards_per_deck
    prompt = build_generation_prompt(deck, count)
    logger.info(
        "Generating %d %s cards for deck %d",
        count,
        "language" if is_language_deck(deck.name, deck.description) else "educational",
        deck_id,
    )

    try:
        response = await asyncio.to_thread(llm.create_message, prompt, SYSTEM_PROMPT, 4096, 0.7)
    except anthropic.APIError as exc:
        logger.error("Card generation failed for deck %d: %s", deck_id, exc)
        raise _translate_llm_error(exc) from exc

    generated = parse_generated_cards(response)
    if not generated:
        raise UpstreamError("No cards were generated. Please try again.", kind="empty")

    inserted = await insert_cards(
        db,
        [{"deck_id": deck_id, "front": card.front, "back": card.back} for card in generated[:count]],
    )
    cache.invalidate_deck(deck_id)
    cache.invalidate_dashboard(user_id)

    return ActionResult.ok(
        card_count=len(inserted),
        message=f"Successfully generated {len(inserted)} flashcards!",
    )
