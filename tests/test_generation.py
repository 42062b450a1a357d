"""Tests for AI card generation: deck classification, prompts, parsing and failures."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

from backend.auth import AuthContext
from backend.llm_client import LLMClient
from backend.models.deck import Deck
from backend.queries import get_cards_by_deck_id, insert_deck
from backend.services.generation import (
    build_generation_prompt,
    generate_cards,
    is_language_deck,
    parse_generated_cards,
)

# --- Helpers ---

PRO = AuthContext(user_id="alice", plan="pro", features=frozenset({"ai_generated_cards"}))


def _make_llm(response: str | None = None, error: Exception | None = None) -> MagicMock:
    llm = MagicMock(spec=LLMClient)
    if error is not None:
        llm.create_message.side_effect = error
    else:
        llm.create_message.return_value = response
    return llm


def _make_anthropic_llm(*blocks) -> LLMClient:
    """A real LLMClient whose Anthropic SDK client returns the given content blocks."""
    llm = LLMClient(api_key="test-key")
    llm.client = MagicMock()
    llm.client.messages.create.return_value = SimpleNamespace(
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
    )
    return llm


def _cards_json(n: int) -> str:
    return json.dumps({"cards": [{"front": f"Q{i}", "back": f"A{i}"} for i in range(n)]})


def _status_error(cls: type[anthropic.APIStatusError], status: int) -> anthropic.APIStatusError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return cls("upstream says no", response=httpx.Response(status, request=request), body=None)


# --- Classification & prompts ---


class TestClassification:
    @pytest.mark.parametrize(
        ("name", "description"),
        [
            ("Spanish basics", None),
            ("Travel", "Useful VOCABULARY for a trip"),
            ("Week 3", "Learn to speak with locals"),
            ("Kitchen", "Japanese words for cooking"),
        ],
    )
    def test_language_decks(self, name, description) -> None:
        assert is_language_deck(name, description)

    @pytest.mark.parametrize(
        ("name", "description"),
        [
            ("Biology", "Cell structure and mitosis"),
            ("History", "The battle of Hastings"),
        ],
    )
    def test_general_decks(self, name, description) -> None:
        assert not is_language_deck(name, description)

    def test_language_prompt(self) -> None:
        deck = Deck(user_id="alice", name="French", description="Greetings")
        prompt = build_generation_prompt(deck, 20)
        assert "Generate 20 vocabulary flashcards" in prompt
        assert "LANGUAGE LEARNING" in prompt
        assert "Greetings" in prompt

    def test_educational_prompt(self) -> None:
        deck = Deck(user_id="alice", name="Biology", description="Photosynthesis")
        prompt = build_generation_prompt(deck, 20)
        assert "Generate 20 educational flashcards about: Biology" in prompt
        assert "Photosynthesis" in prompt


class TestParsing:
    def test_fenced_json(self) -> None:
        cards = parse_generated_cards(f"```json\n{_cards_json(2)}\n```")
        assert [(c.front, c.back) for c in cards] == [("Q0", "A0"), ("Q1", "A1")]

    def test_bare_list(self) -> None:
        cards = parse_generated_cards('[{"front": "Hello", "back": "Hola"}]')
        assert cards[0].back == "Hola"

    def test_drops_blank_sides_and_truncates(self) -> None:
        payload = {"cards": [{"front": " ", "back": "x"}, {"front": "Q", "back": "b" * 1500}]}
        cards = parse_generated_cards(json.dumps(payload))
        assert len(cards) == 1
        assert len(cards[0].back) == 1000


# --- Service ---


class TestGenerateCards:
    @pytest.mark.asyncio
    async def test_inserts_full_batch(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        llm = _make_llm(_cards_json(20))

        result = await generate_cards(db, PRO, deck.id, llm=llm)

        assert result.success
        assert result.data["card_count"] == 20
        assert "20 flashcards" in result.data["message"]
        assert len(await get_cards_by_deck_id(db, deck.id)) == 20
        prompt = llm.create_message.call_args.args[0]
        assert "educational flashcards" in prompt

    @pytest.mark.asyncio
    async def test_caps_at_requested_count(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        result = await generate_cards(db, PRO, deck.id, llm=_make_llm(_cards_json(25)))
        assert result.data["card_count"] == 20

    @pytest.mark.asyncio
    async def test_requires_entitlement(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        llm = _make_llm(_cards_json(1))
        ctx = AuthContext(user_id="alice", plan="pro")  # plan alone does not grant AI

        result = await generate_cards(db, ctx, deck.id, llm=llm)

        assert not result.success
        assert result.requires_upgrade
        llm.create_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_unauthenticated(self, db) -> None:
        result = await generate_cards(db, AuthContext(user_id=None), 1, llm=_make_llm("{}"))
        assert result.code == "unauthorized"

    @pytest.mark.asyncio
    async def test_foreign_deck(self, db) -> None:
        deck = await insert_deck(db, "bob", "Biology", "Cells")
        result = await generate_cards(db, PRO, deck.id, llm=_make_llm(_cards_json(1)))
        assert result.code == "not_found"

    @pytest.mark.asyncio
    async def test_requires_description(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology")
        llm = _make_llm(_cards_json(1))
        result = await generate_cards(db, PRO, deck.id, llm=llm)
        assert result.code == "validation_error"
        assert "description is required" in result.error
        llm.create_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_api_key(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        result = await generate_cards(db, PRO, deck.id)
        assert not result.success
        assert "API key" in result.error
        assert await get_cards_by_deck_id(db, deck.id) == []

    @pytest.mark.asyncio
    async def test_no_cards_returned(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        result = await generate_cards(db, PRO, deck.id, llm=_make_llm('{"cards": []}'))
        assert result.error == "No cards were generated. Please try again."
        assert await get_cards_by_deck_id(db, deck.id) == []

    @pytest.mark.asyncio
    async def test_malformed_output_inserts_nothing(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        result = await generate_cards(db, PRO, deck.id, llm=_make_llm("not json at all"))
        assert not result.success
        assert result.code == "upstream_error"
        assert await get_cards_by_deck_id(db, deck.id) == []

    @pytest.mark.asyncio
    async def test_rate_limited(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        llm = _make_llm(error=_status_error(anthropic.RateLimitError, 429))
        result = await generate_cards(db, PRO, deck.id, llm=llm)
        assert result.status_code == 429
        assert "Rate limit" in result.error

    @pytest.mark.asyncio
    async def test_bad_credentials(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        llm = _make_llm(error=_status_error(anthropic.AuthenticationError, 401))
        result = await generate_cards(db, PRO, deck.id, llm=llm)
        assert "Invalid Anthropic API key" in result.error

    @pytest.mark.asyncio
    async def test_generic_upstream_error_passes_message(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        llm = _make_llm(error=_status_error(anthropic.BadRequestError, 400))
        result = await generate_cards(db, PRO, deck.id, llm=llm)
        assert result.error == "AI generation error: upstream says no"
        assert await get_cards_by_deck_id(db, deck.id) == []

    @pytest.mark.asyncio
    async def test_empty_model_reply_is_a_result(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        result = await generate_cards(db, PRO, deck.id, llm=_make_anthropic_llm())
        assert not result.success
        assert result.code == "upstream_error"
        assert "empty response" in result.error
        assert await get_cards_by_deck_id(db, deck.id) == []

    @pytest.mark.asyncio
    async def test_non_text_reply_is_a_result(self, db) -> None:
        deck = await insert_deck(db, "alice", "Biology", "Cells")
        llm = _make_anthropic_llm(SimpleNamespace(type="tool_use", id="tu_1", name="x", input={}))
        result = await generate_cards(db, PRO, deck.id, llm=llm)
        assert result.code == "upstream_error"
        assert await get_cards_by_deck_id(db, deck.id) == []


class TestLLMClient:
    def test_joins_text_blocks(self) -> None:
        llm = _make_anthropic_llm(
            SimpleNamespace(type="text", text='{"cards": '),
            SimpleNamespace(type="text", text='[{"front": "Q", "back": "A"}]}'),
        )
        assert llm.create_message("prompt") == '{"cards": [{"front": "Q", "back": "A"}]}'
        assert llm.total_input_tokens == 10
        assert llm.total_output_tokens == 5
