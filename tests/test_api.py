"""End-to-end tests of the HTTP surface."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from backend.main import app

ALICE = {"X-User-Id": "alice"}
BOB = {"X-User-Id": "bob"}


@pytest_asyncio.fixture
async def client(db) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def _create_deck(client: AsyncClient, name: str = "Spanish", headers: dict = ALICE) -> int:
    response = await client.post("/api/decks", json={"name": name, "description": "Words"}, headers=headers)
    assert response.status_code == 201
    return response.json()["deck_id"]


async def _add_card(client: AsyncClient, deck_id: int, front: str, back: str) -> int:
    response = await client.post(
        f"/api/decks/{deck_id}/cards", json={"front": front, "back": back}, headers=ALICE
    )
    assert response.status_code == 201
    return response.json()["card_id"]


# --- Decks & cards ---


@pytest.mark.asyncio
async def test_requires_identity(client: AsyncClient) -> None:
    assert (await client.get("/api/dashboard")).status_code == 401
    response = await client.post("/api/decks", json={"name": "Spanish"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Unauthorized", "code": "unauthorized"}


@pytest.mark.asyncio
async def test_dashboard_reflects_mutations(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    dashboard = (await client.get("/api/dashboard", headers=ALICE)).json()
    assert dashboard["deck_count"] == 1
    assert dashboard["deck_limit"] == 3
    assert dashboard["can_create_deck"] is True
    assert dashboard["can_generate_cards"] is False
    assert dashboard["decks"][0]["card_count"] == 0

    await _add_card(client, deck_id, "Dog", "Perro")
    dashboard = (await client.get("/api/dashboard", headers=ALICE)).json()
    assert dashboard["decks"][0]["card_count"] == 1


@pytest.mark.asyncio
async def test_pro_dashboard_is_unlimited(client: AsyncClient) -> None:
    headers = {**ALICE, "X-User-Plan": "pro", "X-User-Features": "ai_generated_cards"}
    dashboard = (await client.get("/api/dashboard", headers=headers)).json()
    assert dashboard["deck_limit"] is None
    assert dashboard["can_generate_cards"] is True


@pytest.mark.asyncio
async def test_deck_limit(client: AsyncClient) -> None:
    for i in range(3):
        await _create_deck(client, f"Deck {i}")
    response = await client.post("/api/decks", json={"name": "One more"}, headers=ALICE)
    assert response.status_code == 403
    assert response.json()["limit_reached"] is True

    dashboard = (await client.get("/api/dashboard", headers=ALICE)).json()
    assert dashboard["can_create_deck"] is False


@pytest.mark.asyncio
async def test_deck_detail_and_edits(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    card_id = await _add_card(client, deck_id, "Dog", "Perro")

    detail = (await client.get(f"/api/decks/{deck_id}", headers=ALICE)).json()
    assert detail["deck"]["name"] == "Spanish"
    assert [c["front"] for c in detail["cards"]] == ["Dog"]

    response = await client.patch(
        f"/api/decks/{deck_id}/cards/{card_id}", json={"front": "Cat", "back": "Gato"}, headers=ALICE
    )
    assert response.json() == {"success": True}
    response = await client.patch(f"/api/decks/{deck_id}", json={"name": "Español"}, headers=ALICE)
    assert response.status_code == 200

    detail = (await client.get(f"/api/decks/{deck_id}", headers=ALICE)).json()
    assert detail["deck"]["name"] == "Español"
    assert detail["deck"]["description"] is None
    assert detail["cards"][0]["back"] == "Gato"


@pytest.mark.asyncio
async def test_deck_hidden_from_other_users(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    await client.get(f"/api/decks/{deck_id}", headers=ALICE)  # warm the cache

    assert (await client.get(f"/api/decks/{deck_id}", headers=BOB)).status_code == 404
    response = await client.delete(f"/api/decks/{deck_id}", headers=BOB)
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_validation_error_status(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    response = await client.post(
        f"/api/decks/{deck_id}/cards", json={"front": " ", "back": "x"}, headers=ALICE
    )
    assert response.status_code == 422
    assert response.json()["error"] == "Card front is required"


@pytest.mark.asyncio
async def test_delete_deck_removes_cards(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    card_id = await _add_card(client, deck_id, "Dog", "Perro")

    assert (await client.delete(f"/api/decks/{deck_id}", headers=ALICE)).status_code == 200
    assert (await client.get(f"/api/decks/{deck_id}", headers=ALICE)).status_code == 404
    response = await client.delete(f"/api/decks/{deck_id}/cards/{card_id}", headers=ALICE)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_generate_requires_upgrade(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    response = await client.post(f"/api/decks/{deck_id}/generate", headers=ALICE)
    assert response.status_code == 402
    assert response.json()["requires_upgrade"] is True


@pytest.mark.asyncio
async def test_pricing(client: AsyncClient) -> None:
    body = (await client.get("/api/pricing", headers=ALICE)).json()
    assert [p["name"] for p in body["plans"]] == ["free", "pro"]
    assert body["plans"][0]["deck_limit"] == 3
    assert body["current_plan"] == "free"


# --- Study ---


@pytest.mark.asyncio
async def test_study_empty_deck_rejected(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    response = await client.post(f"/api/study/start/{deck_id}", headers=ALICE)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_study_session_flow(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    for front, back in [("Dog", "Perro"), ("Cat", "Gato"), ("Bird", "Pájaro")]:
        await _add_card(client, deck_id, front, back)

    state = (await client.post(f"/api/study/start/{deck_id}", headers=ALICE)).json()
    session_id = state["session_id"]
    assert state["total"] == 3
    assert state["current_card"]["back"] is None

    async def send(payload: dict) -> dict:
        response = await client.post(f"/api/study/{session_id}/event", json=payload, headers=ALICE)
        assert response.status_code == 200
        return response.json()

    state = await send({"type": "flip"})
    assert state["awaiting_answer"] is True
    assert state["current_card"]["back"] is not None

    blocked = (await client.post(f"/api/study/{session_id}/key", json={"key": "ArrowRight"}, headers=ALICE)).json()
    assert blocked["index"] == 0

    state = await send({"type": "answer", "verdict": "correct"})
    assert state["index"] == 1  # auto-advance is immediate in tests

    for verdict in ["wrong", "correct"]:
        await send({"type": "flip"})
        state = await send({"type": "answer", "verdict": verdict})

    assert state["complete"] is True
    assert state["summary"]["score_percentage"] == 67
    assert state["correct_count"] == 2
    assert state["wrong_count"] == 1

    state = await send({"type": "reset"})
    assert state["complete"] is False
    assert state["index"] == 0
    assert state["studied_count"] == 0

    ended = (await client.post(f"/api/study/{session_id}/end", headers=ALICE)).json()
    assert ended["status"] == "ended"
    assert (await client.get(f"/api/study/{session_id}", headers=ALICE)).status_code == 404


@pytest.mark.asyncio
async def test_study_session_private(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    await _add_card(client, deck_id, "Dog", "Perro")
    session_id = (await client.post(f"/api/study/start/{deck_id}", headers=ALICE)).json()["session_id"]

    assert (await client.get(f"/api/study/{session_id}", headers=BOB)).status_code == 404
    assert (await client.post(f"/api/study/start/{deck_id}", headers=BOB)).status_code == 404


@pytest.mark.asyncio
async def test_answer_needs_verdict(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    await _add_card(client, deck_id, "Dog", "Perro")
    session_id = (await client.post(f"/api/study/start/{deck_id}", headers=ALICE)).json()["session_id"]

    response = await client.post(f"/api/study/{session_id}/event", json={"type": "answer"}, headers=ALICE)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_answer_ignored_when_not_awaiting(client: AsyncClient) -> None:
    deck_id = await _create_deck(client)
    for front, back in [("Dog", "Perro"), ("Cat", "Gato")]:
        await _add_card(client, deck_id, front, back)
    session_id = (await client.post(f"/api/study/start/{deck_id}", headers=ALICE)).json()["session_id"]

    async def send(payload: dict) -> dict:
        response = await client.post(f"/api/study/{session_id}/event", json=payload, headers=ALICE)
        assert response.status_code == 200
        return response.json()

    await send({"type": "flip"})
    assert (await send({"type": "answer", "verdict": "correct"}))["index"] == 1
    before = await send({"type": "previous"})
    assert before["index"] == 0
    assert before["awaiting_answer"] is False

    after = await send({"type": "answer", "verdict": "wrong"})
    assert after == before
