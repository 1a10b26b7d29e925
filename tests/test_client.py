import json

import httpx
import pytest

from taskboard.client import BoardApiClient
from taskboard.errors import PersistenceError
from taskboard.models import Label

BOARD = {
    "id": "b1",
    "title": "Roadmap",
    "owner": "alice",
    "members": ["bob"],
    "lists": [
        {
            "id": "A",
            "title": "Todo",
            "order": 100,
            "boardId": "b1",
            "cards": [
                {
                    "id": "1",
                    "title": "Write docs",
                    "order": 100,
                    "listId": "A",
                    "labels": [{"name": "docs", "color": "#3b82f6"}],
                    "dueDate": "2026-11-01T12:00:00Z",
                },
            ],
        },
        {"id": "B", "title": "Done", "order": 200, "boardId": "b1", "cards": []},
    ],
}


def make_client(handler):
    return BoardApiClient("http://test/v1", "alice", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_load_board_builds_domain_objects():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=BOARD)

    async with make_client(handler) as client:
        board = await client.load_board("b1")

    assert seen[0].url.path == "/v1/boards/b1"
    assert seen[0].headers["Authorization"] == "Bearer alice"
    assert board.members == {"bob"}
    assert [lst.id for lst in board.lists] == ["A", "B"]
    card = board.lists[0].cards[0]
    assert card.labels == [Label("docs", "#3b82f6")]
    assert card.due_date.year == 2026


@pytest.mark.asyncio
async def test_save_card_position_posts_move():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"id": "1", "title": "x", "order": 150, "listId": "B"})

    async with make_client(handler) as client:
        await client.save_card_position("1", "B", 150)
        await client.save_list_order("B", 50)

    assert seen == [
        ("POST", "/v1/cards/1:move", {"listId": "B", "order": 150}),
        ("POST", "/v1/lists/B:move", {"order": 50}),
    ]


@pytest.mark.asyncio
async def test_http_error_becomes_persistence_error():
    async with make_client(lambda request: httpx.Response(409, json={"detail": "invalid_move"})) as client:
        with pytest.raises(PersistenceError) as excinfo:
            await client.save_card_position("1", "Z", 10)
    assert excinfo.value.status_code == 409


@pytest.mark.asyncio
async def test_transport_error_becomes_persistence_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(PersistenceError) as excinfo:
            await client.delete_card("1")
    assert excinfo.value.status_code is None
