from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .config import Settings, get_settings
from .errors import PersistenceError
from .models import Board, BoardList, Card, Label
from .schemas import BoardOut, CardOut, ListOut

logger = logging.getLogger(__name__)


def card_from_schema(data: CardOut) -> Card:
    return Card(
        id=data.id,
        list_id=data.listId,
        title=data.title,
        order=data.order,
        description=data.description,
        labels=[Label(label.name, label.color) for label in data.labels],
        due_date=data.dueDate,
        creator=data.creator,
    )


def list_from_schema(data: ListOut) -> BoardList:
    return BoardList(
        id=data.id,
        board_id=data.boardId,
        title=data.title,
        order=data.order,
        cards=[card_from_schema(c) for c in data.cards],
    )


def board_from_schema(data: BoardOut) -> Board:
    return Board(
        id=data.id,
        title=data.title,
        owner=data.owner,
        members=set(data.members),
        lists=[list_from_schema(lst) for lst in data.lists],
    )


class BoardApiClient:
    """Board persistence over the REST API.

    Every failure, transport or HTTP status, is raised as ``PersistenceError``
    and means the command was not applied. Nothing is retried.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, token: str, settings: Optional[Settings] = None) -> BoardApiClient:
        settings = settings or get_settings()
        return cls(settings.api_base_url, token, timeout=settings.api_timeout)

    async def __aenter__(self) -> BoardApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("%s %s returned %s", method, url, status)
            raise PersistenceError(f"{method} {url} returned {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise PersistenceError(f"{method} {url} failed: {exc}") from exc
        return response

    # === Reads ===

    async def load_board(self, board_id: str) -> Board:
        response = await self._request("GET", f"/boards/{board_id}")
        return board_from_schema(BoardOut.model_validate(response.json()))

    # === Position commands ===

    async def save_card_position(self, card_id: str, list_id: str, order: float) -> None:
        await self._request("POST", f"/cards/{card_id}:move", json={"listId": list_id, "order": order})

    async def save_list_order(self, list_id: str, order: float) -> None:
        await self._request("POST", f"/lists/{list_id}:move", json={"order": order})

    # === Structural changes ===

    async def create_list(self, board_id: str, title: str) -> BoardList:
        response = await self._request("POST", f"/boards/{board_id}/lists", json={"title": title})
        return list_from_schema(ListOut.model_validate(response.json()))

    async def create_card(self, list_id: str, title: str, description: Optional[str] = None) -> Card:
        payload = {"title": title, "description": description}
        response = await self._request("POST", f"/lists/{list_id}/cards", json=payload)
        return card_from_schema(CardOut.model_validate(response.json()))

    async def delete_list(self, list_id: str) -> None:
        await self._request("DELETE", f"/lists/{list_id}")

    async def delete_card(self, card_id: str) -> None:
        await self._request("DELETE", f"/cards/{card_id}")
