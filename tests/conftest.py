import pytest
from fastapi.testclient import TestClient

from taskboard.config import Settings
from taskboard.main import create_app
from taskboard.models import Board, BoardList, Card


def build_board(layout: dict, board_id: str = "b1") -> Board:
    """Board from ``{list_id: [(card_id, order), ...]}``; lists ordered 100, 200, ..."""
    lists = []
    for i, (list_id, cards) in enumerate(layout.items(), start=1):
        lists.append(
            BoardList(
                id=list_id,
                board_id=board_id,
                title=f"List {list_id}",
                order=100.0 * i,
                cards=[Card(id=cid, list_id=list_id, title=f"Card {cid}", order=float(o)) for cid, o in cards],
            )
        )
    return Board(id=board_id, title="Board", owner="alice", lists=lists)


@pytest.fixture
def make_board():
    return build_board


@pytest.fixture
def settings():
    return Settings(_env_file=None, database_url="sqlite://", log_level="DEBUG")


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client


@pytest.fixture
def alice():
    return {"Authorization": "Bearer alice"}


@pytest.fixture
def bob():
    return {"Authorization": "Bearer bob"}
