from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Iterator, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, HTTPException, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import audit
from .audit import AuditAction, EntityType
from .auth import get_current_user
from .config import Settings, get_settings
from .db import AuditLog, BoardModel, CardModel, ListModel, init_db, make_engine, make_session_factory
from .errors import NotFound
from .schemas import (
    AuditEventOut,
    BoardIn,
    BoardOut,
    BoardSummary,
    CardIn,
    CardMove,
    CardOut,
    CardPatch,
    Health,
    LabelIn,
    ListIn,
    ListMove,
    ListOut,
    MemberIn,
    MemberOut,
)
from .storage import Storage

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

router = APIRouter(prefix="/v1")


# === Helpers ===


def card_out(card: CardModel) -> CardOut:
    return CardOut(
        id=card.id,
        title=card.title,
        description=card.description,
        order=card.order,
        listId=card.list_id,
        labels=[LabelIn(**label) for label in card.labels or []],
        dueDate=card.due_date,
        creator=card.creator,
    )


def list_out(lst: ListModel, with_cards: bool = True) -> ListOut:
    return ListOut(
        id=lst.id,
        title=lst.title,
        order=lst.order,
        boardId=lst.board_id,
        cards=[card_out(c) for c in lst.cards] if with_cards else [],
    )


def board_out(board: BoardModel) -> BoardOut:
    return BoardOut(
        id=board.id,
        title=board.title,
        owner=board.owner,
        members=board.members,
        lists=[list_out(lst) for lst in board.lists],
    )


def board_summary(board: BoardModel) -> BoardSummary:
    return BoardSummary(id=board.id, title=board.title, owner=board.owner, createdAt=board.created_at)


def audit_event_out(event: AuditLog) -> AuditEventOut:
    return AuditEventOut(
        id=event.id,
        action=event.action,
        entityType=event.entity_type,
        entityId=event.entity_id,
        user=event.user_id,
        board=event.board_id,
        metadata=event.meta,
        timestamp=event.timestamp,
    )


def check_access(board: BoardModel, user_id: str) -> None:
    if user_id != board.owner and user_id not in board.members:
        raise HTTPException(status_code=403, detail="forbidden")


def check_owner(board: BoardModel, user_id: str) -> None:
    if user_id != board.owner:
        raise HTTPException(status_code=403, detail="forbidden")


def get_storage(request: Request) -> Iterator[Storage]:
    with request.app.state.session_factory() as session:
        yield Storage(session)


class Auditor:
    """Schedules audit events to be written once the response is sent."""

    def __init__(
        self,
        request: Request,
        background_tasks: BackgroundTasks,
        user: str = Depends(get_current_user),
    ) -> None:
        self.session_factory = request.app.state.session_factory
        self.background_tasks = background_tasks
        self.user = user

    def __call__(
        self,
        action: AuditAction,
        entity_type: EntityType,
        entity_id: str,
        board_id: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        self.background_tasks.add_task(
            audit.record,
            self.session_factory,
            action,
            entity_type,
            entity_id,
            self.user,
            board_id,
            metadata,
        )


# === Health ===


@router.get("/health", response_model=Health)
def health() -> Health:
    return Health()


# === Board endpoints ===


@router.get("/boards", response_model=list[BoardSummary])
def list_boards(user: str = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    return [board_summary(b) for b in storage.list_boards_for_user(user)]


@router.post("/boards", response_model=BoardSummary, status_code=201)
def create_board(
    payload: BoardIn,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    board = storage.create_board(user, payload.title)
    record(AuditAction.CREATE, EntityType.BOARD, board.id, board.id, {"title": board.title})
    return board_summary(board)


@router.get("/boards/{board_id}", response_model=BoardOut)
def get_board(board_id: str, user: str = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    board = storage.load_board(board_id)
    check_access(board, user)
    return board_out(board)


@router.delete("/boards/{board_id}", status_code=204)
def delete_board(
    board_id: str,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    board = storage.get_board(board_id)
    check_owner(board, user)
    storage.delete_board(board)
    record(AuditAction.DELETE, EntityType.BOARD, board_id, board_id)
    return Response(status_code=204)


@router.post("/boards/{board_id}/members", response_model=MemberOut, status_code=201)
def add_member(
    board_id: str,
    payload: MemberIn,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    board = storage.get_board(board_id)
    check_owner(board, user)
    member = storage.add_member(board, payload.userId, user)
    record(AuditAction.INVITE, EntityType.MEMBER, member.user_id, board_id)
    return MemberOut(boardId=board_id, userId=member.user_id, invitedBy=member.invited_by)


@router.get("/boards/{board_id}/audit-logs", response_model=list[AuditEventOut])
def list_audit_logs(
    request: Request,
    board_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    board = storage.get_board(board_id)
    check_access(board, user)
    limit = limit or request.app.state.settings.audit_default_limit
    return [audit_event_out(e) for e in audit.list_events(storage.session, board_id, limit)]


# === List endpoints ===


@router.post("/boards/{board_id}/lists", response_model=ListOut, status_code=201)
def create_list(
    board_id: str,
    payload: ListIn,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    board = storage.get_board(board_id)
    check_access(board, user)
    lst = storage.create_list(board, payload.title)
    record(AuditAction.CREATE, EntityType.LIST, lst.id, board_id, {"title": lst.title})
    return list_out(lst, with_cards=False)


@router.post("/lists/{list_id}:move", response_model=ListOut)
def move_list(
    list_id: str,
    payload: ListMove,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    lst = storage.get_list(list_id)
    check_access(lst.board, user)
    previous = lst.order
    lst = storage.save_list_order(lst, payload.order)
    record(AuditAction.MOVE, EntityType.LIST, list_id, lst.board_id, {"from": previous, "to": lst.order})
    return list_out(lst, with_cards=False)


@router.delete("/lists/{list_id}", status_code=204)
def delete_list(
    list_id: str,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    lst = storage.get_list(list_id)
    board_id = lst.board_id
    check_access(lst.board, user)
    storage.delete_list(lst)
    record(AuditAction.DELETE, EntityType.LIST, list_id, board_id)
    return Response(status_code=204)


# === Card endpoints ===


@router.post("/lists/{list_id}/cards", response_model=CardOut, status_code=201)
def create_card(
    list_id: str,
    payload: CardIn,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    lst = storage.get_list(list_id)
    check_access(lst.board, user)
    card = storage.create_card(lst, payload.title, payload.description, user)
    record(AuditAction.CREATE, EntityType.CARD, card.id, lst.board_id, {"title": card.title, "listId": list_id})
    return card_out(card)


@router.patch("/cards/{card_id}", response_model=CardOut)
def update_card(
    card_id: str,
    payload: CardPatch,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    card = storage.get_card(card_id)
    board = card.parent.board
    check_access(board, user)
    fields = payload.model_dump(exclude_unset=True)
    changes: dict[str, Any] = {}
    if fields.get("title") is not None:
        changes["title"] = fields["title"]
    if "description" in fields:
        changes["description"] = fields["description"]
    if "labels" in fields:
        changes["labels"] = fields["labels"] or []
    if "dueDate" in fields:
        changes["due_date"] = fields["dueDate"]
    card = storage.update_card(card, changes)
    record(AuditAction.UPDATE, EntityType.CARD, card_id, board.id, {"fields": sorted(changes)})
    return card_out(card)


@router.post("/cards/{card_id}:move", response_model=CardOut)
def move_card(
    card_id: str,
    payload: CardMove,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    card = storage.get_card(card_id)
    source = card.parent
    check_access(source.board, user)
    target = storage.get_list(payload.listId)
    if target.board_id != source.board_id:
        raise HTTPException(status_code=409, detail="invalid_move")
    metadata = {"fromListId": source.id, "toListId": target.id, "order": payload.order}
    board_id = source.board_id
    card = storage.save_card_position(card, target, payload.order)
    record(AuditAction.MOVE, EntityType.CARD, card_id, board_id, metadata)
    return card_out(card)


@router.delete("/cards/{card_id}", status_code=204)
def delete_card(
    card_id: str,
    user: str = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    record: Auditor = Depends(),
):
    card = storage.get_card(card_id)
    board_id = card.parent.board_id
    check_access(card.parent.board, user)
    storage.delete_card(card)
    record(AuditAction.DELETE, EntityType.CARD, card_id, board_id)
    return Response(status_code=204)


# === Application ===


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # rejected inputs such as Infinity cannot be written back as JSON
    errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    engine = make_engine(settings.database_url, echo=settings.database_echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)
        init_db(engine)
        logger.info("taskboard api ready on %s", engine.url.render_as_string(hide_password=True))
        yield
        engine.dispose()

    app = FastAPI(title="Taskboard API", version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.session_factory = make_session_factory(engine)
    app.add_exception_handler(NotFound, not_found_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(router)
    return app


app = create_app()
