from __future__ import annotations

import logging
from typing import Any, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from .db import BoardMember, BoardModel, CardModel, ListModel, now_utc
from .errors import NotFound
from .ordering import append_order

logger = logging.getLogger(__name__)


class Storage:
    """SQLAlchemy-backed store for boards, lists and cards.

    Each mutating call commits its own transaction.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # === Board operations ===
    def create_board(self, owner: str, title: str) -> BoardModel:
        board = BoardModel(title=title.strip(), owner=owner)
        self.session.add(board)
        self.session.commit()
        logger.info("board %s created by %s", board.id, owner)
        return board

    def list_boards_for_user(self, user_id: str) -> List[BoardModel]:
        stmt = (
            select(BoardModel)
            .outerjoin(BoardMember)
            .where(or_(BoardModel.owner == user_id, BoardMember.user_id == user_id))
            .order_by(BoardModel.created_at)
            .distinct()
        )
        return list(self.session.scalars(stmt))

    def get_board(self, board_id: str) -> BoardModel:
        board = self.session.get(BoardModel, board_id)
        if board is None:
            raise NotFound("board", board_id)
        return board

    def load_board(self, board_id: str) -> BoardModel:
        """Board with lists and their cards, both sorted by order."""
        stmt = (
            select(BoardModel)
            .where(BoardModel.id == board_id)
            .options(
                selectinload(BoardModel.lists).selectinload(ListModel.cards),
                selectinload(BoardModel.memberships),
            )
        )
        board = self.session.scalars(stmt).first()
        if board is None:
            raise NotFound("board", board_id)
        return board

    def delete_board(self, board: BoardModel) -> None:
        self.session.delete(board)
        self.session.commit()

    def add_member(self, board: BoardModel, user_id: str, invited_by: str) -> BoardMember:
        for member in board.memberships:
            if member.user_id == user_id:
                return member
        member = BoardMember(user_id=user_id, invited_by=invited_by)
        board.memberships.append(member)
        self.session.commit()
        return member

    # === List operations ===
    def get_list(self, list_id: str) -> ListModel:
        lst = self.session.get(ListModel, list_id)
        if lst is None:
            raise NotFound("list", list_id)
        return lst

    def create_list(self, board: BoardModel, title: str) -> ListModel:
        last = self.session.scalar(
            select(func.max(ListModel.order)).where(ListModel.board_id == board.id)
        )
        lst = ListModel(board_id=board.id, title=title.strip(), order=append_order(last))
        self.session.add(lst)
        self.session.commit()
        return lst

    def save_list_order(self, lst: ListModel, order: float) -> ListModel:
        lst.order = order
        self.session.commit()
        return lst

    def delete_list(self, lst: ListModel) -> None:
        self.session.delete(lst)
        self.session.commit()

    # === Card operations ===
    def get_card(self, card_id: str) -> CardModel:
        card = self.session.get(CardModel, card_id)
        if card is None:
            raise NotFound("card", card_id)
        return card

    def create_card(
        self,
        lst: ListModel,
        title: str,
        description: Optional[str],
        creator: str,
    ) -> CardModel:
        last = self.session.scalar(
            select(func.max(CardModel.order)).where(CardModel.list_id == lst.id)
        )
        card = CardModel(
            list_id=lst.id,
            title=title.strip(),
            description=description.strip() if description else None,
            order=append_order(last),
            labels=[],
            creator=creator,
        )
        self.session.add(card)
        self.session.commit()
        return card

    def update_card(self, card: CardModel, changes: dict[str, Any]) -> CardModel:
        if "title" in changes:
            card.title = changes["title"].strip()
        if "description" in changes:
            description = changes["description"]
            card.description = description.strip() if description else None
        if "labels" in changes:
            card.labels = list(changes["labels"])
        if "due_date" in changes:
            card.due_date = changes["due_date"]
        card.updated_at = now_utc()
        self.session.commit()
        return card

    def save_card_position(self, card: CardModel, lst: ListModel, order: float) -> CardModel:
        card.parent = lst
        card.order = order
        self.session.commit()
        return card

    def delete_card(self, card: CardModel) -> None:
        self.session.delete(card)
        self.session.commit()
