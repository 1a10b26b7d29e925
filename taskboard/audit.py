from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .db import AuditLog

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MOVE = "move"
    INVITE = "invite"


class EntityType(str, Enum):
    BOARD = "Board"
    LIST = "List"
    CARD = "Card"
    MEMBER = "Member"


def record(
    session_factory: sessionmaker,
    action: AuditAction,
    entity_type: EntityType,
    entity_id: str,
    actor_id: str,
    board_id: str,
    metadata: Optional[dict[str, Any]] = None,
) -> None:
    """Append one event to the board's audit trail.

    Runs after the response has been sent. A failure here is logged and
    dropped; the change it describes has already been committed.
    """
    try:
        with session_factory() as session:
            session.add(
                AuditLog(
                    action=AuditAction(action).value,
                    entity_type=EntityType(entity_type).value,
                    entity_id=entity_id,
                    user_id=actor_id,
                    board_id=board_id,
                    meta=metadata,
                )
            )
            session.commit()
    except SQLAlchemyError:
        logger.exception(
            "audit %s %s %s on board %s not recorded",
            AuditAction(action).value,
            EntityType(entity_type).value,
            entity_id,
            board_id,
        )


def list_events(session: Session, board_id: str, limit: int) -> List[AuditLog]:
    stmt = (
        select(AuditLog)
        .where(AuditLog.board_id == board_id)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .limit(limit)
    )
    return list(session.scalars(stmt))
