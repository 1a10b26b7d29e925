from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class Health(BaseModel):
    status: str = "ok"


class LabelIn(BaseModel):
    name: str = Field(min_length=1, max_length=40)
    color: str = Field(min_length=1, max_length=32)


class BoardIn(BaseModel):
    title: str = Field(min_length=1, max_length=140)


class BoardSummary(BaseModel):
    id: str
    title: str
    owner: str
    createdAt: datetime


class ListIn(BaseModel):
    title: str = Field(min_length=1, max_length=80)


class ListMove(BaseModel):
    order: float = Field(allow_inf_nan=False)


class CardIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=8000)


class CardPatch(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=8000)
    labels: Optional[list[LabelIn]] = None
    dueDate: Optional[datetime] = None

    @field_validator("labels")
    @classmethod
    def unique_label_names(cls, labels: Optional[list[LabelIn]]) -> Optional[list[LabelIn]]:
        if labels is None:
            return labels
        names = [label.name for label in labels]
        if len(names) != len(set(names)):
            raise ValueError("label names must be unique per card")
        return labels


class CardMove(BaseModel):
    listId: str
    order: float = Field(allow_inf_nan=False)


class CardOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    order: float
    listId: str
    labels: list[LabelIn] = []
    dueDate: Optional[datetime] = None
    creator: Optional[str] = None


class ListOut(BaseModel):
    id: str
    title: str
    order: float
    boardId: str
    cards: list[CardOut] = []


class BoardOut(BaseModel):
    id: str
    title: str
    owner: str
    members: list[str]
    lists: list[ListOut]


class MemberIn(BaseModel):
    userId: str = Field(min_length=1, max_length=128)


class MemberOut(BaseModel):
    boardId: str
    userId: str
    invitedBy: Optional[str]


class AuditEventOut(BaseModel):
    id: int
    action: str
    entityType: str
    entityId: str
    user: str
    board: str
    metadata: Optional[dict[str, Any]] = None
    timestamp: datetime
