from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Set, Union


# === Domain objects held by the board aggregate ===


@dataclass(frozen=True)
class Label:
    name: str
    color: str


@dataclass
class Card:
    id: str
    list_id: str
    title: str
    order: float
    description: Optional[str] = None
    labels: List[Label] = field(default_factory=list)
    due_date: Optional[datetime] = None
    creator: Optional[str] = None


@dataclass
class BoardList:
    id: str
    board_id: str
    title: str
    order: float
    cards: List[Card] = field(default_factory=list)


@dataclass
class Board:
    id: str
    title: str
    owner: str
    members: Set[str] = field(default_factory=set)
    lists: List[BoardList] = field(default_factory=list)


# === Drag payloads ===


class ItemType(str, Enum):
    CARD = "Card"
    LIST = "List"


@dataclass(frozen=True)
class CardRef:
    id: str

    @property
    def type(self) -> ItemType:
        return ItemType.CARD


@dataclass(frozen=True)
class ListRef:
    id: str

    @property
    def type(self) -> ItemType:
        return ItemType.LIST


DragItem = Union[CardRef, ListRef]


def drag_item(item_id: str, item_type: ItemType) -> DragItem:
    if ItemType(item_type) is ItemType.CARD:
        return CardRef(item_id)
    return ListRef(item_id)
