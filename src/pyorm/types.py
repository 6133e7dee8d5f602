# Shared types for the query builder and model layer

from typing import Any, List, Union
from enum import Enum
from dataclasses import dataclass, field
import math


class OrderDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, value: Union[str, "OrderDirection"]) -> "OrderDirection":
        """Case-insensitive lookup; raises ValueError for anything else"""
        if isinstance(value, OrderDirection):
            return value
        return cls(str(value).upper())


class BooleanJoin(str, Enum):
    AND = "AND"
    OR = "OR"


class JoinType(str, Enum):
    INNER = "INNER"
    LEFT = "LEFT"


@dataclass
class WhereClause:
    """One WHERE predicate; value is a list for IN and None for IS [NOT] NULL"""
    boolean: BooleanJoin
    column: str
    operator: str
    value: Any = None


@dataclass
class JoinClause:
    kind: JoinType
    table: str
    first: str
    operator: str
    second: str


@dataclass
class OrderClause:
    column: str
    direction: OrderDirection = OrderDirection.ASC


@dataclass
class Paginator:
    """Page of results plus totals"""
    items: List[Any]
    total: int
    page: int
    per_page: int
    last_page: int = field(init=False)

    def __post_init__(self):
        self.last_page = max(1, math.ceil(self.total / self.per_page)) if self.per_page > 0 else 1

    @property
    def has_more(self) -> bool:
        return self.page < self.last_page

    def __iter__(self):
        return iter(self.items)

    def __len__(self):
        return len(self.items)
