"""Order query engine: filter, sort and paginate a scoped order set.

The same ``OrderFilter`` (scope + status + date range) drives both the page
query and the count query, so ``meta.total`` always describes the set the page
was cut from. Ties on the sort field are left in storage order; no hidden
secondary key is added.
"""
import math
from dataclasses import dataclass
from datetime import datetime

from src.oc_common.datetime_utils import ensure_utc
from src.oc_common.enums import OrderSortField, OrderStatus, SortOrder
from src.oc_order.domain.access import OrderScope

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class OrderFilter:
    scope: OrderScope
    status: OrderStatus | None = None
    start_date: datetime | None = None  # inclusive
    end_date: datetime | None = None  # inclusive

    def __post_init__(self) -> None:
        if self.start_date is not None:
            object.__setattr__(self, "start_date", ensure_utc(self.start_date))
        if self.end_date is not None:
            object.__setattr__(self, "end_date", ensure_utc(self.end_date))
        if (
            self.start_date is not None
            and self.end_date is not None
            and self.start_date > self.end_date
        ):
            raise ValueError("start_date must not be after end_date")


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort_by: OrderSortField = OrderSortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if not (1 <= self.limit <= MAX_LIMIT):
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}, got {self.limit}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageMeta:
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: PageRequest) -> "PageMeta":
        return cls(
            total=total,
            page=page.page,
            limit=page.limit,
            total_pages=total_pages(total, page.limit),
        )


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit)
