# src/oc_order/domain/repository.py
"""OrderRepository Protocol — interface contract for persistence layer."""
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_common.enums import OrderStatus
from src.oc_order.domain.models import Order
from src.oc_order.domain.query import OrderFilter, PageRequest


class OrderRepositoryProtocol(Protocol):
    async def save(self, order: Order, db: AsyncSession) -> None: ...

    async def order_number_exists(self, order_number: str, db: AsyncSession) -> bool: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def get_by_id_for_update(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def list_orders(
        self, flt: OrderFilter, page: PageRequest, db: AsyncSession
    ) -> list[Order]: ...

    async def count_orders(self, flt: OrderFilter, db: AsyncSession) -> int: ...

    async def sum_totals(self, flt: OrderFilter, db: AsyncSession) -> Decimal: ...

    async def update_content(self, order: Order, db: AsyncSession) -> datetime: ...

    async def update_status(
        self, order_id: str, status: OrderStatus, db: AsyncSession
    ) -> datetime: ...

    async def delete(self, order_id: str, db: AsyncSession) -> None: ...
