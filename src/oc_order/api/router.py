# src/oc_order/api/router.py
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_common.database import get_db_session
from src.oc_common.response import ApiResponse, respond
from src.oc_gateway.auth.dependencies import get_current_caller
from src.oc_order.application.schemas import (
    CreateOrderRequest,
    OrderListQuery,
    UpdateOrderRequest,
    UpdateOrderStatusRequest,
)
from src.oc_order.application.service import OrderApplicationService
from src.oc_order.domain.access import Caller

router = APIRouter(prefix="/orders", tags=["orders"])
_service = OrderApplicationService()


def get_order_service() -> OrderApplicationService:
    return _service


CallerDep = Annotated[Caller, Depends(get_current_caller)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]
ServiceDep = Annotated[OrderApplicationService, Depends(get_order_service)]


@router.get("", response_model=ApiResponse, summary="List orders (users see their own)")
async def list_orders(
    request: Request,
    caller: CallerDep,
    db: DbDep,
    svc: ServiceDep,
    query: Annotated[OrderListQuery, Query()],
) -> ApiResponse:
    result = await svc.list_orders(db, caller, query)
    return respond(request, result.model_dump(mode="json"))


@router.get("/{order_id}", response_model=ApiResponse, summary="Get order by ID")
async def get_order(
    request: Request, order_id: str, caller: CallerDep, db: DbDep, svc: ServiceDep
) -> ApiResponse:
    result = await svc.get_order(db, caller, order_id)
    return respond(request, result.model_dump(mode="json"))


@router.post(
    "", response_model=ApiResponse, status_code=status.HTTP_201_CREATED, summary="Create order"
)
async def create_order(
    request: Request, body: CreateOrderRequest, caller: CallerDep, db: DbDep, svc: ServiceDep
) -> ApiResponse:
    result = await svc.create_order(db, caller, body)
    return respond(request, result.model_dump(mode="json"), message="Order created")


@router.patch(
    "/{order_id}",
    response_model=ApiResponse,
    summary="Edit customer details, shipping address or notes (pending/processing only)",
)
async def update_order(
    request: Request,
    order_id: str,
    body: UpdateOrderRequest,
    caller: CallerDep,
    db: DbDep,
    svc: ServiceDep,
) -> ApiResponse:
    result = await svc.update_order(db, caller, order_id, body)
    return respond(request, result.model_dump(mode="json"), message="Order updated")


@router.patch(
    "/{order_id}/status",
    response_model=ApiResponse,
    summary="Change order status (admin only)",
)
async def update_order_status(
    request: Request,
    order_id: str,
    body: UpdateOrderStatusRequest,
    caller: CallerDep,
    db: DbDep,
    svc: ServiceDep,
) -> ApiResponse:
    result = await svc.update_status(db, caller, order_id, body)
    return respond(request, result.model_dump(mode="json"), message="Order status updated")


@router.delete("/{order_id}", response_model=ApiResponse, summary="Delete a pending order")
async def delete_order(
    request: Request, order_id: str, caller: CallerDep, db: DbDep, svc: ServiceDep
) -> ApiResponse:
    result = await svc.delete_order(db, caller, order_id)
    return respond(request, result.model_dump(mode="json"), message=result.message)
