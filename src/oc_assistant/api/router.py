"""Assistant API router: chat plus the caller's stored conversations."""
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_assistant.application.schemas import (
    ChatRequest,
    ConversationListQuery,
    MessageQuery,
)
from src.oc_assistant.application.service import AssistantService
from src.oc_common.database import get_db_session
from src.oc_common.response import ApiResponse, respond
from src.oc_gateway.auth.dependencies import get_current_caller
from src.oc_order.domain.access import Caller

router = APIRouter(prefix="/assistant", tags=["assistant"])
_service = AssistantService()


def get_assistant_service() -> AssistantService:
    return _service


CallerDep = Annotated[Caller, Depends(get_current_caller)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]
ServiceDep = Annotated[AssistantService, Depends(get_assistant_service)]
ConversationId = Annotated[str, Path(min_length=1, max_length=32)]


@router.post("/chat", response_model=ApiResponse)
async def chat(
    request: Request, body: ChatRequest, caller: CallerDep, db: DbDep, svc: ServiceDep
) -> ApiResponse:
    reply = await svc.chat(db, caller, body.message, body.conversation_id)
    return respond(request, reply.model_dump(mode="json"))


@router.get("/conversations", response_model=ApiResponse)
async def list_conversations(
    request: Request,
    caller: CallerDep,
    db: DbDep,
    svc: ServiceDep,
    query: Annotated[ConversationListQuery, Query()],
) -> ApiResponse:
    result = await svc.list_conversations(db, caller, query)
    return respond(request, result.model_dump(mode="json"))


@router.get("/conversations/{conversation_id}", response_model=ApiResponse)
async def get_conversation(
    request: Request,
    conversation_id: ConversationId,
    caller: CallerDep,
    db: DbDep,
    svc: ServiceDep,
    query: Annotated[MessageQuery, Query()],
) -> ApiResponse:
    detail = await svc.get_conversation(db, caller, conversation_id, query)
    return respond(request, detail.model_dump(mode="json"))


@router.delete("/conversations/{conversation_id}", response_model=ApiResponse)
async def delete_conversation(
    request: Request,
    conversation_id: ConversationId,
    caller: CallerDep,
    db: DbDep,
    svc: ServiceDep,
) -> ApiResponse:
    result = await svc.delete_conversation(db, caller, conversation_id)
    return respond(request, {"id": result.id}, message=result.message)
