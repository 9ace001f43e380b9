"""UserAdminService — account management for admins.

Callers are checked by the router (``get_admin_caller``); this service only
enforces rules about the target account. Mutations run in ``transaction(db)``.
Deleting a user leaves their orders in place: ``orders.owner_id`` is a plain
column, so historical orders stay listable by admins.
"""
import logging
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.oc_common.database import transaction
from src.oc_common.errors import EmailExistsError, SelfDeletionError, UserNotFoundError
from src.oc_gateway.auth.password import hash_password
from src.oc_gateway.user.db_models import UserModel
from src.oc_gateway.user.schemas import (
    CreateUserRequest,
    UpdateUserRequest,
    UserDetail,
    UserListQuery,
    UserListResponse,
)
from src.oc_gateway.user.service import ensure_identity_available
from src.oc_order.application.schemas import PageMetaResponse
from src.oc_order.domain.access import Caller
from src.oc_order.domain.query import total_pages

logger = logging.getLogger(__name__)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _list_conditions(query: UserListQuery) -> list:
    conds = []
    if query.search:
        pattern = _like_pattern(query.search)
        conds.append(
            or_(
                UserModel.username.ilike(pattern, escape="\\"),
                UserModel.email.ilike(pattern, escape="\\"),
                UserModel.full_name.ilike(pattern, escape="\\"),
            )
        )
    if query.role is not None:
        conds.append(UserModel.role == query.role.value)
    if query.is_active is not None:
        conds.append(UserModel.is_active.is_(query.is_active))
    return conds


class UserAdminService:
    async def list_users(self, db: AsyncSession, query: UserListQuery) -> UserListResponse:
        conds = _list_conditions(query)
        count = await db.execute(select(func.count()).select_from(UserModel).where(*conds))
        total = int(count.scalar_one())
        rows = await db.execute(
            select(UserModel)
            .where(*conds)
            .order_by(UserModel.created_at.desc())
            .limit(query.limit)
            .offset((query.page - 1) * query.limit)
        )
        return UserListResponse(
            data=[UserDetail.from_model(u) for u in rows.scalars().all()],
            meta=PageMetaResponse(
                total=total,
                page=query.page,
                limit=query.limit,
                total_pages=total_pages(total, query.limit),
            ),
        )

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> UserDetail:
        return UserDetail.from_model(await self._load(db, user_id))

    async def create_user(
        self, db: AsyncSession, caller: Caller, req: CreateUserRequest
    ) -> UserDetail:
        async with transaction(db):
            await ensure_identity_available(db, req.username, str(req.email))
            user = UserModel(
                username=req.username,
                email=str(req.email),
                full_name=req.full_name,
                password_hash=hash_password(req.password),
                role=req.role.value,
                is_active=req.is_active,
            )
            db.add(user)
            await db.flush()
            await db.refresh(user)
        logger.info(
            "user created id=%s role=%s by=%s", user.id, user.role, caller.user_id
        )
        return UserDetail.from_model(user)

    async def update_user(
        self, db: AsyncSession, caller: Caller, user_id: uuid.UUID, req: UpdateUserRequest
    ) -> UserDetail:
        changes = req.changes()
        async with transaction(db):
            user = await self._load(db, user_id)
            new_email = changes.get("email")
            if new_email is not None and new_email != user.email:
                clash = await db.execute(
                    select(UserModel.id).where(
                        UserModel.email == new_email, UserModel.id != user.id
                    )
                )
                if clash.first() is not None:
                    raise EmailExistsError()
            for name, value in changes.items():
                setattr(user, name, value)
            await db.flush()
            await db.refresh(user)
        logger.info(
            "user updated id=%s fields=%s by=%s", user.id, sorted(changes), caller.user_id
        )
        return UserDetail.from_model(user)

    async def set_password(
        self, db: AsyncSession, caller: Caller, user_id: uuid.UUID, new_password: str
    ) -> None:
        async with transaction(db):
            user = await self._load(db, user_id)
            user.password_hash = hash_password(new_password)
            await db.flush()
        logger.info("user password reset id=%s by=%s", user_id, caller.user_id)

    async def delete_user(self, db: AsyncSession, caller: Caller, user_id: uuid.UUID) -> None:
        if str(user_id) == caller.user_id:
            raise SelfDeletionError()
        async with transaction(db):
            user = await self._load(db, user_id)
            await db.delete(user)
        logger.info("user deleted id=%s by=%s", user_id, caller.user_id)

    async def _load(self, db: AsyncSession, user_id: uuid.UUID) -> UserModel:
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(str(user_id))
        return user
