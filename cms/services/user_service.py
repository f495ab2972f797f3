"""
User service: per-site user accounts.

Users are fetched without caching because the list is typically small
and the data changes infrequently.  Credentials are managed by the
authentication gateway, not here.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from cms.models import User
from cms.query import PaginatedResult, QuerySpec, ScopeContext, fetch_page
from cms.registries import USERS
from cms.schemas import UserCreate, UserResponse, UserUpdate
from cms.services.common import apply_update, get_scoped, soft_delete


async def get_users(
    db: AsyncSession, spec: QuerySpec, scope: ScopeContext
) -> PaginatedResult[UserResponse]:
    return await fetch_page(db, USERS, spec, scope, UserResponse.model_validate)


async def get_user(db: AsyncSession, scope: ScopeContext, user_id: int) -> User | None:
    return await get_scoped(db, USERS, scope, user_id)


async def create_user(db: AsyncSession, scope: ScopeContext, data: UserCreate) -> User:
    """
    Create a user in the caller's site.

    Username uniqueness within a site is enforced at the database level;
    the router is responsible for translating integrity errors into 409
    responses.
    """
    user = User(**data.model_dump(), site_id=scope.tenant_id)
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def update_user(
    db: AsyncSession, scope: ScopeContext, user_id: int, data: UserUpdate
) -> User | None:
    """
    Partially update a user.  Who may change which fields is decided by
    the router; a renamed username can still collide (IntegrityError).
    """
    user = await get_scoped(db, USERS, scope, user_id)
    if user is None:
        return None

    apply_update(user, data)
    await db.flush()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, scope: ScopeContext, user_id: int) -> bool:
    user = await get_scoped(db, USERS, scope, user_id)
    if user is None:
        return False

    await soft_delete(db, user)
    return True
