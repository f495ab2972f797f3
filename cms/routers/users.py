from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from cms.authorization import check_permission
from cms.database import get_db
from cms.dependencies import ListParams, get_role, get_scope, get_user_id, require_role
from cms.enums import UserType
from cms.query import PaginatedResult, ScopeContext
from cms.registries import USERS
from cms.schemas import UserCreate, UserResponse, UserUpdate
from cms.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

# Fields only MANAGE and above may change, even on their own account.
_PRIVILEGED_FIELDS = {"type", "status"}

@router.get("", response_model=PaginatedResult[UserResponse])
async def list_users(
    params: ListParams = Depends(),
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_users(db, params.to_spec(USERS), scope)

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user(db, scope, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.post("", status_code=201, response_model=UserResponse)
async def create_user(
    data: UserCreate,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await user_service.create_user(db, scope, data)
    except IntegrityError:
        raise HTTPException(
            status_code=409,
            detail="A user with this username already exists in this site",
        )

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    data: UserUpdate,
    scope: ScopeContext = Depends(get_scope),
    role: UserType = Depends(get_role),
    caller_id: int | None = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    is_manager = check_permission(role, UserType.MANAGE)
    if not is_manager:
        if caller_id != user_id:
            raise HTTPException(
                status_code=403,
                detail="Only your own profile can be edited without MANAGE permission",
            )
        if data.model_fields_set & _PRIVILEGED_FIELDS:
            raise HTTPException(status_code=403, detail="Cannot change your own type or status")

    try:
        user = await user_service.update_user(db, scope, user_id, data)
    except IntegrityError:
        raise HTTPException(
            status_code=409,
            detail="A user with this username already exists in this site",
        )
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    caller_id: int | None = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
):
    if caller_id == user_id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    deleted = await user_service.delete_user(db, scope, user_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="User not found")
