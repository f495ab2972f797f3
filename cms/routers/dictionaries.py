from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from cms.database import get_db
from cms.dependencies import ListParams, get_scope, require_role
from cms.enums import DictType, UserType
from cms.query import PaginatedResult, ScopeContext
from cms.registries import DICTS
from cms.schemas import DictCreate, DictResponse, DictUpdate
from cms.services import dictionary_service

router = APIRouter(prefix="/api/v1/dictionaries", tags=["dictionaries"])

@router.get("", response_model=PaginatedResult[DictResponse])
async def list_dicts(
    params: ListParams = Depends(),
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    return await dictionary_service.get_dicts(db, params.to_spec(DICTS), scope)

@router.get("/type/{dict_type}", response_model=list[DictResponse])
async def list_dicts_by_type(
    dict_type: DictType,
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    return await dictionary_service.get_dicts_by_type(db, scope, dict_type)

@router.get("/{dict_id}", response_model=DictResponse)
async def get_dict(
    dict_id: int,
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    entry = await dictionary_service.get_dict(db, scope, dict_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Dictionary entry not found")
    return entry

@router.post("", status_code=201, response_model=DictResponse)
async def create_dict(
    data: DictCreate,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    return await dictionary_service.create_dict(db, scope, data)

@router.put("/{dict_id}", response_model=DictResponse)
async def update_dict(
    dict_id: int,
    data: DictUpdate,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    entry = await dictionary_service.update_dict(db, scope, dict_id, data)
    if not entry:
        raise HTTPException(status_code=404, detail="Dictionary entry not found")
    return entry

@router.delete("/{dict_id}", status_code=204)
async def delete_dict(
    dict_id: int,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    deleted = await dictionary_service.delete_dict(db, scope, dict_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Dictionary entry not found")
