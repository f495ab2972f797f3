from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from cms.cache import Cache, get_cache
from cms.database import get_db
from cms.dependencies import ListParams, get_scope, require_role
from cms.enums import UserType
from cms.query import PaginatedResult, ScopeContext
from cms.registries import PROMOS
from cms.schemas import PromoCreate, PromoResponse, PromoUpdate
from cms.services import promo_service

router = APIRouter(prefix="/api/v1/promos", tags=["promos"])

@router.get("", response_model=PaginatedResult[PromoResponse])
async def list_promos(
    params: ListParams = Depends(),
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    return await promo_service.get_promos(db, params.to_spec(PROMOS), scope)

@router.get("/active", response_model=list[PromoResponse])
async def list_active_promos(
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    return await promo_service.get_active_promos(db, cache, scope)

@router.get("/{promo_id}", response_model=PromoResponse)
async def get_promo(
    promo_id: int,
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    promo = await promo_service.get_promo(db, scope, promo_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo not found")
    return promo

@router.post("", status_code=201, response_model=PromoResponse)
async def create_promo(
    data: PromoCreate,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    return await promo_service.create_promo(db, cache, scope, data)

@router.put("/{promo_id}", response_model=PromoResponse)
async def update_promo(
    promo_id: int,
    data: PromoUpdate,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    promo = await promo_service.update_promo(db, cache, scope, promo_id, data)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo not found")
    return promo

@router.patch("/{promo_id}/toggle", response_model=PromoResponse)
async def toggle_promo_status(
    promo_id: int,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    promo = await promo_service.toggle_status(db, cache, scope, promo_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promo not found")
    return promo

@router.delete("/{promo_id}", status_code=204)
async def delete_promo(
    promo_id: int,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    deleted = await promo_service.delete_promo(db, cache, scope, promo_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Promo not found")
