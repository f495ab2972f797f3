from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from cms.cache import Cache, get_cache
from cms.database import get_db
from cms.dependencies import ListParams, get_scope, require_role
from cms.enums import UserType
from cms.exceptions import InvalidReferenceError
from cms.query import PaginatedResult, ScopeContext
from cms.registries import CHANNELS
from cms.schemas import ChannelCreate, ChannelResponse, ChannelTree, ChannelUpdate
from cms.services import channel_service

router = APIRouter(prefix="/api/v1/channels", tags=["channels"])

@router.get("", response_model=PaginatedResult[ChannelResponse])
async def list_channels(
    params: ListParams = Depends(),
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    return await channel_service.get_channels(db, params.to_spec(CHANNELS), scope)

@router.get("/tree", response_model=list[ChannelTree])
async def get_channel_tree(
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    return await channel_service.get_tree(db, cache, scope)

@router.get("/{channel_id}", response_model=ChannelResponse)
async def get_channel(
    channel_id: int,
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    channel = await channel_service.get_channel(db, scope, channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    return channel

@router.post("", status_code=201, response_model=ChannelResponse)
async def create_channel(
    data: ChannelCreate,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    try:
        return await channel_service.create_channel(db, cache, scope, data)
    except InvalidReferenceError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

@router.put("/{channel_id}", response_model=ChannelResponse)
async def update_channel(
    channel_id: int,
    data: ChannelUpdate,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    try:
        channel = await channel_service.update_channel(db, cache, scope, channel_id, data)
    except InvalidReferenceError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")
    return channel

@router.delete("/{channel_id}", status_code=204)
async def delete_channel(
    channel_id: int,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    deleted = await channel_service.delete_channel(db, cache, scope, channel_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Channel not found")
