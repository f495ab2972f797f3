from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from cms.cache import Cache, get_cache
from cms.database import get_db
from cms.dependencies import ListParams, get_role, get_scope, get_user_id, require_role
from cms.enums import UserType
from cms.exceptions import InvalidReferenceError
from cms.query import PaginatedResult, ScopeContext
from cms.registries import ARTICLES
from cms.schemas import ArticleCreate, ArticleResponse, ArticleUpdate
from cms.services import article_service

router = APIRouter(prefix="/api/v1/articles", tags=["articles"])

@router.get("", response_model=PaginatedResult[ArticleResponse])
async def list_articles(
    params: ListParams = Depends(),
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    return await article_service.get_articles(db, cache, params.to_spec(ARTICLES), scope)

@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: int,
    scope: ScopeContext = Depends(get_scope),
    db: AsyncSession = Depends(get_db),
):
    article = await article_service.get_article(db, scope, article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article

@router.post("", status_code=201, response_model=ArticleResponse)
async def create_article(
    data: ArticleCreate,
    scope: ScopeContext = Depends(get_scope),
    role: UserType = Depends(get_role),
    user_id: int | None = Depends(get_user_id),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    try:
        return await article_service.create_article(db, cache, scope, data, role, user_id)
    except InvalidReferenceError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.EDITOR)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    try:
        article = await article_service.update_article(db, cache, scope, article_id, data)
    except InvalidReferenceError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article

@router.delete("/{article_id}", status_code=204)
async def delete_article(
    article_id: int,
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
    cache: Cache = Depends(get_cache),
):
    deleted = await article_service.delete_article(db, cache, scope, article_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Article not found")
