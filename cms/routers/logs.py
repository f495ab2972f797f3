from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from cms.database import get_db
from cms.dependencies import ListParams, get_scope, require_role
from cms.enums import UserType
from cms.query import PaginatedResult, ScopeContext
from cms.registries import LOGS
from cms.schemas import LogResponse
from cms.services import audit_log_service

router = APIRouter(prefix="/api/v1/logs", tags=["logs"])

@router.get("", response_model=PaginatedResult[LogResponse])
async def list_logs(
    params: ListParams = Depends(),
    scope: ScopeContext = Depends(get_scope),
    _: UserType = Depends(require_role(UserType.MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    return await audit_log_service.get_logs(db, params.to_spec(LOGS), scope)
