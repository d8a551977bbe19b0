"""
Sprint 管理API路由
"""
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.auth import AdminIdDep
from app.core.database import get_db
from app.services.sprint_service import SprintService


router = APIRouter(prefix="/sprints", tags=["Sprint管理"])


# Schemas
class SprintCreateRequest(BaseModel):
    """创建 Sprint 请求，max_duration_minutes 为分钟数"""
    title: Optional[str] = None
    description: Optional[str] = None
    video_url: Optional[str] = None
    max_duration_minutes: Any = None
    thumbnail_url: Optional[str] = None


class SprintActivateRequest(BaseModel):
    shouldActivate: bool = False


class SprintResponse(BaseModel):
    """Sprint 响应"""
    id: int
    title: str
    description: Optional[str]
    video_url: str
    max_duration_seconds: int
    is_active: bool
    thumbnail_url: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class SprintCreateResponse(SprintResponse):
    message: str


# Endpoints
@router.get("", response_model=List[SprintResponse])
async def list_sprints(db: Session = Depends(get_db)):
    """列出所有 Sprint（公开）"""
    return SprintService.list_sprints(db)


@router.post("", response_model=SprintCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_sprint(
    request: SprintCreateRequest,
    admin_id: AdminIdDep,
    db: Session = Depends(get_db)
):
    """创建 Sprint，默认不激活"""
    sprint = SprintService.create_sprint(
        db,
        request.title,
        request.description,
        request.video_url,
        request.max_duration_minutes,
        request.thumbnail_url,
    )
    return {"message": "Sprint created successfully", **SprintResponse.model_validate(sprint).model_dump()}


@router.delete("/{sprint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sprint(sprint_id: int, admin_id: AdminIdDep, db: Session = Depends(get_db)):
    """删除 Sprint"""
    SprintService.delete_sprint(db, sprint_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{sprint_id}/active")
async def set_sprint_active(
    sprint_id: int,
    request: SprintActivateRequest,
    admin_id: AdminIdDep,
    db: Session = Depends(get_db)
):
    """激活 / 取消激活 Sprint，激活时其他 Sprint 自动取消激活"""
    is_active = SprintService.set_active(db, sprint_id, request.shouldActivate)
    if is_active:
        return {"message": "Sprint set as active successfully", "is_active": True}
    return {"message": "Sprint set as inactive successfully", "is_active": False}
