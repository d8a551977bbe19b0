"""
Sprint 学习进度API路由
"""
from typing import Dict, Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import CallerIdDep
from app.core.database import get_db
from app.services.progress_service import ProgressService


router = APIRouter(prefix="/progress", tags=["学习进度"])


# Schemas
class ProgressEntry(BaseModel):
    progress: float
    completed: bool


class ProgressSaveRequest(BaseModel):
    """进度保存请求，is_completed 兼容 true/false 与 1/0"""
    sprint_id: Optional[int] = None
    progress_percentage: Optional[float] = None
    is_completed: Optional[bool] = None


# Endpoints
@router.get("", response_model=Dict[str, ProgressEntry])
async def get_progress(user_id: CallerIdDep, db: Session = Depends(get_db)):
    """获取当前用户所有 Sprint 的进度，键为 dynamic-sprint-<id>"""
    return ProgressService.get_progress_map(db, user_id)


@router.post("")
@router.put("")
async def save_progress(
    request: ProgressSaveRequest,
    user_id: CallerIdDep,
    db: Session = Depends(get_db)
):
    """保存进度（upsert，后写覆盖）"""
    ProgressService.save_progress(
        db,
        user_id,
        request.sprint_id,
        request.progress_percentage,
        request.is_completed,
    )
    return {"message": "Progress saved successfully"}
