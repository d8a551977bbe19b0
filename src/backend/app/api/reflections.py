"""
课后反思API路由
学员：草稿 / 提交 / 重新提交；管理员：待批改队列与批改
"""
from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import AdminIdDep, CallerIdDep
from app.core.database import get_db
from app.core.reflection_workflow import ReflectionStatus
from app.services.reflection_service import ReflectionService


router = APIRouter(tags=["课后反思"])


# Schemas
class ReflectionTextRequest(BaseModel):
    """反思文本请求"""
    reflection_text: Optional[str] = None


class ReflectionMarkRequest(BaseModel):
    """批改请求，score 的类型与范围由服务层校验"""
    reflection_id: Optional[int] = None
    score: Any = None
    admin_feedback: Optional[str] = None
    status: Optional[str] = None


class ReflectionResponse(BaseModel):
    """学员查看的反思"""
    id: Optional[int] = None
    reflection_text: str = ""
    status: str = ReflectionStatus.DRAFT.value
    score: Optional[int] = None
    admin_feedback: Optional[str] = None
    submitted_at: Optional[datetime] = None
    marked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MarkedReflectionResponse(ReflectionResponse):
    id: int
    user_id: int
    lesson_id: int


class MarkResponse(BaseModel):
    message: str
    reflection: MarkedReflectionResponse


class SubmittedReflectionResponse(BaseModel):
    """待批改队列中的一项"""
    id: int
    user_id: int
    lesson_id: int
    reflection_text: str
    status: str
    submitted_at: Optional[datetime]
    user_name: str
    user_email: str
    lesson_title: str
    lesson_description: Optional[str]


# Endpoints
@router.get("/lessons/{lesson_id}/reflection", response_model=ReflectionResponse)
async def get_reflection(lesson_id: int, user_id: CallerIdDep, db: Session = Depends(get_db)):
    """获取当前用户在该课程下的反思，不存在时返回默认草稿"""
    reflection = ReflectionService.get_reflection(db, user_id, lesson_id)
    if not reflection:
        return ReflectionResponse()
    return reflection


@router.post("/lessons/{lesson_id}/reflection")
async def save_reflection_draft(
    lesson_id: int,
    request: ReflectionTextRequest,
    user_id: CallerIdDep,
    db: Session = Depends(get_db)
):
    """保存草稿"""
    ReflectionService.save_draft(db, user_id, lesson_id, request.reflection_text)
    return {"message": "Reflection saved as draft"}


@router.post("/lessons/{lesson_id}/reflection/submit")
async def submit_reflection(
    lesson_id: int,
    request: ReflectionTextRequest,
    user_id: CallerIdDep,
    db: Session = Depends(get_db)
):
    """提交批改"""
    ReflectionService.submit(db, user_id, lesson_id, request.reflection_text)
    return {"message": "Reflection submitted for marking"}


@router.post("/lessons/{lesson_id}/reflection/resubmit")
async def resubmit_reflection(
    lesson_id: int,
    request: ReflectionTextRequest,
    user_id: CallerIdDep,
    db: Session = Depends(get_db)
):
    """被批改或驳回后重新提交"""
    ReflectionService.resubmit(db, user_id, lesson_id, request.reflection_text)
    return {"message": "Reflection resubmitted for marking"}


@router.get("/reflections/submitted", response_model=List[SubmittedReflectionResponse])
async def list_submitted_reflections(admin_id: AdminIdDep, db: Session = Depends(get_db)):
    """
    待批改队列

    按提交时间先后排序，先提交的先批改
    """
    rows = ReflectionService.list_submitted(db)
    return [
        {
            "id": reflection.id,
            "user_id": reflection.user_id,
            "lesson_id": reflection.lesson_id,
            "reflection_text": reflection.reflection_text,
            "status": reflection.status,
            "submitted_at": reflection.submitted_at,
            "user_name": user.name,
            "user_email": user.email,
            "lesson_title": lesson.title,
            "lesson_description": lesson.description,
        }
        for reflection, user, lesson in rows
    ]


@router.post("/reflections/mark", response_model=MarkResponse)
async def mark_reflection(
    request: ReflectionMarkRequest,
    admin_id: AdminIdDep,
    db: Session = Depends(get_db)
):
    """管理员批改：打分、写评语，状态置为 marked 或 rejected"""
    reflection = ReflectionService.mark(
        db,
        request.reflection_id,
        request.score,
        request.admin_feedback,
        request.status,
        marked_by=admin_id,
    )
    return {"message": "Reflection marked successfully", "reflection": reflection}
