"""
课程管理API路由
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.auth import AdminIdDep
from app.core.database import get_db
from app.services.lesson_service import LessonService


router = APIRouter(prefix="/lessons", tags=["课程管理"])


# Schemas
class LessonRequest(BaseModel):
    """
    创建 / 更新课程请求

    更新时只修改请求体中出现的字段
    """
    title: Optional[str] = None
    code_snippet: Optional[str] = None
    description: Optional[str] = None
    challenge: Optional[str] = None
    reflection: Optional[str] = None
    skill_category_id: Optional[int] = None
    level: Optional[str] = None


class LessonResponse(BaseModel):
    """课程响应，skill_category 为分类名称"""
    id: int
    title: str
    code_snippet: Optional[str]
    description: Optional[str]
    challenge: Optional[str]
    reflection: Optional[str]
    skill_category_id: Optional[int]
    skill_category: Optional[str]
    level: str
    created_at: Optional[datetime]


def _lesson_to_dict(lesson, category_name: Optional[str]) -> dict:
    return {
        "id": lesson.id,
        "title": lesson.title,
        "code_snippet": lesson.code_snippet,
        "description": lesson.description,
        "challenge": lesson.challenge,
        "reflection": lesson.reflection,
        "skill_category_id": lesson.skill_category_id,
        "skill_category": category_name,
        "level": lesson.level,
        "created_at": lesson.created_at,
    }


# Endpoints
@router.get("", response_model=List[LessonResponse])
async def list_lessons(db: Session = Depends(get_db)):
    """列出所有课程（公开，最新在前）"""
    return [_lesson_to_dict(lesson, name) for lesson, name in LessonService.list_lessons(db)]


@router.get("/{lesson_id}", response_model=LessonResponse)
async def get_lesson(lesson_id: int, db: Session = Depends(get_db)):
    """获取单个课程（公开）"""
    lesson, name = LessonService.get_lesson(db, lesson_id)
    return _lesson_to_dict(lesson, name)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_lesson(
    request: LessonRequest,
    admin_id: AdminIdDep,
    db: Session = Depends(get_db)
):
    """创建课程"""
    lesson = LessonService.create_lesson(db, request.model_dump())
    return {
        "message": "Lesson created successfully",
        "id": lesson.id,
        "title": lesson.title,
        "code_snippet": lesson.code_snippet,
        "description": lesson.description,
        "challenge": lesson.challenge,
        "reflection": lesson.reflection,
        "skill_category_id": lesson.skill_category_id,
        "level": lesson.level,
    }


@router.put("/{lesson_id}")
async def update_lesson(
    lesson_id: int,
    request: LessonRequest,
    admin_id: AdminIdDep,
    db: Session = Depends(get_db)
):
    """部分更新课程"""
    LessonService.update_lesson(db, lesson_id, request.model_dump(exclude_unset=True))
    return {"message": "Lesson updated successfully", "id": lesson_id}


@router.delete("/{lesson_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lesson(lesson_id: int, admin_id: AdminIdDep, db: Session = Depends(get_db)):
    """删除课程"""
    LessonService.delete_lesson(db, lesson_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
