"""
用户笔记API路由
"""
from typing import Optional, Union
from pydantic import BaseModel
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import CallerIdDep
from app.core.database import get_db
from app.services.note_service import NoteService


router = APIRouter(prefix="/notes", tags=["笔记"])


# Schemas
class NoteSaveRequest(BaseModel):
    """笔记保存请求，noteText 原样存储（代码库等场景为 JSON 字符串）"""
    contentType: Optional[str] = None
    contentId: Optional[Union[int, str]] = None
    noteText: Optional[str] = None


# Endpoints
@router.get("/{content_type}/{content_id}")
async def get_note(
    content_type: str,
    content_id: str,
    user_id: CallerIdDep,
    db: Session = Depends(get_db)
):
    """获取笔记，不存在时返回空字符串"""
    return {"note_text": NoteService.get_note_text(db, user_id, content_type, content_id)}


@router.post("")
@router.put("")
async def save_note(
    request: NoteSaveRequest,
    user_id: CallerIdDep,
    db: Session = Depends(get_db)
):
    """保存笔记（upsert）"""
    NoteService.save_note(db, user_id, request.contentType, request.contentId, request.noteText)
    return {"message": "Note saved successfully"}
