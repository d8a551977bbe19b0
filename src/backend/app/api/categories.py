"""
技能分类API路由
"""
from typing import List, Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.auth import AdminIdDep
from app.core.database import get_db
from app.services.lesson_service import CategoryService


router = APIRouter(prefix="/categories", tags=["技能分类"])


# Schemas
class CategoryCreateRequest(BaseModel):
    name: Optional[str] = None


class CategoryResponse(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


# Endpoints
@router.get("", response_model=List[CategoryResponse])
async def list_categories(db: Session = Depends(get_db)):
    """列出所有分类（公开，按名称排序）"""
    return CategoryService.list_categories(db)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreateRequest,
    admin_id: AdminIdDep,
    db: Session = Depends(get_db)
):
    """创建分类，名称重复返回 409"""
    category = CategoryService.create_category(db, request.name)
    return {"message": "Category created successfully", "id": category.id, "name": category.name}


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: int, admin_id: AdminIdDep, db: Session = Depends(get_db)):
    """删除分类，仍被课程使用时返回 409"""
    CategoryService.delete_category(db, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
