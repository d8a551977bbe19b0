"""
用户管理API路由
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.auth import AdminIdDep, CallerIdDep
from app.core.database import get_db
from app.core.exceptions import AuthorizationError
from app.services.user_service import UserService


router = APIRouter(prefix="/users", tags=["用户管理"])


# Schemas
class RoleUpdateRequest(BaseModel):
    newRole: Optional[str] = None


class UserResponse(BaseModel):
    """用户响应（不含密码）"""
    id: int
    name: str
    email: str
    role: str
    streak_days: int
    created_at: Optional[datetime]


class UserStatsResponse(BaseModel):
    """用户学习统计响应"""
    totalSprints: int
    completedSprints: int
    totalMinutes: int
    streakDays: int
    weeklyProgress: int
    learningHours: float


# Endpoints
@router.get("", response_model=List[UserResponse])
async def list_users(admin_id: AdminIdDep, db: Session = Depends(get_db)):
    """列出所有用户，role 为空的历史数据按兜底规则计算"""
    return [
        {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": role,
            "streak_days": user.streak_days or 0,
            "created_at": user.created_at,
        }
        for user, role in UserService.list_users(db)
    ]


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int, admin_id: AdminIdDep, db: Session = Depends(get_db)):
    """删除用户"""
    UserService.delete_user(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{user_id}/role")
async def update_user_role(
    user_id: int,
    request: RoleUpdateRequest,
    admin_id: AdminIdDep,
    db: Session = Depends(get_db)
):
    """修改用户角色（admin / user）"""
    new_role = UserService.update_role(db, user_id, request.newRole)
    return {"message": "Role updated successfully", "newRole": new_role}


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def get_user_stats(user_id: int, caller_id: CallerIdDep, db: Session = Depends(get_db)):
    """获取学习统计，只能查看自己的数据"""
    if caller_id != user_id:
        raise AuthorizationError("You can only view your own stats")
    return UserService.get_user_stats(db, user_id)
