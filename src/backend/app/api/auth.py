"""
注册 / 登录API路由
"""
from typing import Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.user_service import UserService


router = APIRouter(tags=["认证"])


# Schemas
class SignupRequest(BaseModel):
    """注册请求"""
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """登录请求"""
    email: Optional[str] = None
    password: Optional[str] = None


class LoginUser(BaseModel):
    id: int
    name: str
    email: str
    role: str


class LoginResponse(BaseModel):
    """登录响应"""
    message: str
    user: LoginUser


# Endpoints
@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(request: SignupRequest, db: Session = Depends(get_db)):
    """注册新用户"""
    UserService.signup(db, request.name, request.email, request.password)
    return {"message": "Signup successful"}


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    邮箱 + 密码登录

    返回的 user.id 由前端保存，后续请求通过 X-User-Id 请求头携带
    """
    user = UserService.login(db, request.email, request.password)
    return {
        "message": "Login successful",
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": UserService.effective_role(user),
        },
    }
