"""
调用方身份认证与管理员鉴权

安全说明：
- 当前身份来源为客户端自带的 X-User-Id 请求头（trust-on-read），
  不做签名、令牌或会话校验，请求头中的值即被视为已认证身份。
- 这是已知的不安全行为，仅适用于前置网关已完成认证的部署。
  认证逻辑集中在 Authenticator 抽象中，替换为真实的会话/令牌校验时
  只需提供新的实现并覆盖 get_authenticator 依赖，路由无需改动。
- 管理员鉴权为"先读后写"的同步检查，与后续操作不在同一事务内（存在 TOCTOU 窗口）。
"""
import logging
from abc import ABC, abstractmethod
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"


class Authenticator(ABC):
    """调用方身份解析抽象基类"""

    @abstractmethod
    def resolve_caller_id(self, request: Request) -> int:
        """
        解析请求对应的用户 ID

        Args:
            request: 当前请求

        Returns:
            已认证的用户 ID（正整数）

        Raises:
            AuthenticationError: 无法确定调用方身份
        """
        pass


class HeaderAuthenticator(Authenticator):
    """
    基于 X-User-Id 请求头的认证（不安全，见模块说明）

    请求头缺失、非数字或 <= 0 时拒绝。
    """

    def __init__(self, header_name: str = USER_ID_HEADER):
        self.header_name = header_name

    def resolve_caller_id(self, request: Request) -> int:
        raw = request.headers.get(self.header_name)
        if raw is None:
            raise AuthenticationError()
        try:
            user_id = int(raw.strip())
        except ValueError:
            raise AuthenticationError()
        if user_id <= 0:
            raise AuthenticationError()
        return user_id


_default_authenticator = HeaderAuthenticator()


def get_authenticator() -> Authenticator:
    """获取当前生效的认证器（测试或部署时可通过 dependency_overrides 替换）"""
    return _default_authenticator


def get_current_user_id(
    request: Request,
    authenticator: Authenticator = Depends(get_authenticator),
) -> int:
    """需要登录的接口依赖：返回调用方用户 ID"""
    return authenticator.resolve_caller_id(request)


def require_admin(
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> int:
    """仅管理员可访问的接口依赖：返回管理员用户 ID"""
    role = UserService.resolve_role(db, user_id)
    if role != "admin":
        logger.warning(f"非管理员访问管理接口被拒绝: user_id={user_id}, role={role}")
        raise AuthorizationError()
    return user_id


# 依赖注入类型别名
CallerIdDep = Annotated[int, Depends(get_current_user_id)]
AdminIdDep = Annotated[int, Depends(require_admin)]
