"""
业务异常定义

所有异常都携带 HTTP 状态码和返回给客户端的消息，由 main.py 中注册的
异常处理器统一渲染为 {"error": "..."}。
"""
from typing import Optional


class AppError(Exception):
    """应用异常基类"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationError(AppError):
    """缺少或非法的身份标识（X-User-Id）"""

    status_code = 401
    default_message = "Authentication required. X-User-Id header is missing or invalid."


class AuthorizationError(AppError):
    """身份合法但权限不足"""

    status_code = 403
    default_message = "Admin access required"


class ValidationError(AppError):
    """请求参数校验失败"""

    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class NotFoundError(AppError):
    """引用的实体不存在"""

    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """唯一键冲突或仍被引用"""

    status_code = 409
    default_message = "Conflict"


class ReferenceIntegrityError(AppError):
    """外键校验失败，属于调用方错误"""

    status_code = 400
    default_message = "Validation failed: referenced record does not exist."


class InternalError(AppError):
    """数据库或文件系统的其他错误，详细信息只记录在服务端日志"""

    status_code = 500
    default_message = "Internal server error"
