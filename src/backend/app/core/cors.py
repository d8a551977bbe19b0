"""
CORS 中间件

所有 OPTIONS 请求直接返回 204，不进入路由；其他响应追加 CORS 响应头。
"""
from typing import List, Optional
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.core.config import get_allowed_origins


ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization, X-User-Id"


class CORSPreflightMiddleware(BaseHTTPMiddleware):
    """
    CORS 中间件

    使用方式：
        from app.core.cors import CORSPreflightMiddleware
        app.add_middleware(CORSPreflightMiddleware)

    环境变量：
        CORS_ALLOW_ORIGINS: 逗号分隔的允许源，默认 *
    """

    def __init__(self, app, allowed_origins: Optional[List[str]] = None):
        super().__init__(app)
        self._allowed_origins = allowed_origins

    @property
    def allowed_origins(self) -> List[str]:
        """延迟加载允许的源"""
        if self._allowed_origins is None:
            self._allowed_origins = get_allowed_origins()
        return self._allowed_origins

    def _allow_origin(self, request: Request) -> Optional[str]:
        if "*" in self.allowed_origins:
            return "*"
        origin = request.headers.get("Origin")
        if origin and origin in self.allowed_origins:
            return origin
        return None

    def _apply_headers(self, request: Request, response: Response) -> Response:
        allow_origin = self._allow_origin(request)
        if allow_origin:
            response.headers["Access-Control-Allow-Origin"] = allow_origin
            if allow_origin != "*":
                response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = ALLOWED_METHODS
        response.headers["Access-Control-Allow-Headers"] = ALLOWED_HEADERS
        return response

    async def dispatch(self, request: Request, call_next):
        # 预检请求直接返回
        if request.method == "OPTIONS":
            return self._apply_headers(request, Response(status_code=status.HTTP_204_NO_CONTENT))

        response = await call_next(request)
        return self._apply_headers(request, response)
