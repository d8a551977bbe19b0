"""
FastAPI应用入口
"""
from dotenv import load_dotenv
from pathlib import Path
import logging

# 加载环境变量 - 优先从根目录加载，回退到当前目录
root_env = Path(__file__).parent.parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)
else:
    load_dotenv()

from app.core.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import (
    auth,
    progress,
    notes,
    reflections,
    sprints,
    categories,
    lessons,
    users,
    uploads,
    frontend,
)
from app.api.access import log_route_table
from app.core.config import get_allowed_origins, get_api_host, get_api_port
from app.core.cors import CORSPreflightMiddleware
from app.core.exceptions import AppError


app = FastAPI(
    title="Sprint Learning API",
    description="E-learning backend - sprints, lessons, reflections and progress",
    version="0.1.0"
)

# CORS配置 - 从环境变量读取允许的源
allow_origins = get_allowed_origins()
logger.info(f"CORS 配置: origins={allow_origins}")
app.add_middleware(CORSPreflightMiddleware, allowed_origins=allow_origins)


# ==================== 异常处理 ====================
# 所有错误响应统一为 {"error": "..."}

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # 未匹配的路径和方法统一按 404 返回
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        message = "Invalid JSON input"
    else:
        field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
        message = f"Invalid value for {field}"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"未处理的数据库错误: {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error. Database error logged on server."},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"未处理的异常: {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# ==================== 路由 ====================

app.include_router(auth.router, tags=["认证"])
app.include_router(progress.router, prefix="/api", tags=["学习进度"])
app.include_router(notes.router, prefix="/api", tags=["笔记"])
app.include_router(reflections.router, prefix="/api", tags=["课后反思"])
app.include_router(sprints.router, prefix="/api", tags=["Sprint管理"])
app.include_router(categories.router, prefix="/api", tags=["技能分类"])
app.include_router(lessons.router, prefix="/api", tags=["课程管理"])
app.include_router(users.router, prefix="/api", tags=["用户管理"])
app.include_router(uploads.router, tags=["上传文件"])


@app.get("/health")
async def health():
    """健康检查"""
    return {"status": "healthy"}


# 前端 SPA 回退必须最后注册
app.include_router(frontend.router)

log_route_table(app)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=get_api_host(), port=get_api_port())
