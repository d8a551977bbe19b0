"""
前端静态资源路由
非 API 路径优先返回前端构建产物中的文件，不存在时回退到 index.html（SPA 路由）
"""
import logging
from pathlib import Path
from fastapi import APIRouter
from fastapi.responses import FileResponse

from app.core.config import get_frontend_dir
from app.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


router = APIRouter(tags=["前端"])

# 这些前缀下的未匹配路径不回退到前端，直接 404
RESERVED_PREFIXES = ("api", "uploads")


def _resolve_frontend_file(frontend_root: Path, requested_path: str) -> Path | None:
    """解析前端目录下的文件，越出目录或不存在时返回 None"""
    if not requested_path:
        return None
    candidate = (frontend_root / requested_path).resolve()
    try:
        candidate.relative_to(frontend_root)
    except ValueError:
        return None
    return candidate if candidate.is_file() else None


# 必须最后注册，否则会拦截其他路由
@router.get("/{requested_path:path}", include_in_schema=False)
async def spa_fallback(requested_path: str):
    """返回前端文件，找不到时回退到 index.html"""
    normalized = requested_path.strip("/")
    if normalized.split("/", 1)[0] in RESERVED_PREFIXES:
        raise NotFoundError("Route not found")

    frontend_root = get_frontend_dir().resolve()
    file_path = _resolve_frontend_file(frontend_root, normalized)
    if file_path:
        return FileResponse(file_path)

    index_path = frontend_root / "index.html"
    if index_path.is_file():
        logger.debug(f"SPA 回退: path={requested_path}")
        return FileResponse(index_path)

    raise NotFoundError("Route not found")
