"""
运行配置

统一从环境变量读取配置，调用时读取，便于测试中 monkeypatch。
"""
import os
from pathlib import Path
from typing import List, Optional


def _get_project_root() -> Path:
    """获取项目根目录"""
    for parent in Path(__file__).resolve().parents:
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parents[4]


# ==================== 目录 ====================

UPLOADS_DIR_NAME = "uploads"
FRONTEND_DIR_NAME = "frontend/dist"


def get_uploads_dir() -> Path:
    """获取上传文件（视频等）根目录"""
    return Path(os.getenv("UPLOADS_DIR", str(_get_project_root() / UPLOADS_DIR_NAME)))


def get_frontend_dir() -> Path:
    """获取前端构建产物目录"""
    return Path(os.getenv("FRONTEND_DIR", str(_get_project_root() / FRONTEND_DIR_NAME)))


# ==================== 服务 ====================

def get_api_host() -> str:
    return os.getenv("API_HOST", "0.0.0.0")


def get_api_port() -> int:
    return int(os.getenv("API_PORT", "5050"))


def get_allowed_origins() -> List[str]:
    """
    获取 CORS 允许的源列表

    从环境变量 CORS_ALLOW_ORIGINS 读取，多个源用逗号分隔，默认允许所有源。
    """
    origins_str = os.getenv("CORS_ALLOW_ORIGINS", "*")
    origins = [origin.strip() for origin in origins_str.split(",") if origin.strip()]
    return origins or ["*"]


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


# ==================== 认证 ====================

def get_bcrypt_rounds() -> int:
    return int(os.getenv("BCRYPT_ROUNDS", "10"))


def get_admin_fallback_user_id() -> Optional[int]:
    """
    获取兜底管理员用户 ID

    仅在用户 role 字段为空（历史数据）时生效：该 ID 的用户被视为 admin。
    未设置或非法值时返回 None，表示关闭兜底规则。
    """
    raw = os.getenv("ADMIN_FALLBACK_USER_ID", "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None
