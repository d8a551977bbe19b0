"""
路由访问级别表

从已注册路由的依赖树推导每个接口的访问级别（公开 / 需登录 / 需管理员），
便于审计和测试。
"""
import logging
from dataclasses import dataclass
from typing import List

from fastapi import FastAPI
from fastapi.dependencies.models import Dependant
from fastapi.routing import APIRoute

from app.core.auth import get_current_user_id, require_admin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteAccess:
    method: str
    path: str
    requires_auth: bool
    requires_admin: bool


def _dependency_calls(dependant: Dependant) -> set:
    calls = set()
    for sub in dependant.dependencies:
        if sub.call is not None:
            calls.add(sub.call)
        calls |= _dependency_calls(sub)
    return calls


def describe_routes(app: FastAPI) -> List[RouteAccess]:
    """
    列出应用所有接口的访问级别

    Returns:
        list[RouteAccess]: 按路径、方法排序
    """
    table = []
    for route in app.routes:
        if not isinstance(route, APIRoute):
            continue
        calls = _dependency_calls(route.dependant)
        is_admin = require_admin in calls
        for method in route.methods:
            table.append(RouteAccess(
                method=method,
                path=route.path,
                requires_auth=is_admin or get_current_user_id in calls,
                requires_admin=is_admin,
            ))
    return sorted(table, key=lambda item: (item.path, item.method))


def log_route_table(app: FastAPI) -> List[RouteAccess]:
    """启动时输出路由访问级别表，需登录的接口一个都没有时给出警告"""
    table = describe_routes(app)
    admin_count = sum(1 for item in table if item.requires_admin)
    auth_count = sum(1 for item in table if item.requires_auth and not item.requires_admin)
    logger.info(
        f"路由访问级别: 共 {len(table)} 个接口, 管理员 {admin_count}, "
        f"需登录 {auth_count}, 公开 {len(table) - admin_count - auth_count}"
    )
    for item in table:
        level = "admin" if item.requires_admin else "auth" if item.requires_auth else "public"
        logger.debug(f"  {item.method:<6} {item.path} [{level}]")
    if auth_count + admin_count == 0:
        logger.warning("未找到需要认证的接口，路由表可能未能读取已注册的子路由")
    return table
