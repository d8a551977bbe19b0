"""
日志配置
"""
import logging

from app.core.config import get_log_level

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging() -> None:
    """初始化根日志器，重复调用无副作用"""
    logging.basicConfig(level=get_log_level(), format=LOG_FORMAT)
    # SQL 语句日志默认关闭
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
