"""
上传文件（视频）服务
路径解析、Range 请求头解析与分块读取，供 /uploads 路由使用
"""
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from app.core.config import get_uploads_dir
from app.core.exceptions import AppError, NotFoundError

logger = logging.getLogger(__name__)

# 每次读取的块大小
CHUNK_SIZE = 64 * 1024

CONTENT_TYPES = {
    ".mp4": "video/mp4",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"

_RANGE_PATTERN = re.compile(r"^bytes=(\d*)-(\d*)$")


class RangeNotSatisfiableError(AppError):
    """Range 请求头无法满足（越界或格式错误）"""

    status_code = 416
    default_message = "Requested range not satisfiable"

    def __init__(self, file_size: int, message: Optional[str] = None):
        self.file_size = file_size
        super().__init__(message)


@dataclass(frozen=True)
class ByteRange:
    """闭区间 [start, end] 的字节范围"""
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, file_size: int) -> str:
        return f"bytes {self.start}-{self.end}/{file_size}"


def parse_range_header(range_header: str, file_size: int) -> ByteRange:
    """
    解析单段 Range 请求头

    支持 bytes=start-end、bytes=start-（到文件末尾）和 bytes=-N（最后 N 字节），
    end 超出文件长度时截断到最后一个字节。

    Raises:
        RangeNotSatisfiableError: 格式错误、多段范围或范围越界
    """
    match = _RANGE_PATTERN.match(range_header.strip())
    if not match:
        raise RangeNotSatisfiableError(file_size)

    start_str, end_str = match.groups()
    last_byte = file_size - 1

    if not start_str:
        # 后缀范围
        if not end_str:
            raise RangeNotSatisfiableError(file_size)
        suffix_length = int(end_str)
        if suffix_length == 0 or file_size == 0:
            raise RangeNotSatisfiableError(file_size)
        return ByteRange(start=max(0, file_size - suffix_length), end=last_byte)

    start = int(start_str)
    end = int(end_str) if end_str else last_byte
    if start > last_byte or end < start:
        raise RangeNotSatisfiableError(file_size)
    return ByteRange(start=start, end=min(end, last_byte))


def content_type_for(path: Path) -> str:
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


class MediaService:
    """上传文件服务"""

    @staticmethod
    def resolve_upload_path(relative_path: str, uploads_root: Optional[Path] = None) -> Path:
        """
        把请求路径解析为上传目录下的文件

        Args:
            relative_path: /uploads/ 之后的路径
            uploads_root: 上传根目录，默认读取配置

        Returns:
            Path: 已解析的绝对路径

        Raises:
            NotFoundError: 路径越出上传目录或文件不存在
        """
        root_path = (uploads_root or get_uploads_dir()).resolve()
        candidate = (root_path / relative_path.lstrip("/")).resolve()
        try:
            candidate.relative_to(root_path)
        except ValueError:
            logger.warning(f"拒绝访问上传目录之外的路径: {relative_path}")
            raise NotFoundError("File not found")

        if not candidate.is_file():
            raise NotFoundError("File not found")
        return candidate

    @staticmethod
    def iter_file(path: Path, start: int = 0, length: Optional[int] = None) -> Iterator[bytes]:
        """从 start 开始分块读取 length 字节（None 表示读到文件末尾）"""
        remaining = length
        with open(path, "rb") as f:
            f.seek(start)
            while remaining is None or remaining > 0:
                size = CHUNK_SIZE if remaining is None else min(CHUNK_SIZE, remaining)
                chunk = f.read(size)
                if not chunk:
                    break
                if remaining is not None:
                    remaining -= len(chunk)
                yield chunk
