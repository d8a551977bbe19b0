"""
上传文件API路由
支持 HTTP Range 请求，供前端视频播放器拖动进度
"""
import logging
from typing import Optional
from fastapi import APIRouter, Header, status
from fastapi.responses import JSONResponse, StreamingResponse

from app.services.media_service import (
    MediaService,
    RangeNotSatisfiableError,
    content_type_for,
    parse_range_header,
)

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/uploads", tags=["上传文件"])


@router.get("/{file_path:path}")
def serve_upload(file_path: str, range_header: Optional[str] = Header(None, alias="Range")):
    """
    读取上传目录下的文件

    - 带 Range 请求头：返回 206 和对应字节段
    - 不带 Range：返回 200 和完整文件
    - Range 无法满足：返回 416，Content-Range 为 bytes */<size>
    """
    path = MediaService.resolve_upload_path(file_path)
    file_size = path.stat().st_size
    media_type = content_type_for(path)

    if not range_header:
        headers = {
            "Content-Length": str(file_size),
            "Accept-Ranges": "bytes",
        }
        return StreamingResponse(MediaService.iter_file(path), media_type=media_type, headers=headers)

    try:
        byte_range = parse_range_header(range_header, file_size)
    except RangeNotSatisfiableError as e:
        logger.info(f"无法满足的 Range 请求: path={file_path}, range={range_header}")
        return JSONResponse(
            status_code=e.status_code,
            content={"error": e.message},
            headers={"Content-Range": f"bytes */{e.file_size}"},
        )

    headers = {
        "Content-Range": byte_range.content_range(file_size),
        "Accept-Ranges": "bytes",
        "Content-Length": str(byte_range.length),
    }
    return StreamingResponse(
        MediaService.iter_file(path, byte_range.start, byte_range.length),
        status_code=status.HTTP_206_PARTIAL_CONTENT,
        media_type=media_type,
        headers=headers,
    )
