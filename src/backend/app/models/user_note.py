"""
用户笔记模型
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint

from .base import Base, utcnow


class UserNote(Base):
    """
    用户笔记 - 每个 (user, content_type, content_id) 一条，upsert 写入，无版本历史

    note_text 对服务端不透明，部分内容类型（如 code vault）存放的是客户端序列化的 JSON 字符串。
    """
    __tablename__ = "user_notes"
    __table_args__ = (
        UniqueConstraint("user_id", "content_type", "content_id", name="uq_user_notes_user_content"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content_type = Column(String(50), nullable=False)  # video_sprint | lesson | code_vault ...
    content_id = Column(String(100), nullable=False)
    note_text = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<UserNote(user={self.user_id} type='{self.content_type}' content='{self.content_id}')>"
