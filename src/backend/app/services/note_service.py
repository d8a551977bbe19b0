"""
用户笔记服务
"""
from sqlalchemy.orm import Session

from app.core.database import upsert
from app.core.db_errors import translate_db_errors
from app.core.exceptions import ValidationError
from app.models import UserNote, utcnow


class NoteService:
    """用户笔记服务"""

    @staticmethod
    def get_note_text(db: Session, user_id: int, content_type: str, content_id: str) -> str:
        """获取笔记内容，不存在时返回空字符串"""
        with translate_db_errors(db, "fetch user notes"):
            note = db.query(UserNote).filter(
                UserNote.user_id == user_id,
                UserNote.content_type == content_type,
                UserNote.content_id == str(content_id)
            ).first()
        return note.note_text if note else ""

    @staticmethod
    def save_note(db: Session, user_id: int, content_type, content_id, note_text) -> None:
        """
        保存笔记（upsert，后写覆盖）

        note_text 原样存储，不校验其内部结构。

        Raises:
            ValidationError: 字段缺失
        """
        if not content_type or content_id is None or note_text is None:
            raise ValidationError("contentType, contentId, and noteText are required.")
        if not isinstance(note_text, str):
            raise ValidationError("noteText must be a string", field="noteText")

        now = utcnow()
        with translate_db_errors(
            db,
            "save user note",
            reference_message="Error saving note: Validation failed. Content or User ID does not exist. (Foreign Key Check Failed)",
            conflict_message="Error saving note: Duplicate content entry. (Unique Key Check Failed)",
        ):
            upsert(
                db,
                UserNote,
                values={
                    "user_id": user_id,
                    "content_type": str(content_type),
                    "content_id": str(content_id),
                    "note_text": note_text,
                    "created_at": now,
                    "updated_at": now,
                },
                conflict_columns=["user_id", "content_type", "content_id"],
                update_values={"note_text": note_text, "updated_at": now},
            )
            db.commit()
