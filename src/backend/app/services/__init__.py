"""
Services package
"""
from .user_service import UserService
from .progress_service import ProgressService
from .note_service import NoteService
from .reflection_service import ReflectionService
from .sprint_service import SprintService
from .lesson_service import CategoryService, LessonService
from .media_service import MediaService

__all__ = [
    "UserService",
    "ProgressService",
    "NoteService",
    "ReflectionService",
    "SprintService",
    "CategoryService",
    "LessonService",
    "MediaService",
]
