"""SQLite storage provider implementations."""

from .file_repo import SQLiteFileRepo
from .note_repo import SQLiteNoteRepo
from .project_repo import SQLiteProjectRepo
from .task_repo import SQLiteTaskRepo

__all__ = [
    "SQLiteTaskRepo",
    "SQLiteNoteRepo",
    "SQLiteProjectRepo",
    "SQLiteFileRepo",
]
