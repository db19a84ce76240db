"""Supabase storage provider implementations."""

from .file_repo import SupabaseFileRepo
from .note_repo import SupabaseNoteRepo
from .project_repo import SupabaseProjectRepo
from .task_repo import SupabaseTaskRepo

__all__ = [
    "SupabaseTaskRepo",
    "SupabaseNoteRepo",
    "SupabaseProjectRepo",
    "SupabaseFileRepo",
]
