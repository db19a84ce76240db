from .container import StorageContainer
from .contracts import FileRepo, NoteRepo, ProjectRepo, TaskRepo
from .errors import NotFoundError, StoreError
from .models import FileRow, NoteRow, ProjectRow, QueryFilters, TaskRow
from .workspace import WorkspaceStore

__all__ = [
    "StorageContainer",
    "WorkspaceStore",
    "TaskRepo",
    "NoteRepo",
    "ProjectRepo",
    "FileRepo",
    "TaskRow",
    "NoteRow",
    "ProjectRow",
    "FileRow",
    "QueryFilters",
    "NotFoundError",
    "StoreError",
]
