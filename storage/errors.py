"""Storage-level errors shared by all workspace providers."""

from __future__ import annotations


class StoreError(RuntimeError):
    """Backend fault while reading or writing workspace rows."""


class NotFoundError(LookupError):
    """An update/delete referenced a row that does not exist for this user."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id
