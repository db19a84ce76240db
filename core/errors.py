"""Error taxonomy for the proposal → confirmation → execution pipeline.

Assembly-time errors (``ValidationError``, ``AuthorizationError``) abort the
whole proposal. Execution-time errors are recorded per operation and never
abort the batch.
"""

from __future__ import annotations

from storage.errors import NotFoundError, StoreError


class OperationsError(Exception):
    """Base class for pipeline errors."""


class ValidationError(OperationsError):
    """Malformed operation shape, limit violation, or unresolved domain reference."""

    def __init__(self, message: str, position: int | None = None) -> None:
        if position is not None:
            message = f"operation {position}: {message}"
        super().__init__(message)
        self.position = position


class AuthorizationError(OperationsError):
    """Proposed entity type is outside the conversation scope."""

    def __init__(self, message: str, position: int | None = None) -> None:
        if position is not None:
            message = f"operation {position}: {message}"
        super().__init__(message)
        self.position = position


class ExecutionError(OperationsError):
    """A single operation's backend call failed."""


class PolicyError(OperationsError):
    """The classification policy could not produce a usable decision."""


class TurnStateError(OperationsError):
    """A lifecycle call was made on a turn that is no longer pending."""


class TurnNotFoundError(OperationsError, LookupError):
    """No turn with this id exists for the requesting user."""


__all__ = [
    "OperationsError",
    "ValidationError",
    "AuthorizationError",
    "ExecutionError",
    "NotFoundError",
    "StoreError",
    "PolicyError",
    "TurnStateError",
    "TurnNotFoundError",
]
