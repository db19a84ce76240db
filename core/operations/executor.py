"""Execution engine: apply the selected operations, one at a time.

Each backend call is isolated. A failure is recorded against its operation
and the batch continues; there is no rollback and no retry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from core.errors import ExecutionError
from core.operations.types import EntityType, OperationKind, ProposedOperation
from storage.errors import NotFoundError
from storage.workspace import WorkspaceStore

logger = logging.getLogger(__name__)

_PAST_TENSE = {
    OperationKind.CREATE: "Created",
    OperationKind.UPDATE: "Updated",
    OperationKind.DELETE: "Deleted",
}


@dataclass
class OperationOutcome:
    index: int
    label: str
    status: Literal["success", "error"]
    message: str
    error: ExecutionError | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "status": self.status, "message": self.message}


@dataclass
class ExecutionResult:
    outcomes: list[OperationOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "success")

    @property
    def error_count(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "error")

    @property
    def result_strings(self) -> list[str]:
        return [o.message for o in self.outcomes]

    def summary(self) -> str:
        """One line, e.g. ``2 succeeded, 1 failed: task "Buy milk" - it no longer exists``."""
        if not self.outcomes:
            return "Nothing was selected, so no changes were made."
        line = f"{self.success_count} succeeded"
        failures = [o for o in self.outcomes if o.status == "error"]
        if failures:
            details = "; ".join(f"{o.label} - {o.error}" for o in failures)
            line += f", {len(failures)} failed: {details}"
        return line

    def to_dict(self) -> dict[str, Any]:
        return {
            "success_count": self.success_count,
            "error_count": self.error_count,
            "result_strings": self.result_strings,
            "outcomes": [o.to_dict() for o in self.outcomes],
            "summary": self.summary(),
        }


class ExecutionEngine:
    def __init__(self, store: WorkspaceStore):
        self.store = store
        self._handlers: dict[tuple[OperationKind, EntityType], Callable[[str, ProposedOperation], Any]] = {
            (OperationKind.CREATE, EntityType.TASK): lambda u, op: self.store.create_task(u, op.payload()),
            (OperationKind.UPDATE, EntityType.TASK): lambda u, op: self.store.update_task(u, op.id, op.payload()),
            (OperationKind.DELETE, EntityType.TASK): lambda u, op: self.store.delete_task(u, op.id),
            (OperationKind.CREATE, EntityType.NOTE): lambda u, op: self.store.create_note(u, op.payload()),
            (OperationKind.UPDATE, EntityType.NOTE): lambda u, op: self.store.update_note(u, op.id, op.payload()),
            (OperationKind.DELETE, EntityType.NOTE): lambda u, op: self.store.delete_note(u, op.id),
            (OperationKind.CREATE, EntityType.PROJECT): lambda u, op: self.store.create_project(u, op.payload()),
            (OperationKind.UPDATE, EntityType.PROJECT): lambda u, op: self.store.update_project(
                u, op.id, op.payload()
            ),
            (OperationKind.DELETE, EntityType.PROJECT): lambda u, op: self.store.delete_project(u, op.id),
            (OperationKind.UPDATE, EntityType.FILE): lambda u, op: self.store.update_file_project(
                u, op.id, op.payload().get("project_id")
            ),
            (OperationKind.DELETE, EntityType.FILE): lambda u, op: self.store.delete_file(u, op.id),
        }

    def execute(self, user_id: str, operations: Sequence[ProposedOperation]) -> ExecutionResult:
        """Run ``operations`` sequentially in the order given."""
        result = ExecutionResult()
        for op in operations:
            result.outcomes.append(self._execute_one(user_id, op))
        logger.info(
            "Executed %d operations for %s: %d succeeded, %d failed",
            len(result.outcomes),
            user_id,
            result.success_count,
            result.error_count,
        )
        return result

    def _execute_one(self, user_id: str, op: ProposedOperation) -> OperationOutcome:
        label = op.label()
        handler = self._handlers.get((op.operation, op.type))
        try:
            if handler is None:
                raise ExecutionError(f"{op.operation.value} is not supported for {op.type.value}")
            handler(user_id, op)
        except NotFoundError as e:
            logger.warning("Operation %d (%s) target missing: %s", op.index, label, e)
            error = ExecutionError("it no longer exists")
            error.__cause__ = e
            return self._failure(op, label, error)
        except ExecutionError as e:
            return self._failure(op, label, e)
        except Exception as e:
            logger.exception("Operation %d (%s) failed", op.index, label)
            error = ExecutionError(str(e) or type(e).__name__)
            error.__cause__ = e
            return self._failure(op, label, error)

        return OperationOutcome(
            index=op.index,
            label=label,
            status="success",
            message=f"✓ {_PAST_TENSE[op.operation]} {label}",
        )

    @staticmethod
    def _failure(op: ProposedOperation, label: str, error: ExecutionError) -> OperationOutcome:
        return OperationOutcome(
            index=op.index,
            label=label,
            status="error",
            message=f"✗ Failed to {op.operation.value} {label}: {error}",
            error=error,
        )
