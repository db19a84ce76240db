"""Per-turn state and the registry of turns awaiting a user decision.

A ``TurnState`` is an immutable value. Every lifecycle step takes one and
returns a new one; only ``pending`` turns accept toggle, edit, confirm or
cancel.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.errors import TurnNotFoundError, TurnStateError
from core.operations.selection import SelectionStore
from core.operations.types import Proposal, ProposedOperation, Scope
from core.policy.types import Question

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Cancelled. No changes were made."


class TurnStatus(str, Enum):
    CLARIFYING = "clarifying"
    REPLIED = "replied"
    PENDING = "pending"
    EXECUTED = "executed"
    CANCELLED = "cancelled"


def _new_turn_id() -> str:
    return f"turn_{uuid.uuid4().hex[:16]}"


class TurnState(BaseModel):
    model_config = ConfigDict(frozen=True)

    turn_id: str = Field(default_factory=_new_turn_id)
    user_id: str
    scope: Scope
    project_id: str | None = None
    status: TurnStatus
    summary: str = ""
    operations: list[ProposedOperation] = Field(default_factory=list)
    selected: frozenset[int] = frozenset()
    questions: list[Question] = Field(default_factory=list)
    result: dict[str, Any] | None = None

    # ── constructors ──

    @classmethod
    def for_proposal(cls, user_id: str, scope: Scope, proposal: Proposal, project_id: str | None = None) -> TurnState:
        return cls(
            user_id=user_id,
            scope=scope,
            project_id=project_id,
            status=TurnStatus.PENDING,
            summary=proposal.summary,
            operations=proposal.operations,
            selected=frozenset(op.index for op in proposal.operations),
        )

    @classmethod
    def for_questions(
        cls, user_id: str, scope: Scope, questions: list[Question], project_id: str | None = None
    ) -> TurnState:
        return cls(
            user_id=user_id,
            scope=scope,
            project_id=project_id,
            status=TurnStatus.CLARIFYING,
            questions=questions,
        )

    @classmethod
    def for_reply(cls, user_id: str, scope: Scope, text: str, project_id: str | None = None) -> TurnState:
        return cls(user_id=user_id, scope=scope, project_id=project_id, status=TurnStatus.REPLIED, summary=text)

    # ── views ──

    @property
    def awaiting_response(self) -> bool:
        return self.status in (TurnStatus.PENDING, TurnStatus.CLARIFYING)

    def selection(self) -> SelectionStore:
        return SelectionStore(self.operations, self.selected)

    def to_message(self) -> dict[str, Any]:
        """Render as the assistant chat message the UI shows for this turn."""
        message: dict[str, Any] = {
            "role": "assistant",
            "turn_id": self.turn_id,
            "status": self.status.value,
            "content": self.summary,
            "awaiting_response": self.awaiting_response,
        }
        if self.status == TurnStatus.PENDING:
            message["operations"] = [op.to_dict() for op in self.operations]
            message["selected_operations"] = sorted(self.selected)
        if self.questions:
            message["questions"] = [{"question": q.question, "options": q.choices} for q in self.questions]
        if self.result is not None:
            message["result"] = self.result
        return message

    # ── lifecycle ──

    def require_pending(self, action: str) -> None:
        if self.status != TurnStatus.PENDING:
            raise TurnStateError(f"cannot {action} turn {self.turn_id}: it is {self.status.value}")

    def toggled(self, index: int) -> TurnState:
        self.require_pending("toggle")
        store = self.selection()
        store.toggle(index)
        return self.model_copy(update={"selected": store.selected_indices})

    def edited(self, op: ProposedOperation) -> TurnState:
        self.require_pending("edit")
        store = self.selection()
        store.edit(op.index, op)
        return self.model_copy(update={"operations": store.operations})

    def executed(self, result: dict[str, Any], summary: str) -> TurnState:
        self.require_pending("confirm")
        return self.model_copy(update={"status": TurnStatus.EXECUTED, "result": result, "summary": summary})

    def cancelled(self) -> TurnState:
        self.require_pending("cancel")
        return self.model_copy(
            update={"status": TurnStatus.CANCELLED, "operations": [], "selected": frozenset(), "summary": CANCELLED_MESSAGE}
        )


class PendingTurns:
    """In-memory registry of turns keyed by ``turn_id``.

    Turns stay readable after they settle so clients can fetch the outcome,
    but only the most recent ``max_settled`` settled turns are kept.
    Lifecycle steps on one turn serialize on that turn's lock.
    """

    def __init__(self, max_settled: int = 500) -> None:
        self.max_settled = max_settled
        self._turns: dict[str, TurnState] = {}
        self._settled: OrderedDict[str, None] = OrderedDict()
        self._turn_locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def __len__(self) -> int:
        return len(self._turns)

    def lock(self, turn_id: str) -> threading.Lock:
        with self._guard:
            lock = self._turn_locks.get(turn_id)
            if lock is None:
                lock = self._turn_locks[turn_id] = threading.Lock()
            return lock

    def put(self, state: TurnState) -> TurnState:
        with self._guard:
            self._turns[state.turn_id] = state
            if state.status != TurnStatus.PENDING:
                self._settled[state.turn_id] = None
                self._evict()
        return state

    def get(self, turn_id: str, user_id: str) -> TurnState:
        state = self._turns.get(turn_id)
        if state is None or state.user_id != user_id:
            raise TurnNotFoundError(f"turn {turn_id} not found")
        return state

    def pending_for(self, user_id: str) -> list[TurnState]:
        return [s for s in self._turns.values() if s.user_id == user_id and s.status == TurnStatus.PENDING]

    def discard(self, turn_id: str) -> None:
        with self._guard:
            self._drop(turn_id)

    def _evict(self) -> None:
        while len(self._settled) > self.max_settled:
            turn_id, _ = self._settled.popitem(last=False)
            self._drop(turn_id)
            logger.debug("Evicted settled turn %s", turn_id)

    def _drop(self, turn_id: str) -> None:
        self._turns.pop(turn_id, None)
        self._settled.pop(turn_id, None)
        self._turn_locks.pop(turn_id, None)
