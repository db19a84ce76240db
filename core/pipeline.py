"""Chat pipeline: one user message in, one turn out.

Flow per message:
    context snapshot -> classification policy -> proposal assembler
    -> pending turn (user-gated) -> execution engine -> result

Each lifecycle call looks the turn up in ``PendingTurns``, derives the next
``TurnState`` and stores it back. Only the execution engine writes to the
workspace store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from config.schema import ChatkinSettings
from core.context.builder import ChatMessage, WorkspaceContextBuilder
from core.errors import ValidationError
from core.notifications import NotificationTrigger, build_channel
from core.operations.assembler import ProposalAssembler
from core.operations.executor import ExecutionEngine
from core.operations.turn import PendingTurns, TurnState
from core.operations.types import Scope
from core.policy.types import ClassificationPolicy, Clarify, Mode, Propose, Reply
from storage.workspace import WorkspaceStore

logger = logging.getLogger(__name__)


class ChatPipeline:
    def __init__(
        self,
        settings: ChatkinSettings,
        store: WorkspaceStore,
        policy: ClassificationPolicy,
        trigger: NotificationTrigger | None = None,
        turns: PendingTurns | None = None,
    ):
        self.settings = settings
        self.store = store
        self.policy = policy
        self.trigger = trigger or NotificationTrigger(settings.notifications, build_channel(settings.notifications))
        self.turns = turns or PendingTurns()
        self.builder = WorkspaceContextBuilder(store, settings.context)
        self.engine = ExecutionEngine(store)

    @classmethod
    def from_settings(
        cls,
        settings: ChatkinSettings,
        store: WorkspaceStore,
        policy: ClassificationPolicy | None = None,
    ) -> ChatPipeline:
        """Wire the default LangChain policy when none is supplied."""
        if policy is None:
            from core.policy.langchain_policy import LangChainPolicy

            policy = LangChainPolicy(settings, store)
        return cls(settings, store, policy)

    # ── message ──

    async def handle_message(
        self,
        user_id: str,
        message: str,
        scope: Scope | str = Scope.GLOBAL,
        mode: Mode = "action",
        project_id: str | None = None,
        history: Sequence[ChatMessage] = (),
    ) -> TurnState:
        scope = Scope(scope)
        if not message.strip():
            raise ValidationError("message must not be empty")

        snapshot = await asyncio.to_thread(self.builder.build, user_id, scope, project_id, history)
        decision = await self.policy.classify(message, scope, snapshot, mode, snapshot.history)

        if isinstance(decision, Clarify):
            state = TurnState.for_questions(user_id, scope, decision.questions, project_id)
        elif isinstance(decision, Propose):
            assembler = ProposalAssembler(snapshot, self.settings.assembly)
            proposal = assembler.assemble(decision.operations, rationale=decision.summary or None)
            state = TurnState.for_proposal(user_id, scope, proposal, project_id)
            await self.trigger.on_proposal(user_id, proposal)
        elif isinstance(decision, Reply):
            state = TurnState.for_reply(user_id, scope, decision.text, project_id)
            await self.trigger.on_reply(user_id, decision.text)
        else:
            raise TypeError(f"policy returned unsupported decision {type(decision).__name__}")

        logger.info("Turn %s for %s: %s", state.turn_id, user_id, state.status.value)
        return self.turns.put(state)

    # ── lifecycle ──

    def get(self, turn_id: str, user_id: str) -> TurnState:
        return self.turns.get(turn_id, user_id)

    def toggle(self, turn_id: str, user_id: str, index: int) -> TurnState:
        with self.turns.lock(turn_id):
            state = self.turns.get(turn_id, user_id)
            return self.turns.put(state.toggled(index))

    def edit(self, turn_id: str, user_id: str, index: int, payload: dict[str, Any]) -> TurnState:
        with self.turns.lock(turn_id):
            state = self.turns.get(turn_id, user_id)
            state.require_pending("edit")
            current = state.selection().get(index)

            snapshot = self.builder.build(user_id, state.scope, state.project_id)
            edited = ProposalAssembler(snapshot, self.settings.assembly).apply_edit(current, payload)
            return self.turns.put(state.edited(edited))

    def confirm(self, turn_id: str, user_id: str) -> TurnState:
        # Held across execution: a second confirm waits, then finds the turn settled.
        with self.turns.lock(turn_id):
            state = self.turns.get(turn_id, user_id)
            state.require_pending("confirm")

            result = self.engine.execute(user_id, state.selection().selected())
            return self.turns.put(state.executed(result.to_dict(), result.summary()))

    def cancel(self, turn_id: str, user_id: str) -> TurnState:
        with self.turns.lock(turn_id):
            state = self.turns.get(turn_id, user_id)
            cancelled = state.cancelled()
            logger.info("Turn %s cancelled; %d operations discarded", turn_id, len(state.operations))
            return self.turns.put(cancelled)
