"""End-to-end turn lifecycle through ChatPipeline with a scripted policy."""

import threading
import time

import pytest

from config.schema import ChatkinSettings
from core.context.builder import ChatMessage
from core.errors import AuthorizationError, TurnNotFoundError, TurnStateError, ValidationError
from core.notifications import LoggingNotificationChannel, NotificationTrigger
from core.operations.turn import CANCELLED_MESSAGE, TurnStatus
from core.operations.types import Scope
from core.pipeline import ChatPipeline
from core.policy.types import Clarify, Propose, Question, Reply
from fakes.notifications import RecordingChannel
from fakes.policy import ScriptedPolicy
from fakes.workspace import RecordingStore, make_store, seed_domains

USER = "user-1"


@pytest.fixture
def store(tmp_path):
    s = make_store(tmp_path)
    yield s
    s.close()


@pytest.fixture
def domains(store):
    return seed_domains(store, USER)


@pytest.fixture
def channel():
    return RecordingChannel()


def _pipeline(store, policy, channel=None, **settings):
    config = ChatkinSettings(**settings)
    trigger = NotificationTrigger(config.notifications, channel or LoggingNotificationChannel())
    return ChatPipeline(config, store, policy, trigger=trigger)


def _create(title, **data):
    return {"operation": "create", "type": "task", "data": {"title": title, **data}}


@pytest.mark.asyncio
async def test_propose_then_confirm(store, domains, channel):
    policy = ScriptedPolicy(Propose(operations=[_create("Buy milk", domain="Body")]))
    pipeline = _pipeline(store, policy, channel)

    state = await pipeline.handle_message(USER, "Buy milk")
    assert state.status == TurnStatus.PENDING
    assert state.summary == "I'll create 1 task"
    assert store.query_tasks(USER) == []
    assert channel.delivered[0][1].kind == "proposal"

    done = pipeline.confirm(state.turn_id, USER)
    assert done.status == TurnStatus.EXECUTED
    assert done.summary == "1 succeeded"
    tasks = store.query_tasks(USER)
    assert [(t.title, t.project_id) for t in tasks] == [("Buy milk", domains["Body"].id)]


@pytest.mark.asyncio
async def test_cancel_writes_nothing(store, domains):
    recording = RecordingStore(store)
    policy = ScriptedPolicy(Propose(operations=[_create("A"), _create("B"), _create("C")]))
    pipeline = _pipeline(recording, policy)

    state = await pipeline.handle_message(USER, "three things")
    cancelled = pipeline.cancel(state.turn_id, USER)

    assert cancelled.status == TurnStatus.CANCELLED
    assert cancelled.summary == CANCELLED_MESSAGE
    assert cancelled.operations == []
    assert recording.writes == []
    with pytest.raises(TurnStateError):
        pipeline.confirm(state.turn_id, USER)


@pytest.mark.asyncio
async def test_toggle_limits_execution_to_selection(store, domains):
    policy = ScriptedPolicy(Propose(operations=[_create("A"), _create("B"), _create("C")]))
    pipeline = _pipeline(store, policy)

    state = await pipeline.handle_message(USER, "three things")
    pipeline.toggle(state.turn_id, USER, 1)
    done = pipeline.confirm(state.turn_id, USER)

    assert done.result["success_count"] == 2
    assert {t.title for t in store.query_tasks(USER)} == {"A", "C"}


@pytest.mark.asyncio
async def test_nothing_selected(store, domains):
    policy = ScriptedPolicy(Propose(operations=[_create("A")]))
    pipeline = _pipeline(store, policy)
    state = await pipeline.handle_message(USER, "a")
    pipeline.toggle(state.turn_id, USER, 0)
    done = pipeline.confirm(state.turn_id, USER)
    assert done.summary == "Nothing was selected, so no changes were made."
    assert store.query_tasks(USER) == []


class _SlowCreates(RecordingStore):
    def create_task(self, user_id, data):
        time.sleep(0.2)
        return self._inner.create_task(user_id, data)


@pytest.mark.asyncio
async def test_concurrent_confirms_execute_once(store, domains):
    slow = _SlowCreates(store)
    pipeline = _pipeline(slow, ScriptedPolicy(Propose(operations=[_create("Once")])))
    state = await pipeline.handle_message(USER, "once")

    outcomes = []

    def confirm():
        try:
            outcomes.append(pipeline.confirm(state.turn_id, USER).status)
        except TurnStateError:
            outcomes.append("rejected")

    threads = [threading.Thread(target=confirm) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes) == ["executed", "rejected"]
    assert [t.title for t in store.query_tasks(USER)] == ["Once"]


@pytest.mark.asyncio
async def test_edit_then_toggle_keeps_edit(store, domains):
    policy = ScriptedPolicy(Propose(operations=[_create("A"), _create("B")]))
    pipeline = _pipeline(store, policy)
    state = await pipeline.handle_message(USER, "two")

    edited = pipeline.edit(state.turn_id, USER, 1, {"title": "B edited", "domain": "Mind"})
    assert edited.operations[1].payload()["project_id"] == domains["Mind"].id
    pipeline.toggle(state.turn_id, USER, 0)
    pipeline.confirm(state.turn_id, USER)

    tasks = store.query_tasks(USER)
    assert [(t.title, t.project_id) for t in tasks] == [("B edited", domains["Mind"].id)]


@pytest.mark.asyncio
async def test_invalid_edit_leaves_turn_unchanged(store, domains):
    policy = ScriptedPolicy(Propose(operations=[_create("A")]))
    pipeline = _pipeline(store, policy)
    state = await pipeline.handle_message(USER, "a")

    with pytest.raises(ValidationError, match="title exceeds"):
        pipeline.edit(state.turn_id, USER, 0, {"title": "x" * 80})
    assert pipeline.get(state.turn_id, USER).operations[0].payload()["title"] == "A"


@pytest.mark.asyncio
async def test_partial_failure_reported(store, domains):
    policy = ScriptedPolicy(
        Propose(operations=[_create("Keep"), {"operation": "delete", "type": "task", "id": "ghost"}])
    )
    pipeline = _pipeline(store, policy)
    state = await pipeline.handle_message(USER, "mixed")
    done = pipeline.confirm(state.turn_id, USER)

    assert done.result["success_count"] == 1
    assert done.result["error_count"] == 1
    assert done.summary == "1 succeeded, 1 failed: task ghost - it no longer exists"
    assert [t.title for t in store.query_tasks(USER)] == ["Keep"]


@pytest.mark.asyncio
async def test_invalid_proposal_is_rejected_whole(store, domains, channel):
    policy = ScriptedPolicy(Propose(operations=[_create("Fine"), _create("Bad", domain="Nowhere")]))
    pipeline = _pipeline(store, policy, channel)
    with pytest.raises(ValidationError, match="operation 1"):
        await pipeline.handle_message(USER, "x")
    assert len(pipeline.turns) == 0
    assert channel.delivered == []


@pytest.mark.asyncio
async def test_scope_violation(store, domains):
    policy = ScriptedPolicy(Propose(operations=[{"operation": "create", "type": "note", "data": {"title": "N"}}]))
    pipeline = _pipeline(store, policy)
    with pytest.raises(AuthorizationError):
        await pipeline.handle_message(USER, "note please", scope=Scope.TASKS)


@pytest.mark.asyncio
async def test_project_scope_assigns_project(store, domains):
    policy = ScriptedPolicy(Propose(operations=[_create("Budget")]))
    pipeline = _pipeline(store, policy)
    finance = domains["Finance"].id
    state = await pipeline.handle_message(USER, "budget", scope="project", project_id=finance)
    pipeline.confirm(state.turn_id, USER)
    assert store.query_tasks(USER)[0].project_id == finance


@pytest.mark.asyncio
async def test_clarify_turn(store):
    policy = ScriptedPolicy(
        Clarify(
            questions=[
                Question(question="Where?", options=["Beach", "City"]),
                Question(question="When?", options=["June", "August"]),
            ]
        )
    )
    pipeline = _pipeline(store, policy)
    state = await pipeline.handle_message(USER, "Plan my vacation")
    assert state.status == TurnStatus.CLARIFYING
    assert state.to_message()["questions"][0]["options"] == ["Beach", "City", "Other"]
    with pytest.raises(TurnStateError):
        pipeline.confirm(state.turn_id, USER)


@pytest.mark.asyncio
async def test_reply_triggers_insight(store, channel):
    text = "I noticed you finish most tasks before noon. " * 3
    pipeline = _pipeline(store, ScriptedPolicy(Reply(text=text)), channel)
    state = await pipeline.handle_message(USER, "How am I doing?", mode="chat")
    assert state.status == TurnStatus.REPLIED
    assert channel.delivered[0][1].kind == "insight"


@pytest.mark.asyncio
async def test_history_passed_to_policy(store):
    policy = ScriptedPolicy(Reply(text="ok"))
    history = [ChatMessage(role="user", content=f"m{i}") for i in range(15)]
    await _pipeline(store, policy).handle_message(USER, "hi", history=history)
    assert [m.content for m in policy.calls[0]["history"]] == [f"m{i}" for i in range(5, 15)]


@pytest.mark.asyncio
async def test_empty_message_rejected(store):
    with pytest.raises(ValidationError, match="empty"):
        await _pipeline(store, ScriptedPolicy()).handle_message(USER, "   ")


@pytest.mark.asyncio
async def test_turns_are_user_scoped(store, domains):
    pipeline = _pipeline(store, ScriptedPolicy(Propose(operations=[_create("A")])))
    state = await pipeline.handle_message(USER, "a")
    with pytest.raises(TurnNotFoundError):
        pipeline.confirm(state.turn_id, "someone-else")


@pytest.mark.asyncio
async def test_snapshot_is_built_off_the_event_loop(store):
    seen = []

    class ThreadNoting(RecordingStore):
        def query_projects(self, *args, **kwargs):
            seen.append(threading.get_ident())
            return self._inner.query_projects(*args, **kwargs)

    await _pipeline(ThreadNoting(store), ScriptedPolicy(Reply(text="ok"))).handle_message(USER, "hi")
    assert seen and threading.get_ident() not in seen
