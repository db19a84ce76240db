"""Tests for LangChainPolicy's tool loop using a scripted chat model."""

import json
import threading
from datetime import date

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage, ToolMessage

from config.schema import ChatkinSettings
from core.context.builder import ChatMessage, WorkspaceContextBuilder
from core.errors import PolicyError
from core.operations.types import Scope
from core.policy import LangChainPolicy
from core.policy.types import Clarify, Propose, Reply
from fakes.policy import FakeChatModel, tool_call
from fakes.workspace import RecordingStore, make_store, seed_domains

USER = "user-1"
TODAY = date(2026, 10, 19)


@pytest.fixture
def store(tmp_path):
    s = make_store(tmp_path)
    seed_domains(s, USER)
    yield s
    s.close()


def _policy(store, model, **settings):
    return LangChainPolicy(ChatkinSettings(**settings), store, model_factory=lambda mode: model, today=lambda: TODAY)


def _snapshot(store, scope=Scope.GLOBAL, project_id=None):
    return WorkspaceContextBuilder(store).build(USER, scope, project_id)


@pytest.mark.asyncio
async def test_simple_request_proposes(store):
    model = FakeChatModel(
        tool_call(
            "propose_operations",
            {
                "summary": "I'll add milk to your list",
                "operations": [{"operation": "create", "type": "task", "data": {"title": "Buy milk"}}],
            },
        )
    )
    decision = await _policy(store, model).classify("Buy milk", Scope.GLOBAL, _snapshot(store), "action", [])

    assert isinstance(decision, Propose)
    assert decision.summary == "I'll add milk to your list"
    assert decision.operations == [{"operation": "create", "type": "task", "data": {"title": "Buy milk"}}]


@pytest.mark.asyncio
async def test_vague_request_asks_questions(store):
    model = FakeChatModel(
        tool_call(
            "ask_questions",
            {
                "questions": [
                    {"question": "Where are you going?", "options": ["Beach", "Mountains", "City", "Other"]},
                    {"question": "How long?", "options": ["A weekend", "A week"]},
                ]
            },
        )
    )
    decision = await _policy(store, model).classify("Plan my vacation", Scope.GLOBAL, _snapshot(store), "action", [])

    assert isinstance(decision, Clarify)
    assert [q.question for q in decision.questions] == ["Where are you going?", "How long?"]
    assert decision.questions[0].options == ["Beach", "Mountains", "City"]


@pytest.mark.asyncio
async def test_plain_text_is_reply(store):
    model = FakeChatModel(AIMessage(content="You have nothing due today."))
    decision = await _policy(store, model).classify("What's due?", Scope.GLOBAL, _snapshot(store), "chat", [])
    assert decision == Reply(text="You have nothing due today.")


@pytest.mark.asyncio
async def test_query_tool_results_fed_back(store):
    store.create_task(USER, {"title": "File taxes"})
    model = FakeChatModel(
        tool_call("query_tasks", {"filters": {"search_query": "tax"}}, call_id="q1"),
        tool_call("propose_operations", {"summary": "", "operations": [{"operation": "delete", "type": "task", "id": "x"}]}),
    )
    decision = await _policy(store, model).classify("Delete the tax task", Scope.GLOBAL, _snapshot(store), "action", [])

    assert isinstance(decision, Propose)
    second_call = model.invocations[1]
    tool_message = second_call[-1]
    assert isinstance(tool_message, ToolMessage)
    assert tool_message.tool_call_id == "q1"
    assert json.loads(tool_message.content)["tasks"][0]["title"] == "File taxes"
    assert isinstance(second_call[-2], AIMessage)


@pytest.mark.asyncio
async def test_unknown_server_tool_reported_to_model(store):
    model = FakeChatModel(
        tool_call("delete_everything", {}, call_id="bad"),
        AIMessage(content="Sorry, I can't do that."),
    )
    decision = await _policy(store, model).classify("nuke it", Scope.GLOBAL, _snapshot(store), "action", [])

    assert isinstance(decision, Reply)
    assert json.loads(model.invocations[1][-1].content)["error"] is True


@pytest.mark.asyncio
async def test_max_iterations_raises(store):
    model = FakeChatModel(
        tool_call("query_tasks", {}, call_id="q1"),
        tool_call("query_notes", {}, call_id="q2"),
    )
    policy = _policy(store, model, api={"max_iterations": 2})
    with pytest.raises(PolicyError, match="too many tool calls"):
        await policy.classify("loop forever", Scope.GLOBAL, _snapshot(store), "action", [])
    assert len(model.invocations) == 2


@pytest.mark.asyncio
async def test_chat_mode_binds_only_query_tools(store):
    model = FakeChatModel(AIMessage(content="Sure."))
    await _policy(store, model).classify("hi", Scope.GLOBAL, _snapshot(store), "chat", [])
    assert model.bound_tool_names == ["query_tasks", "query_notes", "query_projects", "query_files"]


@pytest.mark.asyncio
async def test_action_mode_narrows_types_to_scope(store):
    model = FakeChatModel(AIMessage(content="Sure."))
    await _policy(store, model).classify("hi", Scope.TASKS, _snapshot(store, Scope.TASKS), "action", [])

    assert model.bound_tool_names[:2] == ["ask_questions", "propose_operations"]
    propose = model.bound_tools[1]["function"]["parameters"]["properties"]["operations"]
    assert propose["items"]["properties"]["type"]["enum"] == ["task"]


@pytest.mark.asyncio
async def test_messages_carry_prompt_and_history(store):
    model = FakeChatModel(AIMessage(content="Done."))
    history = [ChatMessage(role="user", content="earlier"), ChatMessage(role="assistant", content="reply")]
    await _policy(store, model, system_prompt="Be brief.").classify(
        "now", Scope.GLOBAL, _snapshot(store), "chat", history
    )

    messages = model.invocations[0]
    assert isinstance(messages[0], SystemMessage)
    assert "2026-10-19" in messages[0].content
    assert "## Workspace Context" in messages[0].content
    assert messages[0].content.endswith("Be brief.")
    assert [type(m) for m in messages[1:]] == [HumanMessage, AIMessage, HumanMessage]
    assert messages[-1].content == "now"


@pytest.mark.asyncio
async def test_empty_reply_is_policy_error(store):
    model = FakeChatModel(AIMessage(content=""))
    with pytest.raises(PolicyError, match="empty"):
        await _policy(store, model).classify("?", Scope.GLOBAL, _snapshot(store), "chat", [])


@pytest.mark.asyncio
async def test_invalid_decision_arguments(store):
    model = FakeChatModel(tool_call("ask_questions", {"questions": [{"question": "Which?", "options": ["Only"]}]}))
    with pytest.raises(PolicyError, match="ask_questions arguments were invalid"):
        await _policy(store, model).classify("?", Scope.GLOBAL, _snapshot(store), "action", [])


@pytest.mark.asyncio
async def test_single_question_is_rejected(store):
    model = FakeChatModel(
        tool_call("ask_questions", {"questions": [{"question": "Where?", "options": ["Paris", "Rome"]}]})
    )
    with pytest.raises(PolicyError, match="ask_questions arguments were invalid"):
        await _policy(store, model).classify("trip", Scope.GLOBAL, _snapshot(store), "action", [])


def test_clarify_requires_two_to_four_questions():
    q = {"question": "Where?", "options": ["Paris", "Rome"]}
    with pytest.raises(ValueError):
        Clarify(questions=[q])
    with pytest.raises(ValueError):
        Clarify(questions=[q] * 5)
    assert len(Clarify(questions=[q, q]).questions) == 2


@pytest.mark.asyncio
async def test_model_failure_is_policy_error(store):
    class Failing(FakeChatModel):
        async def ainvoke(self, messages, **kwargs):
            raise TimeoutError("upstream timeout")

    with pytest.raises(PolicyError, match="model call failed"):
        await _policy(store, Failing()).classify("?", Scope.GLOBAL, _snapshot(store), "chat", [])


def test_model_cached_per_mode(store):
    created = []

    def factory(mode):
        created.append(mode)
        return FakeChatModel()

    policy = LangChainPolicy(ChatkinSettings(), store, model_factory=factory)
    assert policy._model("chat") is policy._model("chat")
    policy._model("action")
    assert created == ["chat", "action"]


@pytest.mark.asyncio
async def test_query_tools_run_off_the_event_loop(store):
    seen = []

    class ThreadNoting(RecordingStore):
        def query_tasks(self, *args, **kwargs):
            seen.append(threading.get_ident())
            return self._inner.query_tasks(*args, **kwargs)

    model = FakeChatModel(tool_call("query_tasks", {}, call_id="q1"), AIMessage(content="Nothing due."))
    snapshot = _snapshot(store)
    await _policy(ThreadNoting(store), model).classify("what's due?", Scope.GLOBAL, snapshot, "chat", [])

    assert len(seen) == 1
    assert seen[0] != threading.get_ident()
