"""LangChain-backed classification policy.

Runs a bounded tool loop against a chat model:

- ``ask_questions`` / ``propose_operations`` are client-side: the loop stops
  and their arguments become the decision.
- ``query_*`` tools run server-side through ``WorkspaceQueryMiddleware`` and
  their results are fed back as ``ToolMessage``s.
- A response without tool calls is a plain ``Reply``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable, Sequence
from datetime import date
from typing import Any

from langchain.chat_models import init_chat_model
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from pydantic import ValidationError as PydanticValidationError

from config.schema import APIConfig, ChatkinSettings, ModeParams
from core.context.builder import ChatMessage, WorkspaceSnapshot
from core.errors import PolicyError
from core.operations.types import SCOPE_TYPES, EntityType, Scope
from core.policy.prompts import build_system_prompt
from core.policy.tools import CLIENT_SIDE_TOOLS, TOOL_ASK_QUESTIONS, get_tool_schemas
from core.policy.types import Clarify, Decision, Mode, Propose, Reply
from middleware.workspace_query import QUERY_TOOL_NAMES, WorkspaceQueryMiddleware
from storage.workspace import WorkspaceStore

logger = logging.getLogger(__name__)

ModelFactory = Callable[[Mode], Any]


def build_chat_model(api: APIConfig, params: ModeParams):
    """Initialize the chat model for one mode via init_chat_model."""
    kwargs: dict[str, Any] = {
        "temperature": params.temperature,
        "max_tokens": params.max_tokens,
    }
    if api.model_provider:
        kwargs["model_provider"] = api.model_provider
    if api.api_key:
        kwargs["api_key"] = api.api_key
    if api.base_url:
        kwargs["base_url"] = api.base_url
    return init_chat_model(api.model, **kwargs)


def _text_of(message: BaseMessage) -> str:
    content = message.content
    if isinstance(content, str):
        return content.strip()
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts).strip()


def _history_messages(history: Sequence[ChatMessage]) -> list[BaseMessage]:
    return [HumanMessage(m.content) if m.role == "user" else AIMessage(m.content) for m in history]


class LangChainPolicy:
    """Classification policy over any LangChain chat model with tool calling."""

    def __init__(
        self,
        settings: ChatkinSettings,
        store: WorkspaceStore,
        model_factory: ModelFactory | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.store = store
        self._model_factory = model_factory or (lambda mode: build_chat_model(settings.api, settings.mode_params(mode)))
        self._models: dict[str, Any] = {}
        self._today = today

    def _model(self, mode: Mode):
        if mode not in self._models:
            self._models[mode] = self._model_factory(mode)
        return self._models[mode]

    async def classify(
        self,
        message: str,
        scope: Scope,
        snapshot: WorkspaceSnapshot,
        mode: Mode,
        history: Sequence[ChatMessage],
    ) -> Decision:
        queries = WorkspaceQueryMiddleware(
            self.store,
            snapshot.user_id,
            default_limit=self.settings.context.query_default_limit,
            max_limit=self.settings.context.query_max_limit,
        )
        tools = queries.get_tool_schemas()
        if mode == "action":
            allowed = [t.value for t in EntityType if t in SCOPE_TYPES[scope]]
            tools = get_tool_schemas(allowed) + tools
        model = self._model(mode).bind_tools(tools)

        system_prompt = build_system_prompt(
            snapshot,
            mode,
            assembly=self.settings.assembly,
            extra=self.settings.system_prompt,
            today=self._today(),
        )
        messages: list[BaseMessage] = [
            SystemMessage(system_prompt),
            *_history_messages(history),
            HumanMessage(message),
        ]

        max_iterations = self.settings.api.max_iterations
        for iteration in range(1, max_iterations + 1):
            try:
                response = await model.ainvoke(messages)
            except Exception as e:
                logger.exception("Model call failed on iteration %d", iteration)
                raise PolicyError(f"model call failed: {e}") from e

            calls = list(getattr(response, "tool_calls", None) or [])
            text = _text_of(response)
            logger.debug("Iteration %d: %d tool calls", iteration, len(calls))

            if not calls:
                if not text:
                    raise PolicyError("model returned an empty response")
                return Reply(text=text)

            decision_call = next((c for c in calls if c.get("name") in CLIENT_SIDE_TOOLS), None)
            if decision_call is not None:
                return self._decision_from(decision_call, text)

            messages.append(response)
            for call in calls:
                messages.append(await self._run_server_tool(queries, call))

        logger.warning("Tool loop hit max iterations (%d)", max_iterations)
        raise PolicyError(
            "The assistant made too many tool calls. Try rephrasing or splitting the request."
        )

    @staticmethod
    async def _run_server_tool(queries: WorkspaceQueryMiddleware, call: dict) -> ToolMessage:
        if call.get("name") in QUERY_TOOL_NAMES:
            # sqlite3 and supabase-py calls are synchronous.
            return await asyncio.to_thread(queries.handle_tool_call, call)
        logger.warning("Model called unknown tool %s", call.get("name"))
        content = json.dumps({"error": True, "message": f"Unknown tool: {call.get('name')}"})
        return ToolMessage(content=content, tool_call_id=call.get("id", ""))

    @staticmethod
    def _decision_from(call: dict, text: str) -> Decision:
        args = call.get("args") or {}
        try:
            if call.get("name") == TOOL_ASK_QUESTIONS:
                return Clarify(questions=args.get("questions") or [])
            operations = args.get("operations")
            if not isinstance(operations, list):
                raise PolicyError("propose_operations requires an operations array")
            return Propose(summary=args.get("summary") or text, operations=operations)
        except PydanticValidationError as e:
            raise PolicyError(f"{call.get('name')} arguments were invalid: {e.error_count()} errors") from e
