"""Client-side tool schemas the classification model can call.

``ask_questions`` and ``propose_operations`` end the tool loop: their
arguments are the policy's decision. Query tools live in
``middleware.workspace_query`` and run server-side.
"""

from __future__ import annotations

TOOL_ASK_QUESTIONS = "ask_questions"
TOOL_PROPOSE_OPERATIONS = "propose_operations"

CLIENT_SIDE_TOOLS = (TOOL_ASK_QUESTIONS, TOOL_PROPOSE_OPERATIONS)


def get_tool_schemas(entity_types: list[str] | None = None) -> list[dict]:
    """Schemas for the decision tools; ``entity_types`` narrows the ``type`` enum to the scope."""
    types = entity_types or ["task", "note", "project", "file"]
    return [
        {
            "type": "function",
            "function": {
                "name": TOOL_ASK_QUESTIONS,
                "description": """Ask the user 2-4 multiple-choice questions before proposing changes.

Use when critical details are missing (e.g. "Plan my vacation": where? when?).
Each question has 2-4 options; the user can always answer "Other" with free text,
so do not include an "Other" option yourself.""",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "questions": {
                            "type": "array",
                            "minItems": 2,
                            "maxItems": 4,
                            "items": {
                                "type": "object",
                                "properties": {
                                    "question": {
                                        "type": "string",
                                        "description": "The question to ask",
                                    },
                                    "options": {
                                        "type": "array",
                                        "items": {"type": "string"},
                                        "minItems": 2,
                                        "maxItems": 4,
                                        "description": "Multiple choice options",
                                    },
                                },
                                "required": ["question", "options"],
                            },
                        },
                    },
                    "required": ["questions"],
                },
            },
        },
        {
            "type": "function",
            "function": {
                "name": TOOL_PROPOSE_OPERATIONS,
                "description": """Propose create/update/delete operations for the user to review.

Nothing is applied until the user confirms. Use ids from the workspace context
for update/delete. Create operations never carry an id.""",
                "parameters": {
                    "type": "object",
                    "properties": {
                        "summary": {
                            "type": "string",
                            "description": "Brief summary, e.g. \"I'll create 3 tasks for your workout plan\"",
                        },
                        "operations": {
                            "type": "array",
                            "items": {
                                "type": "object",
                                "properties": {
                                    "operation": {
                                        "type": "string",
                                        "enum": ["create", "update", "delete"],
                                    },
                                    "type": {
                                        "type": "string",
                                        "enum": types,
                                    },
                                    "id": {
                                        "type": "string",
                                        "description": "Item id (required for update/delete, from workspace context)",
                                    },
                                    "data": {
                                        "type": "object",
                                        "description": "Item fields (create only). May name a domain via 'domain'.",
                                    },
                                    "changes": {
                                        "type": "object",
                                        "description": "Fields to change (update only)",
                                    },
                                    "reason": {
                                        "type": "string",
                                        "description": "Why (shown for deletes)",
                                    },
                                },
                                "required": ["operation", "type"],
                            },
                        },
                    },
                    "required": ["summary", "operations"],
                },
            },
        },
    ]
