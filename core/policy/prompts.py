"""System prompt assembly for the classification model."""

from __future__ import annotations

from datetime import date

from config.schema import AssemblyConfig
from core.context.builder import WorkspaceSnapshot, format_for_model
from core.operations.types import Scope

GLOBAL_PROMPT = """You are the assistant for a personal life-management workspace of tasks, notes,
projects and files. Projects are the user's life domains: {domains}.

You never change the workspace directly. To change anything, call
propose_operations; the user reviews and confirms every operation first.
If the request is missing details you cannot sensibly default, call
ask_questions instead. Otherwise answer conversationally.

Smart defaults: "Buy milk" becomes one task titled "Buy milk" with priority
medium and no due date. Do not ask questions for requests that simple."""

SCOPE_HINTS = {
    Scope.GLOBAL: "**Context:** Global chat. You may work with tasks, notes, projects and files.",
    Scope.TASKS: "**Context:** Tasks page. Only propose task operations; decline anything else politely.",
    Scope.NOTES: (
        "**Context:** Notes page. Only propose note operations; decline anything else politely. "
        "Note content can only be set at creation."
    ),
    Scope.PROJECT: (
        "**Context:** The {project} domain page. Only tasks and notes; new items go to the {project} "
        "domain unless the user names another."
    ),
}

CONVENTIONS = """## Conventions

- Task titles, note titles and project names: {title_max} characters max.
- Project descriptions: {description_max} characters max.
- {project_rule}
- Files cannot be created; they can only be moved between projects (project_id) or deleted.
- Note content is fixed after creation; updates may change only title and project_id.
- Dates are YYYY-MM-DD. Times are 24-hour HH:MM; a task without a time is all-day.
- To put an item in a domain, set "domain" to the domain name or "project_id" to its id.

Today's date is {today}."""

MODE_HINTS = {
    "action": "Mode: action. Be concise and act: propose operations as soon as the intent is clear.",
    "chat": (
        "Mode: chat. Talk the request through with the user. Use the query tools when you need data "
        "beyond the snapshot. Share observations and recommendations when you notice patterns."
    ),
}


def build_system_prompt(
    snapshot: WorkspaceSnapshot,
    mode: str,
    assembly: AssemblyConfig | None = None,
    extra: str | None = None,
    today: date | None = None,
) -> str:
    assembly = assembly or AssemblyConfig()
    scope_project = snapshot.scope_project
    project_name = scope_project.name if scope_project else (snapshot.project_id or "current")

    project_rule = (
        "Projects are fixed domains: never create or delete them; only their description can change."
        if assembly.fixed_domains
        else "Projects may be created, renamed, recoloured or deleted."
    )

    sections = [
        GLOBAL_PROMPT.format(domains=", ".join(assembly.domains)),
        SCOPE_HINTS[snapshot.scope].format(project=project_name),
        MODE_HINTS.get(mode, MODE_HINTS["action"]),
        CONVENTIONS.format(
            title_max=assembly.title_max_chars,
            description_max=assembly.description_max_chars,
            project_rule=project_rule,
            today=(today or date.today()).isoformat(),
        ),
        format_for_model(snapshot),
    ]
    if extra:
        sections.append(extra.strip())
    return "\n\n".join(sections)
