"""Operation proposal assembler.

Turns the policy's untrusted draft operations into a validated ``Proposal``.
Steps run in a fixed order for every draft: shape, limits, scope, project
resolution, field stripping. Any failure rejects the whole proposal.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from config.schema import AssemblyConfig
from core.context.builder import WorkspaceSnapshot
from core.errors import AuthorizationError, ValidationError
from core.operations.summary import summarize
from core.operations.types import (
    SCOPE_TYPES,
    EntityType,
    FileChanges,
    NoteChanges,
    NoteData,
    Operation,
    OperationKind,
    ProjectChanges,
    ProjectData,
    Proposal,
    ProposedOperation,
    Scope,
    TaskChanges,
    TaskData,
)

logger = logging.getLogger(__name__)

_PAYLOAD_MODELS: dict[tuple[OperationKind, EntityType], type[BaseModel]] = {
    (OperationKind.CREATE, EntityType.TASK): TaskData,
    (OperationKind.CREATE, EntityType.NOTE): NoteData,
    (OperationKind.CREATE, EntityType.PROJECT): ProjectData,
    (OperationKind.UPDATE, EntityType.TASK): TaskChanges,
    (OperationKind.UPDATE, EntityType.NOTE): NoteChanges,
    (OperationKind.UPDATE, EntityType.PROJECT): ProjectChanges,
    (OperationKind.UPDATE, EntityType.FILE): FileChanges,
}

# Entity types whose payloads carry a project_id (and may name a domain instead).
_PROJECT_OWNED = frozenset({EntityType.TASK, EntityType.NOTE, EntityType.FILE})


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "payload"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


class ProposalAssembler:
    """Validate and canonicalize draft operations for one turn.

    The snapshot supplies the projects that domain names resolve against; the
    scope decides which entity types may appear at all.
    """

    def __init__(self, snapshot: WorkspaceSnapshot, config: AssemblyConfig | None = None):
        self.snapshot = snapshot
        self.scope = snapshot.scope
        self.config = config or AssemblyConfig()

    def assemble(self, drafts: Sequence[Operation | dict[str, Any]], rationale: str | None = None) -> Proposal:
        if not drafts:
            raise ValidationError("proposal contains no operations")

        operations = [self._canonicalize(draft, index) for index, draft in enumerate(drafts)]
        summary = summarize(operations)
        logger.info("Assembled proposal for %s: %s", self.snapshot.user_id, summary)
        return Proposal(summary=summary, operations=operations, rationale=rationale)

    def apply_edit(self, op: ProposedOperation, payload: dict[str, Any]) -> ProposedOperation:
        """Re-validate a user edit of one operation, keeping its index."""
        if op.operation == OperationKind.DELETE:
            raise ValidationError("delete operations have no editable payload", op.index)
        draft = Operation(
            operation=op.operation,
            type=op.type,
            id=op.id,
            data=payload if op.operation == OperationKind.CREATE else None,
            changes=payload if op.operation == OperationKind.UPDATE else None,
            reason=op.reason,
        )
        return self._canonicalize(draft, op.index)

    # ── pipeline steps ──

    def _canonicalize(self, draft: Operation | dict[str, Any], index: int) -> ProposedOperation:
        op = self._parse(draft, index)
        raw, domain, dropped = self._split_payload(op, index)
        payload = self._validate_payload(op, raw, index)
        self._check_limits(op, payload, index)
        self._check_scope(op, index)
        payload = self._resolve_project(op, payload, domain, index)
        if dropped:
            logger.warning("Dropped immutable note fields %s from operation %d", sorted(dropped), index)

        return ProposedOperation(
            index=index,
            operation=op.operation,
            type=op.type,
            id=op.id.strip() if op.id else None,
            data=payload if op.operation == OperationKind.CREATE else None,
            changes=payload if op.operation == OperationKind.UPDATE else None,
            reason=op.reason,
        )

    def _parse(self, draft: Operation | dict[str, Any], index: int) -> Operation:
        if isinstance(draft, Operation):
            op = draft
        else:
            try:
                op = Operation.model_validate(draft)
            except PydanticValidationError as exc:
                raise ValidationError(_describe(exc), index) from exc

        has_id = bool(op.id and op.id.strip())
        if op.operation == OperationKind.CREATE:
            if op.id is not None:
                raise ValidationError("create must not carry an id", index)
            if op.data is None:
                raise ValidationError("create requires data", index)
            if op.changes is not None:
                raise ValidationError("create does not accept changes", index)
            if op.type == EntityType.FILE:
                raise ValidationError("files cannot be created here; upload them instead", index)
            if op.type == EntityType.PROJECT and self.config.fixed_domains:
                raise ValidationError("projects are fixed domains and cannot be created", index)
        elif op.operation == OperationKind.UPDATE:
            if not has_id:
                raise ValidationError("update requires a non-empty id", index)
            if op.changes is None:
                raise ValidationError("update requires changes", index)
            if op.data is not None:
                raise ValidationError("update does not accept data", index)
        else:
            if not has_id:
                raise ValidationError("delete requires a non-empty id", index)
            if op.data is not None or op.changes is not None:
                raise ValidationError("delete does not accept data or changes", index)
            if op.type == EntityType.PROJECT and self.config.fixed_domains:
                raise ValidationError("projects are fixed domains and cannot be deleted", index)
        return op

    def _split_payload(self, op: Operation, index: int) -> tuple[dict[str, Any], str | None, set[str]]:
        """Copy the payload, pulling out a domain reference and immutable note fields."""
        raw = dict(op.data if op.data is not None else op.changes or {})

        domain = None
        if op.type in _PROJECT_OWNED and "domain" in raw:
            value = raw.pop("domain")
            if value is not None and not isinstance(value, str):
                raise ValidationError("domain must be a string", index)
            domain = value
            if domain is not None:
                # Placeholder so a domain-only change still validates; resolution fills it in.
                raw.setdefault("project_id", None)

        dropped: set[str] = set()
        if op.type == EntityType.NOTE and op.operation == OperationKind.UPDATE and "content" in raw:
            raw.pop("content")
            dropped.add("content")
            if not raw:
                raise ValidationError("note content cannot be changed after creation", index)

        if op.type == EntityType.PROJECT and op.operation == OperationKind.UPDATE and self.config.fixed_domains:
            extra = set(raw) - {"description"}
            if extra:
                raise ValidationError(
                    f"only description can change on a fixed-domain project (got {', '.join(sorted(extra))})",
                    index,
                )
        return raw, domain, dropped

    def _validate_payload(self, op: Operation, raw: dict[str, Any], index: int) -> BaseModel | None:
        model = _PAYLOAD_MODELS.get((op.operation, op.type))
        if model is None:
            return None
        try:
            return model.model_validate(raw)
        except PydanticValidationError as exc:
            raise ValidationError(_describe(exc), index) from exc

    def _check_limits(self, op: Operation, payload: BaseModel | None, index: int) -> None:
        if payload is None:
            return
        title_limit = self.config.title_max_chars
        for field in ("title", "name"):
            value = getattr(payload, field, None)
            if value is not None and len(value) > title_limit:
                raise ValidationError(f"{field} exceeds {title_limit} characters ({len(value)})", index)

        if op.type == EntityType.PROJECT:
            description = getattr(payload, "description", None)
            limit = self.config.description_max_chars
            if description is not None and len(description) > limit:
                raise ValidationError(f"description exceeds {limit} characters ({len(description)})", index)

    def _check_scope(self, op: Operation, index: int) -> None:
        allowed = SCOPE_TYPES[self.scope]
        if op.type not in allowed:
            raise AuthorizationError(f"{op.type.value} operations are not allowed in {self.scope.value} scope", index)

    def _resolve_project(
        self, op: Operation, payload: BaseModel | None, domain: str | None, index: int
    ) -> BaseModel | None:
        if payload is None or op.type not in _PROJECT_OWNED:
            return payload

        project_id = payload.project_id
        if domain is not None:
            project = self.snapshot.project_by_name(domain)
            if project is None:
                raise ValidationError(f"unknown domain {domain!r}", index)
            if project_id is not None and project_id != project.id:
                raise ValidationError(f"domain {domain!r} conflicts with project_id {project_id!r}", index)
            return payload.model_copy(update={"project_id": project.id})

        if project_id is not None:
            if self.snapshot.project_by_id(project_id) is not None:
                return payload
            # The model often names the project instead of quoting its id.
            project = self.snapshot.project_by_name(project_id)
            if project is None:
                raise ValidationError(f"unknown project {project_id!r}", index)
            return payload.model_copy(update={"project_id": project.id})

        if self.scope == Scope.PROJECT and op.operation == OperationKind.CREATE:
            return payload.model_copy(update={"project_id": self.snapshot.project_id})
        return payload
