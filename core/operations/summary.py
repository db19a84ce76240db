"""Proposal summary sentence, e.g. "I'll create 2 tasks and 1 note"."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from core.operations.types import EntityType, OperationKind, ProposedOperation

_VERB_ORDER = (OperationKind.CREATE, OperationKind.UPDATE, OperationKind.DELETE)
_TYPE_ORDER = (EntityType.TASK, EntityType.NOTE, EntityType.PROJECT, EntityType.FILE)


def _join(parts: list[str]) -> str:
    if len(parts) <= 1:
        return "".join(parts)
    return ", ".join(parts[:-1]) + " and " + parts[-1]


def _count_phrase(count: int, entity: EntityType) -> str:
    noun = entity.value if count == 1 else f"{entity.value}s"
    return f"{count} {noun}"


def summarize(operations: Sequence[ProposedOperation]) -> str:
    """Count operations per verb and entity type into one sentence."""
    counts = Counter((op.operation, op.type) for op in operations)
    clauses = []
    for verb in _VERB_ORDER:
        phrases = [_count_phrase(counts[(verb, t)], t) for t in _TYPE_ORDER if counts[(verb, t)]]
        if phrases:
            clauses.append(f"{verb.value} {_join(phrases)}")
    return f"I'll {_join(clauses)}" if clauses else ""
