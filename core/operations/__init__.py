"""Operations - proposal, selection and execution of workspace mutations."""

from .types import (
    EntityType,
    Operation,
    OperationKind,
    Proposal,
    ProposedOperation,
    Scope,
)

__all__ = [
    "EntityType",
    "Operation",
    "OperationKind",
    "Proposal",
    "ProposedOperation",
    "Scope",
]
