"""Selection and edit store for one pending proposal.

Membership is keyed on each operation's transient index, so replacing an
operation's payload through ``edit`` never disturbs the selection.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from core.errors import ValidationError
from core.operations.types import ProposedOperation


class SelectionStore:
    def __init__(self, operations: Sequence[ProposedOperation], selected: Iterable[int] | None = None):
        self._operations: dict[int, ProposedOperation] = {op.index: op for op in operations}
        if len(self._operations) != len(operations):
            raise ValueError("operation indices must be unique")
        # Everything starts selected.
        self._selected: set[int] = set(self._operations) if selected is None else set(selected)
        unknown = self._selected - set(self._operations)
        if unknown:
            raise ValueError(f"selected indices not in proposal: {sorted(unknown)}")

    def _require(self, index: int) -> ProposedOperation:
        op = self._operations.get(index)
        if op is None:
            raise ValidationError(f"no operation with index {index}")
        return op

    @property
    def operations(self) -> list[ProposedOperation]:
        return [self._operations[i] for i in sorted(self._operations)]

    @property
    def selected_indices(self) -> frozenset[int]:
        return frozenset(self._selected)

    def get(self, index: int) -> ProposedOperation:
        return self._require(index)

    def toggle(self, index: int) -> bool:
        """Flip membership; returns whether the operation is now selected."""
        self._require(index)
        if index in self._selected:
            self._selected.discard(index)
            return False
        self._selected.add(index)
        return True

    def is_selected(self, index: int) -> bool:
        self._require(index)
        return index in self._selected

    def selected(self) -> list[ProposedOperation]:
        """Selected operations in proposal order."""
        return [op for op in self.operations if op.index in self._selected]

    def select_all(self) -> None:
        self._selected = set(self._operations)

    def clear(self) -> None:
        self._selected.clear()

    def edit(self, index: int, op: ProposedOperation) -> None:
        """Replace the canonical operation at ``index`` with an edited copy."""
        self._require(index)
        if op.index != index:
            raise ValueError(f"edited operation carries index {op.index}, expected {index}")
        self._operations[index] = op
