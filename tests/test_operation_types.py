"""Tests for the operation wire shape and typed payloads."""

import pytest
from pydantic import ValidationError

from core.operations.types import (
    FileChanges,
    NoteChanges,
    NoteData,
    Operation,
    ProjectChanges,
    ProposedOperation,
    TaskChanges,
    TaskData,
)


class TestOperationWireShape:
    def test_minimal_delete_round_trips_without_nulls(self):
        op = Operation.model_validate({"operation": "delete", "type": "task", "id": "t1"})
        assert op.to_wire() == {"operation": "delete", "type": "task", "id": "t1"}

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError):
            Operation.model_validate({"operation": "create", "type": "task", "data": {}, "extra": 1})

    def test_unknown_operation_rejected(self):
        with pytest.raises(ValidationError):
            Operation.model_validate({"operation": "upsert", "type": "task"})


class TestTaskData:
    def test_defaults(self):
        data = TaskData(title="Buy milk")
        assert data.priority == "medium"
        assert data.status == "todo"
        assert data.due_date is None
        assert data.is_all_day is True

    def test_title_is_stripped_and_required(self):
        assert TaskData(title="  Call mom ").title == "Call mom"
        with pytest.raises(ValidationError):
            TaskData(title="   ")

    def test_due_time_makes_task_timed(self):
        data = TaskData(title="Standup", due_date="2026-10-20", due_time="09:30")
        assert data.is_all_day is False

    def test_due_time_without_date_rejected(self):
        with pytest.raises(ValidationError, match="due_time requires due_date"):
            TaskData(title="Standup", due_time="09:30")

    @pytest.mark.parametrize("value", ["2026-13-01", "20261020", "tomorrow"])
    def test_bad_dates_rejected(self, value):
        with pytest.raises(ValidationError):
            TaskData(title="x", due_date=value)

    @pytest.mark.parametrize("value", ["24:00", "9:30", "09:60"])
    def test_bad_times_rejected(self, value):
        with pytest.raises(ValidationError):
            TaskData(title="x", due_date="2026-10-20", due_time=value)

    def test_all_day_conflicts_with_time(self):
        with pytest.raises(ValidationError):
            TaskData(title="x", due_date="2026-10-20", due_time="10:00", is_all_day=True)

    def test_recurring_requires_pattern(self):
        with pytest.raises(ValidationError):
            TaskData(title="Gym", is_recurring=True)
        data = TaskData(title="Gym", is_recurring=True, recurrence_pattern={"frequency": "weekly", "days_of_week": [1, 3]})
        assert data.recurrence_pattern.interval == 1

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            TaskData(title="x", tags=["a"])


class TestChanges:
    def test_empty_changes_rejected(self):
        with pytest.raises(ValidationError, match="at least one field"):
            TaskChanges()

    def test_to_store_only_includes_set_fields(self):
        assert TaskChanges(status="completed").to_store() == {"status": "completed"}

    def test_setting_time_clears_all_day(self):
        assert TaskChanges(due_time="08:00").to_store() == {"due_time": "08:00", "is_all_day": False}

    def test_note_changes_reject_content(self):
        with pytest.raises(ValidationError):
            NoteChanges(content="new body")

    def test_file_changes_can_detach(self):
        assert FileChanges(project_id=None).to_store() == {"project_id": None}

    def test_project_changes_description(self):
        assert ProjectChanges(description="Move more").to_store() == {"description": "Move more"}


class TestProposedOperation:
    def test_label_uses_title(self):
        op = ProposedOperation(index=0, operation="create", type="note", data=NoteData(title="Ideas"))
        assert op.label() == 'note "Ideas"'

    def test_label_falls_back_to_id(self):
        op = ProposedOperation(index=2, operation="delete", type="file", id="f9")
        assert op.label() == "file f9"

    def test_to_dict_carries_index(self):
        op = ProposedOperation(index=1, operation="update", type="task", id="t1", changes=TaskChanges(priority="high"))
        assert op.to_dict() == {
            "index": 1,
            "operation": "update",
            "type": "task",
            "id": "t1",
            "changes": {"priority": "high"},
        }
