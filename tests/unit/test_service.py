"""Unit tests for the load-trigger-commit service."""

from __future__ import annotations

from pathlib import Path

import pytest

from workflow_engine.definitions import TaskEvent, TaskState
from workflow_engine.persistence.entity_store import EntityStore
from workflow_engine.service import WorkflowService
from workflow_engine.workflow.catalog import WorkflowCatalog
from workflow_engine.workflow.errors import (
    ConcurrentModification,
    GuardRejected,
    InvalidTransition,
    UnknownStateOrEvent,
)

EXECUTOR = {"acting_user": "u1", "executor": "u1"}


def test_apply_persists_each_step(service: WorkflowService) -> None:
    service.create("task-1", "task")

    applied = service.apply("task-1", TaskEvent.ASSIGN)
    assert (applied.result.state, applied.result.version) == (TaskState.AWAITING, 1)
    assert applied.record.state == "AWAITING"
    assert applied.attempts == 1

    applied = service.apply("task-1", "ACCEPT", EXECUTOR)
    assert applied.record.version == 2
    assert [h["event"] for h in applied.record.history] == ["ASSIGN", "ACCEPT"]


def test_apply_propagates_trigger_errors_without_writing(service: WorkflowService) -> None:
    service.create("task-1", "task")
    service.apply("task-1", TaskEvent.ASSIGN)

    with pytest.raises(GuardRejected):
        service.apply("task-1", TaskEvent.ACCEPT, {"acting_user": "u2", "executor": "u1"})
    with pytest.raises(InvalidTransition):
        service.apply("task-1", TaskEvent.COMPLETE)
    with pytest.raises(UnknownStateOrEvent):
        service.apply("task-1", "TELEPORT")

    record = service.store.get("task-1")
    assert record is not None
    assert (record.state, record.version) == ("AWAITING", 1)


class _RacingStore(EntityStore):
    """Lets another writer commit between our load and our commit, a set number of times."""

    def __init__(self, path: Path, catalog: WorkflowCatalog, races: int) -> None:
        super().__init__(path, catalog)
        self.races = races

    def commit(self, entity_id, machine, expected_version, audit=()):
        if self.races > 0:
            self.races -= 1
            rival = self.load(entity_id)
            if rival.state == TaskState.DRAFT:
                rival.trigger(TaskEvent.ASSIGN)
            else:
                rival.trigger(TaskEvent.ACCEPT, EXECUTOR)
            super().commit(entity_id, rival, rival.version - 1)
        return super().commit(entity_id, machine, expected_version, audit)


def test_apply_raises_on_conflict_without_retries(
    store_path: Path, catalog: WorkflowCatalog
) -> None:
    service = WorkflowService(_RacingStore(store_path, catalog, races=1))
    service.create("task-1", "task")

    with pytest.raises(ConcurrentModification):
        service.apply("task-1", TaskEvent.ASSIGN)

    record = service.store.get("task-1")
    assert record is not None
    assert (record.state, record.version) == ("AWAITING", 1)


def test_apply_retries_from_a_fresh_load(store_path: Path, catalog: WorkflowCatalog) -> None:
    store = _RacingStore(store_path, catalog, races=0)
    service = WorkflowService(store)
    service.create("task-1", "task")
    service.apply("task-1", TaskEvent.ASSIGN)

    store.races = 1
    applied = service.apply("task-1", TaskEvent.CANCEL, retries=1)

    assert applied.attempts == 2
    assert (applied.result.state, applied.result.version) == (TaskState.CANCELLED, 3)
    assert [h["event"] for h in applied.record.history] == ["ASSIGN", "CANCEL"]


def test_apply_rejects_negative_retries(service: WorkflowService) -> None:
    with pytest.raises(ValueError):
        service.apply("task-1", TaskEvent.ASSIGN, retries=-1)


def test_status_lists_events_and_affordances(service: WorkflowService) -> None:
    service.create("task-1", "task")
    service.apply("task-1", TaskEvent.ASSIGN)

    status = service.status("task-1", {"acting_user": "u2", "executor": "u1"})

    assert status.state == TaskState.AWAITING
    assert status.version == 1
    assert status.available_events == (TaskEvent.ACCEPT, TaskEvent.REJECT, TaskEvent.CANCEL)
    assert status.to_json()["affordances"] == [
        {"event": "ACCEPT", "label": "Accept", "enabled": False},
        {"event": "REJECT", "label": "Reject", "enabled": True},
        {"event": "CANCEL", "label": "Cancel", "enabled": True},
    ]
