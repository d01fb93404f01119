"""Unit tests for the JSON entity store and its compare-and-write."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from workflow_engine.definitions import TaskEvent, TaskState
from workflow_engine.persistence.entity_store import EntityStore
from workflow_engine.workflow.catalog import WorkflowCatalog
from workflow_engine.workflow.errors import (
    ConcurrentModification,
    EntityAlreadyExists,
    EntityNotFound,
    StoreCorrupted,
    UnknownStateOrEvent,
    UnknownWorkflow,
)

EXECUTOR = {"acting_user": "u1", "executor": "u1"}


def _advance_to_accepted(store: EntityStore, entity_id: str) -> None:
    machine = store.load(entity_id)
    first = machine.trigger(TaskEvent.ASSIGN)
    second = machine.trigger(TaskEvent.ACCEPT, EXECUTOR)
    store.commit(entity_id, machine, 0, audit=[first.audit, second.audit])


def test_empty_store(entity_store: EntityStore) -> None:
    assert entity_store.list() == []
    assert entity_store.get("task-1") is None


def test_create_persists_initial_state(entity_store: EntityStore, store_path: Path) -> None:
    machine = entity_store.create("task-1", "task")

    assert (machine.state, machine.version) == (TaskState.DRAFT, 0)
    raw = json.loads(store_path.read_text(encoding="utf-8"))
    assert len(raw) == 1
    assert raw[0]["entity_id"] == "task-1"
    assert raw[0]["workflow"] == "task"
    assert raw[0]["state"] == "DRAFT"
    assert raw[0]["version"] == 0
    assert raw[0]["history"] == []


def test_create_rejects_duplicates_and_unknown_workflows(entity_store: EntityStore) -> None:
    entity_store.create("task-1", "task")
    with pytest.raises(EntityAlreadyExists):
        entity_store.create("task-1", "task")
    with pytest.raises(UnknownWorkflow):
        entity_store.create("task-2", "payroll")


def test_load_unknown_entity(entity_store: EntityStore) -> None:
    with pytest.raises(EntityNotFound):
        entity_store.load("missing")


def test_commit_roundtrip_with_history(entity_store: EntityStore) -> None:
    entity_store.create("task-1", "task")
    _advance_to_accepted(entity_store, "task-1")

    loaded = entity_store.load("task-1")
    assert (loaded.state, loaded.version) == (TaskState.ACCEPTED, 2)

    record = entity_store.get("task-1")
    assert record is not None
    assert [h["event"] for h in record.history] == ["ASSIGN", "ACCEPT"]
    assert [h["version"] for h in record.history] == [1, 2]


def test_second_writer_gets_concurrent_modification(entity_store: EntityStore) -> None:
    entity_store.create("task-1", "task")
    _advance_to_accepted(entity_store, "task-1")

    first = entity_store.load("task-1")
    second = entity_store.load("task-1")
    assert first.version == second.version == 2

    first.trigger(TaskEvent.COMPLETE)
    second.trigger(TaskEvent.COMPLETE)
    assert first.version == second.version == 3

    entity_store.commit("task-1", first, expected_version=2)
    with pytest.raises(ConcurrentModification) as excinfo:
        entity_store.commit("task-1", second, expected_version=2)

    assert excinfo.value.expected_version == 2
    assert excinfo.value.actual_version == 3

    stored = entity_store.get("task-1")
    assert stored is not None
    assert (stored.state, stored.version) == ("COMPLETED", 3)


def test_rejected_commit_writes_nothing(entity_store: EntityStore, store_path: Path) -> None:
    entity_store.create("task-1", "task")
    machine = entity_store.load("task-1")
    machine.trigger(TaskEvent.ASSIGN)
    before = store_path.read_text(encoding="utf-8")

    with pytest.raises(ConcurrentModification):
        entity_store.commit("task-1", machine, expected_version=5)

    assert store_path.read_text(encoding="utf-8") == before


def test_commit_unknown_entity(entity_store: EntityStore) -> None:
    entity_store.create("task-1", "task")
    machine = entity_store.load("task-1")
    with pytest.raises(EntityNotFound):
        entity_store.commit("task-2", machine, expected_version=0)


def test_commit_rejects_machine_from_another_workflow(entity_store: EntityStore) -> None:
    entity_store.create("task-1", "task")
    approval = entity_store.create("doc-1", "approval")
    with pytest.raises(ValueError):
        entity_store.commit("task-1", approval, expected_version=0)


def test_stored_state_must_belong_to_the_workflow(
    store_path: Path, catalog: WorkflowCatalog
) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text(
        json.dumps(
            [
                {
                    "entity_id": "task-1",
                    "workflow": "task",
                    "state": "LIMBO",
                    "version": 4,
                    "created_at": "2025-01-01T00:00:00+00:00",
                    "updated_at": "2025-01-01T00:00:00+00:00",
                }
            ]
        ),
        encoding="utf-8",
    )

    with pytest.raises(UnknownStateOrEvent):
        EntityStore(store_path, catalog).load("task-1")


def test_truncated_file_is_never_overwritten(entity_store: EntityStore, store_path: Path) -> None:
    entity_store.create("task-1", "task")
    _advance_to_accepted(entity_store, "task-1")
    machine = entity_store.load("task-1")
    machine.trigger(TaskEvent.COMPLETE)
    intact = store_path.read_text(encoding="utf-8")
    truncated = intact[: len(intact) // 2]
    store_path.write_text(truncated, encoding="utf-8")

    with pytest.raises(StoreCorrupted):
        entity_store.create("task-2", "task")
    with pytest.raises(StoreCorrupted):
        entity_store.commit("task-1", machine, 2)
    with pytest.raises(StoreCorrupted):
        entity_store.list()

    assert store_path.read_text(encoding="utf-8") == truncated


@pytest.mark.parametrize(
    "content",
    [
        '{"entity_id": "task-1"}',
        '[{"entity_id": "task-1", "workflow": "task"}]',
        '[{"entity_id": "task-1", "workflow": "task", "state": "DRAFT", "version": -1, '
        '"created_at": "x", "updated_at": "x"}]',
    ],
)
def test_wrongly_shaped_file_is_reported(
    store_path: Path, catalog: WorkflowCatalog, content: str
) -> None:
    store_path.parent.mkdir(parents=True)
    store_path.write_text(content, encoding="utf-8")
    store = EntityStore(store_path, catalog)

    with pytest.raises(StoreCorrupted):
        store.load("task-1")
    with pytest.raises(StoreCorrupted):
        store.create("task-2", "task")

    assert store_path.read_text(encoding="utf-8") == content
