"""JSON-file entity store with optimistic concurrency.

Each entity is persisted as ``{entity_id, workflow, state, version}`` plus
the audit history its callers chose to keep. Writes go through
:meth:`EntityStore.commit`, which only succeeds when the stored version
still matches the version the caller loaded.

This is a local reference store. A process-wide lock serializes access to
the file; it does not coordinate separate processes. A file that cannot be
parsed raises :class:`StoreCorrupted` and is never overwritten.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from workflow_engine.workflow.catalog import WorkflowCatalog
from workflow_engine.workflow.errors import (
    ConcurrentModification,
    EntityAlreadyExists,
    EntityNotFound,
    StoreCorrupted,
)
from workflow_engine.workflow.machine import AuditRecord, Machine

logger = logging.getLogger(__name__)


class EntityRecord(BaseModel):
    """Persisted workflow position of one entity."""

    entity_id: str
    workflow: str
    state: str
    version: int = Field(default=0, ge=0)
    created_at: str
    updated_at: str

    history: list[dict[str, object]] = Field(default_factory=list)


def _utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


class EntityStore:
    def __init__(self, path: Path, catalog: WorkflowCatalog) -> None:
        self._path = path
        self._catalog = catalog
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load_unlocked(self) -> dict[str, EntityRecord]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise self._corrupted("not valid JSON") from e
        if not isinstance(raw, list):
            raise self._corrupted(f"expected a list, found {type(raw).__name__}")
        try:
            records = [EntityRecord.model_validate(item) for item in raw]
        except ValidationError as e:
            raise self._corrupted(f"malformed entity record ({e.error_count()} errors)") from e
        return {r.entity_id: r for r in records}

    def _corrupted(self, problem: str) -> StoreCorrupted:
        logger.warning(
            "Entity store is unreadable",
            extra={"path": str(self._path), "problem": problem},
        )
        return StoreCorrupted(f"Entity store {str(self._path)!r} is unreadable: {problem}")

    def _save_unlocked(self, records: dict[str, EntityRecord]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json") for r in records.values()]
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        tmp.replace(self._path)

    def list(self) -> list[EntityRecord]:
        with self._lock:
            return list(self._load_unlocked().values())

    def get(self, entity_id: str) -> EntityRecord | None:
        with self._lock:
            return self._load_unlocked().get(entity_id)

    def create(self, entity_id: str, workflow: str) -> Machine:
        """Enter a new entity into ``workflow`` at its initial state, version 0."""

        table = self._catalog.get(workflow)
        with self._lock:
            records = self._load_unlocked()
            if entity_id in records:
                raise EntityAlreadyExists(f"Entity {entity_id!r} already exists")
            now = _utc_iso_now()
            records[entity_id] = EntityRecord(
                entity_id=entity_id,
                workflow=table.name,
                state=table.initial_state.name,
                version=0,
                created_at=now,
                updated_at=now,
            )
            self._save_unlocked(records)
        logger.info(
            "Entity created",
            extra={
                "entity_id": entity_id,
                "workflow": table.name,
                "state": table.initial_state.name,
            },
        )
        return Machine(table)

    def load(self, entity_id: str) -> Machine:
        """Rebuild the machine for ``entity_id`` from its stored state and version.

        Raises:
            EntityNotFound: No entity with this id is stored.
            UnknownWorkflow: The stored workflow is not in the catalog.
            UnknownStateOrEvent: The stored state is not declared by the workflow.
            StoreCorrupted: The store file cannot be parsed.
        """
        record = self.get(entity_id)
        if record is None:
            raise EntityNotFound(entity_id)
        table = self._catalog.get(record.workflow)
        return Machine(table, table.state_named(record.state), record.version)

    def commit(
        self,
        entity_id: str,
        machine: Machine,
        expected_version: int,
        audit: Iterable[AuditRecord] = (),
    ) -> EntityRecord:
        """Compare-and-write the machine's state.

        The write happens only if the stored version still equals
        ``expected_version``, i.e. the version the caller loaded.

        Raises:
            EntityNotFound: No entity with this id is stored.
            ConcurrentModification: The stored version moved since it was loaded.
                Nothing is written.
            StoreCorrupted: The store file cannot be parsed. Nothing is written.
        """
        with self._lock:
            records = self._load_unlocked()
            current = records.get(entity_id)
            if current is None:
                raise EntityNotFound(entity_id)
            if current.workflow != machine.table.name:
                raise ValueError(
                    f"Entity {entity_id!r} runs workflow {current.workflow!r}, "
                    f"not {machine.table.name!r}"
                )
            if current.version != expected_version:
                logger.warning(
                    "Stale commit rejected",
                    extra={
                        "entity_id": entity_id,
                        "expected_version": expected_version,
                        "actual_version": current.version,
                    },
                )
                raise ConcurrentModification(entity_id, expected_version, current.version)

            updated = current.model_copy(
                update={
                    "state": machine.state.name,
                    "version": machine.version,
                    "updated_at": _utc_iso_now(),
                    "history": [*current.history, *(a.to_json() for a in audit)],
                }
            )
            records[entity_id] = updated
            self._save_unlocked(records)
            return updated
