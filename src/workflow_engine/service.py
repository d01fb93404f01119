"""Load, trigger and commit in one call.

This is the caller side of the persistence contract: it rebuilds a machine
from the store, applies one event, and writes the result back with a
compare-and-write on the version it loaded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from workflow_engine.persistence.entity_store import EntityRecord, EntityStore
from workflow_engine.workflow.affordances import Affordance, default_label, export_affordances
from workflow_engine.workflow.errors import ConcurrentModification
from workflow_engine.workflow.guards import Context
from workflow_engine.workflow.machine import Machine, TriggerResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppliedEvent:
    result: TriggerResult
    record: EntityRecord
    attempts: int


@dataclass(frozen=True, slots=True)
class EntityStatus:
    entity_id: str
    workflow: str
    state: Enum
    version: int
    available_events: tuple[Enum, ...]
    affordances: list[Affordance]

    def to_json(self) -> dict[str, object]:
        return {
            "entity_id": self.entity_id,
            "workflow": self.workflow,
            "state": self.state.name,
            "version": self.version,
            "available_events": [e.name for e in self.available_events],
            "affordances": [a.to_json() for a in self.affordances],
        }


class WorkflowService:
    def __init__(self, store: EntityStore) -> None:
        self._store = store

    @property
    def store(self) -> EntityStore:
        return self._store

    def create(self, entity_id: str, workflow: str) -> Machine:
        return self._store.create(entity_id, workflow)

    def status(
        self,
        entity_id: str,
        context: Context | None = None,
        label_for: Callable[[Enum], str] = default_label,
    ) -> EntityStatus:
        machine = self._store.load(entity_id)
        return EntityStatus(
            entity_id=entity_id,
            workflow=machine.table.name,
            state=machine.state,
            version=machine.version,
            available_events=machine.available_events(),
            affordances=export_affordances(machine, context, label_for, include_disabled=True),
        )

    def apply(
        self,
        entity_id: str,
        event: Enum | str,
        context: Context | None = None,
        *,
        retries: int = 0,
    ) -> AppliedEvent:
        """Trigger ``event`` on the stored entity and persist the outcome.

        ``event`` may be an Enum member or its name. Trigger errors propagate
        untouched. A :class:`ConcurrentModification` is retried from a fresh
        load up to ``retries`` times, then re-raised.
        """
        if retries < 0:
            raise ValueError("retries must be >= 0")

        attempt = 0
        while True:
            attempt += 1
            machine = self._store.load(entity_id)
            loaded_version = machine.version
            resolved = machine.table.event_named(event) if isinstance(event, str) else event

            result = machine.trigger(resolved, context)
            try:
                record = self._store.commit(
                    entity_id, machine, loaded_version, audit=[result.audit]
                )
            except ConcurrentModification:
                if attempt > retries:
                    raise
                logger.info(
                    "Retrying after concurrent modification",
                    extra={"entity_id": entity_id, "attempt": attempt},
                )
                continue
            return AppliedEvent(result=result, record=record, attempts=attempt)
