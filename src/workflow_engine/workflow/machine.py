"""The machine: one entity's position in a workflow.

A :class:`Machine` binds a shared :class:`TransitionTable` to an entity's
current state and version. ``trigger`` is the only operation that changes
either, and it changes both together or not at all.

A machine is a short-lived view. Callers rebuild it from persisted
``(state, version)``, trigger, persist the result, and discard it. A single
machine must not be triggered from several threads at once; concurrent
writers are detected at persistence time through ``version``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType

from .actions import run_action
from .errors import GuardRejected, InvalidTransition
from .guards import Context, evaluate_guard, guard_name
from .table import TransitionTable

logger = logging.getLogger(__name__)

_EMPTY_CONTEXT: Context = MappingProxyType({})


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class AuditRecord:
    """Outcome of one successful trigger, handed to the caller to keep."""

    workflow: str
    from_state: Enum
    to_state: Enum
    event: Enum
    version: int
    timestamp: datetime

    def to_json(self) -> dict[str, object]:
        return {
            "workflow": self.workflow,
            "from_state": self.from_state.name,
            "to_state": self.to_state.name,
            "event": self.event.name,
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class MachineSnapshot:
    state: Enum
    version: int


@dataclass(frozen=True, slots=True)
class TriggerResult:
    state: Enum
    version: int
    audit: AuditRecord


def _freeze(context: Context | None) -> Context:
    if context is None:
        return _EMPTY_CONTEXT
    if isinstance(context, MappingProxyType):
        return context
    return MappingProxyType(dict(context))


class Machine:
    def __init__(
        self,
        table: TransitionTable,
        state: Enum | None = None,
        version: int = 0,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Bind ``table`` to an entity.

        Args:
            table: Shared workflow definition.
            state: Current state. Defaults to the table's initial state.
            version: Number of transitions already applied to the entity.
            clock: Source of audit timestamps.

        Raises:
            ValueError: ``state`` is not declared by ``table`` or ``version`` is negative.
        """
        if state is None:
            state = table.initial_state
        if not table.has_state(state):
            raise ValueError(f"State {state!r} is not declared by workflow {table.name!r}")
        if version < 0:
            raise ValueError(f"version must be >= 0, got {version}")

        self._table = table
        self._state = state
        self._version = version
        self._clock = clock

    @classmethod
    def from_snapshot(
        cls,
        table: TransitionTable,
        snapshot: MachineSnapshot,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> Machine:
        return cls(table, snapshot.state, snapshot.version, clock=clock)

    def __repr__(self) -> str:
        return (
            f"Machine(workflow={self._table.name!r}, state={self._state.name}, "
            f"version={self._version})"
        )

    @property
    def table(self) -> TransitionTable:
        return self._table

    @property
    def state(self) -> Enum:
        return self._state

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_terminal(self) -> bool:
        return self._table.is_terminal(self._state)

    def snapshot(self) -> MachineSnapshot:
        return MachineSnapshot(state=self._state, version=self._version)

    def can_trigger(self, event: Enum, context: Context | None = None) -> bool:
        """Dry run: would ``trigger(event, context)`` get past lookup and guard?

        Never runs the action and never changes the machine.
        """
        transition = self._table.by_state_and_event(self._state, event)
        if transition is None:
            return False
        return evaluate_guard(transition.guard, _freeze(context))

    def available_events(self) -> tuple[Enum, ...]:
        """Events with a transition out of the current state, guards ignored."""

        return tuple(t.event for t in self._table.transitions_from(self._state))

    def available_events_satisfying(self, context: Context | None = None) -> tuple[Enum, ...]:
        frozen = _freeze(context)
        return tuple(
            t.event
            for t in self._table.transitions_from(self._state)
            if evaluate_guard(t.guard, frozen)
        )

    def trigger(self, event: Enum, context: Context | None = None) -> TriggerResult:
        """Advance the machine in response to ``event``.

        Raises:
            InvalidTransition: No transition exists for the current state and ``event``.
            GuardRejected: The transition's guard refused ``context``.
            ActionFailed: The transition's action failed. State and version are unchanged.
        """
        from_state = self._state
        transition = self._table.by_state_and_event(from_state, event)
        if transition is None:
            logger.info(
                "Invalid transition",
                extra={
                    "workflow": self._table.name,
                    "state": from_state.name,
                    "event": getattr(event, "name", repr(event)),
                },
            )
            raise InvalidTransition(from_state, event)

        frozen = _freeze(context)
        if not evaluate_guard(transition.guard, frozen):
            name = guard_name(transition.guard) if transition.guard is not None else "guard"
            logger.info(
                "Guard rejected transition",
                extra={
                    "workflow": self._table.name,
                    "state": from_state.name,
                    "event": event.name,
                    "guard": name,
                },
            )
            raise GuardRejected(from_state, event, name)

        run_action(transition.action, frozen, state=from_state, event=event)

        audit = AuditRecord(
            workflow=self._table.name,
            from_state=from_state,
            to_state=transition.to_state,
            event=event,
            version=self._version + 1,
            timestamp=self._clock(),
        )
        self._state, self._version = transition.to_state, audit.version

        logger.info("Transition applied", extra=audit.to_json())
        return TriggerResult(state=self._state, version=self._version, audit=audit)
