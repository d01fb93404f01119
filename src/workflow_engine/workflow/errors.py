"""Error taxonomy for workflow definitions and triggers.

Configuration errors are raised while a table is built and must stop the
workflow from being registered. Trigger errors are local to one ``trigger``
call and never leave a machine half-transitioned.
"""

from __future__ import annotations

from enum import Enum


class WorkflowError(Exception):
    """Base class for every error raised by the engine."""


class ConfigError(WorkflowError):
    """A workflow definition is malformed."""


class UnknownStateOrEvent(ConfigError):
    """A transition references a state or event that was never declared."""


class DuplicateTransition(ConfigError):
    """Two transitions were registered for the same ``(state, event)`` pair."""

    def __init__(self, state: Enum, event: Enum) -> None:
        self.state = state
        self.event = event
        super().__init__(f"Duplicate transition for ({state.name}, {event.name})")


class DuplicateWorkflow(ConfigError):
    """A catalog already holds a workflow with this name."""


class TriggerError(WorkflowError):
    """A trigger could not advance the machine."""

    def __init__(self, state: Enum, event: Enum, message: str) -> None:
        self.state = state
        self.event = event
        super().__init__(message)


class InvalidTransition(TriggerError):
    """No transition exists for the current state and the event."""

    def __init__(self, state: Enum, event: Enum) -> None:
        super().__init__(
            state, event, f"{_name(event)} is not a valid event in state {_name(state)}"
        )


class GuardRejected(TriggerError):
    """A transition exists but its guard refused the supplied context."""

    def __init__(self, state: Enum, event: Enum, guard: str) -> None:
        self.guard = guard
        super().__init__(
            state,
            event,
            f"{_name(event)} is not permitted in state {_name(state)} (guard: {guard})",
        )


class ActionFailed(TriggerError):
    """The transition action reported failure; the state did not move."""

    def __init__(self, state: Enum, event: Enum, reason: str) -> None:
        self.reason = reason
        super().__init__(
            state, event, f"Action for {_name(event)} in state {_name(state)} failed: {reason}"
        )


class ConcurrentModification(WorkflowError):
    """The stored version changed between load and commit."""

    def __init__(self, entity_id: str, expected_version: int, actual_version: int) -> None:
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Entity {entity_id!r} was modified concurrently: "
            f"expected version {expected_version}, found {actual_version}"
        )


class EntityNotFound(KeyError):
    """No stored entity has the requested id."""

    def __str__(self) -> str:
        return f"Unknown entity: {self.args[0]!r}"


class EntityAlreadyExists(WorkflowError):
    """An entity with the requested id is already stored."""


class StoreCorrupted(WorkflowError):
    """The entity store file cannot be parsed; nothing is read from or written to it."""


class UnknownWorkflow(KeyError):
    """A catalog has no workflow with the requested name."""

    def __str__(self) -> str:
        return f"Unknown workflow: {self.args[0]!r}"


def _name(value: object) -> str:
    return value.name if isinstance(value, Enum) else repr(value)
