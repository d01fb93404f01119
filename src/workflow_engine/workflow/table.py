"""Transition table: the validated, immutable definition of a workflow.

A table is built once from declared states, events and transitions and is
then shared read-only by every machine that runs the workflow. Nothing
mutates a table after ``build_table`` returns, so it can be used from any
number of threads without locking.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from .actions import Action
from .errors import ConfigError, DuplicateTransition, UnknownStateOrEvent
from .guards import Guard, guard_name


@dataclass(frozen=True, slots=True)
class Transition:
    """A single ``(from_state, event) -> to_state`` rule.

    ``guard`` and ``action`` are plain callables held on the record, so the
    table stays inspectable data while each edge can carry its own behaviour.
    """

    from_state: Enum
    to_state: Enum
    event: Enum
    guard: Guard | None = None
    action: Action | None = None
    description: str = ""

    def to_json(self) -> dict[str, object]:
        out: dict[str, object] = {
            "from": self.from_state.name,
            "to": self.to_state.name,
            "event": self.event.name,
        }
        if self.guard is not None:
            out["guard"] = guard_name(self.guard)
        if self.action is not None:
            out["action"] = getattr(self.action, "__name__", type(self.action).__name__)
        if self.description:
            out["description"] = self.description
        return out


@dataclass(frozen=True, slots=True)
class TransitionTable:
    """Validated workflow definition.

    Construction checks that every transition and the initial state use
    declared states and events, and that no ``(from_state, event)`` pair
    appears twice. :func:`build_table` is the usual way in; it accepts Enum
    classes and defaults the initial state.
    """

    name: str
    states: tuple[Enum, ...]
    events: tuple[Enum, ...]
    transitions: tuple[Transition, ...]
    initial_state: Enum

    _index: dict[tuple[Enum, Enum], Transition] = field(
        init=False, repr=False, compare=False, hash=False
    )
    _outgoing: dict[Enum, tuple[Transition, ...]] = field(
        init=False, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        states = _declare("State", self.states)
        events = _declare("Event", self.events)
        event_set = frozenset(events)
        if not states:
            raise ConfigError(f"Workflow {self.name!r} declares no states")
        if self.initial_state not in states:
            raise UnknownStateOrEvent(f"Initial state {self.initial_state!r} is not declared")

        index: dict[tuple[Enum, Enum], Transition] = {}
        outgoing: dict[Enum, list[Transition]] = {state: [] for state in states}
        transitions = tuple(self.transitions)
        for t in transitions:
            for state in (t.from_state, t.to_state):
                if state not in outgoing:
                    raise UnknownStateOrEvent(
                        f"Transition {t.from_state!r} -> {t.to_state!r} on {t.event!r} "
                        f"references undeclared state {state!r}"
                    )
            if t.event not in event_set:
                raise UnknownStateOrEvent(
                    f"Transition {t.from_state!r} -> {t.to_state!r} references "
                    f"undeclared event {t.event!r}"
                )
            key = (t.from_state, t.event)
            if key in index:
                raise DuplicateTransition(t.from_state, t.event)
            index[key] = t
            outgoing[t.from_state].append(t)

        object.__setattr__(self, "states", states)
        object.__setattr__(self, "events", events)
        object.__setattr__(self, "transitions", transitions)
        object.__setattr__(self, "_index", index)
        object.__setattr__(
            self, "_outgoing", {state: tuple(ts) for state, ts in outgoing.items()}
        )

    def by_state_and_event(self, state: Enum, event: Enum) -> Transition | None:
        return self._index.get((state, event))

    def transitions_from(self, state: Enum) -> tuple[Transition, ...]:
        """Outgoing transitions of ``state`` in declaration order."""

        return self._outgoing.get(state, ())

    @property
    def terminal_states(self) -> tuple[Enum, ...]:
        return tuple(state for state in self.states if not self._outgoing[state])

    def is_terminal(self, state: Enum) -> bool:
        return not self.transitions_from(state)

    def has_state(self, state: object) -> bool:
        return state in self._outgoing

    def state_named(self, name: str) -> Enum:
        for state in self.states:
            if state.name == name:
                return state
        raise UnknownStateOrEvent(f"Workflow {self.name!r} has no state named {name!r}")

    def event_named(self, name: str) -> Enum:
        for event in self.events:
            if event.name == name:
                return event
        raise UnknownStateOrEvent(f"Workflow {self.name!r} has no event named {name!r}")

    def to_json(self) -> dict[str, object]:
        return {
            "name": self.name,
            "initial_state": self.initial_state.name,
            "states": [s.name for s in self.states],
            "events": [e.name for e in self.events],
            "terminal_states": [s.name for s in self.terminal_states],
            "transitions": [t.to_json() for t in self.transitions],
        }


def _declare(kind: str, members: Iterable[Enum]) -> tuple[Enum, ...]:
    declared: list[Enum] = []
    for member in members:
        if not isinstance(member, Enum):
            raise UnknownStateOrEvent(f"{kind} {member!r} is not an Enum member")
        if member not in declared:
            declared.append(member)
    return tuple(declared)


def build_table(
    states: Iterable[Enum],
    events: Iterable[Enum],
    transitions: Iterable[Transition],
    *,
    name: str = "workflow",
    initial_state: Enum | None = None,
) -> TransitionTable:
    """Validate a workflow definition and freeze it into a table.

    Args:
        states: Declared states. An Enum class may be passed directly.
        events: Declared events. An Enum class may be passed directly.
        transitions: Transition rules, in the order affordances should list them.
        name: Workflow name, stored with each entity by persistence layers.
        initial_state: State new entities start in. Defaults to the first declared state.

    Raises:
        UnknownStateOrEvent: A transition or the initial state references an
            undeclared state or event, or a state or event is not an Enum member.
        DuplicateTransition: Two transitions share a ``(from_state, event)`` pair.
        ConfigError: The state set is empty.
    """

    declared_states = _declare("State", states)
    if not declared_states:
        raise ConfigError(f"Workflow {name!r} declares no states")

    return TransitionTable(
        name=name,
        states=declared_states,
        events=tuple(events),
        transitions=tuple(transitions),
        initial_state=declared_states[0] if initial_state is None else initial_state,
    )
