from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .guards import Context
from .machine import Machine


@dataclass(frozen=True, slots=True)
class Affordance:
    """An event the presentation layer can offer, with its display label."""

    event: Enum
    label: str
    enabled: bool = True

    def to_json(self) -> dict[str, object]:
        return {"event": self.event.name, "label": self.label, "enabled": self.enabled}


def default_label(event: Enum) -> str:
    return event.name.replace("_", " ").capitalize()


def export_affordances(
    machine: Machine,
    context: Context | None = None,
    label_for: Callable[[Enum], str] = default_label,
    *,
    include_disabled: bool = False,
) -> list[Affordance]:
    """List the events currently offerable for ``machine``.

    Order follows transition declaration order, so it is stable across
    calls. By default only events whose guard passes are returned. With
    ``include_disabled=True`` guard-failing events are included with
    ``enabled=False`` so a UI can show them greyed out.
    """

    satisfied = set(machine.available_events_satisfying(context))
    candidates = machine.available_events() if include_disabled else tuple(
        e for e in machine.available_events() if e in satisfied
    )
    return [
        Affordance(event=event, label=label_for(event), enabled=event in satisfied)
        for event in candidates
    ]
