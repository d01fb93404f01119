"""Guarded finite-state workflow core.

This package provides:
- Transition tables (validated, immutable workflow definitions)
- Guards and actions attached to individual transitions
- Machines that apply events to one entity's state and version
- Affordance export for presentation layers

Persistence, transport and rendering stay with the caller.
"""

from .actions import Action, ActionResult, with_timeout
from .affordances import Affordance, default_label, export_affordances
from .catalog import WorkflowCatalog
from .errors import (
    ActionFailed,
    ConcurrentModification,
    ConfigError,
    DuplicateTransition,
    DuplicateWorkflow,
    EntityAlreadyExists,
    EntityNotFound,
    GuardRejected,
    InvalidTransition,
    StoreCorrupted,
    TriggerError,
    UnknownStateOrEvent,
    UnknownWorkflow,
    WorkflowError,
)
from .guards import (
    Context,
    Guard,
    all_of,
    any_of,
    context_equals,
    context_in,
    negate,
    requires_keys,
)
from .machine import AuditRecord, Machine, MachineSnapshot, TriggerResult
from .table import Transition, TransitionTable, build_table

__all__ = [
    "Action",
    "ActionFailed",
    "ActionResult",
    "Affordance",
    "AuditRecord",
    "ConcurrentModification",
    "ConfigError",
    "Context",
    "DuplicateTransition",
    "DuplicateWorkflow",
    "EntityAlreadyExists",
    "EntityNotFound",
    "Guard",
    "GuardRejected",
    "InvalidTransition",
    "Machine",
    "MachineSnapshot",
    "StoreCorrupted",
    "Transition",
    "TransitionTable",
    "TriggerError",
    "TriggerResult",
    "UnknownStateOrEvent",
    "UnknownWorkflow",
    "WorkflowCatalog",
    "WorkflowError",
    "all_of",
    "any_of",
    "build_table",
    "context_equals",
    "context_in",
    "default_label",
    "export_affordances",
    "negate",
    "requires_keys",
    "with_timeout",
]
