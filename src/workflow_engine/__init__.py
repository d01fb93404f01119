"""Guarded Workflow Engine.

A reusable finite-state workflow core for entity lifecycles:
- transition tables validated once and shared read-only
- guarded transitions with side-effecting actions
- versioned machines for optimistic-concurrency persistence
- affordance export for presentation layers
"""

__version__ = "0.1.0"

from workflow_engine.workflow import (
    Machine,
    Transition,
    TransitionTable,
    WorkflowCatalog,
    build_table,
    export_affordances,
)

__all__ = [
    "__version__",
    "Machine",
    "Transition",
    "TransitionTable",
    "WorkflowCatalog",
    "build_table",
    "export_affordances",
]
