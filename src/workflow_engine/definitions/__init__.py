"""Bundled workflow definitions."""

from __future__ import annotations

from workflow_engine.workflow.actions import Action
from workflow_engine.workflow.catalog import WorkflowCatalog

from .approval import ApprovalEvent, ApprovalState, build_approval_workflow
from .task import TaskEvent, TaskState, build_task_workflow, log_assignment


def default_catalog(*, notify: Action | None = None) -> WorkflowCatalog:
    """A fresh catalog holding the bundled ``task`` and ``approval`` workflows."""

    return WorkflowCatalog([build_task_workflow(notify=notify), build_approval_workflow()])


__all__ = [
    "ApprovalEvent",
    "ApprovalState",
    "TaskEvent",
    "TaskState",
    "build_approval_workflow",
    "build_task_workflow",
    "default_catalog",
    "log_assignment",
]
