"""Task lifecycle workflow.

DRAFT --ASSIGN--> AWAITING --ACCEPT--> ACCEPTED --COMPLETE--> COMPLETED

From AWAITING a task may also be rejected or cancelled, and an accepted
task may be cancelled. Only the assigned executor may accept.

Context keys:
- ``acting_user``: who is triggering the event
- ``executor``: who the task is assigned to
"""

from __future__ import annotations

import logging
from enum import Enum

from workflow_engine.workflow.actions import Action, ActionResult
from workflow_engine.workflow.guards import Context, context_equals
from workflow_engine.workflow.table import Transition, TransitionTable, build_table

logger = logging.getLogger(__name__)

WORKFLOW_NAME = "task"


class TaskState(Enum):
    DRAFT = "draft"
    AWAITING = "awaiting"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class TaskEvent(Enum):
    ASSIGN = "assign"
    ACCEPT = "accept"
    REJECT = "reject"
    COMPLETE = "complete"
    CANCEL = "cancel"


is_assigned_executor = context_equals("acting_user", "executor")


def log_assignment(context: Context) -> ActionResult:
    """Record who a task was handed to. Stand-in for a real notification."""

    executor = context.get("executor")
    if not executor:
        return ActionResult.failure("no executor given")
    logger.info(
        "Task assigned",
        extra={"executor": executor, "acting_user": context.get("acting_user")},
    )
    return ActionResult.success("notified", executor=executor)


def build_task_workflow(*, notify: Action | None = None) -> TransitionTable:
    """Build the task lifecycle table.

    Args:
        notify: Optional action run on ASSIGN, e.g. to message the executor.
    """

    return build_table(
        TaskState,
        TaskEvent,
        [
            Transition(
                TaskState.DRAFT,
                TaskState.AWAITING,
                TaskEvent.ASSIGN,
                action=notify,
                description="Hand the task to an executor",
            ),
            Transition(
                TaskState.AWAITING,
                TaskState.ACCEPTED,
                TaskEvent.ACCEPT,
                guard=is_assigned_executor,
                description="Only the assigned executor can accept",
            ),
            Transition(TaskState.AWAITING, TaskState.REJECTED, TaskEvent.REJECT),
            Transition(TaskState.AWAITING, TaskState.CANCELLED, TaskEvent.CANCEL),
            Transition(TaskState.ACCEPTED, TaskState.COMPLETED, TaskEvent.COMPLETE),
            Transition(TaskState.ACCEPTED, TaskState.CANCELLED, TaskEvent.CANCEL),
        ],
        name=WORKFLOW_NAME,
        initial_state=TaskState.DRAFT,
    )
