"""Approval lifecycle workflow.

An author submits a document; someone other than the author approves or
declines it. A pending document can be withdrawn back to draft.

Context keys: ``acting_user``, ``author``.
"""

from __future__ import annotations

from enum import Enum

from workflow_engine.workflow.guards import all_of, context_equals, negate, requires_keys
from workflow_engine.workflow.table import Transition, TransitionTable, build_table

WORKFLOW_NAME = "approval"


class ApprovalState(Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class ApprovalEvent(Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    DECLINE = "decline"
    WITHDRAW = "withdraw"


is_author = context_equals("acting_user", "author")
is_reviewer = all_of(requires_keys("acting_user", "author"), negate(is_author))


def build_approval_workflow() -> TransitionTable:
    return build_table(
        ApprovalState,
        ApprovalEvent,
        [
            Transition(
                ApprovalState.DRAFT, ApprovalState.PENDING, ApprovalEvent.SUBMIT, guard=is_author
            ),
            Transition(
                ApprovalState.PENDING,
                ApprovalState.APPROVED,
                ApprovalEvent.APPROVE,
                guard=is_reviewer,
            ),
            Transition(
                ApprovalState.PENDING,
                ApprovalState.DECLINED,
                ApprovalEvent.DECLINE,
                guard=is_reviewer,
            ),
            Transition(
                ApprovalState.PENDING, ApprovalState.DRAFT, ApprovalEvent.WITHDRAW, guard=is_author
            ),
        ],
        name=WORKFLOW_NAME,
    )
