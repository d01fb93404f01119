#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates using the engine components directly:

* build the task lifecycle table
* create an entity in a JSON store
* apply events and print the affordances a UI would render

The acting user is passed as an argument.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from workflow_engine.config import EngineSettings
from workflow_engine.definitions import TaskEvent, default_catalog
from workflow_engine.logging import configure_logging
from workflow_engine.persistence.entity_store import EntityStore
from workflow_engine.service import WorkflowService
from workflow_engine.workflow.errors import EntityAlreadyExists, GuardRejected


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Drive a task through its lifecycle.")
    parser.add_argument("--entity-id", default="task-1", help="Task identifier")
    parser.add_argument("--executor", required=True, help="User the task is assigned to")
    parser.add_argument("--acting-user", required=True, help="User accepting the task")
    parser.add_argument("--store", type=Path, default=None, help="Override the store path")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = EngineSettings()
    configure_logging(settings.log_level)

    store = EntityStore(args.store or settings.store_path, default_catalog())
    service = WorkflowService(store)

    try:
        service.create(args.entity_id, "task")
    except EntityAlreadyExists as exc:
        print(str(exc))
        return 0

    context = {"acting_user": args.acting_user, "executor": args.executor}
    service.apply(args.entity_id, TaskEvent.ASSIGN, context)

    for affordance in service.status(args.entity_id, context).affordances:
        marker = " " if affordance.enabled else "x"
        print(f"[{marker}] {affordance.label}")

    try:
        applied = service.apply(args.entity_id, TaskEvent.ACCEPT, context)
    except GuardRejected as exc:
        print(f"Not permitted: {exc}")
        return 1

    result = applied.result
    print(f"Task {args.entity_id} is {result.state.name} (version {result.version})")
    print(f"Persisted to: {store.path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
