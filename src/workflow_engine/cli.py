"""CLI entrypoint for inspecting and driving workflow entities.

Entities live in the JSON store configured by `WORKFLOW_STORE_PATH`. Output
is JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from workflow_engine import __version__
from workflow_engine.config import EngineSettings
from workflow_engine.definitions import default_catalog, log_assignment
from workflow_engine.logging import configure_logging
from workflow_engine.persistence.entity_store import EntityStore
from workflow_engine.service import WorkflowService
from workflow_engine.workflow.actions import with_timeout
from workflow_engine.workflow.catalog import WorkflowCatalog
from workflow_engine.workflow.errors import (
    ConcurrentModification,
    EntityAlreadyExists,
    EntityNotFound,
    StoreCorrupted,
    TriggerError,
    UnknownStateOrEvent,
    UnknownWorkflow,
)

logger = logging.getLogger(__name__)


def _parse_context(pairs: list[str] | None) -> dict[str, str]:
    context: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Context must be key=value, got {pair!r}")
        context[key.strip()] = value.strip()
    return context


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="workflow-engine",
        description="Inspect and drive guarded workflow entities",
    )
    parser.add_argument(
        "--version", action="version", version=f"guarded-workflow-engine {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    describe = subparsers.add_parser("describe", help="Print a workflow definition")
    describe.add_argument("--workflow", default=None, help="Workflow name (default: configured)")

    create = subparsers.add_parser("create", help="Enter a new entity into a workflow")
    create.add_argument("--entity-id", required=True, help="Identifier of the new entity")
    create.add_argument("--workflow", default=None, help="Workflow name (default: configured)")

    status = subparsers.add_parser(
        "status", help="Show state, version and available events of an entity"
    )
    status.add_argument("--entity-id", required=True)
    status.add_argument(
        "--context",
        action="append",
        metavar="KEY=VALUE",
        help="Context passed to guards; may be repeated",
    )

    trigger = subparsers.add_parser("trigger", help="Apply an event to an entity")
    trigger.add_argument("--entity-id", required=True)
    trigger.add_argument("--event", required=True, help="Event name, e.g. ASSIGN")
    trigger.add_argument(
        "--context",
        action="append",
        metavar="KEY=VALUE",
        help="Context passed to guards and actions; may be repeated",
    )
    trigger.add_argument(
        "--retries",
        type=int,
        default=0,
        help="Reload and retry this many times on concurrent modification",
    )

    history = subparsers.add_parser("history", help="Print the audit history of an entity")
    history.add_argument("--entity-id", required=True)

    return parser


def build_catalog(settings: EngineSettings) -> WorkflowCatalog:
    notify = log_assignment
    if settings.action_timeout_seconds is not None:
        notify = with_timeout(notify, settings.action_timeout_seconds)
    return default_catalog(notify=notify)


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = EngineSettings()
    except ValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    catalog = build_catalog(settings)
    service = WorkflowService(EntityStore(settings.store_path, catalog))

    try:
        if args.command == "describe":
            _emit(catalog.get(args.workflow or settings.default_workflow).to_json())
            return 0

        if args.command == "create":
            machine = service.create(args.entity_id, args.workflow or settings.default_workflow)
            _emit(
                {
                    "entity_id": args.entity_id,
                    "workflow": machine.table.name,
                    "state": machine.state.name,
                    "version": machine.version,
                }
            )
            return 0

        if args.command == "status":
            context = _parse_context(args.context)
            _emit(service.status(args.entity_id, context).to_json())
            return 0

        if args.command == "trigger":
            context = _parse_context(args.context)
            applied = service.apply(args.entity_id, args.event, context, retries=args.retries)
            _emit(
                {
                    "entity_id": args.entity_id,
                    "state": applied.result.state.name,
                    "version": applied.result.version,
                    "audit": applied.result.audit.to_json(),
                }
            )
            return 0

        if args.command == "history":
            record = service.store.get(args.entity_id)
            if record is None:
                raise EntityNotFound(args.entity_id)
            _emit(record.history)
            return 0

    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except (
        TriggerError,
        ConcurrentModification,
        EntityAlreadyExists,
        EntityNotFound,
        StoreCorrupted,
        UnknownStateOrEvent,
        UnknownWorkflow,
    ) as e:
        logger.info("Command failed", extra={"command": args.command, "error": type(e).__name__})
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
