"""An explicit collection of workflows, looked up by name.

Catalogs are ordinary values handed to whoever needs them. There is no
process-wide registry, so separate catalogs never see each other's
workflows.
"""

from __future__ import annotations

from collections.abc import Iterator

from .errors import DuplicateWorkflow, UnknownWorkflow
from .table import TransitionTable


class WorkflowCatalog:
    def __init__(self, tables: list[TransitionTable] | None = None) -> None:
        self._tables: dict[str, TransitionTable] = {}
        for table in tables or []:
            self.register(table)

    def register(self, table: TransitionTable) -> TransitionTable:
        if table.name in self._tables:
            raise DuplicateWorkflow(f"Workflow {table.name!r} is already registered")
        self._tables[table.name] = table
        return table

    def get(self, name: str) -> TransitionTable:
        try:
            return self._tables[name]
        except KeyError:
            raise UnknownWorkflow(name) from None

    def names(self) -> list[str]:
        return list(self._tables)

    def __contains__(self, name: object) -> bool:
        return name in self._tables

    def __iter__(self) -> Iterator[TransitionTable]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)
