"""Test configuration and fixtures."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from workflow_engine.definitions import build_task_workflow, default_catalog
from workflow_engine.persistence.entity_store import EntityStore
from workflow_engine.service import WorkflowService
from workflow_engine.workflow.catalog import WorkflowCatalog
from workflow_engine.workflow.table import TransitionTable

FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def task_table() -> TransitionTable:
    """Provide the bundled task lifecycle table."""
    return build_task_workflow()


@pytest.fixture
def catalog() -> WorkflowCatalog:
    """Provide a fresh catalog with the bundled workflows."""
    return default_catalog()


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "workflow_state" / "entities.json"


@pytest.fixture
def entity_store(store_path: Path, catalog: WorkflowCatalog) -> EntityStore:
    """Provide an empty JSON entity store."""
    return EntityStore(store_path, catalog)


@pytest.fixture
def service(entity_store: EntityStore) -> WorkflowService:
    return WorkflowService(entity_store)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now: datetime):
    """A clock that always returns the fixed test time."""
    return lambda: fixed_now
