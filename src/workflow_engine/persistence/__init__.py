"""Reference persistence for workflow entities."""

from workflow_engine.persistence.entity_store import EntityRecord, EntityStore

__all__ = ["EntityRecord", "EntityStore"]
