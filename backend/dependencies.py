"""
Dependency injection providers for FastAPI.

This module provides factory functions for creating backing stores and
repository instances. Each entity type gets exactly one repository per
process, since the repository is the only writer to its backing store.
"""

import threading
from typing import Dict

from config.store_config import EntityStoreSettings, get_settings
from constants import EntityType
from database import get_session_factory
from repositories.backing_store import BackingStore, InMemoryBackingStore
from repositories.sql_backing_store import SqlAlchemyBackingStore
from repositories.customer_repository import CustomerRepository
from repositories.event_repository import EventRepository

_repositories: Dict[EntityType, object] = {}
_repositories_lock = threading.Lock()


def build_backing_store(entity_type: EntityType, settings: EntityStoreSettings) -> BackingStore:
    """
    Factory function for creating the configured backing store.

    Args:
        entity_type: Entity type the store will hold
        settings: Store settings

    Returns:
        BackingStore implementation
    """
    if settings.backend == 'memory':
        return InMemoryBackingStore()
    return SqlAlchemyBackingStore(get_session_factory(), entity_type.value)


def _policy(settings: EntityStoreSettings) -> dict:
    return {
        "upsert_unknown_ids": settings.upsert_unknown_ids,
        "strict_delete": settings.strict_delete,
        "optimistic_locking": settings.optimistic_locking,
        "lock_stripes": settings.lock_stripes,
    }


def get_customer_repository() -> CustomerRepository:
    """
    Factory function for the process-wide CustomerRepository.

    Returns:
        CustomerRepository instance
    """
    with _repositories_lock:
        if EntityType.CUSTOMER not in _repositories:
            settings = get_settings()
            _repositories[EntityType.CUSTOMER] = CustomerRepository(
                build_backing_store(EntityType.CUSTOMER, settings), **_policy(settings)
            )
        return _repositories[EntityType.CUSTOMER]


def get_event_repository() -> EventRepository:
    """
    Factory function for the process-wide EventRepository.

    Returns:
        EventRepository instance
    """
    with _repositories_lock:
        if EntityType.EVENT not in _repositories:
            settings = get_settings()
            _repositories[EntityType.EVENT] = EventRepository(
                build_backing_store(EntityType.EVENT, settings), **_policy(settings)
            )
        return _repositories[EntityType.EVENT]


def reset_repositories():
    """Drop cached repositories so the next request rebuilds them from settings."""
    with _repositories_lock:
        _repositories.clear()
