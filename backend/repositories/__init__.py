"""
Repository layer for data access abstraction.

This package contains the generic entity store, the backing stores it runs
on, and one typed repository per entity type.
"""

from .backing_store import BackingStore, InMemoryBackingStore
from .sql_backing_store import SqlAlchemyBackingStore
from .base_repository import EntityStore
from .customer_repository import CustomerRepository
from .event_repository import EventRepository

__all__ = [
    "BackingStore",
    "InMemoryBackingStore",
    "SqlAlchemyBackingStore",
    "EntityStore",
    "CustomerRepository",
    "EventRepository",
]
