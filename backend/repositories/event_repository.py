"""
Event repository for the inventory service.
"""

from constants import EntityType
from schemas import Event
from .backing_store import BackingStore
from .base_repository import EntityStore


class EventRepository(EntityStore[Event]):
    """Repository for Event entities."""

    def __init__(self, backing_store: BackingStore, **policy):
        super().__init__(backing_store, Event, EntityType.EVENT.value, **policy)
