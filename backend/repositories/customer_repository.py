"""
Customer repository for the booking service.
"""

from constants import EntityType
from schemas import Customer
from .backing_store import BackingStore
from .base_repository import EntityStore


class CustomerRepository(EntityStore[Customer]):
    """Repository for Customer entities."""

    def __init__(self, backing_store: BackingStore, **policy):
        super().__init__(backing_store, Customer, EntityType.CUSTOMER.value, **policy)
