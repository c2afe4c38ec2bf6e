"""
Backing store contract for entity persistence.

A backing store is a plain id -> bytes map with a monotonic id source. It
knows nothing about entity types or serialization; EntityStore layers those
on top.
"""

import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from constants import IdentifierBounds
from exceptions import IdentifierExhaustedError


class BackingStore(ABC):
    """
    Interface for the durable medium underneath an entity store.

    Implementations must make each individual call atomic: a concurrent
    reader sees either the old payload or the new one, never a mix.
    """

    @abstractmethod
    def put(self, entity_id: int, payload: bytes) -> None:
        """
        Store a payload under an identifier, replacing any existing one.

        Args:
            entity_id: Identifier key
            payload: Serialized entity
        """
        pass

    @abstractmethod
    def put_if_absent(self, entity_id: int, payload: bytes) -> bool:
        """
        Store a payload only if nothing is stored under the identifier yet.

        Returns:
            True if stored, False if the identifier was already taken
        """
        pass

    @abstractmethod
    def get(self, entity_id: int) -> Optional[bytes]:
        """
        Retrieve the payload stored under an identifier.

        Returns:
            Payload bytes or None if absent
        """
        pass

    @abstractmethod
    def delete(self, entity_id: int) -> bool:
        """
        Remove the payload stored under an identifier.

        Returns:
            True if removed, False if nothing was stored
        """
        pass

    @abstractmethod
    def scan(self) -> List[Tuple[int, bytes]]:
        """
        Snapshot every stored record.

        Returns:
            List of (id, payload) pairs ordered by ascending id
        """
        pass

    @abstractmethod
    def next_id(self) -> int:
        """
        Hand out a fresh identifier.

        Identifiers are strictly increasing and never reused, even after
        the record holding one is deleted.

        Raises:
            IdentifierExhaustedError: If IdentifierBounds.MAX was already handed
                out or claimed through advance_to
        """
        pass

    @abstractmethod
    def advance_to(self, entity_id: int) -> None:
        """Ensure every later next_id() result is greater than entity_id."""
        pass

    def contains(self, entity_id: int) -> bool:
        """Check if a payload is stored under an identifier."""
        return self.get(entity_id) is not None

    def count(self) -> int:
        """Count stored records."""
        return len(self.scan())

    def clear(self) -> int:
        """
        Remove every stored record. The id sequence is left untouched.

        Returns:
            Number of records removed
        """
        removed = 0
        for entity_id, _ in self.scan():
            if self.delete(entity_id):
                removed += 1
        return removed


class InMemoryBackingStore(BackingStore):
    """Process-local backing store, used for tests and the 'memory' backend."""

    def __init__(self):
        self._records: Dict[int, bytes] = {}
        self._last_id = 0
        self._lock = threading.Lock()

    def put(self, entity_id: int, payload: bytes) -> None:
        with self._lock:
            self._records[entity_id] = bytes(payload)

    def put_if_absent(self, entity_id: int, payload: bytes) -> bool:
        with self._lock:
            if entity_id in self._records:
                return False
            self._records[entity_id] = bytes(payload)
            return True

    def get(self, entity_id: int) -> Optional[bytes]:
        with self._lock:
            return self._records.get(entity_id)

    def delete(self, entity_id: int) -> bool:
        with self._lock:
            return self._records.pop(entity_id, None) is not None

    def scan(self) -> List[Tuple[int, bytes]]:
        with self._lock:
            snapshot = list(self._records.items())
        snapshot.sort(key=lambda item: item[0])
        return snapshot

    def next_id(self) -> int:
        with self._lock:
            if self._last_id >= IdentifierBounds.MAX:
                raise IdentifierExhaustedError(IdentifierBounds.MAX)
            self._last_id += 1
            return self._last_id

    def advance_to(self, entity_id: int) -> None:
        with self._lock:
            if entity_id > self._last_id:
                self._last_id = entity_id

    def contains(self, entity_id: int) -> bool:
        with self._lock:
            return entity_id in self._records

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._records)
            self._records.clear()
            return removed
