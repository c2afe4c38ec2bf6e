"""
Generic entity store providing CRUD operations over a backing store.
"""

import threading
from typing import Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from constants import IdentifierBounds, StoreDefaults
from exceptions import ConflictError, DatabaseError, InvalidArgumentError, NotFoundError
from schemas import Entity
from utils.logging_utils import StructuredLogger, log_operation
from .backing_store import BackingStore

T = TypeVar('T', bound=Entity)

logger = StructuredLogger(__name__)


class EntityStore(Generic[T]):
    """
    Generic entity store providing create/read/update/delete/list access.
    All typed repositories should inherit from this class.

    Entities are serialized to JSON (everything except ``id``) and kept in
    the backing store under their identifier. Callers always receive fresh
    copies; mutating a returned entity never touches the stored value.

    Operations on the same identifier are serialized through a fixed pool
    of striped locks. find_all takes no lock and returns whatever snapshot
    the backing store's scan produces.
    """

    def __init__(
        self,
        backing_store: BackingStore,
        model: Type[T],
        entity_type: str,
        upsert_unknown_ids: bool = False,
        strict_delete: bool = False,
        optimistic_locking: bool = True,
        lock_stripes: int = StoreDefaults.LOCK_STRIPES,
    ):
        """
        Initialize the store.

        Args:
            backing_store: Durable id -> bytes map
            model: Entity class stored here
            entity_type: Name used in logs and errors
            upsert_unknown_ids: Insert instead of failing when save() gets an unknown id
            strict_delete: Raise NotFoundError when deleting an absent id
            optimistic_locking: Reject updates carrying a stale version
            lock_stripes: Number of per-identifier locks
        """
        if lock_stripes < 1:
            raise InvalidArgumentError(f"lock_stripes must be at least 1, got {lock_stripes}")
        self.backing_store = backing_store
        self.model = model
        self.entity_type = entity_type
        self.upsert_unknown_ids = upsert_unknown_ids
        self.strict_delete = strict_delete
        self.optimistic_locking = optimistic_locking
        self._locks = [threading.Lock() for _ in range(lock_stripes)]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_for(self, entity_id: int) -> threading.Lock:
        return self._locks[entity_id % len(self._locks)]

    def _validate_id(self, entity_id) -> int:
        # bool is an int subclass but never a meaningful identifier
        if isinstance(entity_id, bool) or not isinstance(entity_id, int):
            raise InvalidArgumentError(
                f"{self.entity_type} id must be an integer, got {type(entity_id).__name__}",
                invalid_fields={"id": repr(entity_id)},
            )
        if not IdentifierBounds.contains(entity_id):
            raise InvalidArgumentError(
                f"{self.entity_type} id must be between {IdentifierBounds.MIN} and {IdentifierBounds.MAX}, got {entity_id}",
                invalid_fields={"id": entity_id},
            )
        return entity_id

    def _validate_entity(self, entity) -> T:
        if not isinstance(entity, self.model):
            raise InvalidArgumentError(
                f"Expected a {self.model.__name__}, got {type(entity).__name__}",
                invalid_fields={"entity": type(entity).__name__},
            )
        return entity

    def _encode(self, entity: T) -> bytes:
        return entity.model_dump_json(exclude={'id'}).encode('utf-8')

    def _decode(self, entity_id: int, payload: bytes) -> T:
        try:
            entity = self.model.model_validate_json(payload)
        except PydanticValidationError as e:
            raise DatabaseError(
                "decode",
                f"Stored {self.entity_type} {entity_id} could not be decoded: {e}",
            ) from e
        return entity.model_copy(update={'id': entity_id})

    def _context(self, operation: str, entity_id: Optional[int] = None) -> dict:
        context = {"entity_type": self.entity_type, "operation": operation}
        if entity_id is not None:
            context["entity_id"] = entity_id
        return context

    # ------------------------------------------------------------------
    # CRUD operations
    # ------------------------------------------------------------------

    def save(self, entity: T) -> T:
        """
        Insert a new entity or replace a stored one.

        Args:
            entity: Entity to persist. A None id means "new".

        Returns:
            Persisted copy carrying its identifier and version

        Raises:
            InvalidArgumentError: If the entity or its id is malformed
            NotFoundError: If the id is unknown and upserts are disabled
            ConflictError: If the entity's version is stale
            IdentifierExhaustedError: If a new entity needs an id and none is left
        """
        entity = self._validate_entity(entity)
        if entity.is_new:
            return self._insert(entity)

        entity_id = self._validate_id(entity.id)
        with self._lock_for(entity_id):
            payload = self.backing_store.get(entity_id)
            if payload is None:
                return self._insert_with_id(entity, entity_id)

            stored_version = self._decode(entity_id, payload).version
            if (
                self.optimistic_locking
                and entity.version is not None
                and entity.version != stored_version
            ):
                logger.warning(
                    f"Rejected stale update of {self.entity_type} {entity_id}",
                    extra=self._context("save", entity_id),
                )
                raise ConflictError(self.entity_type, entity_id, entity.version, stored_version)

            saved = entity.model_copy(update={'version': (stored_version or 0) + 1}, deep=True)
            self.backing_store.put(entity_id, self._encode(saved))

        logger.info(
            f"Updated {self.entity_type} {entity_id} (version {saved.version})",
            extra=self._context("update", entity_id),
        )
        return saved

    def _insert(self, entity: T) -> T:
        # put_if_absent guards against ids claimed through upserts
        saved = entity.model_copy(update={'version': 1}, deep=True)
        payload = self._encode(saved)
        while True:
            entity_id = self.backing_store.next_id()
            with self._lock_for(entity_id):
                if self.backing_store.put_if_absent(entity_id, payload):
                    break
        saved = saved.model_copy(update={'id': entity_id})
        logger.info(
            f"Created {self.entity_type} {entity_id}",
            extra=self._context("create", entity_id),
        )
        return saved

    def _insert_with_id(self, entity: T, entity_id: int) -> T:
        """Caller must hold the stripe lock for entity_id."""
        if not self.upsert_unknown_ids:
            logger.warning(
                f"Cannot update {self.entity_type} {entity_id}: not found",
                extra=self._context("save", entity_id),
            )
            raise NotFoundError(self.entity_type, entity_id)

        saved = entity.model_copy(update={'version': 1}, deep=True)
        self.backing_store.advance_to(entity_id)
        if not self.backing_store.put_if_absent(entity_id, self._encode(saved)):
            # Inserted by another process between our get and put
            raise ConflictError(self.entity_type, entity_id, entity.version, None)
        logger.info(
            f"Created {self.entity_type} {entity_id} with caller-supplied id",
            extra=self._context("upsert", entity_id),
        )
        return saved

    @log_operation("save_all")
    def save_all(self, entities: Iterable[T]) -> List[T]:
        """
        Save entities one by one, in order.

        There is no batch atomicity: entities saved before a failure stay
        saved and the error propagates.

        Returns:
            Persisted copies, in input order
        """
        return [self.save(entity) for entity in entities]

    def find_by_id(self, entity_id: int) -> Optional[T]:
        """
        Retrieve an entity by its identifier.

        Args:
            entity_id: Identifier value

        Returns:
            Entity copy or None if not found

        Raises:
            InvalidArgumentError: If the id is malformed
        """
        entity_id = self._validate_id(entity_id)
        with self._lock_for(entity_id):
            payload = self.backing_store.get(entity_id)
        logger.debug(
            f"Lookup {self.entity_type} {entity_id}: {'hit' if payload is not None else 'miss'}",
            extra=self._context("find_by_id", entity_id),
        )
        if payload is None:
            return None
        return self._decode(entity_id, payload)

    def find_all(self) -> List[T]:
        """
        Retrieve all stored entities.

        Returns:
            Snapshot of live entities ordered by ascending id (insertion order)
        """
        return [self._decode(entity_id, payload) for entity_id, payload in self.backing_store.scan()]

    def find_all_by_id(self, ids: Iterable[int]) -> List[T]:
        """
        Retrieve the entities for the given identifiers that exist.

        Returns:
            Entities ordered by ascending id, duplicates collapsed
        """
        wanted = sorted({self._validate_id(entity_id) for entity_id in ids})
        found = []
        for entity_id in wanted:
            entity = self.find_by_id(entity_id)
            if entity is not None:
                found.append(entity)
        return found

    def exists_by_id(self, entity_id: int) -> bool:
        """
        Check if an entity exists by identifier.

        Raises:
            InvalidArgumentError: If the id is malformed
        """
        return self.backing_store.contains(self._validate_id(entity_id))

    def count(self) -> int:
        """Count live entities."""
        return self.backing_store.count()

    def delete_by_id(self, entity_id: int) -> None:
        """
        Delete an entity by identifier.

        Deleting an absent id is a no-op unless the store was built with
        strict_delete.

        Raises:
            InvalidArgumentError: If the id is malformed
            NotFoundError: If strict_delete is set and the id is absent
        """
        entity_id = self._validate_id(entity_id)
        with self._lock_for(entity_id):
            removed = self.backing_store.delete(entity_id)

        if removed:
            logger.info(
                f"Deleted {self.entity_type} {entity_id}",
                extra=self._context("delete", entity_id),
            )
        elif self.strict_delete:
            raise NotFoundError(self.entity_type, entity_id)
        else:
            logger.debug(
                f"Delete of absent {self.entity_type} {entity_id} ignored",
                extra=self._context("delete", entity_id),
            )

    def delete(self, entity: T) -> None:
        """
        Delete a stored entity.

        Raises:
            InvalidArgumentError: If the entity has never been saved
        """
        entity = self._validate_entity(entity)
        if entity.id is None:
            raise InvalidArgumentError(
                f"Cannot delete a {self.entity_type} that has no id",
                invalid_fields={"id": None},
            )
        self.delete_by_id(entity.id)

    @log_operation("delete_all")
    def delete_all(self) -> None:
        """Delete every stored entity. Identifier assignment is not reset."""
        removed = self.backing_store.clear()
        logger.info(
            f"Deleted {removed} {self.entity_type} record(s)",
            extra=self._context("delete_all"),
        )
