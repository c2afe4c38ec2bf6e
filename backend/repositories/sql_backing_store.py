"""
Relational backing store built on SQLAlchemy.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from constants import IdentifierBounds
from exceptions import DatabaseError, IdentifierExhaustedError
from models import EntityRecord, IdSequence
from .backing_store import BackingStore

logger = logging.getLogger(__name__)


class SqlAlchemyBackingStore(BackingStore):
    """
    Backing store over the ``entity_records`` and ``id_sequences`` tables.

    Every call runs in its own short-lived session and commits before
    returning, so readers on other connections never see half a write.
    """

    def __init__(self, session_factory: sessionmaker, entity_type: str):
        """
        Initialize the backing store.

        Args:
            session_factory: SQLAlchemy sessionmaker bound to the database
            entity_type: Partition key for this store's records
        """
        self._session_factory = session_factory
        self.entity_type = entity_type
        # Serializes sequence updates within the process; the row lock
        # taken by the UPDATE covers other processes.
        self._id_lock = threading.Lock()

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"{operation} failed for {self.entity_type}: {e}", exc_info=True)
            raise DatabaseError(operation, f"{operation} failed for {self.entity_type}: {e}") from e
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _records(self, db: Session):
        return db.query(EntityRecord).filter(EntityRecord.entity_type == self.entity_type)

    def put(self, entity_id: int, payload: bytes) -> None:
        with self._session_scope("put") as db:
            record = db.get(EntityRecord, (self.entity_type, entity_id))
            if record is None:
                db.add(EntityRecord(entity_type=self.entity_type, id=entity_id, payload=payload))
            else:
                record.payload = payload

    def put_if_absent(self, entity_id: int, payload: bytes) -> bool:
        db = self._session_factory()
        try:
            if db.get(EntityRecord, (self.entity_type, entity_id)) is not None:
                return False
            db.add(EntityRecord(entity_type=self.entity_type, id=entity_id, payload=payload))
            db.commit()
            return True
        except IntegrityError:
            # Another writer inserted the same key first
            db.rollback()
            return False
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"put_if_absent failed for {self.entity_type}: {e}", exc_info=True)
            raise DatabaseError("put_if_absent", f"put_if_absent failed for {self.entity_type}: {e}") from e
        finally:
            db.close()

    def get(self, entity_id: int) -> Optional[bytes]:
        with self._session_scope("get") as db:
            record = db.get(EntityRecord, (self.entity_type, entity_id))
            return bytes(record.payload) if record is not None else None

    def delete(self, entity_id: int) -> bool:
        with self._session_scope("delete") as db:
            deleted = self._records(db).filter(EntityRecord.id == entity_id).delete(synchronize_session=False)
            return deleted > 0

    def scan(self) -> List[Tuple[int, bytes]]:
        with self._session_scope("scan") as db:
            rows = (
                db.query(EntityRecord.id, EntityRecord.payload)
                .filter(EntityRecord.entity_type == self.entity_type)
                .order_by(EntityRecord.id.asc())
                .all()
            )
            return [(row.id, bytes(row.payload)) for row in rows]

    def next_id(self) -> int:
        with self._id_lock:
            with self._session_scope("next_id") as db:
                updated = (
                    db.query(IdSequence)
                    .filter(
                        IdSequence.entity_type == self.entity_type,
                        IdSequence.next_value < IdentifierBounds.MAX,
                    )
                    .update({IdSequence.next_value: IdSequence.next_value + 1}, synchronize_session=False)
                )
                if not updated:
                    if db.get(IdSequence, self.entity_type) is not None:
                        raise IdentifierExhaustedError(IdentifierBounds.MAX, self.entity_type)
                    db.add(IdSequence(entity_type=self.entity_type, next_value=1))
                    db.flush()
                    return 1
                return (
                    db.query(IdSequence.next_value)
                    .filter(IdSequence.entity_type == self.entity_type)
                    .scalar()
                )

    def advance_to(self, entity_id: int) -> None:
        with self._id_lock:
            with self._session_scope("advance_to") as db:
                sequence = db.get(IdSequence, self.entity_type)
                if sequence is None:
                    db.add(IdSequence(entity_type=self.entity_type, next_value=entity_id))
                elif sequence.next_value < entity_id:
                    sequence.next_value = entity_id

    def contains(self, entity_id: int) -> bool:
        with self._session_scope("contains") as db:
            return db.query(
                self._records(db).filter(EntityRecord.id == entity_id).exists()
            ).scalar()

    def count(self) -> int:
        with self._session_scope("count") as db:
            return self._records(db).count()

    def clear(self) -> int:
        with self._session_scope("clear") as db:
            return self._records(db).delete(synchronize_session=False)
