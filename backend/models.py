from sqlalchemy import Column, String, BigInteger, LargeBinary, DateTime, CheckConstraint, Index
from datetime import datetime, timezone
from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class EntityRecord(Base):
    """
    One persisted entity.

    Records of every entity type share this table, partitioned by
    ``entity_type``. The payload is the entity's serialized field set and is
    opaque to the database; the identifier lives only in ``id``.
    """
    __tablename__ = 'entity_records'

    entity_type = Column(String, primary_key=True)
    id = Column(BigInteger, primary_key=True, autoincrement=False)
    payload = Column(LargeBinary, nullable=False)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("entity_type != ''"),
        CheckConstraint("id > 0"),
        Index('idx_entity_records_type_id', 'entity_type', 'id'),
    )


class IdSequence(Base):
    """
    Monotonic identifier counter per entity type.

    ``next_value`` is the last identifier handed out. It only ever grows, so
    identifiers of deleted records are never reissued.
    """
    __tablename__ = 'id_sequences'

    entity_type = Column(String, primary_key=True)
    next_value = Column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("next_value >= 0"),
    )
