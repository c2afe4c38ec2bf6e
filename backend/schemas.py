from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime, timezone


# Entity Schemas
class Entity(BaseModel):
    """
    Base for every persisted record.

    ``id`` is None until the store assigns one on first save. ``version``
    counts successful saves and is used for optimistic locking; callers
    normally just echo back whatever the store returned.
    """
    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    id: Optional[int] = None
    version: Optional[int] = None

    @property
    def is_new(self) -> bool:
        return self.id is None


class Customer(Entity):
    """A ticket buyer (booking service)"""
    name: str = Field(min_length=1)
    email: Optional[str] = None

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError('name must not be blank')
        return v


class Event(Entity):
    """A ticketed event (inventory service)"""
    name: str = Field(min_length=1)
    venue: Optional[str] = None
    total_capacity: int = Field(default=0, ge=0)
    starts_at: Optional[datetime] = None

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError('name must not be blank')
        return v


# API Schemas
class CountResponse(BaseModel):
    count: int


class HealthResponse(BaseModel):
    status: str = 'ok'
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
