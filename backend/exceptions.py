"""
Custom exception classes for the application.

This module defines domain-specific exceptions raised by the entity stores
and backing stores. Every error carries a human-readable message plus a
``details`` dict that the API layer can surface.
"""


class ApplicationError(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ApplicationError):
    """Raised when there's a configuration issue"""

    def __init__(self, message: str, missing_keys: list[str] | None = None):
        details = {"missing_keys": missing_keys} if missing_keys else {}
        super().__init__(message, details)


class NotFoundError(ApplicationError):
    """Raised when an operation targets an identifier that is not stored"""

    def __init__(self, entity_type: str, entity_id: int, message: str | None = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        details = {"entity_type": entity_type, "entity_id": entity_id}
        msg = message or f"{entity_type} with id {entity_id} not found"
        super().__init__(msg, details)


class InvalidArgumentError(ApplicationError):
    """Raised when an identifier or entity is malformed"""

    def __init__(self, message: str, invalid_fields: dict | None = None):
        details = {"invalid_fields": invalid_fields} if invalid_fields else {}
        super().__init__(message, details)


class ConflictError(ApplicationError):
    """Raised when an update was based on a stale version of the entity"""

    def __init__(
        self,
        entity_type: str,
        entity_id: int,
        expected_version: int | None,
        actual_version: int | None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        details = {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "expected_version": expected_version,
            "actual_version": actual_version,
        }
        msg = (
            f"{entity_type} with id {entity_id} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
        super().__init__(msg, details)


class DatabaseError(ApplicationError):
    """Raised when database operations fail"""

    def __init__(self, operation: str, message: str):
        details = {"operation": operation}
        super().__init__(message, details)


class IdentifierExhaustedError(ApplicationError):
    """Raised when a store has already handed out its largest identifier"""

    def __init__(self, max_id: int, entity_type: str | None = None):
        self.entity_type = entity_type
        self.max_id = max_id
        details = {"max_id": max_id}
        if entity_type:
            details["entity_type"] = entity_type
        subject = f"{entity_type} identifiers" if entity_type else "Identifiers"
        super().__init__(f"{subject} exhausted: {max_id} has already been assigned", details)
