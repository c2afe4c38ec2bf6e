"""
Application-wide constants and configuration keys.

This module centralizes all magic strings and numbers used throughout the application
to improve maintainability and reduce duplication.
"""
from enum import Enum


class EntityType(str, Enum):
    """
    Names under which each entity type is persisted.

    The value is the partition key in the backing store, so renaming one
    orphans every stored record of that type.
    """

    CUSTOMER = 'customer'
    EVENT = 'event'


class IdentifierBounds:
    """Valid range for entity identifiers (signed 64-bit, positive)"""

    MIN = 1
    MAX = 2 ** 63 - 1

    @classmethod
    def contains(cls, value: int) -> bool:
        """Check if a value falls inside the identifier range"""
        return cls.MIN <= value <= cls.MAX


class StoreDefaults:
    """Default values for entity store settings"""

    BACKEND = 'sql'
    LOCK_STRIPES = 64
    LOG_LEVEL = 'INFO'
    DATA_DIR_NAME = '.ticketing'
    DB_FILENAME = 'ticketing.db'
    LOG_FILENAME = 'ticketing.log'
    LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT = 5
    SQLITE_BUSY_TIMEOUT_MS = 5000


class SettingKeys:
    """Environment variable names read by the configuration layer"""

    DATABASE_URL = 'TICKETING_DATABASE_URL'
    DATA_DIR = 'TICKETING_DATA_DIR'
    BACKEND = 'TICKETING_BACKEND'
    UPSERT_UNKNOWN_IDS = 'TICKETING_UPSERT_UNKNOWN_IDS'
    STRICT_DELETE = 'TICKETING_STRICT_DELETE'
    OPTIMISTIC_LOCKING = 'TICKETING_OPTIMISTIC_LOCKING'
    LOCK_STRIPES = 'TICKETING_LOCK_STRIPES'
    LOG_LEVEL = 'TICKETING_LOG_LEVEL'


class HTTPStatus:
    """HTTP status codes used throughout the application"""

    # Success
    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    # Client Errors
    BAD_REQUEST = 400
    NOT_FOUND = 404
    CONFLICT = 409

    # Server Errors
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503


class ServerConfig:
    """Server configuration"""

    HOST = '127.0.0.1'
    PORT = 8080
