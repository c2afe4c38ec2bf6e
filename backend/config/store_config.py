"""
Entity Store Configuration

Reads the storage settings from environment variables.

Includes:
- Backend selection (relational or in-memory)
- Save/delete policies for unknown identifiers
- Optimistic locking and lock striping
- Database location and log level
"""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from constants import SettingKeys, StoreDefaults
from exceptions import ConfigurationError

logger = logging.getLogger(__name__)

VALID_BACKENDS = ('sql', 'memory')


def _parse_bool(value: Optional[str], default: bool) -> bool:
    """
    Parse a boolean flag the same way for every setting.

    Returns:
        True if the value is 'true', '1' or 'yes' (case-insensitive)
    """
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in ('true', '1', 'yes')


def _parse_int(key: str, value: Optional[str], default: int) -> int:
    if value is None or value.strip() == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")


@dataclass(frozen=True)
class EntityStoreSettings:
    """
    Immutable settings for entity stores and the database they sit on.

    The defaults keep the store semantics of a plain CRUD repository:
    updates of unknown ids fail, deletes of absent ids are no-ops.
    """

    database_url: str
    data_dir: Path
    backend: str = StoreDefaults.BACKEND
    upsert_unknown_ids: bool = False
    strict_delete: bool = False
    optimistic_locking: bool = True
    lock_stripes: int = StoreDefaults.LOCK_STRIPES
    log_level: str = StoreDefaults.LOG_LEVEL

    def __post_init__(self):
        """Validate settings."""
        if self.backend not in VALID_BACKENDS:
            raise ConfigurationError(
                f"Unknown storage backend {self.backend!r}, expected one of {', '.join(VALID_BACKENDS)}"
            )
        if self.lock_stripes < 1:
            raise ConfigurationError(f"Lock stripes must be at least 1, got {self.lock_stripes}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EntityStoreSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            EntityStoreSettings instance

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ

        data_dir_raw = env.get(SettingKeys.DATA_DIR)
        data_dir = Path(data_dir_raw).expanduser() if data_dir_raw else Path.home() / StoreDefaults.DATA_DIR_NAME

        database_url = env.get(SettingKeys.DATABASE_URL) or f"sqlite:///{data_dir / StoreDefaults.DB_FILENAME}"

        settings = cls(
            database_url=database_url,
            data_dir=data_dir,
            backend=env.get(SettingKeys.BACKEND, StoreDefaults.BACKEND).strip().lower(),
            upsert_unknown_ids=_parse_bool(env.get(SettingKeys.UPSERT_UNKNOWN_IDS), False),
            strict_delete=_parse_bool(env.get(SettingKeys.STRICT_DELETE), False),
            optimistic_locking=_parse_bool(env.get(SettingKeys.OPTIMISTIC_LOCKING), True),
            lock_stripes=_parse_int(SettingKeys.LOCK_STRIPES, env.get(SettingKeys.LOCK_STRIPES), StoreDefaults.LOCK_STRIPES),
            log_level=env.get(SettingKeys.LOG_LEVEL, StoreDefaults.LOG_LEVEL).upper(),
        )
        logger.debug(f"Loaded entity store settings: backend={settings.backend}, database={settings.database_url}")
        return settings


_settings: Optional[EntityStoreSettings] = None


def get_settings() -> EntityStoreSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = EntityStoreSettings.from_env()
    return _settings


def reset_settings():
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
