from database import Base, get_engine
from sqlalchemy import inspect
import logging

# Register ORM tables on Base.metadata
import models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ('entity_records', 'id_sequences')


def init_database(engine=None):
    """
    Create any missing tables.

    Safe to run on every startup: existing tables and their rows are left
    untouched.

    Args:
        engine: Engine to initialize (defaults to the process-wide engine)
    """
    engine = engine or get_engine()
    existing = set(inspect(engine).get_table_names())
    missing = [table for table in REQUIRED_TABLES if table not in existing]

    Base.metadata.create_all(engine)

    if missing:
        logger.info(f"Created tables: {', '.join(missing)}")
    else:
        logger.info("Database schema up to date")
