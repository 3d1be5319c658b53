from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from assistant_relay.config.database import get_database_config
from assistant_relay.database.base import Base

logger = logging.getLogger(__name__)


def _ensure_sqlite_dir(url: str) -> None:
    database = make_url(url).database
    if database and database != ":memory:":
        Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_engine() -> Engine:
    """Shared engine for the thread binding store."""
    config = get_database_config()
    connect_args: dict[str, object] = {}
    if config.is_sqlite:
        _ensure_sqlite_dir(config.url)
        # The API server may touch the store from worker threads.
        connect_args["check_same_thread"] = False

    logger.debug("Opening session database %s", make_url(config.url).render_as_string())
    return create_engine(
        config.url, echo=config.echo, pool_pre_ping=True, connect_args=connect_args
    )


def ensure_schema() -> None:
    """Create missing tables without alembic; used when DATABASE_AUTO_MIGRATE is on."""
    from assistant_relay import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
