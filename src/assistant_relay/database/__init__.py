from assistant_relay.database.base import Base
from assistant_relay.database.engine import ensure_schema, get_engine
from assistant_relay.database.session import get_sessionmaker, session_scope

__all__ = ["Base", "ensure_schema", "get_engine", "get_sessionmaker", "session_scope"]
