from __future__ import annotations

from assistant_relay.database.engine import ensure_schema
from assistant_relay.database.session import session_scope
from assistant_relay.models.thread_binding import ThreadBinding, utc_now


class DbSessionStore:
    """SQL-backed thread bindings with the same contract as FileSessionStore."""

    def __init__(self, *, auto_init: bool = True) -> None:
        if auto_init:
            ensure_schema()

    def get(self, key: str) -> str | None:
        with session_scope() as db:
            binding = db.get(ThreadBinding, key)
            return binding.session_id if binding is not None else None

    def set(self, key: str, session_id: str) -> None:
        with session_scope() as db:
            binding = db.get(ThreadBinding, key)
            if binding is None:
                db.add(ThreadBinding(key=key, session_id=session_id))
            else:
                now = utc_now()
                if binding.session_id != session_id:
                    binding.session_id = session_id
                    binding.bound_at = now
                binding.last_used_at = now

    def delete(self, key: str) -> None:
        with session_scope() as db:
            binding = db.get(ThreadBinding, key)
            if binding is not None:
                db.delete(binding)
