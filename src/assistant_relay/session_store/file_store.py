from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class FileSessionStore:
    """One small JSON file per key, written atomically."""

    def __init__(self, base_dir: str | Path) -> None:
        self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    def _path(self, key: str) -> Path:
        safe = key.replace("/", "_").replace("\\", "_").replace("..", "_")
        return self._base / f"{safe}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            record = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", path, exc)
            return None
        session_id = record.get("session_id") if isinstance(record, dict) else None
        return session_id or None

    def set(self, key: str, session_id: str) -> None:
        path = self._path(key)
        record = {"key": key, "session_id": session_id, "updated_at": self._now_iso()}
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(record, ensure_ascii=True, indent=2), encoding="utf-8")
        tmp_path.replace(path)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
