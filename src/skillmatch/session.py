"""Session context and small persisted client state."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from skillmatch.models import Role

logger = logging.getLogger(__name__)


class SessionContext:
    """The signed-in identity, populated at login and cleared at logout."""

    def __init__(self) -> None:
        self.access_token: str | None = None
        self.user: dict | None = None
        self.role: Role | None = None

    @property
    def user_id(self) -> str | None:
        if self.user:
            return self.user.get("id")
        return None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token and self.user_id)

    def login(self, access_token: str, user: dict, role: Role | str | None = None) -> None:
        self.access_token = access_token
        self.user = user
        if role is None:
            metadata = user.get("user_metadata") or {}
            role = metadata.get("role")
        self.role = role if isinstance(role, Role) else Role.parse(role)

    def logout(self) -> None:
        self.access_token = None
        self.user = None
        self.role = None


class LocalStore:
    """JSON file holding the auth token, the serialized user and recent searches."""

    def __init__(self, path: Path | str, recent_limit: int = 5) -> None:
        self.path = Path(path)
        self.recent_limit = recent_limit

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable state file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    # --- Session ---

    def save_session(self, session: SessionContext) -> None:
        data = self._read()
        data["token"] = session.access_token
        data["user"] = session.user
        data["role"] = session.role.value if session.role else None
        self._write(data)

    def restore_session(self, session: SessionContext) -> bool:
        """Populate ``session`` from disk. Returns True if a session was found."""
        data = self._read()
        token, user = data.get("token"), data.get("user")
        if not token or not isinstance(user, dict):
            return False
        session.login(token, user, data.get("role"))
        return True

    def clear_session(self) -> None:
        data = self._read()
        for key in ("token", "user", "role"):
            data.pop(key, None)
        self._write(data)

    # --- Recent searches ---

    def recent_searches(self) -> list[str]:
        terms = self._read().get("recent_searches") or []
        return [t for t in terms if isinstance(t, str)][: self.recent_limit]

    def add_recent_search(self, term: str) -> list[str]:
        """Move ``term`` to the front, keeping at most ``recent_limit`` entries."""
        term = term.strip()
        if not term:
            return self.recent_searches()
        updated = [term] + [t for t in self.recent_searches() if t != term]
        updated = updated[: self.recent_limit]
        data = self._read()
        data["recent_searches"] = updated
        self._write(data)
        return updated

    def remove_recent_search(self, term: str) -> list[str]:
        updated = [t for t in self.recent_searches() if t != term]
        data = self._read()
        data["recent_searches"] = updated
        self._write(data)
        return updated
