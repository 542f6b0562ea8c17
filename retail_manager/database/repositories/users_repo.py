from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import json
import logging
import sqlite3

from ...constants import ROLE_SELLER, ROLES
from ...utils.validators import is_valid_email
from .errors import DomainError

_log = logging.getLogger(__name__)


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Language(str, Enum):
    PT_BR = "pt-BR"
    EN = "en"


@dataclass
class UserPreferences:
    """
    Per-user display settings, persisted as JSON in users.preferences.

    Only the keys declared here are recognised. Anything else found in the
    stored payload is dropped (with a warning) when it is loaded.
    """

    theme: Theme = Theme.LIGHT
    language: Language = Language.PT_BR

    @classmethod
    def from_dict(cls, data: dict | None) -> "UserPreferences":
        data = dict(data or {})
        known = {"theme", "language"}
        unknown = sorted(set(data) - known)
        if unknown:
            _log.warning("ignoring unknown preference keys: %s", ", ".join(unknown))
        prefs = cls()
        if "theme" in data:
            try:
                prefs.theme = Theme(data["theme"])
            except ValueError:
                raise DomainError(f"Unknown theme: {data['theme']!r}.") from None
        if "language" in data:
            try:
                prefs.language = Language(data["language"])
            except ValueError:
                raise DomainError(f"Unknown language: {data['language']!r}.") from None
        return prefs

    @classmethod
    def from_json(cls, raw: str | None) -> "UserPreferences":
        if not raw:
            return cls()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DomainError("Stored preferences are not valid JSON.") from e
        if not isinstance(data, dict):
            raise DomainError("Stored preferences must be a JSON object.")
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return {"theme": self.theme.value, "language": self.language.value}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)


@dataclass
class User:
    user_id: int | None
    email: str
    name: str
    role: str
    preferences: UserPreferences = field(default_factory=UserPreferences)
    created_at: str | None = None


class UsersRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    @staticmethod
    def _row_to_user(r: sqlite3.Row) -> User:
        return User(
            user_id=r["user_id"],
            email=r["email"],
            name=r["name"],
            role=r["role"],
            preferences=UserPreferences.from_json(r["preferences"]),
            created_at=r["created_at"],
        )

    @staticmethod
    def _check_role(role: str) -> None:
        if role not in ROLES:
            raise DomainError(f"Role must be one of: {', '.join(ROLES)}.")

    def get(self, user_id: int) -> User | None:
        r = self.conn.execute("SELECT * FROM users WHERE user_id=?", (user_id,)).fetchone()
        return self._row_to_user(r) if r else None

    def get_by_email(self, email: str) -> User | None:
        r = self.conn.execute(
            "SELECT * FROM users WHERE email=?", ((email or "").strip().lower(),)
        ).fetchone()
        return self._row_to_user(r) if r else None

    def list_users(self) -> list[User]:
        rows = self.conn.execute("SELECT * FROM users ORDER BY name COLLATE NOCASE, user_id").fetchall()
        return [self._row_to_user(r) for r in rows]

    def create(self, email: str, name: str, role: str = ROLE_SELLER) -> int:
        email_n = (email or "").strip().lower()
        name_n = (name or "").strip()
        if not is_valid_email(email_n):
            raise DomainError("Email address is not valid.")
        if not name_n:
            raise DomainError("Name cannot be empty.")
        self._check_role(role)
        if self.get_by_email(email_n) is not None:
            raise DomainError("A user with this email already exists.")
        cur = self.conn.execute(
            "INSERT INTO users(email, name, role, preferences) VALUES (?,?,?,?)",
            (email_n, name_n, role, UserPreferences().to_json()),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def update_role(self, user_id: int, role: str) -> None:
        self._check_role(role)
        cur = self.conn.execute("UPDATE users SET role=? WHERE user_id=?", (role, user_id))
        if cur.rowcount == 0:
            self.conn.rollback()
            raise DomainError(f"User {user_id} not found.")
        self.conn.commit()

    # ---- Preferences --------------------------------------------------------

    def get_preferences(self, user_id: int) -> UserPreferences:
        r = self.conn.execute("SELECT preferences FROM users WHERE user_id=?", (user_id,)).fetchone()
        if r is None:
            raise DomainError(f"User {user_id} not found.")
        return UserPreferences.from_json(r["preferences"])

    def update_preferences(self, user_id: int, prefs: UserPreferences | dict) -> UserPreferences:
        """
        Store preferences for a user. Accepts either a UserPreferences or a
        partial dict that is merged over the current values.
        """
        if isinstance(prefs, dict):
            merged = self.get_preferences(user_id).to_dict()
            merged.update(prefs)
            prefs = UserPreferences.from_dict(merged)
        cur = self.conn.execute(
            "UPDATE users SET preferences=? WHERE user_id=?", (prefs.to_json(), user_id)
        )
        if cur.rowcount == 0:
            self.conn.rollback()
            raise DomainError(f"User {user_id} not found.")
        self.conn.commit()
        return prefs
