"""Client-side authentication state.

Bootstrap policy: a stored token means the session is treated as
authenticated straight away. The user's identity is fetched lazily from
``/auth/me`` the first time it is needed, and the session is only cleared
when the server answers a token-bearing request with 401.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from taskmanager.client.api import ApiClient

logger = logging.getLogger(__name__)


class MemoryTokenStore:
    def __init__(self, token: Optional[str] = None):
        self._token = token

    def load(self) -> Optional[str]:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Persists the token in a small JSON file, like browser local storage."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Optional[str]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable token file %s", self.path)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class AuthSession:
    def __init__(self, api: ApiClient, token_store=None):
        self.api = api
        self.token_store = token_store or MemoryTokenStore()
        self.user: Optional[Dict[str, Any]] = None
        self.api.token = self.token_store.load()
        self.api.on_unauthorized = self.logout

    @property
    def token(self) -> Optional[str]:
        return self.api.token

    @property
    def is_authenticated(self) -> bool:
        return self.api.token is not None

    @property
    def is_admin(self) -> bool:
        user = self.current_user()
        return bool(user) and user.get("role") == "admin"

    def _start(self, data: Dict[str, Any]) -> Dict[str, Any]:
        self.api.token = data["token"]
        self.token_store.save(data["token"])
        self.user = data["user"]
        return self.user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._start(self.api.login(email, password))

    def register(self, email: str, password: str) -> Dict[str, Any]:
        return self._start(self.api.register(email, password))

    def current_user(self) -> Optional[Dict[str, Any]]:
        """Return the signed-in user, resolving it from the token on first use."""
        if not self.is_authenticated:
            return None
        if self.user is None:
            self.user = self.api.me()
        return self.user

    def logout(self) -> None:
        self.api.token = None
        self.user = None
        self.token_store.clear()
