# recipe_share/infrastructure/session_store.py
from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

log = logging.getLogger("infra.session_store")


@dataclass
class SessionState:
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    updated_at: float = field(default_factory=time.time)


class InMemoryCredentialStore:
    """Credential source for tests and short-lived scripts."""

    def __init__(self) -> None:
        self._state = SessionState()

    def load(self) -> SessionState:
        return self._state

    def save(self, st: SessionState) -> None:
        st.updated_at = time.time()
        self._state = st


class FileCredentialStore:
    """Keeps token + cached profile in a JSON file so they survive restarts."""

    def __init__(self, path: str) -> None:
        self.path = os.path.expanduser(path)

    def load(self) -> SessionState:
        if not os.path.exists(self.path):
            return SessionState()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return SessionState(
                token=raw.get("token"),
                user=raw.get("user"),
                updated_at=float(raw.get("updated_at") or 0.0),
            )
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable credential file %s: %s", self.path, e)
            return SessionState()

    def save(self, st: SessionState) -> None:
        st.updated_at = time.time()
        d = os.path.dirname(self.path)
        if d:
            os.makedirs(d, exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(asdict(st), f)
        os.replace(tmp, self.path)


class SessionStore:
    """
    Token + cached user profile for the data-access client.
    Backed by any credential store exposing load()/save(SessionState).
    """

    def __init__(self, backend: InMemoryCredentialStore | FileCredentialStore | None = None) -> None:
        self._backend = backend or InMemoryCredentialStore()
        self._state = self._backend.load()

    @property
    def token(self) -> Optional[str]:
        return self._state.token

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._state.user

    def set_token(self, token: str) -> None:
        self._state.token = token
        self._backend.save(self._state)

    def set_user(self, user: Optional[Dict[str, Any]]) -> None:
        self._state.user = user
        self._backend.save(self._state)

    def clear_token(self) -> None:
        self._state = SessionState()
        self._backend.save(self._state)

    def get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._state.token:
            headers["Authorization"] = f"Bearer {self._state.token}"
        return headers
