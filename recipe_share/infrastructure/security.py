# recipe_share/infrastructure/security.py
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from recipe_share.domain.entities import TokenClaims, User
from recipe_share.domain.errors import InvalidCredentials, InvalidToken

log = logging.getLogger("infra.security")

FEDERATED_SENTINEL_PREFIX = "federated_"


class PasswordHasher:
    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, stored: str) -> bool:
        # federated-only accounts never match a password
        if not stored or is_federated_sentinel(stored):
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
        except ValueError:
            log.warning("Stored password is not a bcrypt hash")
            return False


def federated_sentinel(federated_id: str) -> str:
    return f"{FEDERATED_SENTINEL_PREFIX}{federated_id}_{int(time.time() * 1000)}"


def is_federated_sentinel(stored: str) -> bool:
    return stored.startswith(FEDERATED_SENTINEL_PREFIX)


class TokenService:
    """HS256 bearer tokens carrying the user id, email and display name."""

    def __init__(self, secret: str, expire_days: int = 7, algorithm: str = "HS256") -> None:
        self.secret = secret
        self.expire_days = expire_days
        self.algorithm = algorithm

    def issue(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "id": user.id,
            "email": user.email,
            "full_name": user.full_name,
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + timedelta(days=self.expire_days),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise InvalidToken("Token expired") from e
        except jwt.InvalidTokenError as e:
            log.warning("Rejected bearer token: %s", type(e).__name__)
            raise InvalidToken() from e

        if not payload.get("id") or not payload.get("jti"):
            raise InvalidToken()
        return TokenClaims(
            user_id=str(payload["id"]),
            email=str(payload.get("email") or ""),
            jti=str(payload["jti"]),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
            full_name=payload.get("full_name"),
        )


@dataclass(frozen=True)
class FederatedIdentity:
    subject: str
    email: str
    name: str | None = None


class GoogleIdentityVerifier:
    """Verifies Google ID tokens issued for our OAuth client id."""

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        self._request = google_requests.Request()

    def verify(self, credential: str) -> FederatedIdentity:
        if not self.client_id:
            log.warning("Federated sign-in attempted without GOOGLE_CLIENT_ID configured")
            raise InvalidCredentials("Federated sign-in is not configured")
        try:
            payload: Dict[str, Any] = id_token.verify_oauth2_token(credential, self._request, self.client_id)
        except ValueError as e:
            log.warning("Rejected federated credential: %s", e)
            raise InvalidCredentials() from e

        email = payload.get("email")
        if not email or not payload.get("sub"):
            raise InvalidCredentials()
        return FederatedIdentity(subject=str(payload["sub"]), email=str(email), name=payload.get("name"))
