# recipe_share/application/auth.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from pymongo.errors import DuplicateKeyError

from recipe_share.domain.entities import AuthSession, User
from recipe_share.domain.errors import DuplicateEmail, InvalidCredentials, InvalidToken, ValidationError
from recipe_share.domain.repositories import RevokedTokenRepo, UserRepo
from recipe_share.infrastructure.security import (
    GoogleIdentityVerifier,
    PasswordHasher,
    TokenService,
    federated_sentinel,
)

log = logging.getLogger("app.auth")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class SignUp:
    users: UserRepo
    hasher: PasswordHasher
    tokens: TokenService

    def __call__(self, email: str, password: str, full_name: Optional[str]) -> AuthSession:
        email = normalize_email(email)
        if "@" not in email:
            raise ValidationError("A valid email is required")
        if not password:
            raise ValidationError("Password is required")

        if self.users.by_email(email):
            raise DuplicateEmail()
        try:
            user = self.users.insert(
                email=email,
                password=self.hasher.hash(password),
                full_name=(full_name or "").strip() or None,
            )
        except DuplicateKeyError as e:
            raise DuplicateEmail() from e

        log.info("New user signed up: %s", user.id)
        return AuthSession(user=user, token=self.tokens.issue(user))


@dataclass(frozen=True)
class SignIn:
    users: UserRepo
    hasher: PasswordHasher
    tokens: TokenService

    def __call__(self, email: str, password: str) -> AuthSession:
        user = self.users.by_email(normalize_email(email))
        # same error for unknown email and wrong password
        if user is None or not self.hasher.verify(password or "", user.password):
            log.warning("Rejected sign-in attempt")
            raise InvalidCredentials()
        return AuthSession(user=user, token=self.tokens.issue(user))


@dataclass(frozen=True)
class FederatedSignIn:
    users: UserRepo
    verifier: GoogleIdentityVerifier
    tokens: TokenService

    def __call__(self, credential: str) -> AuthSession:
        if not credential:
            raise ValidationError("credential is required")
        identity = self.verifier.verify(credential)
        email = normalize_email(identity.email)

        user = self.users.by_federated_id(identity.subject) or self.users.by_email(email)
        if user is None:
            try:
                user = self.users.insert(
                    email=email,
                    password=federated_sentinel(identity.subject),
                    full_name=identity.name,
                    federated_id=identity.subject,
                )
                log.info("New federated user created: %s", user.id)
            except DuplicateKeyError:
                # a concurrent first login created the account
                user = self.users.by_federated_id(identity.subject) or self.users.by_email(email)
                if user is None:
                    raise
        if not user.federated_id:
            user = self.users.link_federated_id(user.id, identity.subject)
            log.info("Federated identity linked to existing user: %s", user.id)

        return AuthSession(user=user, token=self.tokens.issue(user))


@dataclass(frozen=True)
class ResolveSession:
    """Bearer token -> current User, or InvalidToken."""
    users: UserRepo
    tokens: TokenService
    revoked: RevokedTokenRepo

    def __call__(self, token: Optional[str]) -> User:
        if not token:
            raise InvalidToken("Access token required")
        claims = self.tokens.decode(token)
        if self.revoked.is_revoked(claims.jti):
            raise InvalidToken("Token has been revoked")
        user = self.users.by_id(claims.user_id)
        if user is None:
            raise InvalidToken("User no longer exists")
        return user


@dataclass(frozen=True)
class SignOut:
    tokens: TokenService
    revoked: RevokedTokenRepo

    def __call__(self, token: Optional[str]) -> None:
        if not token:
            return
        try:
            claims = self.tokens.decode(token)
        except InvalidToken:
            # nothing left to invalidate
            return
        self.revoked.revoke(claims.jti, claims.expires_at)
        log.info("Token revoked for user %s", claims.user_id)
