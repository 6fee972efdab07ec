# recipe_share/client/data_client.py
"""
Uniform data-access client for the Recipe Share API.

Every call returns a result object instead of raising: callers check
`.error` and branch. Transport failures, non-JSON bodies and HTTP errors
all come back as a ClientError with the server's `code` when there is one.

    client = DataClient("http://127.0.0.1:8000", SessionStore(FileCredentialStore("~/.recipe_share.json")))
    res = client.collection("recipes").select()
    if res.error:
        ...
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from recipe_share.domain.entities import RecipeRef
from recipe_share.infrastructure.session_store import SessionStore

log = logging.getLogger("client.data_client")

# the REST layer addresses rows by primary key only
ADDRESSABLE_FIELDS = ("id", "_id")


@dataclass(frozen=True)
class ClientError:
    code: str
    message: str
    status: int = 0
    duplicate: bool = False

    @property
    def is_duplicate(self) -> bool:
        return self.duplicate or self.status == 409

    @classmethod
    def network(cls, e: Exception) -> "ClientError":
        return cls(code="NetworkError", message=str(e) or "Network request failed")


@dataclass(frozen=True)
class QueryResult:
    data: Any = None
    error: Optional[ClientError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class AuthResult:
    user: Optional[Dict[str, Any]] = None
    token: Optional[str] = None
    error: Optional[ClientError] = None


def recipe_ref(payload: Optional[Dict[str, Any]]) -> Optional[RecipeRef]:
    """Tagged reference from a recipe payload, or None if it carries none."""
    if not payload or not isinstance(payload.get("ref"), dict):
        return None
    try:
        return RecipeRef.from_dict(payload["ref"])
    except (KeyError, ValueError):
        return None


def _error_from(r: Any, data: Any) -> ClientError:
    body = data if isinstance(data, dict) else {}
    return ClientError(
        code=str(body.get("code") or f"HTTP{r.status_code}"),
        message=str(body.get("error") or body.get("_raw") or "Request failed"),
        status=r.status_code,
        duplicate=bool(body.get("duplicate")),
    )


class DataClient:
    def __init__(
        self,
        base_url: str,
        session_store: Optional[SessionStore] = None,
        http: Any = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session_store = session_store or SessionStore()
        # anything with a requests-style request(); tests pass a TestClient
        self.http = http or requests.Session()
        self.timeout = timeout
        self.auth = AuthClient(self)

    def collection(self, name: str) -> "Collection":
        return Collection(self, name)

    def share_to_community(self, ref: RecipeRef) -> QueryResult:
        return self.request("POST", "/recipes/share", {"ref": {"kind": ref.kind.value, "id": ref.id}})

    def generate_recipes(self, ingredients: List[str], **options: Any) -> QueryResult:
        body = {"ingredients": list(ingredients)}
        body.update({k: v for k, v in options.items() if v is not None})
        return self.request("POST", "/generate-recipe", body)

    def request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> QueryResult:
        url = self.base_url + path
        try:
            r = self.http.request(
                method,
                url,
                json=body,
                headers=self.session_store.get_headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.warning("%s %s failed: %s", method, path, e)
            return QueryResult(error=ClientError.network(e))

        try:
            data = r.json()
        except ValueError:
            data = {"_raw": r.text}

        if r.status_code >= 400:
            return QueryResult(error=_error_from(r, data))
        return QueryResult(data=data)


class Collection:
    def __init__(self, client: DataClient, name: str) -> None:
        self._client = client
        self.name = name

    def select(self) -> QueryResult:
        # whole collection; filtering is the caller's job
        return self._client.request("GET", f"/{self.name}")

    def insert(self, values: Dict[str, Any]) -> QueryResult:
        return self._client.request("POST", f"/{self.name}", values)

    def update(self, values: Dict[str, Any]) -> "_Filter":
        return _Filter(self, "PUT", values)

    def delete(self) -> "_Filter":
        return _Filter(self, "DELETE", None)


class _Filter:
    def __init__(self, collection: Collection, method: str, values: Optional[Dict[str, Any]]) -> None:
        self._collection = collection
        self._method = method
        self._values = values

    def eq(self, field: str, value: Any) -> QueryResult:
        if field not in ADDRESSABLE_FIELDS:
            return QueryResult(
                error=ClientError(
                    code="NotFound",
                    message=f"{self._collection.name} cannot be addressed by '{field}'",
                    status=404,
                )
            )
        return self._collection._client.request(
            self._method, f"/{self._collection.name}/{value}", self._values
        )


class AuthClient:
    def __init__(self, client: DataClient) -> None:
        self._client = client

    @property
    def _store(self) -> SessionStore:
        return self._client.session_store

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> AuthResult:
        res = self._client.request(
            "POST", "/auth/signup", {"email": email, "password": password, "full_name": full_name}
        )
        return self._remember(res)

    def sign_in(self, email: str, password: str) -> AuthResult:
        res = self._client.request("POST", "/auth/signin", {"email": email, "password": password})
        return self._remember(res)

    def sign_in_with_federated_identity(self, credential: str) -> AuthResult:
        res = self._client.request("POST", "/auth/google", {"credential": credential})
        return self._remember(res)

    def get_session(self) -> AuthResult:
        if self._store.user and self._store.token:
            return AuthResult(user=self._store.user, token=self._store.token)
        if not self._store.token:
            return AuthResult()

        res = self._client.request("GET", "/auth/session")
        if res.error or not isinstance(res.data, dict) or not res.data.get("user"):
            # stale or rejected token: drop back to signed-out
            self._store.clear_token()
            return AuthResult(error=res.error)
        self._store.set_user(res.data["user"])
        return AuthResult(user=res.data["user"], token=self._store.token)

    def sign_out(self) -> AuthResult:
        res = self._client.request("POST", "/auth/signout")
        if res.error:
            log.info("Server sign-out failed (%s); clearing local session anyway", res.error.code)
        self._store.clear_token()
        return AuthResult()

    def _remember(self, res: QueryResult) -> AuthResult:
        if res.error:
            return AuthResult(error=res.error)
        data = res.data if isinstance(res.data, dict) else {}
        token, user = data.get("token"), data.get("user")
        if not token:
            return AuthResult(error=ClientError(code="InvalidResponse", message="No token in response"))
        self._store.set_token(token)
        self._store.set_user(user)
        return AuthResult(user=user, token=token)
