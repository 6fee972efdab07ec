# test/conftest.py
from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import mongomock
import pytest
from fastapi.testclient import TestClient

from main import create_app
from recipe_share.core.config import Settings
from recipe_share.domain.errors import InvalidCredentials
from recipe_share.infrastructure.security import FederatedIdentity
from recipe_share.services.recipe_generator import RecipeGenerator


def _pretty(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2)


class FakeVerifier:
    """Accepts credentials registered in `identities`, rejects anything else."""

    def __init__(self) -> None:
        self.identities: Dict[str, FederatedIdentity] = {}

    def verify(self, credential: str) -> FederatedIdentity:
        ident = self.identities.get(credential)
        if ident is None:
            raise InvalidCredentials()
        return ident


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text or (json.dumps(payload) if payload is not None else "")

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def tool_call(name: str, args: Dict[str, Any]) -> FakeResponse:
    return FakeResponse(200, {
        "choices": [{"message": {"tool_calls": [{"function": {"name": name, "arguments": json.dumps(args)}}]}}]
    })


def plain_reply(content: str) -> FakeResponse:
    return FakeResponse(200, {"choices": [{"message": {"content": content}}]})


class FakeAISession:
    """Stands in for requests.Session: replies are queued and popped in order."""

    def __init__(self) -> None:
        self.replies: List[FakeResponse] = []
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *replies: FakeResponse) -> None:
        self.replies.extend(replies)

    def post(self, url: str, json: Any = None, headers: Any = None, timeout: Any = None) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers})
        if not self.replies:
            raise AssertionError(f"unexpected AI call: {_pretty(json)}")
        return self.replies.pop(0)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        jwt_secret="test-secret",
        jwt_expire_days=1,
        bcrypt_rounds=4,
        google_client_id="test-client",
        ai_api_key="test-key",
        ai_api_url="http://ai.test/v1/chat/completions",
        ai_model="test-model",
        cors_origins=["*"],
    )


@pytest.fixture
def db():
    return mongomock.MongoClient()["recipe_share_test"]


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def ai() -> FakeAISession:
    return FakeAISession()


@pytest.fixture
def generator(settings: Settings, ai: FakeAISession) -> RecipeGenerator:
    return RecipeGenerator(
        api_key=settings.ai_api_key,
        api_url=settings.ai_api_url,
        model=settings.ai_model,
        session=ai,
    )


@pytest.fixture
def api(settings, db, verifier, generator):
    app = create_app(settings=settings, db=db, identity_verifier=verifier, recipe_generator=generator)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def signup(api) -> Callable[..., Dict[str, Any]]:
    """Creates an account and returns {user, token, headers}."""

    def _signup(email: str, password: str = "secret123", full_name: Optional[str] = None) -> Dict[str, Any]:
        r = api.post("/auth/signup", json={"email": email, "password": password, "full_name": full_name})
        assert r.status_code == 201, _pretty(r.json())
        data = r.json()
        data["headers"] = {"Authorization": f"Bearer {data['token']}"}
        return data

    return _signup


@pytest.fixture
def recipe_body() -> Callable[..., Dict[str, Any]]:
    def _body(**overrides: Any) -> Dict[str, Any]:
        body = {
            "title": "Tomato Soup",
            "description": "Simple and warm",
            "ingredients": ["tomato", "onion", "garlic"],
            "instructions": ["Chop", "Simmer", "Blend"],
            "cooking_time": 30,
            "servings": 4,
            "difficulty": "Easy",
            "cuisine": "Italian",
            "calories": 180.0,
            "nutrition": {"protein": "4g", "carbs": "20g", "fat": "7g", "fiber": "3g"},
            "image_url": "https://img.test/soup.jpg",
        }
        body.update(overrides)
        return body

    return _body
