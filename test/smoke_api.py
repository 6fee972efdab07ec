# test/smoke_api.py
"""
Live smoke test against a running API:
- sign up two users
- share a recipe, save it to the other user's book, remove it again

Usage:
  1) Start API:
       uvicorn main:app --host 0.0.0.0 --port 8000
  2) Run:
       python test/smoke_api.py --base-url http://127.0.0.1:8000

Exits non-zero if any step fails. Uses throwaway emails, so it can run
repeatedly against the same database.
"""

from __future__ import annotations

import argparse
import json
import sys
import time
import uuid
from typing import Any, Dict, Optional, Tuple

import requests


def _pretty(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2)


def _assert(cond: bool, msg: str) -> None:
    if not cond:
        raise AssertionError(msg)


def _call(
    base_url: str,
    method: str,
    path: str,
    payload: Optional[Dict[str, Any]] = None,
    token: Optional[str] = None,
    timeout: float = 30.0,
) -> Tuple[int, Any]:
    url = base_url.rstrip("/") + path
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    r = requests.request(method, url, json=payload, headers=headers, timeout=timeout)
    try:
        data = r.json()
    except ValueError:
        data = {"_raw": r.text}
    return r.status_code, data


def wait_ready(base_url: str, retries: int = 20, sleep_s: float = 0.5) -> None:
    last_err = None
    for _ in range(retries):
        try:
            code, _ = _call(base_url, "GET", "/health", timeout=5.0)
            if code == 200:
                return
        except requests.RequestException as e:
            last_err = e
        time.sleep(sleep_s)
    raise RuntimeError(f"API not reachable at {base_url}. Last error: {last_err}")


def signup(base_url: str, name: str) -> Dict[str, Any]:
    email = f"smoke-{name}-{uuid.uuid4().hex[:8]}@example.com"
    code, data = _call(base_url, "POST", "/auth/signup", {"email": email, "password": "smoke-pass", "full_name": name})
    _assert(code == 201, f"/auth/signup expected 201, got {code}: {_pretty(data)}")
    return data


def test_book_copy(base_url: str) -> None:
    author = signup(base_url, "author")
    saver = signup(base_url, "saver")

    recipe = {
        "title": "Smoke Test Soup",
        "ingredients": ["water", "salt"],
        "instructions": ["Boil", "Season"],
    }
    code, created = _call(base_url, "POST", "/recipes", recipe, author["token"])
    _assert(code == 201, f"/recipes expected 201, got {code}: {_pretty(created)}")

    code, entry = _call(base_url, "POST", "/recipe_books", {"recipe_id": created["id"]}, saver["token"])
    _assert(code == 201, f"/recipe_books expected 201, got {code}: {_pretty(entry)}")
    _assert(entry["recipe"]["original_recipe_id"] == created["id"], f"copy not linked: {_pretty(entry)}")

    code, dup = _call(base_url, "POST", "/recipe_books", {"recipe_id": created["id"]}, saver["token"])
    _assert(code == 409 and dup.get("duplicate"), f"second save expected 409 duplicate: {_pretty(dup)}")

    code, _ = _call(base_url, "DELETE", f"/recipe_books/{entry['id']}", token=saver["token"])
    _assert(code == 200, f"remove from book expected 200, got {code}")
    code, _ = _call(base_url, "GET", f"/recipes/{created['id']}")
    _assert(code == 200, "original recipe should survive removal of the copy")

    _call(base_url, "DELETE", f"/recipes/{created['id']}", token=author["token"])
    print("\n✅ recipe book copy OK")
    print(_pretty(entry))


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--base-url", default="http://127.0.0.1:8000", help="FastAPI base URL")
    args = parser.parse_args()

    try:
        wait_ready(args.base_url)
        test_book_copy(args.base_url)
        print("\n🎉 All smoke checks passed.")
        return 0
    except (AssertionError, RuntimeError, requests.RequestException) as e:
        print("\n❌ Smoke check failed:", str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
