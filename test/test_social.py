# test/test_social.py
from __future__ import annotations

from pymongo.errors import DuplicateKeyError

from recipe_share.application.usecases import RecipeLikes
from recipe_share.domain.entities import Recipe, RecipeLike, User


def _recipe(api, owner, recipe_body) -> str:
    return api.post("/recipes", json=recipe_body(), headers=owner["headers"]).json()["id"]


def test_vote_upserts_a_single_row(api, signup, recipe_body, db):
    alice = signup("alice@example.com")
    bob = signup("bob@example.com")
    rid = _recipe(api, alice, recipe_body)

    first = api.post("/recipe_likes", json={"recipe_id": rid, "is_like": True}, headers=bob["headers"])
    assert first.status_code == 201
    second = api.post("/recipe_likes", json={"recipe_id": rid, "is_like": False}, headers=bob["headers"])
    third = api.post("/recipe_likes", json={"recipe_id": rid, "is_like": True}, headers=bob["headers"])
    assert first.json()["id"] == second.json()["id"] == third.json()["id"]

    rows = [x for x in api.get("/recipe_likes").json() if x["recipe_id"] == rid]
    assert len(rows) == 1
    assert rows[0]["is_like"] is True
    assert rows[0]["user_id"] == bob["user"]["id"]


def test_vote_on_missing_recipe_is_not_found(api, signup):
    bob = signup("bob@example.com")
    r = api.post("/recipe_likes", json={"recipe_id": "5f0000000000000000000000", "is_like": True}, headers=bob["headers"])
    assert r.status_code == 404


def test_like_update_and_delete_are_owner_only(api, signup, recipe_body):
    alice = signup("alice@example.com")
    bob = signup("bob@example.com")
    rid = _recipe(api, alice, recipe_body)
    like_id = api.post("/recipe_likes", json={"recipe_id": rid, "is_like": True}, headers=bob["headers"]).json()["id"]

    assert api.put(f"/recipe_likes/{like_id}", json={"is_like": False}, headers=alice["headers"]).status_code == 403
    assert api.delete(f"/recipe_likes/{like_id}", headers=alice["headers"]).status_code == 403

    r = api.put(f"/recipe_likes/{like_id}", json={"is_like": False}, headers=bob["headers"])
    assert r.json()["is_like"] is False
    assert api.delete(f"/recipe_likes/{like_id}", headers=bob["headers"]).status_code == 200
    assert api.get("/recipe_likes").json() == []


class _RacingLikes:
    """find() misses once, then the concurrent row shows up."""

    def __init__(self) -> None:
        self.row = RecipeLike(id="like-1", user_id="u1", recipe_id="r1", is_like=True)
        self.finds = 0
        self.inserts = 0

    def find(self, user_id, recipe_id):
        self.finds += 1
        return None if self.finds == 1 else self.row

    def insert(self, user_id, recipe_id, is_like):
        self.inserts += 1
        raise DuplicateKeyError("E11000 duplicate key")

    def set_vote(self, like_id, is_like):
        self.row = RecipeLike(id=like_id, user_id="u1", recipe_id="r1", is_like=is_like)
        return self.row


class _OneRecipe:
    def by_id(self, recipe_id):
        return Recipe(id=recipe_id, title="t", description=None, ingredients=[], instructions=[], author_id="a")


def test_lost_insert_race_becomes_update_once():
    likes = _RacingLikes()
    caller = User(id="u1", email="u1@example.com", password="x", full_name=None)
    out = RecipeLikes(likes, _OneRecipe()).vote("r1", False, caller)
    assert out.id == "like-1"
    assert out.is_like is False
    assert likes.inserts == 1


def test_comment_snapshots_display_name(api, signup, recipe_body, db):
    alice = signup("alice@example.com")
    bob = signup("bob@example.com", full_name="Bob Builder")
    rid = _recipe(api, alice, recipe_body)

    r = api.post("/recipe_comments", json={"recipe_id": rid, "comment": "Lovely"}, headers=bob["headers"])
    assert r.status_code == 201
    comment = r.json()
    assert comment["user_name"] == "Bob Builder"
    assert comment["user_id"] == bob["user"]["id"]

    # renaming the user later does not touch the comment
    db["users"].update_one({"email": "bob@example.com"}, {"$set": {"full_name": "Robert"}})
    r = api.put(f"/recipe_comments/{comment['id']}", json={"comment": "Lovely soup"}, headers=bob["headers"])
    assert r.status_code == 200
    assert r.json()["comment"] == "Lovely soup"
    assert r.json()["user_name"] == "Bob Builder"


def test_comment_without_name_falls_back_to_email(api, signup, recipe_body):
    alice = signup("alice@example.com")
    rid = _recipe(api, alice, recipe_body)
    r = api.post("/recipe_comments", json={"recipe_id": rid, "comment": "Mine"}, headers=alice["headers"])
    assert r.json()["user_name"] == "alice@example.com"


def test_comment_rules(api, signup, recipe_body):
    alice = signup("alice@example.com")
    bob = signup("bob@example.com")
    rid = _recipe(api, alice, recipe_body)

    assert api.post("/recipe_comments", json={"recipe_id": rid, "comment": "hi"}).status_code == 401
    r = api.post("/recipe_comments", json={"recipe_id": rid, "comment": "   "}, headers=bob["headers"])
    assert r.status_code == 400

    cid = api.post("/recipe_comments", json={"recipe_id": rid, "comment": "hi"}, headers=bob["headers"]).json()["id"]
    assert api.put(f"/recipe_comments/{cid}", json={"comment": "edited"}, headers=alice["headers"]).status_code == 403
    assert api.delete(f"/recipe_comments/{cid}", headers=alice["headers"]).status_code == 403

    assert [c["id"] for c in api.get("/recipe_comments").json()] == [cid]
    assert api.delete(f"/recipe_comments/{cid}", headers=bob["headers"]).status_code == 200
    assert api.get("/recipe_comments").json() == []


def test_other_users_copy_cannot_be_voted_or_commented(api, signup, recipe_body):
    alice = signup("alice@example.com")
    bob = signup("bob@example.com")
    rid = _recipe(api, alice, recipe_body)
    copy_id = api.post("/recipe_books", json={"recipe_id": rid}, headers=bob["headers"]).json()["recipe"]["id"]

    r = api.post("/recipe_likes", json={"recipe_id": copy_id, "is_like": True}, headers=alice["headers"])
    assert r.status_code == 404
    assert r.json()["code"] == "NotFound"
    r = api.post("/recipe_comments", json={"recipe_id": copy_id, "comment": "hi"}, headers=alice["headers"])
    assert r.status_code == 404
    assert api.get("/recipe_likes").json() == []
    assert api.get("/recipe_comments").json() == []

    r = api.post("/recipe_likes", json={"recipe_id": copy_id, "is_like": True}, headers=bob["headers"])
    assert r.status_code == 201
