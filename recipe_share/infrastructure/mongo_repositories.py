# recipe_share/infrastructure/mongo_repositories.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from recipe_share.core import config
from recipe_share.domain.entities import (
    CONTENT_FIELDS,
    GeneratedRecipe,
    GeneratedRecipeBookEntry,
    Nutrition,
    Recipe,
    RecipeBookEntry,
    RecipeComment,
    RecipeLike,
    User,
)
from recipe_share.domain.repositories import (
    GeneratedRecipeBookRepo,
    GeneratedRecipeRepo,
    RecipeBookRepo,
    RecipeCommentRepo,
    RecipeLikeRepo,
    RecipeRepo,
    RevokedTokenRepo,
    UserRepo,
)

log = logging.getLogger("infra.mongo_repo")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _oid(v: Any) -> Optional[ObjectId]:
    if isinstance(v, ObjectId):
        return v
    try:
        return ObjectId(str(v))
    except (InvalidId, TypeError):
        return None


def _as_str_id(v: Any) -> Optional[str]:
    if v is None:
        return None
    return str(v)


def _content_doc(content: Dict[str, Any]) -> Dict[str, Any]:
    doc = {k: content.get(k) for k in CONTENT_FIELDS}
    doc["ingredients"] = list(doc.get("ingredients") or [])
    doc["instructions"] = list(doc.get("instructions") or [])
    return doc


def _content_kwargs(doc: Dict[str, Any]) -> Dict[str, Any]:
    return dict(
        title=doc.get("title") or "",
        description=doc.get("description"),
        ingredients=[str(x) for x in (doc.get("ingredients") or [])],
        instructions=[str(x) for x in (doc.get("instructions") or [])],
        cooking_time=doc.get("cooking_time"),
        servings=doc.get("servings"),
        difficulty=doc.get("difficulty"),
        cuisine=doc.get("cuisine"),
        calories=doc.get("calories"),
        nutrition=Nutrition.from_dict(doc.get("nutrition")),
        image_url=doc.get("image_url"),
    )


class MongoStore:
    """
    Owns the database handle and the unique indexes that back every
    (user, recipe) uniqueness rule. The look-before-write checks in the
    application layer only produce friendlier errors; these indexes are
    what actually keep duplicates out.
    """
    def __init__(self, db: Database) -> None:
        self.db = db
        self.users = MongoUserRepository(db[config.USERS_COL])
        self.recipes = MongoRecipeRepository(db[config.RECIPES_COL])
        self.generated_recipes = MongoGeneratedRecipeRepository(db[config.GENERATED_RECIPES_COL])
        self.recipe_books = MongoRecipeBookRepository(db[config.RECIPE_BOOKS_COL])
        self.generated_recipe_books = MongoGeneratedRecipeBookRepository(db[config.GENERATED_RECIPE_BOOKS_COL])
        self.recipe_likes = MongoRecipeLikeRepository(db[config.RECIPE_LIKES_COL])
        self.recipe_comments = MongoRecipeCommentRepository(db[config.RECIPE_COMMENTS_COL])
        self.revoked_tokens = MongoRevokedTokenRepository(db[config.REVOKED_TOKENS_COL])

    def ensure_indexes(self) -> None:
        users = self.db[config.USERS_COL]
        users.create_index([("email", ASCENDING)], unique=True, name="uniq_email")
        users.create_index([("federated_id", ASCENDING)], unique=True, sparse=True, name="uniq_federated_id")

        self.db[config.RECIPES_COL].create_index([("author_id", ASCENDING)], name="idx_author")
        self.db[config.RECIPES_COL].create_index(
            [("copy_key", ASCENDING)], unique=True, sparse=True, name="uniq_personal_copy"
        )
        self.db[config.GENERATED_RECIPES_COL].create_index([("user_id", ASCENDING)], name="idx_user")

        self.db[config.RECIPE_BOOKS_COL].create_index(
            [("user_id", ASCENDING), ("recipe_id", ASCENDING)], unique=True, name="uniq_user_recipe"
        )
        self.db[config.GENERATED_RECIPE_BOOKS_COL].create_index(
            [("user_id", ASCENDING), ("generated_recipe_id", ASCENDING)], unique=True, name="uniq_user_generated_recipe"
        )
        self.db[config.RECIPE_LIKES_COL].create_index(
            [("user_id", ASCENDING), ("recipe_id", ASCENDING)], unique=True, name="uniq_user_recipe_like"
        )
        self.db[config.RECIPE_COMMENTS_COL].create_index([("recipe_id", ASCENDING)], name="idx_recipe")

        revoked = self.db[config.REVOKED_TOKENS_COL]
        revoked.create_index([("jti", ASCENDING)], unique=True, name="uniq_jti")
        revoked.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0, name="ttl_expires_at")
        log.info("Mongo indexes ensured on %s", self.db.name)

    def ping(self) -> None:
        self.db.command("ping")


class MongoUserRepository(UserRepo):
    def __init__(self, col: Collection) -> None:
        self._col = col

    def _parse_user(self, doc: Dict[str, Any]) -> User:
        return User(
            id=str(doc["_id"]),
            email=doc.get("email") or "",
            password=doc.get("password") or "",
            full_name=doc.get("full_name"),
            federated_id=doc.get("federated_id"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    def by_id(self, user_id: str) -> Optional[User]:
        oid = _oid(user_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return self._parse_user(doc) if doc else None

    def by_email(self, email: str) -> Optional[User]:
        doc = self._col.find_one({"email": email})
        return self._parse_user(doc) if doc else None

    def by_federated_id(self, federated_id: str) -> Optional[User]:
        doc = self._col.find_one({"federated_id": federated_id})
        return self._parse_user(doc) if doc else None

    def insert(self, email: str, password: str, full_name: Optional[str], federated_id: Optional[str] = None) -> User:
        now = _now()
        doc: Dict[str, Any] = {
            "email": email,
            "password": password,
            "full_name": full_name,
            "created_at": now,
            "updated_at": now,
        }
        # sparse unique index: the field must be absent, not null
        if federated_id:
            doc["federated_id"] = federated_id
        res = self._col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return self._parse_user(doc)

    def link_federated_id(self, user_id: str, federated_id: str) -> User:
        doc = self._col.find_one_and_update(
            {"_id": _oid(user_id)},
            {"$set": {"federated_id": federated_id, "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._parse_user(doc)


class MongoRecipeRepository(RecipeRepo):
    def __init__(self, col: Collection) -> None:
        self._col = col

    def _parse_recipe(self, doc: Dict[str, Any]) -> Recipe:
        try:
            return Recipe(
                id=str(doc["_id"]),
                author_id=_as_str_id(doc.get("author_id")) or "",
                original_recipe_id=_as_str_id(doc.get("original_recipe_id")),
                created_at=doc.get("created_at"),
                updated_at=doc.get("updated_at"),
                **_content_kwargs(doc),
            )
        except Exception as e:
            log.exception("Invalid recipe document: %s", doc.get("_id"))
            raise ValueError(f"Invalid recipe document: {e}") from e

    def _parse_many(self, cursor: Iterable[Dict[str, Any]]) -> List[Recipe]:
        return [self._parse_recipe(doc) for doc in cursor]

    def community(self) -> List[Recipe]:
        return self._parse_many(self._col.find({"original_recipe_id": None}).sort("created_at", DESCENDING))

    def by_id(self, recipe_id: str) -> Optional[Recipe]:
        oid = _oid(recipe_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return self._parse_recipe(doc) if doc else None

    def by_ids(self, recipe_ids: List[str]) -> Dict[str, Recipe]:
        oids = [o for o in (_oid(x) for x in recipe_ids) if o is not None]
        if not oids:
            return {}
        return {r.id: r for r in self._parse_many(self._col.find({"_id": {"$in": oids}}))}

    def by_author(self, author_id: str) -> List[Recipe]:
        return self._parse_many(self._col.find({"author_id": _oid(author_id)}))

    def insert(self, content: Dict[str, Any], author_id: str, original_recipe_id: Optional[str] = None) -> Recipe:
        now = _now()
        doc = _content_doc(content)
        doc.update(
            author_id=_oid(author_id),
            original_recipe_id=_oid(original_recipe_id) if original_recipe_id else None,
            created_at=now,
            updated_at=now,
        )
        if original_recipe_id:
            # one personal copy per (owner, original); absent on community recipes
            doc["copy_key"] = f"{author_id}:{original_recipe_id}"
        res = self._col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return self._parse_recipe(doc)

    def update(self, recipe_id: str, changes: Dict[str, Any]) -> Optional[Recipe]:
        oid = _oid(recipe_id)
        if oid is None:
            return None
        allowed = {k: v for k, v in changes.items() if k in CONTENT_FIELDS}
        allowed["updated_at"] = _now()
        doc = self._col.find_one_and_update(
            {"_id": oid}, {"$set": allowed}, return_document=ReturnDocument.AFTER
        )
        return self._parse_recipe(doc) if doc else None

    def delete(self, recipe_id: str) -> bool:
        oid = _oid(recipe_id)
        if oid is None:
            return False
        return self._col.delete_one({"_id": oid}).deleted_count == 1


class MongoGeneratedRecipeRepository(GeneratedRecipeRepo):
    def __init__(self, col: Collection) -> None:
        self._col = col

    def _parse_recipe(self, doc: Dict[str, Any]) -> GeneratedRecipe:
        return GeneratedRecipe(
            id=str(doc["_id"]),
            user_id=_as_str_id(doc.get("user_id")) or "",
            generated_at=doc.get("generated_at"),
            updated_at=doc.get("updated_at"),
            **_content_kwargs(doc),
        )

    def by_user(self, user_id: str) -> List[GeneratedRecipe]:
        cursor = self._col.find({"user_id": _oid(user_id)}).sort("generated_at", DESCENDING)
        return [self._parse_recipe(doc) for doc in cursor]

    def by_id(self, recipe_id: str) -> Optional[GeneratedRecipe]:
        oid = _oid(recipe_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return self._parse_recipe(doc) if doc else None

    def by_ids(self, recipe_ids: List[str]) -> Dict[str, GeneratedRecipe]:
        oids = [o for o in (_oid(x) for x in recipe_ids) if o is not None]
        if not oids:
            return {}
        return {r.id: r for r in (self._parse_recipe(d) for d in self._col.find({"_id": {"$in": oids}}))}

    def insert(self, content: Dict[str, Any], user_id: str) -> GeneratedRecipe:
        now = _now()
        doc = _content_doc(content)
        doc.update(user_id=_oid(user_id), generated_at=now, updated_at=now)
        res = self._col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return self._parse_recipe(doc)

    def update(self, recipe_id: str, changes: Dict[str, Any]) -> Optional[GeneratedRecipe]:
        oid = _oid(recipe_id)
        if oid is None:
            return None
        allowed = {k: v for k, v in changes.items() if k in CONTENT_FIELDS}
        allowed["updated_at"] = _now()
        doc = self._col.find_one_and_update(
            {"_id": oid}, {"$set": allowed}, return_document=ReturnDocument.AFTER
        )
        return self._parse_recipe(doc) if doc else None

    def delete(self, recipe_id: str) -> bool:
        oid = _oid(recipe_id)
        if oid is None:
            return False
        return self._col.delete_one({"_id": oid}).deleted_count == 1


class MongoRecipeBookRepository(RecipeBookRepo):
    def __init__(self, col: Collection) -> None:
        self._col = col

    def _parse_entry(self, doc: Dict[str, Any]) -> RecipeBookEntry:
        return RecipeBookEntry(
            id=str(doc["_id"]),
            user_id=str(doc["user_id"]),
            recipe_id=str(doc["recipe_id"]),
            added_at=doc.get("added_at"),
        )

    def by_user(self, user_id: str) -> List[RecipeBookEntry]:
        cursor = self._col.find({"user_id": _oid(user_id)}).sort("added_at", DESCENDING)
        return [self._parse_entry(doc) for doc in cursor]

    def by_id(self, entry_id: str) -> Optional[RecipeBookEntry]:
        oid = _oid(entry_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return self._parse_entry(doc) if doc else None

    def insert(self, user_id: str, recipe_id: str) -> RecipeBookEntry:
        doc = {"user_id": _oid(user_id), "recipe_id": _oid(recipe_id), "added_at": _now()}
        res = self._col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return self._parse_entry(doc)

    def delete(self, entry_id: str) -> bool:
        oid = _oid(entry_id)
        if oid is None:
            return False
        return self._col.delete_one({"_id": oid}).deleted_count == 1

    def delete_for_recipe(self, recipe_id: str) -> int:
        return self._col.delete_many({"recipe_id": _oid(recipe_id)}).deleted_count


class MongoGeneratedRecipeBookRepository(GeneratedRecipeBookRepo):
    def __init__(self, col: Collection) -> None:
        self._col = col

    def _parse_entry(self, doc: Dict[str, Any]) -> GeneratedRecipeBookEntry:
        return GeneratedRecipeBookEntry(
            id=str(doc["_id"]),
            user_id=str(doc["user_id"]),
            generated_recipe_id=str(doc["generated_recipe_id"]),
            added_at=doc.get("added_at"),
        )

    def by_user(self, user_id: str) -> List[GeneratedRecipeBookEntry]:
        cursor = self._col.find({"user_id": _oid(user_id)}).sort("added_at", DESCENDING)
        return [self._parse_entry(doc) for doc in cursor]

    def by_id(self, entry_id: str) -> Optional[GeneratedRecipeBookEntry]:
        oid = _oid(entry_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return self._parse_entry(doc) if doc else None

    def insert(self, user_id: str, generated_recipe_id: str) -> GeneratedRecipeBookEntry:
        doc = {"user_id": _oid(user_id), "generated_recipe_id": _oid(generated_recipe_id), "added_at": _now()}
        res = self._col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return self._parse_entry(doc)

    def delete(self, entry_id: str) -> bool:
        oid = _oid(entry_id)
        if oid is None:
            return False
        return self._col.delete_one({"_id": oid}).deleted_count == 1

    def delete_for_recipe(self, generated_recipe_id: str) -> int:
        return self._col.delete_many({"generated_recipe_id": _oid(generated_recipe_id)}).deleted_count


class MongoRecipeLikeRepository(RecipeLikeRepo):
    def __init__(self, col: Collection) -> None:
        self._col = col

    def _parse_like(self, doc: Dict[str, Any]) -> RecipeLike:
        return RecipeLike(
            id=str(doc["_id"]),
            user_id=str(doc["user_id"]),
            recipe_id=str(doc["recipe_id"]),
            is_like=bool(doc.get("is_like")),
            created_at=doc.get("created_at"),
        )

    def all(self) -> List[RecipeLike]:
        return [self._parse_like(doc) for doc in self._col.find({})]

    def by_id(self, like_id: str) -> Optional[RecipeLike]:
        oid = _oid(like_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return self._parse_like(doc) if doc else None

    def find(self, user_id: str, recipe_id: str) -> Optional[RecipeLike]:
        doc = self._col.find_one({"user_id": _oid(user_id), "recipe_id": _oid(recipe_id)})
        return self._parse_like(doc) if doc else None

    def insert(self, user_id: str, recipe_id: str, is_like: bool) -> RecipeLike:
        doc = {"user_id": _oid(user_id), "recipe_id": _oid(recipe_id), "is_like": bool(is_like), "created_at": _now()}
        res = self._col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return self._parse_like(doc)

    def set_vote(self, like_id: str, is_like: bool) -> Optional[RecipeLike]:
        doc = self._col.find_one_and_update(
            {"_id": _oid(like_id)},
            {"$set": {"is_like": bool(is_like)}},
            return_document=ReturnDocument.AFTER,
        )
        return self._parse_like(doc) if doc else None

    def delete(self, like_id: str) -> bool:
        oid = _oid(like_id)
        if oid is None:
            return False
        return self._col.delete_one({"_id": oid}).deleted_count == 1


class MongoRecipeCommentRepository(RecipeCommentRepo):
    def __init__(self, col: Collection) -> None:
        self._col = col

    def _parse_comment(self, doc: Dict[str, Any]) -> RecipeComment:
        return RecipeComment(
            id=str(doc["_id"]),
            recipe_id=str(doc["recipe_id"]),
            user_id=str(doc["user_id"]),
            comment=doc.get("comment") or "",
            user_name=doc.get("user_name"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    def all(self) -> List[RecipeComment]:
        return [self._parse_comment(doc) for doc in self._col.find({}).sort("created_at", DESCENDING)]

    def by_id(self, comment_id: str) -> Optional[RecipeComment]:
        oid = _oid(comment_id)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        return self._parse_comment(doc) if doc else None

    def insert(self, recipe_id: str, user_id: str, comment: str, user_name: Optional[str]) -> RecipeComment:
        now = _now()
        doc = {
            "recipe_id": _oid(recipe_id),
            "user_id": _oid(user_id),
            "comment": comment,
            "user_name": user_name,
            "created_at": now,
            "updated_at": now,
        }
        res = self._col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return self._parse_comment(doc)

    def set_text(self, comment_id: str, comment: str) -> Optional[RecipeComment]:
        doc = self._col.find_one_and_update(
            {"_id": _oid(comment_id)},
            {"$set": {"comment": comment, "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._parse_comment(doc) if doc else None

    def delete(self, comment_id: str) -> bool:
        oid = _oid(comment_id)
        if oid is None:
            return False
        return self._col.delete_one({"_id": oid}).deleted_count == 1


class MongoRevokedTokenRepository(RevokedTokenRepo):
    def __init__(self, col: Collection) -> None:
        self._col = col

    def revoke(self, jti: str, expires_at: datetime) -> None:
        # upsert keeps repeated sign-outs idempotent
        self._col.update_one(
            {"jti": jti},
            {"$set": {"jti": jti, "expires_at": expires_at}},
            upsert=True,
        )

    def is_revoked(self, jti: str) -> bool:
        return self._col.find_one({"jti": jti}) is not None
