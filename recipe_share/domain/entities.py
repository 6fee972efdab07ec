# recipe_share/domain/entities.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

# Fields copied when a recipe is cloned into a book or shared to the community.
CONTENT_FIELDS = (
    "title",
    "description",
    "ingredients",
    "instructions",
    "cooking_time",
    "servings",
    "difficulty",
    "cuisine",
    "calories",
    "nutrition",
    "image_url",
)


def _iso(v: Optional[datetime]) -> Optional[str]:
    return v.isoformat() if v else None


@dataclass(frozen=True)
class User:
    id: str
    email: str
    password: str
    full_name: str | None
    federated_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def to_public(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "full_name": self.full_name}


@dataclass(frozen=True)
class Nutrition:
    protein: str | None = None
    carbs: str | None = None
    fat: str | None = None
    fiber: str | None = None

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> Optional["Nutrition"]:
        if not d:
            return None
        return cls(
            protein=d.get("protein"),
            carbs=d.get("carbs"),
            fat=d.get("fat"),
            fiber=d.get("fiber"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"protein": self.protein, "carbs": self.carbs, "fat": self.fat, "fiber": self.fiber}


class RecipeKind(str, Enum):
    COMMUNITY = "community"
    GENERATED = "generated"
    PERSONAL_COPY = "personal_copy"


@dataclass(frozen=True)
class RecipeRef:
    """
    Tagged reference to a recipe, so consumers dispatch on `kind`
    instead of probing optional fields.
    """
    kind: RecipeKind
    id: str
    original_id: str | None = None

    @classmethod
    def community(cls, recipe_id: str) -> "RecipeRef":
        return cls(RecipeKind.COMMUNITY, recipe_id)

    @classmethod
    def generated(cls, recipe_id: str) -> "RecipeRef":
        return cls(RecipeKind.GENERATED, recipe_id)

    @classmethod
    def personal_copy(cls, recipe_id: str, original_id: str) -> "RecipeRef":
        return cls(RecipeKind.PERSONAL_COPY, recipe_id, original_id)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RecipeRef":
        return cls(RecipeKind(d["kind"]), str(d["id"]), d.get("original_id"))

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "id": self.id, "original_id": self.original_id}


@dataclass(frozen=True)
class Recipe:
    id: str
    title: str
    description: str | None
    ingredients: List[str]
    instructions: List[str]
    author_id: str
    cooking_time: int | None = None
    servings: int | None = None
    difficulty: str | None = None
    cuisine: str | None = None
    calories: float | None = None
    nutrition: Nutrition | None = None
    image_url: str | None = None
    original_recipe_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_personal_copy(self) -> bool:
        return self.original_recipe_id is not None

    @property
    def ref(self) -> RecipeRef:
        if self.original_recipe_id is not None:
            return RecipeRef.personal_copy(self.id, self.original_recipe_id)
        return RecipeRef.community(self.id)

    def content(self) -> Dict[str, Any]:
        return _content_of(self)

    def to_dict(self) -> Dict[str, Any]:
        out = {"id": self.id, **self.content()}
        out.update(
            author_id=self.author_id,
            original_recipe_id=self.original_recipe_id,
            created_at=_iso(self.created_at),
            updated_at=_iso(self.updated_at),
            ref=self.ref.to_dict(),
        )
        return out


@dataclass(frozen=True)
class GeneratedRecipe:
    id: str
    title: str
    description: str | None
    ingredients: List[str]
    instructions: List[str]
    user_id: str
    cooking_time: int | None = None
    servings: int | None = None
    difficulty: str | None = None
    cuisine: str | None = None
    calories: float | None = None
    nutrition: Nutrition | None = None
    image_url: str | None = None
    generated_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def ref(self) -> RecipeRef:
        return RecipeRef.generated(self.id)

    def content(self) -> Dict[str, Any]:
        return _content_of(self)

    def to_dict(self) -> Dict[str, Any]:
        out = {"id": self.id, **self.content()}
        out.update(
            user_id=self.user_id,
            generated_at=_iso(self.generated_at),
            updated_at=_iso(self.updated_at),
            ref=self.ref.to_dict(),
        )
        return out


def _content_of(r: Recipe | GeneratedRecipe) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for name in CONTENT_FIELDS:
        v = getattr(r, name)
        if name == "nutrition":
            v = v.to_dict() if v else None
        elif name in ("ingredients", "instructions"):
            v = list(v)
        out[name] = v
    return out


@dataclass(frozen=True)
class RecipeBookEntry:
    id: str
    user_id: str
    recipe_id: str
    added_at: datetime | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "recipe_id": self.recipe_id,
            "added_at": _iso(self.added_at),
        }


@dataclass(frozen=True)
class GeneratedRecipeBookEntry:
    id: str
    user_id: str
    generated_recipe_id: str
    added_at: datetime | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "generated_recipe_id": self.generated_recipe_id,
            "added_at": _iso(self.added_at),
        }


@dataclass(frozen=True)
class RecipeLike:
    id: str
    user_id: str
    recipe_id: str
    is_like: bool
    created_at: datetime | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "recipe_id": self.recipe_id,
            "is_like": self.is_like,
            "created_at": _iso(self.created_at),
        }


@dataclass(frozen=True)
class RecipeComment:
    id: str
    recipe_id: str
    user_id: str
    comment: str
    user_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "recipe_id": self.recipe_id,
            "user_id": self.user_id,
            "comment": self.comment,
            "user_name": self.user_name,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass(frozen=True)
class AuthSession:
    user: User
    token: str

    def to_dict(self) -> Dict[str, Any]:
        return {"user": self.user.to_public(), "token": self.token}


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    jti: str
    expires_at: datetime
    full_name: str | None = None
