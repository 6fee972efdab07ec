# recipe_share/api/schemas.py
from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from recipe_share.domain.entities import RecipeKind


class SignUpRequest(BaseModel):
    email: str
    password: str
    full_name: Optional[str] = None


class SignInRequest(BaseModel):
    email: str
    password: str


class FederatedSignInRequest(BaseModel):
    credential: str = Field(..., description="Opaque identity assertion from the provider")


class NutritionIn(BaseModel):
    protein: Optional[str] = None
    carbs: Optional[str] = None
    fat: Optional[str] = None
    fiber: Optional[str] = None


class RecipeIn(BaseModel):
    # author_id / original_recipe_id are server-assigned; extra body keys are ignored
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    ingredients: List[str]
    instructions: List[str]
    cooking_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    cuisine: Optional[str] = None
    calories: Optional[float] = None
    nutrition: Optional[NutritionIn] = None
    image_url: Optional[str] = None


class RecipePatch(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    ingredients: Optional[List[str]] = None
    instructions: Optional[List[str]] = None
    cooking_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    cuisine: Optional[str] = None
    calories: Optional[float] = None
    nutrition: Optional[NutritionIn] = None
    image_url: Optional[str] = None

    @field_validator("title", "ingredients", "instructions", mode="before")
    @classmethod
    def _not_null(cls, v: Any) -> Any:
        # may be omitted, but never cleared
        if v is None:
            raise ValueError("cannot be null")
        return v


class RecipeBookIn(BaseModel):
    recipe_id: str


class GeneratedRecipeBookIn(BaseModel):
    generated_recipe_id: str


class LikeIn(BaseModel):
    recipe_id: str
    is_like: bool


class LikePatch(BaseModel):
    is_like: bool


class CommentIn(BaseModel):
    recipe_id: str
    comment: str


class CommentPatch(BaseModel):
    comment: str


class RecipeRefIn(BaseModel):
    kind: RecipeKind
    id: str


class ShareRequest(BaseModel):
    ref: RecipeRefIn


class GenerateRecipeRequest(BaseModel):
    ingredients: List[Any] = Field(default_factory=list)
    cuisine: Optional[str] = None
    servings: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[str] = None
    max_calories: Optional[int] = Field(default=None, ge=0)
