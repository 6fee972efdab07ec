# recipe_share/domain/repositories.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from recipe_share.domain.entities import (
    GeneratedRecipe,
    GeneratedRecipeBookEntry,
    Recipe,
    RecipeBookEntry,
    RecipeComment,
    RecipeLike,
    User,
)


class UserRepo(Protocol):
    def by_id(self, user_id: str) -> Optional[User]: ...
    def by_email(self, email: str) -> Optional[User]: ...
    def by_federated_id(self, federated_id: str) -> Optional[User]: ...
    def insert(self, email: str, password: str, full_name: Optional[str], federated_id: Optional[str] = None) -> User: ...
    def link_federated_id(self, user_id: str, federated_id: str) -> User: ...


class RecipeRepo(Protocol):
    def community(self) -> List[Recipe]: ...
    def by_id(self, recipe_id: str) -> Optional[Recipe]: ...
    def by_ids(self, recipe_ids: List[str]) -> Dict[str, Recipe]: ...
    def by_author(self, author_id: str) -> List[Recipe]: ...
    def insert(self, content: Dict[str, Any], author_id: str, original_recipe_id: Optional[str] = None) -> Recipe: ...
    def update(self, recipe_id: str, changes: Dict[str, Any]) -> Optional[Recipe]: ...
    def delete(self, recipe_id: str) -> bool: ...


class GeneratedRecipeRepo(Protocol):
    def by_user(self, user_id: str) -> List[GeneratedRecipe]: ...
    def by_id(self, recipe_id: str) -> Optional[GeneratedRecipe]: ...
    def by_ids(self, recipe_ids: List[str]) -> Dict[str, GeneratedRecipe]: ...
    def insert(self, content: Dict[str, Any], user_id: str) -> GeneratedRecipe: ...
    def update(self, recipe_id: str, changes: Dict[str, Any]) -> Optional[GeneratedRecipe]: ...
    def delete(self, recipe_id: str) -> bool: ...


class RecipeBookRepo(Protocol):
    def by_user(self, user_id: str) -> List[RecipeBookEntry]: ...
    def by_id(self, entry_id: str) -> Optional[RecipeBookEntry]: ...
    def insert(self, user_id: str, recipe_id: str) -> RecipeBookEntry: ...
    def delete(self, entry_id: str) -> bool: ...
    def delete_for_recipe(self, recipe_id: str) -> int: ...


class GeneratedRecipeBookRepo(Protocol):
    def by_user(self, user_id: str) -> List[GeneratedRecipeBookEntry]: ...
    def by_id(self, entry_id: str) -> Optional[GeneratedRecipeBookEntry]: ...
    def insert(self, user_id: str, generated_recipe_id: str) -> GeneratedRecipeBookEntry: ...
    def delete(self, entry_id: str) -> bool: ...
    def delete_for_recipe(self, generated_recipe_id: str) -> int: ...


class RecipeLikeRepo(Protocol):
    def all(self) -> List[RecipeLike]: ...
    def by_id(self, like_id: str) -> Optional[RecipeLike]: ...
    def find(self, user_id: str, recipe_id: str) -> Optional[RecipeLike]: ...
    def insert(self, user_id: str, recipe_id: str, is_like: bool) -> RecipeLike: ...
    def set_vote(self, like_id: str, is_like: bool) -> Optional[RecipeLike]: ...
    def delete(self, like_id: str) -> bool: ...


class RecipeCommentRepo(Protocol):
    def all(self) -> List[RecipeComment]: ...
    def by_id(self, comment_id: str) -> Optional[RecipeComment]: ...
    def insert(self, recipe_id: str, user_id: str, comment: str, user_name: Optional[str]) -> RecipeComment: ...
    def set_text(self, comment_id: str, comment: str) -> Optional[RecipeComment]: ...
    def delete(self, comment_id: str) -> bool: ...


class RevokedTokenRepo(Protocol):
    def revoke(self, jti: str, expires_at: datetime) -> None: ...
    def is_revoked(self, jti: str) -> bool: ...
