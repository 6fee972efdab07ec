# recipe_share/application/usecases.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from recipe_share.domain.entities import (
    GeneratedRecipe,
    Recipe,
    RecipeComment,
    RecipeLike,
    User,
)
from recipe_share.domain.errors import Forbidden, NotFound, ValidationError
from recipe_share.domain.repositories import (
    GeneratedRecipeBookRepo,
    GeneratedRecipeRepo,
    RecipeBookRepo,
    RecipeCommentRepo,
    RecipeLikeRepo,
    RecipeRepo,
)

log = logging.getLogger("app.usecases")


def visible_to(recipe: Optional[Recipe], caller: Optional[User]) -> bool:
    """A personal copy exists only for its owner."""
    if recipe is None:
        return False
    if not recipe.is_personal_copy:
        return True
    return caller is not None and caller.id == recipe.author_id


class CommunityRecipes:
    """
    Public-read recipe feed. Personal copies live in the same collection
    but stay invisible to everyone except their owner.
    """

    def __init__(self, recipes: RecipeRepo, books: RecipeBookRepo) -> None:
        self.recipes = recipes
        self.books = books

    def list(self) -> List[Recipe]:
        return self.recipes.community()

    def get(self, recipe_id: str, caller: Optional[User] = None) -> Recipe:
        recipe = self.recipes.by_id(recipe_id)
        if not visible_to(recipe, caller):
            raise NotFound("Recipe not found")
        return recipe

    def create(self, content: Dict[str, Any], caller: User) -> Recipe:
        # author is always the caller, whatever the body says
        recipe = self.recipes.insert(content, author_id=caller.id)
        log.info("Recipe %s created by %s", recipe.id, caller.id)
        return recipe

    def update(self, recipe_id: str, changes: Dict[str, Any], caller: User) -> Recipe:
        self._owned(recipe_id, caller)
        updated = self.recipes.update(recipe_id, changes)
        if updated is None:
            raise NotFound("Recipe not found")
        return updated

    def delete(self, recipe_id: str, caller: User) -> None:
        self._owned(recipe_id, caller)
        self.recipes.delete(recipe_id)
        removed = self.books.delete_for_recipe(recipe_id)
        if removed:
            log.info("Removed %d book entries pointing at deleted recipe %s", removed, recipe_id)

    def _owned(self, recipe_id: str, caller: User) -> Recipe:
        recipe = self.recipes.by_id(recipe_id)
        if not visible_to(recipe, caller):
            raise NotFound("Recipe not found")
        if recipe.author_id != caller.id:
            raise Forbidden()
        return recipe


class GeneratedRecipes:
    """Private to their owner; other users' ids behave as missing."""

    def __init__(self, recipes: GeneratedRecipeRepo, books: GeneratedRecipeBookRepo) -> None:
        self.recipes = recipes
        self.books = books

    def list(self, caller: User) -> List[GeneratedRecipe]:
        return self.recipes.by_user(caller.id)

    def get(self, recipe_id: str, caller: User) -> GeneratedRecipe:
        recipe = self.recipes.by_id(recipe_id)
        if recipe is None or recipe.user_id != caller.id:
            raise NotFound("Recipe not found")
        return recipe

    def create(self, content: Dict[str, Any], caller: User) -> GeneratedRecipe:
        return self.recipes.insert(content, user_id=caller.id)

    def update(self, recipe_id: str, changes: Dict[str, Any], caller: User) -> GeneratedRecipe:
        self.get(recipe_id, caller)
        updated = self.recipes.update(recipe_id, changes)
        if updated is None:
            raise NotFound("Recipe not found")
        return updated

    def delete(self, recipe_id: str, caller: User) -> None:
        self.get(recipe_id, caller)
        self.recipes.delete(recipe_id)
        self.books.delete_for_recipe(recipe_id)


class RecipeLikes:
    def __init__(self, likes: RecipeLikeRepo, recipes: RecipeRepo) -> None:
        self.likes = likes
        self.recipes = recipes

    def list(self) -> List[RecipeLike]:
        return self.likes.all()

    def vote(self, recipe_id: str, is_like: bool, caller: User) -> RecipeLike:
        """Insert-or-update the caller's single vote row for a recipe."""
        if not visible_to(self.recipes.by_id(recipe_id), caller):
            raise NotFound("Recipe not found")

        existing = self.likes.find(caller.id, recipe_id)
        if existing is not None:
            return self._set(existing.id, is_like)
        try:
            return self.likes.insert(caller.id, recipe_id, is_like)
        except DuplicateKeyError:
            # lost the race to a concurrent insert: update that row, once
            winner = self.likes.find(caller.id, recipe_id)
            if winner is None:
                raise
            return self._set(winner.id, is_like)

    def update(self, like_id: str, is_like: bool, caller: User) -> RecipeLike:
        self._owned(like_id, caller)
        return self._set(like_id, is_like)

    def delete(self, like_id: str, caller: User) -> None:
        self._owned(like_id, caller)
        self.likes.delete(like_id)

    def _set(self, like_id: str, is_like: bool) -> RecipeLike:
        like = self.likes.set_vote(like_id, is_like)
        if like is None:
            raise NotFound("Like not found")
        return like

    def _owned(self, like_id: str, caller: User) -> RecipeLike:
        like = self.likes.by_id(like_id)
        if like is None:
            raise NotFound("Like not found")
        if like.user_id != caller.id:
            raise Forbidden()
        return like


class RecipeComments:
    def __init__(self, comments: RecipeCommentRepo, recipes: RecipeRepo) -> None:
        self.comments = comments
        self.recipes = recipes

    def list(self) -> List[RecipeComment]:
        return self.comments.all()

    def create(self, recipe_id: str, text: str, caller: User) -> RecipeComment:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment is required")
        if not visible_to(self.recipes.by_id(recipe_id), caller):
            raise NotFound("Recipe not found")
        # name is snapshotted at posting time
        return self.comments.insert(recipe_id, caller.id, text, caller.display_name)

    def update(self, comment_id: str, text: str, caller: User) -> RecipeComment:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment is required")
        self._owned(comment_id, caller)
        updated = self.comments.set_text(comment_id, text)
        if updated is None:
            raise NotFound("Comment not found")
        return updated

    def delete(self, comment_id: str, caller: User) -> None:
        self._owned(comment_id, caller)
        self.comments.delete(comment_id)

    def _owned(self, comment_id: str, caller: User) -> RecipeComment:
        comment = self.comments.by_id(comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        if comment.user_id != caller.id:
            raise Forbidden()
        return comment
