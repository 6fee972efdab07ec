# recipe_share/application/recipe_book.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pymongo.errors import DuplicateKeyError

from recipe_share.application.usecases import CommunityRecipes, visible_to
from recipe_share.domain.entities import (
    GeneratedRecipe,
    GeneratedRecipeBookEntry,
    Recipe,
    RecipeBookEntry,
    RecipeKind,
    RecipeRef,
    User,
)
from recipe_share.domain.errors import AlreadyInBook, AlreadyShared, NotFound
from recipe_share.domain.repositories import (
    GeneratedRecipeBookRepo,
    GeneratedRecipeRepo,
    RecipeBookRepo,
    RecipeRepo,
)

log = logging.getLogger("app.recipe_book")


def _norm(text: Optional[str]) -> str:
    return " ".join((text or "").lower().split())


def _same_content(a: Dict[str, Any], b: Recipe) -> bool:
    """Best-effort duplicate check: title + ingredients."""
    if _norm(a.get("title")) != _norm(b.title):
        return False
    return [_norm(x) for x in (a.get("ingredients") or [])] == [_norm(x) for x in b.ingredients]


@dataclass(frozen=True)
class BookItem:
    entry: RecipeBookEntry
    recipe: Optional[Recipe]

    def to_dict(self) -> Dict[str, Any]:
        out = self.entry.to_dict()
        out["recipe"] = self.recipe.to_dict() if self.recipe else None
        return out


@dataclass(frozen=True)
class GeneratedBookItem:
    entry: GeneratedRecipeBookEntry
    recipe: Optional[GeneratedRecipe]

    def to_dict(self) -> Dict[str, Any]:
        out = self.entry.to_dict()
        out["recipe"] = self.recipe.to_dict() if self.recipe else None
        return out


class RecipeBook:
    """
    Saving a community recipe clones it into a personal copy owned by the
    saver, so edits on either side never reach the other. Removing the
    entry removes the copy with it.
    """

    def __init__(self, books: RecipeBookRepo, recipes: RecipeRepo) -> None:
        self.books = books
        self.recipes = recipes

    def list(self, caller: User) -> List[BookItem]:
        entries = self.books.by_user(caller.id)
        resolved = self.recipes.by_ids([e.recipe_id for e in entries])
        return [BookItem(entry=e, recipe=resolved.get(e.recipe_id)) for e in entries]

    def save(self, recipe_id: str, caller: User) -> BookItem:
        target = self.recipes.by_id(recipe_id)
        # someone else's personal copy is not addressable
        if not visible_to(target, caller):
            raise NotFound("Recipe not found")

        for item in self.list(caller):
            r = item.recipe
            if r is not None and (r.id == target.id or r.original_recipe_id == target.id):
                raise AlreadyInBook()

        try:
            copy = self.recipes.insert(target.content(), author_id=caller.id, original_recipe_id=target.id)
        except DuplicateKeyError as e:
            raise AlreadyInBook() from e

        try:
            entry = self.books.insert(caller.id, copy.id)
        except DuplicateKeyError as e:
            self.recipes.delete(copy.id)
            raise AlreadyInBook() from e

        log.info("User %s saved recipe %s as copy %s", caller.id, target.id, copy.id)
        return BookItem(entry=entry, recipe=copy)

    def remove(self, entry_id: str, caller: User) -> None:
        entry = self.books.by_id(entry_id)
        if entry is None or entry.user_id != caller.id:
            raise NotFound("Recipe book entry not found")

        recipe = self.recipes.by_id(entry.recipe_id)
        if recipe is not None and recipe.is_personal_copy and recipe.author_id == caller.id:
            self.recipes.delete(recipe.id)
            log.info("Deleted personal copy %s with its book entry", recipe.id)
        self.books.delete(entry.id)


class GeneratedRecipeBook:
    """Link-only book for generated recipes: no cloning, no cascade."""

    def __init__(self, books: GeneratedRecipeBookRepo, recipes: GeneratedRecipeRepo) -> None:
        self.books = books
        self.recipes = recipes

    def list(self, caller: User) -> List[GeneratedBookItem]:
        entries = self.books.by_user(caller.id)
        resolved = self.recipes.by_ids([e.generated_recipe_id for e in entries])
        return [GeneratedBookItem(entry=e, recipe=resolved.get(e.generated_recipe_id)) for e in entries]

    def save(self, generated_recipe_id: str, caller: User) -> GeneratedBookItem:
        recipe = self.recipes.by_id(generated_recipe_id)
        if recipe is None or recipe.user_id != caller.id:
            raise NotFound("Recipe not found")

        if any(e.generated_recipe_id == recipe.id for e in self.books.by_user(caller.id)):
            raise AlreadyInBook()
        try:
            entry = self.books.insert(caller.id, recipe.id)
        except DuplicateKeyError as e:
            raise AlreadyInBook() from e
        return GeneratedBookItem(entry=entry, recipe=recipe)

    def remove(self, entry_id: str, caller: User) -> None:
        entry = self.books.by_id(entry_id)
        if entry is None or entry.user_id != caller.id:
            raise NotFound("Recipe book entry not found")
        self.books.delete(entry.id)


@dataclass(frozen=True)
class ShareToCommunity:
    """Copies a generated or book recipe into a new community original."""
    community: CommunityRecipes
    recipes: RecipeRepo
    generated: GeneratedRecipeRepo

    def __call__(self, ref: RecipeRef, caller: User) -> Recipe:
        if ref.kind == RecipeKind.GENERATED:
            source = self.generated.by_id(ref.id)
            if source is None or source.user_id != caller.id:
                raise NotFound("Recipe not found")
        else:
            source = self.recipes.by_id(ref.id)
            if source is None or source.author_id != caller.id:
                raise NotFound("Recipe not found")
        content = source.content()
        for mine in self.recipes.by_author(caller.id):
            if not mine.is_personal_copy and _same_content(content, mine):
                raise AlreadyShared()
        recipe = self.community.create(content, caller)
        log.info("Recipe %s shared to community by %s", recipe.id, caller.id)
        return recipe
