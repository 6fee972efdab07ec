# recipe_share/services/recipe_generator.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from recipe_share.domain.errors import UpstreamError, ValidationError
from recipe_share.services.ingredient_screening import (
    ScreeningResult,
    clean_ingredients,
    split_gibberish,
)

log = logging.getLogger("services.recipe_generator")

_NUTRITION_SCHEMA = {
    "type": "object",
    "properties": {k: {"type": "string"} for k in ("protein", "carbs", "fat", "fiber")},
}

_RECIPE_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "ingredients": {"type": "array", "items": {"type": "string"}},
        "instructions": {"type": "array", "items": {"type": "string"}},
        "cooking_time": {"type": "number", "description": "Minutes total"},
        "servings": {"type": "number"},
        "difficulty": {"type": "string", "enum": ["Easy", "Medium", "Hard"]},
        "cuisine": {"type": "string"},
        "calories": {"type": "number"},
        "nutrition": _NUTRITION_SCHEMA,
    },
    "required": ["title", "description", "ingredients", "instructions", "cooking_time", "servings", "difficulty", "cuisine", "calories"],
}


@dataclass(frozen=True)
class GenerationRequest:
    ingredients: List[str]
    cuisine: Optional[str] = None
    servings: Optional[int] = None
    difficulty: Optional[str] = None
    max_calories: Optional[int] = None

    @property
    def recipe_count(self) -> int:
        return 1 if (self.cuisine or "").strip() else 3


@dataclass(frozen=True)
class GenerationResult:
    recipes: List[Dict[str, Any]]
    screening: ScreeningResult = field(default_factory=ScreeningResult)

    def to_dict(self) -> Dict[str, Any]:
        return {"recipes": self.recipes, **self.screening.to_dict()}


class RecipeGenerator:
    """
    Talks to an OpenAI-compatible chat-completions endpoint, using forced
    tool calls to get structured output. Two calls per request:
    ingredient validation, then generation.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str,
        model: str,
        timeout_s: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout_s = timeout_s
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def generate(self, req: GenerationRequest) -> GenerationResult:
        ingredients = clean_ingredients(req.ingredients)
        if not ingredients:
            raise ValidationError("Please provide at least one ingredient.")
        if not self.enabled:
            raise UpstreamError("AI is not configured")

        screening = self.screen(ingredients)
        reason = screening.rejection_reason()
        if reason:
            raise ValidationError(reason, details=screening.to_dict())

        args = self._call_tool(
            system=(
                "You are a recipe generator. Only use the ingredients provided, plus salt, pepper, "
                "water and cooking oil. If the ingredients are insufficient, reply with 'ERROR: <reason>' "
                "instead of calling the function."
            ),
            user=self._generation_prompt(req, screening.valid),
            tool_name="return_recipes",
            parameters={
                "type": "object",
                "properties": {"recipes": {"type": "array", "items": _RECIPE_SCHEMA}},
                "required": ["recipes"],
            },
            refusal_details=screening.to_dict(),
        )
        recipes = [self._normalize(r, req) for r in (args.get("recipes") or [])][: req.recipe_count]
        if not recipes:
            raise ValidationError("Cannot generate recipes with these ingredients.", details=screening.to_dict())
        return GenerationResult(recipes=recipes, screening=screening)

    def screen(self, ingredients: List[str]) -> ScreeningResult:
        plausible, gibberish = split_gibberish(ingredients)
        if not plausible:
            return ScreeningResult(valid=[], invalid=list(ingredients), total=len(ingredients))

        args = self._call_tool(
            system="You validate food ingredients. Accept only items that are clearly real, edible food.",
            user=f"Validate these ingredients: {', '.join(plausible)}",
            tool_name="validate_ingredients",
            parameters={
                "type": "object",
                "properties": {
                    "valid_ingredients": {"type": "array", "items": {"type": "string"}},
                    "rejected_ingredients": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["valid_ingredients", "rejected_ingredients"],
            },
        )
        allowed = {p.lower() for p in plausible}
        valid = [str(x) for x in (args.get("valid_ingredients") or []) if str(x).lower() in allowed]
        rejected = [str(x) for x in (args.get("rejected_ingredients") or [])]
        return ScreeningResult(valid=valid, invalid=gibberish + rejected, total=len(ingredients))

    def _generation_prompt(self, req: GenerationRequest, valid: List[str]) -> str:
        parts = [f"Create {req.recipe_count} recipe(s) using ONLY these ingredients: {', '.join(valid)}."]
        if req.cuisine:
            parts.append(f"Cuisine: {req.cuisine}.")
        if req.servings:
            parts.append(f"Servings: {req.servings}.")
        if req.difficulty:
            parts.append(f"Difficulty: {req.difficulty}.")
        if req.max_calories:
            parts.append(f"Keep each recipe under {req.max_calories} calories per serving.")
        return " ".join(parts)

    def _call_tool(
        self,
        system: str,
        user: str,
        tool_name: str,
        parameters: Dict[str, Any],
        refusal_details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        body = {
            "model": self.model,
            "messages": [{"role": "system", "content": system}, {"role": "user", "content": user}],
            "tools": [{"type": "function", "function": {"name": tool_name, "parameters": parameters}}],
            "tool_choice": {"type": "function", "function": {"name": tool_name}},
        }
        try:
            r = self.session.post(
                self.api_url,
                json=body,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            log.warning("AI provider unreachable: %s", e)
            raise UpstreamError() from e

        if r.status_code == 429:
            raise UpstreamError("Rate limits exceeded, please try again later.")
        if r.status_code >= 400:
            # provider text stays in the logs only
            log.warning("AI provider error %s: %s", r.status_code, r.text[:500])
            raise UpstreamError()

        try:
            message = r.json()["choices"][0]["message"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamError("Invalid AI response format") from e

        calls = message.get("tool_calls") or []
        if not calls:
            content = (message.get("content") or "").replace("ERROR:", "").strip()
            raise ValidationError(
                f"Cannot generate recipes: {content or 'Invalid ingredients provided'}",
                details=refusal_details,
            )
        try:
            return json.loads(calls[0]["function"]["arguments"])
        except (ValueError, KeyError, TypeError) as e:
            raise UpstreamError("Failed to parse AI output") from e

    @staticmethod
    def _normalize(raw: Dict[str, Any], req: GenerationRequest) -> Dict[str, Any]:
        def _num(v: Any, default: Any = None) -> Any:
            try:
                return int(v) if v is not None else default
            except (TypeError, ValueError):
                return default

        return {
            "title": str(raw.get("title") or "Untitled Recipe"),
            "description": str(raw.get("description") or ""),
            "ingredients": [str(x) for x in (raw.get("ingredients") or [])],
            "instructions": [str(x) for x in (raw.get("instructions") or [])],
            "cooking_time": _num(raw.get("cooking_time"), 0),
            "servings": _num(raw.get("servings"), req.servings or 2),
            "difficulty": raw.get("difficulty") or req.difficulty or "Medium",
            "cuisine": raw.get("cuisine") or req.cuisine or "",
            "calories": _num(raw.get("calories")),
            "nutrition": raw.get("nutrition") or None,
            "image_url": None,
        }
