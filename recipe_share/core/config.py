# recipe_share/core/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

# Mongo settings
MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB: str = os.getenv("MONGO_DB", "recipe_finder")

# Auth
JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM: str = "HS256"
JWT_EXPIRE_DAYS: int = int(os.getenv("JWT_EXPIRE_DAYS", "7"))
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
GOOGLE_CLIENT_ID: str = os.getenv("GOOGLE_CLIENT_ID", "")

# AI recipe generation (OpenAI-compatible chat completions)
AI_API_KEY: str = os.getenv("AI_API_KEY", "")
AI_API_URL: str = os.getenv("AI_API_URL", "https://api.openai.com/v1/chat/completions")
AI_MODEL: str = os.getenv("AI_MODEL", "gpt-4o-mini")
AI_TIMEOUT_S: float = float(os.getenv("AI_TIMEOUT_S", "60"))

CORS_ORIGINS: List[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Collection names
USERS_COL = "users"
RECIPES_COL = "recipes"
GENERATED_RECIPES_COL = "generated_recipes"
RECIPE_BOOKS_COL = "recipe_books"
GENERATED_RECIPE_BOOKS_COL = "generated_recipe_books"
RECIPE_LIKES_COL = "recipe_likes"
RECIPE_COMMENTS_COL = "recipe_comments"
REVOKED_TOKENS_COL = "revoked_tokens"


@dataclass(frozen=True)
class Settings:
    mongo_uri: str = MONGO_URI
    mongo_db: str = MONGO_DB
    jwt_secret: str = JWT_SECRET
    jwt_expire_days: int = JWT_EXPIRE_DAYS
    bcrypt_rounds: int = BCRYPT_ROUNDS
    google_client_id: str = GOOGLE_CLIENT_ID
    ai_api_key: str = AI_API_KEY
    ai_api_url: str = AI_API_URL
    ai_model: str = AI_MODEL
    ai_timeout_s: float = AI_TIMEOUT_S
    cors_origins: List[str] = field(default_factory=lambda: list(CORS_ORIGINS))


# Global logging (module-level loggers inherit this)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
LOGGER = logging.getLogger("recipe_share")
