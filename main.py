from __future__ import annotations

import logging
from typing import Any, Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo import MongoClient
from pymongo.database import Database

load_dotenv()
from recipe_share.core.config import Settings

from recipe_share.api.errors import install_error_handlers
from recipe_share.api.routes import router
from recipe_share.application.auth import FederatedSignIn, ResolveSession, SignIn, SignOut, SignUp
from recipe_share.application.recipe_book import GeneratedRecipeBook, RecipeBook, ShareToCommunity
from recipe_share.application.usecases import CommunityRecipes, GeneratedRecipes, RecipeComments, RecipeLikes
from recipe_share.infrastructure.mongo_repositories import MongoStore
from recipe_share.infrastructure.security import GoogleIdentityVerifier, PasswordHasher, TokenService
from recipe_share.services.recipe_generator import RecipeGenerator

log = logging.getLogger("app")


def wire(
    app: FastAPI,
    db: Database,
    settings: Settings,
    identity_verifier: Any = None,
    recipe_generator: Any = None,
) -> None:
    store = MongoStore(db)
    store.ensure_indexes()

    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    tokens = TokenService(settings.jwt_secret, expire_days=settings.jwt_expire_days)
    verifier = identity_verifier or GoogleIdentityVerifier(settings.google_client_id)
    generator = recipe_generator or RecipeGenerator(
        api_key=settings.ai_api_key,
        api_url=settings.ai_api_url,
        model=settings.ai_model,
        timeout_s=settings.ai_timeout_s,
    )

    community = CommunityRecipes(store.recipes, store.recipe_books)

    # DI for routes.py
    app.state.store = store
    app.state.sign_up = SignUp(store.users, hasher, tokens)
    app.state.sign_in = SignIn(store.users, hasher, tokens)
    app.state.federated_sign_in = FederatedSignIn(store.users, verifier, tokens)
    app.state.resolve_session = ResolveSession(store.users, tokens, store.revoked_tokens)
    app.state.sign_out = SignOut(tokens, store.revoked_tokens)

    app.state.community_recipes = community
    app.state.generated_recipes = GeneratedRecipes(store.generated_recipes, store.generated_recipe_books)
    app.state.recipe_likes = RecipeLikes(store.recipe_likes, store.recipes)
    app.state.recipe_comments = RecipeComments(store.recipe_comments, store.recipes)
    app.state.recipe_book = RecipeBook(store.recipe_books, store.recipes)
    app.state.generated_recipe_book = GeneratedRecipeBook(store.generated_recipe_books, store.generated_recipes)
    app.state.share_to_community = ShareToCommunity(community, store.recipes, store.generated_recipes)
    app.state.recipe_generator = generator


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[Database] = None,
    identity_verifier: Any = None,
    recipe_generator: Any = None,
) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(title="Recipe Share API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)
    app.include_router(router)

    state = {"client": None}

    @app.on_event("startup")
    def on_startup() -> None:
        database = db
        if database is None:
            state["client"] = MongoClient(settings.mongo_uri, serverSelectionTimeoutMS=3000)
            database = state["client"][settings.mongo_db]
        wire(app, database, settings, identity_verifier, recipe_generator)
        log.info("Startup complete")

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        if state["client"] is not None:
            state["client"].close()

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
