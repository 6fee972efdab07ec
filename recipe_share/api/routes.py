# recipe_share/api/routes.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import anyio
from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from recipe_share.api.schemas import (
    CommentIn,
    CommentPatch,
    FederatedSignInRequest,
    GeneratedRecipeBookIn,
    GenerateRecipeRequest,
    LikeIn,
    LikePatch,
    RecipeBookIn,
    RecipeIn,
    RecipePatch,
    ShareRequest,
    SignInRequest,
    SignUpRequest,
)
from recipe_share.domain.entities import RecipeRef, User
from recipe_share.domain.errors import InvalidToken
from recipe_share.services.recipe_generator import GenerationRequest

log = logging.getLogger("api.routes")
router = APIRouter()

_bearer = HTTPBearer(auto_error=False)


# -------------------------
# Dependencies via app.state
# -------------------------
def _from_state(request: Request, name: str) -> Any:
    obj = getattr(request.app.state, name, None)
    if obj is None:
        raise RuntimeError(f"{name} not initialized. Check app startup wiring.")
    return obj


def bearer_token(creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer)) -> Optional[str]:
    return creds.credentials if creds else None


def current_user(request: Request, token: Optional[str] = Depends(bearer_token)) -> User:
    return _from_state(request, "resolve_session")(token)


def optional_user(request: Request, token: Optional[str] = Depends(bearer_token)) -> Optional[User]:
    if not token:
        return None
    try:
        return _from_state(request, "resolve_session")(token)
    except InvalidToken:
        # public reads fall back to anonymous
        return None


def _svc(name: str):
    def dep(request: Request) -> Any:
        return _from_state(request, name)
    return dep


def _dump(items: List[Any]) -> List[Dict[str, Any]]:
    return [x.to_dict() for x in items]


# -------------------------
# health
# -------------------------
@router.get("/health")
def health(store=Depends(_svc("store"))) -> Dict[str, str]:
    store.ping()
    return {"status": "ok"}


# -------------------------
# /auth
# -------------------------
@router.post("/auth/signup", status_code=201)
def sign_up(req: SignUpRequest, uc=Depends(_svc("sign_up"))) -> Dict[str, Any]:
    return uc(req.email, req.password, req.full_name).to_dict()


@router.post("/auth/signin")
def sign_in(req: SignInRequest, uc=Depends(_svc("sign_in"))) -> Dict[str, Any]:
    return uc(req.email, req.password).to_dict()


@router.post("/auth/google")
def sign_in_federated(req: FederatedSignInRequest, uc=Depends(_svc("federated_sign_in"))) -> Dict[str, Any]:
    return uc(req.credential).to_dict()


@router.get("/auth/session")
def session(user: User = Depends(current_user)) -> Dict[str, Any]:
    return {"user": user.to_public()}


@router.post("/auth/signout")
def sign_out(token: Optional[str] = Depends(bearer_token), uc=Depends(_svc("sign_out"))) -> Dict[str, str]:
    uc(token)
    return {"message": "Signed out successfully"}


# -------------------------
# /recipes (public read)
# -------------------------
@router.get("/recipes")
def list_recipes(svc=Depends(_svc("community_recipes"))) -> List[Dict[str, Any]]:
    return _dump(svc.list())


@router.post("/recipes", status_code=201)
def create_recipe(req: RecipeIn, user: User = Depends(current_user), svc=Depends(_svc("community_recipes"))) -> Dict[str, Any]:
    return svc.create(req.model_dump(), user).to_dict()


@router.post("/recipes/share", status_code=201)
def share_recipe(req: ShareRequest, user: User = Depends(current_user), uc=Depends(_svc("share_to_community"))) -> Dict[str, Any]:
    return uc(RecipeRef(req.ref.kind, req.ref.id), user).to_dict()


@router.get("/recipes/{recipe_id}")
def get_recipe(recipe_id: str, user: Optional[User] = Depends(optional_user), svc=Depends(_svc("community_recipes"))) -> Dict[str, Any]:
    return svc.get(recipe_id, user).to_dict()


@router.put("/recipes/{recipe_id}")
def update_recipe(
    recipe_id: str,
    req: RecipePatch,
    user: User = Depends(current_user),
    svc=Depends(_svc("community_recipes")),
) -> Dict[str, Any]:
    return svc.update(recipe_id, req.model_dump(exclude_unset=True), user).to_dict()


@router.delete("/recipes/{recipe_id}")
def delete_recipe(recipe_id: str, user: User = Depends(current_user), svc=Depends(_svc("community_recipes"))) -> Dict[str, str]:
    svc.delete(recipe_id, user)
    return {"message": "Recipe deleted"}


# -------------------------
# /recipe_likes
# -------------------------
@router.get("/recipe_likes")
def list_likes(svc=Depends(_svc("recipe_likes"))) -> List[Dict[str, Any]]:
    return _dump(svc.list())


@router.post("/recipe_likes", status_code=201)
def vote(req: LikeIn, user: User = Depends(current_user), svc=Depends(_svc("recipe_likes"))) -> Dict[str, Any]:
    return svc.vote(req.recipe_id, req.is_like, user).to_dict()


@router.put("/recipe_likes/{like_id}")
def update_like(like_id: str, req: LikePatch, user: User = Depends(current_user), svc=Depends(_svc("recipe_likes"))) -> Dict[str, Any]:
    return svc.update(like_id, req.is_like, user).to_dict()


@router.delete("/recipe_likes/{like_id}")
def delete_like(like_id: str, user: User = Depends(current_user), svc=Depends(_svc("recipe_likes"))) -> Dict[str, str]:
    svc.delete(like_id, user)
    return {"message": "Like removed"}


# -------------------------
# /recipe_comments
# -------------------------
@router.get("/recipe_comments")
def list_comments(svc=Depends(_svc("recipe_comments"))) -> List[Dict[str, Any]]:
    return _dump(svc.list())


@router.post("/recipe_comments", status_code=201)
def create_comment(req: CommentIn, user: User = Depends(current_user), svc=Depends(_svc("recipe_comments"))) -> Dict[str, Any]:
    return svc.create(req.recipe_id, req.comment, user).to_dict()


@router.put("/recipe_comments/{comment_id}")
def update_comment(
    comment_id: str,
    req: CommentPatch,
    user: User = Depends(current_user),
    svc=Depends(_svc("recipe_comments")),
) -> Dict[str, Any]:
    return svc.update(comment_id, req.comment, user).to_dict()


@router.delete("/recipe_comments/{comment_id}")
def delete_comment(comment_id: str, user: User = Depends(current_user), svc=Depends(_svc("recipe_comments"))) -> Dict[str, str]:
    svc.delete(comment_id, user)
    return {"message": "Comment deleted"}


# -------------------------
# /recipe_books (private, clone-on-save)
# -------------------------
@router.get("/recipe_books")
def list_recipe_book(user: User = Depends(current_user), book=Depends(_svc("recipe_book"))) -> List[Dict[str, Any]]:
    return _dump(book.list(user))


@router.post("/recipe_books", status_code=201)
def save_to_book(req: RecipeBookIn, user: User = Depends(current_user), book=Depends(_svc("recipe_book"))) -> Dict[str, Any]:
    return book.save(req.recipe_id, user).to_dict()


@router.delete("/recipe_books/{entry_id}")
def remove_from_book(entry_id: str, user: User = Depends(current_user), book=Depends(_svc("recipe_book"))) -> Dict[str, str]:
    book.remove(entry_id, user)
    return {"message": "Removed from recipe book"}


# -------------------------
# /generated_recipes (private)
# -------------------------
@router.get("/generated_recipes")
def list_generated(user: User = Depends(current_user), svc=Depends(_svc("generated_recipes"))) -> List[Dict[str, Any]]:
    return _dump(svc.list(user))


@router.post("/generated_recipes", status_code=201)
def create_generated(req: RecipeIn, user: User = Depends(current_user), svc=Depends(_svc("generated_recipes"))) -> Dict[str, Any]:
    return svc.create(req.model_dump(), user).to_dict()


@router.get("/generated_recipes/{recipe_id}")
def get_generated(recipe_id: str, user: User = Depends(current_user), svc=Depends(_svc("generated_recipes"))) -> Dict[str, Any]:
    return svc.get(recipe_id, user).to_dict()


@router.put("/generated_recipes/{recipe_id}")
def update_generated(
    recipe_id: str,
    req: RecipePatch,
    user: User = Depends(current_user),
    svc=Depends(_svc("generated_recipes")),
) -> Dict[str, Any]:
    return svc.update(recipe_id, req.model_dump(exclude_unset=True), user).to_dict()


@router.delete("/generated_recipes/{recipe_id}")
def delete_generated(recipe_id: str, user: User = Depends(current_user), svc=Depends(_svc("generated_recipes"))) -> Dict[str, str]:
    svc.delete(recipe_id, user)
    return {"message": "Recipe deleted"}


# -------------------------
# /generated_recipe_books (private, link-only)
# -------------------------
@router.get("/generated_recipe_books")
def list_generated_book(user: User = Depends(current_user), book=Depends(_svc("generated_recipe_book"))) -> List[Dict[str, Any]]:
    return _dump(book.list(user))


@router.post("/generated_recipe_books", status_code=201)
def save_generated_to_book(
    req: GeneratedRecipeBookIn,
    user: User = Depends(current_user),
    book=Depends(_svc("generated_recipe_book")),
) -> Dict[str, Any]:
    return book.save(req.generated_recipe_id, user).to_dict()


@router.delete("/generated_recipe_books/{entry_id}")
def remove_generated_from_book(entry_id: str, user: User = Depends(current_user), book=Depends(_svc("generated_recipe_book"))) -> Dict[str, str]:
    book.remove(entry_id, user)
    return {"message": "Removed from recipe book"}


# -------------------------
# /generate-recipe (AI collaborator, does not store)
# -------------------------
@router.post("/generate-recipe")
async def generate_recipe(
    req: GenerateRecipeRequest,
    user: User = Depends(current_user),
    generator=Depends(_svc("recipe_generator")),
) -> Dict[str, Any]:
    gen_req = GenerationRequest(
        ingredients=list(req.ingredients),
        cuisine=req.cuisine,
        servings=req.servings,
        difficulty=req.difficulty,
        max_calories=req.max_calories,
    )
    # blocking HTTP calls to the provider; keep the event loop free
    result = await anyio.to_thread.run_sync(generator.generate, gen_req)
    log.info("Generated %d recipe(s) for %s", len(result.recipes), user.id)
    return result.to_dict()
