# recipe_share/domain/errors.py
from __future__ import annotations

from typing import Any, Dict, Optional


class RecipeShareError(Exception):
    """Base for every failure the API reports to callers."""
    status_code: int = 500
    code: str = "InternalError"
    duplicate: bool = False
    default_message: str = "Request failed"

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details or {}


class NotFound(RecipeShareError, LookupError):
    status_code = 404
    code = "NotFound"
    default_message = "Not found"


class Forbidden(RecipeShareError):
    status_code = 403
    code = "Forbidden"
    default_message = "Not authorized"


class DuplicateEmail(RecipeShareError):
    status_code = 409
    code = "DuplicateEmail"
    duplicate = True
    default_message = "Email already registered"


class AlreadyInBook(RecipeShareError):
    status_code = 409
    code = "AlreadyInBook"
    duplicate = True
    default_message = "Recipe already in book"


class AlreadyShared(RecipeShareError):
    status_code = 409
    code = "AlreadyShared"
    duplicate = True
    default_message = "Recipe already shared"


class InvalidCredentials(RecipeShareError):
    status_code = 401
    code = "InvalidCredentials"
    default_message = "Invalid credentials"


class InvalidToken(RecipeShareError):
    status_code = 401
    code = "InvalidToken"
    default_message = "Invalid or expired token"


class ValidationError(RecipeShareError, ValueError):
    status_code = 400
    code = "ValidationError"
    default_message = "Invalid request"


class UpstreamError(RecipeShareError):
    status_code = 502
    code = "UpstreamError"
    default_message = "Upstream service failed, please try again"
