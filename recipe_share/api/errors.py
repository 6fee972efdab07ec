# recipe_share/api/errors.py
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from recipe_share.domain.errors import RecipeShareError, ValidationError

log = logging.getLogger("api.errors")


def error_body(err: RecipeShareError) -> dict:
    body = {"error": err.message, "code": err.code}
    if err.duplicate:
        body["duplicate"] = True
    if err.details:
        body.update(err.details)
    return body


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RecipeShareError)
    async def _domain_error(request: Request, exc: RecipeShareError) -> JSONResponse:
        if exc.status_code >= 500:
            log.warning("%s %s failed: %s", request.method, request.url.path, exc.code)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = (exc.errors() or [{}])[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        msg = f"{field}: {first.get('msg', 'invalid value')}" if field else "Malformed request body"
        return JSONResponse(status_code=400, content=error_body(ValidationError(msg)))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        log.exception("Processing %s %s error", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "code": "InternalError"})
