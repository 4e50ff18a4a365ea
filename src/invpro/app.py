# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict

from fastapi import Body, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from invpro.auth.session import COOKIE_NAME, SessionAuthority, sign_token
from invpro.auth.users import USERS_PATH, IdentityStore
from invpro.core.stock import summarize
from invpro.core.validation import from_wire
from invpro.errors import (
    DuplicateIdentity,
    DuplicateSku,
    InvalidCredentials,
    Unauthorized,
    ValidationError,
)
from invpro.permissions import (
    AccessGate,
    CurrentUser,
    cookie_settings,
    current_user_optional,
    require_user,
    session_token_from_request,
)
from invpro.services.demo_data import seed_demo
from invpro.services.inventory_service import InventoryStore

logger = logging.getLogger(__name__)

SEED_DEMO = os.getenv("INVPRO_SEED_DEMO", "false").lower() in {"1", "true", "yes", "y"}

# Process-wide components; everything lives in memory for the lifetime of the app
IDENTITY = IdentityStore()
SESSIONS = SessionAuthority()
INVENTORY = InventoryStore()
GATE = AccessGate(IDENTITY, SESSIONS)


def _bootstrap() -> None:
    if USERS_PATH:
        IDENTITY.load_users_file(Path(USERS_PATH).resolve())
    if SEED_DEMO:
        seed_demo(IDENTITY, INVENTORY)


_bootstrap()

app = FastAPI(title="invpro")
app.state.gate = GATE


@app.middleware("http")
async def _auth_middleware(request: Request, call_next):
    request.app.state.gate.sessions.purge_if_due()
    request.state.user = current_user_optional(request)
    return await call_next(request)


# ------------------ Error mapping ------------------


def _message(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, **extra})


@app.exception_handler(Unauthorized)
def _unauthorized(request: Request, exc: Unauthorized):
    return _message(401, exc.message)


@app.exception_handler(InvalidCredentials)
def _invalid_credentials(request: Request, exc: InvalidCredentials):
    return _message(401, exc.message)


@app.exception_handler(DuplicateIdentity)
def _duplicate_identity(request: Request, exc: DuplicateIdentity):
    return _message(400, exc.message)


@app.exception_handler(DuplicateSku)
def _duplicate_sku(request: Request, exc: DuplicateSku):
    return _message(400, exc.message)


@app.exception_handler(ValidationError)
def _validation_error(request: Request, exc: ValidationError):
    return _message(400, exc.message, errors=exc.errors)


def _not_found() -> JSONResponse:
    return _message(404, "Product not found")


def _with_session_cookie(resp: Response, token: str) -> Response:
    resp.set_cookie(
        COOKIE_NAME,
        sign_token(token),
        max_age=int(GATE.sessions.ttl.total_seconds()),
        **cookie_settings(),
    )
    return resp


def _credentials(payload: Dict[str, Any]) -> tuple[str, str]:
    username = payload.get("username")
    password = payload.get("password")
    errors = []
    if not isinstance(username, str) or not username.strip():
        errors.append({"field": "username", "message": "is required"})
    if not isinstance(password, str) or not password:
        errors.append({"field": "password", "message": "is required"})
    if errors:
        raise ValidationError("Invalid credentials data", errors=errors)
    return username, password


# ------------------ Auth routes ------------------


@app.post("/api/register")
def register(payload: Dict[str, Any] = Body(...)):
    username, password = _credentials(payload)
    user, session = GATE.register(username, password)
    return _with_session_cookie(JSONResponse(status_code=201, content=user.to_public()), session.token)


@app.post("/api/login")
def login(payload: Dict[str, Any] = Body(...)):
    username, password = _credentials(payload)
    session = GATE.authenticate(username, password)
    user = IDENTITY.get(session.user_id)
    return _with_session_cookie(JSONResponse(content=user.to_public()), session.token)


@app.post("/api/logout")
def logout(request: Request):
    GATE.logout(session_token_from_request(request))
    resp = Response(status_code=200)
    resp.delete_cookie(COOKIE_NAME)
    return resp


@app.get("/api/user")
def current_user(user: CurrentUser = Depends(require_user)):
    return {"id": user.id, "username": user.username}


# ------------------ Product routes ------------------


@app.get("/api/products")
def list_products(user: CurrentUser = Depends(require_user)):
    return [p.to_dict() for p in INVENTORY.list(user.id)]


@app.post("/api/products")
def create_product(payload: Dict[str, Any] = Body(...), user: CurrentUser = Depends(require_user)):
    product = INVENTORY.create(user.id, from_wire(payload))
    return JSONResponse(status_code=201, content=product.to_dict())


@app.get("/api/products/{product_id}")
def get_product(product_id: int, user: CurrentUser = Depends(require_user)):
    product = INVENTORY.get(product_id, user.id)
    if product is None:
        return _not_found()
    return product.to_dict()


@app.put("/api/products/{product_id}")
def update_product(
    product_id: int,
    payload: Dict[str, Any] = Body(...),
    user: CurrentUser = Depends(require_user),
):
    product = INVENTORY.update(product_id, user.id, from_wire(payload))
    if product is None:
        return _not_found()
    return product.to_dict()


@app.delete("/api/products/{product_id}")
def delete_product(product_id: int, user: CurrentUser = Depends(require_user)):
    if not INVENTORY.delete(product_id, user.id):
        return _not_found()
    return Response(status_code=204)


@app.get("/api/inventory/summary")
def inventory_summary(user: CurrentUser = Depends(require_user)):
    return summarize(INVENTORY.list(user.id)).to_dict()


@app.get("/healthz")
def healthz():
    return {"status": "ok"}
