# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Form, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from loguru import logger

from jsonvault.auth.gate import AuthGate, Principal
from jsonvault.auth.session import SessionStore
from jsonvault.auth.users import UserStore
from jsonvault.config import Settings
from jsonvault.core.errors import (
    AuthFailure,
    PayloadTooLarge,
    StorageError,
    Unauthenticated,
    ValidationError,
)
from jsonvault.infra.db import Database
from jsonvault.permissions import current_user_optional, get_gate, require_api_user, require_user
from jsonvault.services.record_service import RecordStore

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _databases(settings: Settings) -> tuple[Database, Database]:
    users_db = Database(settings.credential_store_path)
    if settings.record_store_path.resolve() == settings.credential_store_path.resolve():
        return users_db, users_db
    return users_db, Database(settings.record_store_path)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    users_db, data_db = _databases(settings)
    users = UserStore(users_db)
    records = RecordStore(data_db)
    sessions = SessionStore(settings.session_secret, max_age=settings.session_max_age)
    gate = AuthGate(users, sessions, cookie_name=settings.cookie_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting jsonvault (users={}, data={}, origin={})",
            settings.credential_store_path,
            settings.record_store_path,
            settings.allowed_origin,
        )
        users_db.open()
        if data_db is not users_db:
            data_db.open()
        users.init_schema()
        records.init_schema()
        try:
            yield
        finally:
            data_db.close()
            users_db.close()
            logger.info("jsonvault stopped")

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings
    app.state.gate = gate
    app.state.records = records

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.allowed_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    _register_error_handlers(app)
    _register_routes(app)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PayloadTooLarge)
    async def _too_large(request: Request, exc: PayloadTooLarge):
        return JSONResponse({"error": str(exc)}, status_code=413)

    @app.exception_handler(ValidationError)
    async def _invalid(request: Request, exc: ValidationError):
        return JSONResponse({"error": str(exc)}, status_code=400)

    @app.exception_handler(Unauthenticated)
    async def _unauthenticated(request: Request, exc: Unauthenticated):
        return JSONResponse({"message": str(exc)}, status_code=401)

    @app.exception_handler(StorageError)
    async def _storage(request: Request, exc: StorageError):
        logger.error("{} {} failed: {}", request.method, request.url.path, exc)
        return JSONResponse({"error": "Storage error"}, status_code=500)


def _records(request: Request) -> RecordStore:
    return request.app.state.records


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the request body, stopping as soon as it passes `limit` bytes."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise PayloadTooLarge(f"Request body exceeds {limit} bytes")
    chunks = []
    total = 0
    async for chunk in request.stream():
        total += len(chunk)
        if total > limit:
            raise PayloadTooLarge(f"Request body exceeds {limit} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


def _reject_constant(name: str):
    raise ValidationError(f"{name} is not valid JSON")


def _parse_json(body: bytes):
    try:
        return json.loads(body, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        raise ValidationError("Request body must be valid JSON") from None


def _register_routes(app: FastAPI) -> None:
    @app.get("/login", response_class=HTMLResponse)
    def login_get(request: Request, error: str = ""):
        if current_user_optional(request):
            return RedirectResponse(url="/", status_code=303)
        return templates.TemplateResponse(
            request=request,
            name="login.html",
            context={"error": "Invalid username or password" if error else ""},
        )

    @app.post("/login")
    def login_post(
        request: Request,
        username: str = Form(""),
        password: str = Form(""),
    ):
        gate = get_gate(request)
        try:
            sess = gate.login(username, password)
        except AuthFailure:
            return RedirectResponse(url="/login?error=1", status_code=303)
        settings: Settings = request.app.state.settings
        resp = RedirectResponse(url="/", status_code=303)
        resp.set_cookie(settings.cookie_name, gate.cookie_value(sess), **settings.cookie_settings())
        return resp

    @app.get("/logout")
    def logout_get(request: Request):
        settings: Settings = request.app.state.settings
        get_gate(request).logout(request.cookies.get(settings.cookie_name, ""))
        resp = RedirectResponse(url="/login", status_code=303)
        resp.delete_cookie(
            settings.cookie_name,
            httponly=True,
            samesite="strict",
            secure=settings.cookie_secure,
        )
        return resp

    @app.get("/data")
    def data_get(request: Request, user: Principal = Depends(require_api_user)):
        data = _records(request).get()
        logger.debug("Sending {} item(s) to {}", len(data), user.username)
        return JSONResponse(data)

    @app.post("/data")
    async def data_post(request: Request, user: Principal = Depends(require_api_user)):
        limit = request.app.state.settings.max_body_bytes
        body = await _read_body(request, limit)
        payload = _parse_json(body)

        data = await run_in_threadpool(_records(request).put, payload)
        logger.info("{} replaced the document ({} item(s))", user.username, len(data))
        return JSONResponse({"message": "Data updated successfully"})

    @app.get("/")
    def home(user: Principal = Depends(require_user)):
        return FileResponse(str(BASE_DIR / "static" / "index.html"), media_type="text/html")
