# ---------------------------------------------------------
# atelier_api/main.py
# Atelier - Office Workflow Backend
#
# Run: uvicorn atelier_api.main:app --reload (from repo root)
#
# - FastAPI + SQLite
# - /workflow-status : office board columns (ordered, unique names)
# - /tasks           : tasks, column moves, grouped board
# - /auth/me         : resolved principal
# ---------------------------------------------------------

from __future__ import annotations

from typing import Dict

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from atelier_api.auth_context import require_principal
from atelier_api.config import CORS_ORIGINS, IS_DEV, IS_PROD
from atelier_api.db import init_db
from atelier_api.errors import AtelierError
from atelier_api.models import Principal
from atelier_api.routes_tasks import router as tasks_router
from atelier_api.routes_workflow_status import router as workflow_status_router


# ---------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------
app = FastAPI(title="Atelier Backend", version="0.1")

# CORS configuration from config module
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if IS_PROD else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    init_db()


# ---------------------------------------------------------
# Error rendering
# ---------------------------------------------------------
@app.exception_handler(AtelierError)
async def atelier_error_handler(request: Request, exc: AtelierError) -> JSONResponse:
    if IS_DEV:
        print(f"[API] {request.method} {request.url.path} -> {exc.status_code} {exc.reason}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "reason": exc.reason},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{field}: {message}" if field else message
    if IS_DEV:
        print(f"[API] {request.method} {request.url.path} -> 400 ValidationFailure: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail, "reason": "ValidationFailure"})


# ---------------------------------------------------------
# Routes
# ---------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/auth/me", response_model=Principal)
def me(principal: Principal = Depends(require_principal)) -> Principal:
    return principal


app.include_router(workflow_status_router)
app.include_router(tasks_router)
