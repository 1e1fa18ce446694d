# main.py - Taskflow API application
# - Request ids echoed on every response and in the access log
# - Domain errors rendered as {"detail", "request_id"} JSON
# - Health endpoint pings the database

import os
import json
import uuid
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text

from database import engine, init_db, close_db
from errors import TaskflowError, StoreFailure

VERSION = "1.0.0"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:4200").split(",") if o.strip()]

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger("taskflow")


def _check_startup_config() -> bool:
    """Log a warning for each missing or weak setting"""
    problems = []
    if len(os.getenv("JWT_SECRET_KEY", "")) < 32:
        problems.append("JWT_SECRET_KEY is not set or shorter than 32 characters")
    if "DATABASE_URL" not in os.environ:
        problems.append("DATABASE_URL is not set; using the local PostgreSQL default")
    if ENVIRONMENT == "production" and "*" in CORS_ORIGINS:
        problems.append("CORS_ORIGINS allows any origin in production")

    for problem in problems:
        logger.warning(problem)
    return not problems


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Taskflow v{VERSION} starting ({ENVIRONMENT})")
    _check_startup_config()
    await init_db()
    yield
    await close_db()
    logger.info("Taskflow stopped")


app = FastAPI(
    title="Taskflow",
    description="Projects, tasks and a per-task activity history",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID", "X-Correlation-ID"],
    expose_headers=["X-Request-ID", "X-Correlation-ID"],
)


# ============================================================
# MIDDLEWARE
# ============================================================

@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Assign a request id, time the call and add hardening headers"""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    started = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - started

    response.headers.update({
        "X-Request-ID": request_id,
        "X-Correlation-ID": request.headers.get("X-Correlation-ID", request_id),
        "X-Response-Time": f"{elapsed:.4f}s",
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
    })
    logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed * 1000:.1f}ms rid={request_id[:8]}")
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

def _error_response(request: Request, status_code: int, detail, **extra) -> JSONResponse:
    content = {"detail": detail, "request_id": getattr(request.state, "request_id", None)}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


def _jsonable_input(value):
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


@app.exception_handler(TaskflowError)
async def taskflow_error_handler(request: Request, exc: TaskflowError):
    if isinstance(exc, StoreFailure):
        logger.error(f"Store failure on {request.url.path}: {exc.message} ({exc.cause})")
        return _error_response(request, exc.status_code, exc.message, error=exc.cause)
    return _error_response(request, exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # pydantic may put exception objects in ctx/input; keep only JSON-safe parts
    errors = [
        {
            "type": str(err.get("type", "unknown")),
            "loc": list(err.get("loc", [])),
            "msg": str(err.get("msg", "")),
            **({"input": _jsonable_input(err["input"])} if "input" in err else {}),
        }
        for err in exc.errors()
    ]
    return _error_response(request, 422, errors)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error_response(request, 500, "Internal server error")


# ============================================================
# ROUTERS
# ============================================================

from routers import auth, users, projects, tasks, search

for module in (auth, users, projects, tasks, search):
    app.include_router(module.router)


# ============================================================
# SERVICE INFO
# ============================================================

@app.get("/health")
async def health_check():
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        logger.warning(f"Health check could not reach the database: {e}")
        database = "unreachable"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "version": VERSION,
        "environment": ENVIRONMENT,
        "database": database,
    }


@app.get("/")
async def root():
    return {"name": "Taskflow", "version": VERSION, "docs": "/docs", "health": "/health"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8000)),
        reload=ENVIRONMENT == "development",
        workers=int(os.getenv("WORKERS", 1)),
    )
