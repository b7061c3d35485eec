"""
QueryGate — policy-enforced SQL access for agents.
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import health, database, tools
from api.dependencies import close_pool_handle, ensure_pool_handle, init_app_state
from config import settings
from core.errors import QueryGateError

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("querygate")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("QueryGate starting up…")
    init_app_state(app)
    if settings.EAGER_POOL_INIT:
        await ensure_pool_handle(app)
    else:
        logger.info("Pool will be initialized lazily.")
    yield
    logger.info("QueryGate shutting down; closing connection pool.")
    await close_pool_handle(app)


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="QueryGate — Policy-enforced SQL access for agents",
    description="Ad-hoc SQL execution and schema analysis for MariaDB/MySQL behind a DML/DDL permission policy.",
    version="1.0.0",
    lifespan=lifespan,
)
init_app_state(app)


# ── Errors ────────────────────────────────────────────────────────────────────
@app.exception_handler(QueryGateError)
async def query_gate_error_handler(request: Request, exc: QueryGateError):
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"type": type(exc).__name__, "message": str(exc)}},
    )


# ── CORS ──────────────────────────────────────────────────────────────────────
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(health.router,   prefix="/api")
app.include_router(database.router, prefix="/api")
app.include_router(tools.router,    prefix="/api")


def run() -> None:
    import uvicorn

    uvicorn.run("main:app", host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
