import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from conduit.config import settings
from conduit.database import dispose_engine
from conduit.exceptions import ConduitError, ConnectionUnavailableError
from conduit.middleware import RequestLoggingMiddleware
from conduit.routers import articles, profiles, tags, users

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure the root logger once at startup from ``settings.LOG_LEVEL``."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # SQL echo is controlled by settings.DEBUG on the engine itself.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Conduit API starting (env=%s)", settings.APP_ENV)
    yield
    await dispose_engine()
    logger.info("Conduit API stopped")


app = FastAPI(
    title="Conduit API",
    description="Backend for a social blogging application",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers

def _error_response(exc: ConduitError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"errors": {"body": [exc.message]}},
    )


@app.exception_handler(ConduitError)
async def conduit_error_handler(request: Request, exc: ConduitError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.context)
    else:
        logger.debug("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.context)
    return _error_response(exc)


async def connection_error_handler(request: Request, exc: Exception):
    logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(ConnectionUnavailableError(context={"error": str(exc)}))


for _exc_class in (PoolTimeoutError, OperationalError, InterfaceError):
    app.add_exception_handler(_exc_class, connection_error_handler)


# Routers
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(articles.router)
app.include_router(tags.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
