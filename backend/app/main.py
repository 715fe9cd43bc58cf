from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from app.core.cache import TTLCache
from app.core.config import settings
from app.core.errors import (
    MissingDateRangeError,
    UnknownEventTypeError,
    UpstreamError,
    UpstreamParseError,
    UpstreamTimeoutError,
)
from app.api.api import api_router
from app.services.nasa_api import NasaClient
import httpx
import logging
import time

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One HTTP client and one cache per process, shared by every request
    http_client = httpx.AsyncClient(follow_redirects=True, timeout=settings.nasa_timeout_ms / 1000)
    app.state.started_at = time.monotonic()
    app.state.cache = TTLCache()
    app.state.nasa = NasaClient(http_client=http_client)
    logger.info(f"{settings.PROJECT_NAME} backend ready (NASA key: {'custom' if settings.NASA_KEY != 'DEMO_KEY' else 'DEMO_KEY'})")
    try:
        yield
    finally:
        await http_client.aclose()


def upstream_status(exc: UpstreamError) -> int:
    """HTTP status to answer with for a failed upstream call."""
    if isinstance(exc, UpstreamParseError):
        return 500
    if isinstance(exc, UpstreamTimeoutError):
        return 504
    if exc.is_client_error:
        return exc.status
    return 502


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        status = upstream_status(exc)
        logger.error(f"Upstream failure on {request.url.path}: {exc.message} -> {status}")
        return JSONResponse(status_code=status, content={"error": exc.message})

    @app.exception_handler(MissingDateRangeError)
    async def missing_dates_handler(request: Request, exc: MissingDateRangeError):
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(UnknownEventTypeError)
    async def unknown_type_handler(request: Request, exc: UnknownEventTypeError):
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request parameters", "detail": jsonable_errors(exc)},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(status_code=500, content={"error": str(exc) or "Internal error"})


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Aggregation and caching proxy over NASA DONKI, NeoWs and APOD.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": f"Welcome to {settings.PROJECT_NAME} API", "status": "active"}

    @app.get("/health")
    def health_check(request: Request):
        return {"ok": True, "uptime": round(time.monotonic() - request.app.state.started_at, 3)}

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, log_level=settings.LOG_LEVEL.lower())
