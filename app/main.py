"""Course File Server - FastAPI app entry point."""
import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.core.config import DEFAULT_SECRET_KEY, Settings, get_settings
from app.core.exceptions import AppError
from app.core.logging import configure_logging
from app.core.security import TokenIssuer
from app.db.base import Base
from app.db.session import build_engine, build_sessionmaker
from app.routers import api, auth, web
from app.services.ingestion import IngestionPipeline
from app.services.storage import (
    Category,
    CategoryRelocator,
    UploadStager,
    purge_staging_area,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    async with app.state.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    for category in Category:
        (settings.public_dir / category.value).mkdir(parents=True, exist_ok=True)
    removed = purge_staging_area(settings.temp_dir, settings.staging_grace_seconds)
    if removed:
        logger.warning("Removed %d leftover staged file(s) from %s", removed, settings.temp_dir)

    if settings.secret_key == DEFAULT_SECRET_KEY:
        logger.warning("SECRET_KEY is the built-in default; set it in the environment")

    logger.info("Upload directories ready under %s", settings.public_dir)
    yield
    await app.state.engine.dispose()


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, exc.response_key: exc.client_message},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Malformed request on %s %s: %s", request.method, request.url.path, exc.errors())
    prefix = request.app.state.settings.api_prefix
    file_paths = (f"{prefix}/upload", f"{prefix}/list-files")
    key = "error" if request.url.path.startswith(file_paths) else "message"
    return JSONResponse(status_code=400, content={"success": False, key: "Invalid request"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "message": "Something went wrong"})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        description="Category-partitioned file uploads with token auth",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Components are built once from settings and injected via app.state
    engine = build_engine(settings.database_url, debug=settings.debug)
    app.state.settings = settings
    app.state.engine = engine
    app.state.sessionmaker = build_sessionmaker(engine)
    app.state.token_issuer = TokenIssuer(
        settings.secret_key,
        algorithm=settings.algorithm,
        expire_hours=settings.access_token_expire_hours,
    )
    app.state.pipeline = IngestionPipeline(
        UploadStager(
            settings.temp_dir,
            settings.max_upload_bytes,
            settings.allowed_mime_types,
            category_dirs=[settings.public_dir / c.value for c in Category],
        ),
        CategoryRelocator(settings.public_dir),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        # unhandled errors surface as 500 from the outer error middleware
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, status_code, elapsed_ms)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Only category folders are served; the staging folder never is
    for category in Category:
        app.mount(
            f"/{category.value}",
            StaticFiles(directory=settings.public_dir / category.value, check_dir=False),
            name=f"files-{category.value}",
        )

    app.include_router(web.router)
    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(api.router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run("app.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
