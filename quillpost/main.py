"""Quillpost API - FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from quillpost.api.v1.api import api_router
from quillpost.core.config import settings
from quillpost.core.logger import logger, setup_logging
from quillpost.core.metrics import PrometheusMetrics, metrics_endpoint, record_request_metrics
from quillpost.core.middleware import UploadSizeLimitMiddleware, log_requests
from quillpost.db.session import engine, get_db
from quillpost.db.timeouts import bounded_quick


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("database_ok")
    except (SQLAlchemyError, OSError) as exc:
        logger.bind(error=str(exc)).warning("database_unavailable")
    logger.bind(api=settings.SITE_API_PREFIX, docs="/docs").info("startup")
    yield
    logger.info("shutdown")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.bind(method=request.method, path=request.url.path).opt(exception=exc).error("database_error")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def create_app(metrics: PrometheusMetrics | None = None) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.metrics = metrics or PrometheusMetrics()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # last registered runs first
    app.add_middleware(UploadSizeLimitMiddleware)
    app.middleware("http")(record_request_metrics)
    app.middleware("http")(log_requests)

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    app.include_router(api_router, prefix="/api")
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/ready")
    async def ready(db: AsyncSession = Depends(get_db)):
        """Health check including DB."""
        try:
            await bounded_quick(db.execute(text("SELECT 1")))
        except SQLAlchemyError as exc:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "error", "database": str(exc)},
            )
        return {"status": "ok", "database": "connected"}

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    return app


app = create_app()
