from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn

from product_api.core.config import Settings
from product_api.core.database import build_engine, build_session_maker, create_db_and_tables, close_db
from product_api.core.exceptions import IndexInitError
from product_api.core.log_sink import ElasticsearchLogSink, build_log_sink
from product_api.core.logging import setup_logging
from product_api.middleware.logging_middleware import LoggingMiddleware
from product_api.controllers import product_controller
from product_api.dao.product_dao import ProductDAO
from product_api.services.product_service import ProductService

import structlog

logger = structlog.get_logger()


def create_app(settings: Optional[Settings] = None, log_sink: Optional[ElasticsearchLogSink] = None) -> FastAPI:
    """Build the application with every component wired from ``settings``.

    ``log_sink`` overrides the sink built from the Elasticsearch settings.
    """
    settings = settings or Settings()
    if log_sink is None:
        log_sink = build_log_sink(settings)
    setup_logging(settings, log_sink)

    engine = build_engine(settings)
    session_maker = build_session_maker(engine)
    product_dao = ProductDAO(session_maker)
    product_service = ProductService(product_dao, structlog.get_logger("product_api.services"))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if log_sink is not None:
            try:
                log_sink.start()
            except IndexInitError:
                # nothing can reach the index, so say it on the console only
                setup_logging(settings)
                logger.critical("Log index initialization failed", index=settings.log_index)
                raise

        logger.info("Application startup", environment=settings.environment)
        try:
            await create_db_and_tables(engine)
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error("Failed to initialize database", error=str(e))
            raise

        yield

        logger.info("Application shutdown")
        await close_db(engine)
        logger.info("Database connections closed")
        if log_sink is not None:
            log_sink.close()

    app = FastAPI(
        title="Product API",
        description="Product CRUD operations with structured logging",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/doc" if settings.environment == "local" else None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.product_service = product_service
    app.state.log_sink = log_sink

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Origin", "Content-Type", "Accept"],
    )
    app.add_middleware(LoggingMiddleware)

    app.include_router(product_controller.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        return {
            "message": "Product API is running",
            "version": "1.0.0",
            "environment": settings.environment,
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "environment": settings.environment,
            "log_sink": log_sink.state if log_sink is not None else "disabled",
        }

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled Exception",
            error=str(exc),
            path=request.url.path,
            method=request.method
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"}
        )

    return app


def main():
    settings = Settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_config=None
    )


if __name__ == "__main__":
    main()
