"""
Supplier Catalog Import API

Suppliers upload CSV price lists; each row is linked to a canonical
product by GTIN or by name and stored as a supplier item.

Run:
    uvicorn main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from config import settings, check_connection, DatabaseConnectionError
from exceptions import AppError
from routes.catalog_import import router as catalog_import_router, SupplierImportGuard
from services.catalog_import_service import create_catalog_import_service

logging.basicConfig(level=settings.log_level, format="%(message)s")

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer() if settings.is_production
            else structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

API_PREFIX = "/api/supplier-catalog"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the import pipeline once and share it across requests.

    A database outage is logged but does not stop startup: /health reports
    it as degraded and the import routes answer 503.
    """
    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug
    )

    db_status = check_connection()
    if db_status["status"] == "healthy":
        logger.info(
            "database_connected",
            products=db_status["products_count"],
            supplier_items=db_status["supplier_items_count"],
            import_jobs=db_status["import_jobs_count"]
        )
    else:
        logger.error("database_connection_failed", error=db_status.get("error"))

    try:
        import_service = create_catalog_import_service(settings)
    except DatabaseConnectionError as e:
        # Import routes answer 503 until the process is restarted
        logger.error("import_service_unavailable", error=str(e))
        import_service = None

    app.state.import_service = import_service
    app.state.job_service = import_service.jobs if import_service else None
    app.state.import_guard = SupplierImportGuard()

    if import_service is not None:
        logger.info(
            "import_service_ready",
            fuzzy_floor=settings.fuzzy_match_floor,
            review_threshold=settings.review_confidence_threshold,
            workers=settings.import_max_workers,
            enrichment=settings.gs1_configured and settings.auto_enrich
        )

    yield

    logger.info("application_shutting_down")


app = FastAPI(
    title="Supplier Catalog Import",
    description="Supplier catalog import and product matching",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog_import_router, prefix=API_PREFIX, tags=["Supplier Catalog"])


# ===================
# ROUTES
# ===================

@app.get("/health")
async def health_check():
    """Service and database status."""
    db_status = check_connection()

    return {
        "status": "healthy" if db_status["status"] == "healthy" else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "environment": settings.environment,
        "enrichment": settings.gs1_configured and settings.auto_enrich,
        "database": db_status
    }


@app.get("/")
async def root():
    return {
        "name": "Supplier Catalog Import API",
        "version": "0.1.0",
        "docs": "/docs" if settings.debug else "Disabled in production",
        "health": "/health",
        "endpoints": {
            "import": f"{API_PREFIX}/import",
            "imports": f"{API_PREFIX}/imports",
        }
    }


# ===================
# ERROR HANDLERS
# ===================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """AppErrors raised from dependencies, before a route body runs."""
    logger.warning(
        "app_error",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "details": str(exc) if settings.debug else None,
                "timestamp": datetime.utcnow().isoformat()
            }
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )
