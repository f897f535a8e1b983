"""
Assessment Workflow Service - Main Application
==============================================

FastAPI application for assessment and response workflows, membership
administration and the audit trail.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.assessment_workflow.errors import WorkflowError
from services.assessment_workflow.routes import organizations, responses, workflow
from shared.config import settings
from shared.database.postgres import PostgresClient
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="assessment-workflow",
    audit_log_path=settings.audit.log_path,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "assessment_workflow_starting",
        environment=settings.environment.value,
        port=settings.ports.assessment_workflow,
        master_organization=settings.organization.master_name,
    )

    try:
        PostgresClient.get_engine()
        logger.info("postgres_connected")
    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    logger.info("assessment_workflow_shutting_down")
    await PostgresClient.close()


app = FastAPI(
    title="Attest Assessment Workflow Service",
    description="Assessment workflows, authorization and audit trail",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Service health check."""
    components: dict[str, dict[str, Any]] = {
        "postgres": await PostgresClient.health_check(),
    }
    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="assessment-workflow",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Attest Assessment Workflow Service",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(workflow.router, prefix="/api/v1", tags=["Workflow"])
app.include_router(responses.router, prefix="/api/v1", tags=["Responses"])
app.include_router(organizations.router, prefix="/api/v1", tags=["Organizations"])


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(WorkflowError)
async def workflow_exception_handler(request: Request, exc: WorkflowError) -> JSONResponse:
    """Map typed workflow failures to their HTTP status."""
    logger.info(
        "workflow_error",
        status_code=exc.status_code,
        error_code=exc.error_code,
        error=exc.message,
        path=request.url.path,
    )
    body = ErrorResponse(error=exc.message, error_code=exc.error_code, details=exc.details())
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code,
        },
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "Internal server error",
            "status_code": 500,
        },
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.assessment_workflow.main:app",
        host="0.0.0.0",
        port=settings.ports.assessment_workflow,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
