# deploy_console/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from deploy_console.api.dependencies import get_engine, shutdown_dependencies
from deploy_console.api.middleware import (
    AccessLogMiddleware,
    CorrelationIdMiddleware,
    OperatorContextMiddleware,
)
from deploy_console.api.routers import apps, health, oplog
from deploy_console.application.exceptions import ApplicationError
from deploy_console.config.logging import configure_logging
from deploy_console.config.settings import get_settings
from deploy_console.domain.exceptions import DomainError, DomainValidationError
from deploy_console.governance.exceptions import GovernanceError
from deploy_console.infrastructure.database.session import create_schema

settings = get_settings()
configure_logging(settings.log_level, settings.oplog_log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_schema:
        await create_schema(get_engine())
    yield
    await shutdown_dependencies()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> OperatorContext -> AccessLog.
app.add_middleware(AccessLogMiddleware)
app.add_middleware(OperatorContextMiddleware)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(DomainValidationError)
async def domain_validation_error_handler(request, exc: DomainValidationError):
    return JSONResponse(status_code=422, content={"detail": exc.message})


@app.exception_handler(DomainError)
async def domain_error_handler(request, exc: DomainError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(GovernanceError)
async def governance_error_handler(request, exc: GovernanceError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Routers: /health, /metrics, /api/app, /api/oplog
app.include_router(health.router)
app.include_router(apps.router, prefix="/api/app")
app.include_router(oplog.router, prefix="/api/oplog")
