from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from ..core.logging import setup_logging
from ..core.config import settings
from ..core.errors import ReconciliationPreconditionError
from .routers import compliance, documents, health, reconciliation

logger = setup_logging()
app = FastAPI(title="Document Compliance Pipeline")


# Add custom exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_errors(exc), "body": str(await request.body())},
    )


@app.exception_handler(ReconciliationPreconditionError)
async def precondition_exception_handler(request: Request, exc: ReconciliationPreconditionError):
    # Programmer error: reconciliation was reached without two completed documents
    logger.critical(f"Reconciliation precondition violated: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{k: v for k, v in err.items() if k in ("type", "loc", "msg")} for err in exc.errors()]


# Configure CORS to allow frontend access
# CORS_ORIGINS can be set in .env as comma-separated list
allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(compliance.router)
app.include_router(reconciliation.router)
app.include_router(documents.router)
