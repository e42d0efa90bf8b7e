"""
Main FastAPI Application
Entry point for the backend server
"""
import logging
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime

from app.config import settings
from app.errors import AppError
from app.log import setup_logging
from app.repositories.memory import memory_repositories
from app.repositories.mongo import connect_mongo, mongo_repositories

# Import routers
from app.api.deps import errors_from_validation
from app.api.routes import employees, attendance, payroll, expenses, reports, settings as settings_routes

logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Starting %s (%s)", settings.APP_NAME, settings.ENVIRONMENT)

    client = None
    if getattr(app.state, "repositories", None) is None:
        if settings.STORAGE_BACKEND == "memory":
            logger.warning("Using in-memory storage; data is lost on shutdown")
            app.state.repositories = memory_repositories()
        else:
            client = await connect_mongo(settings.MONGODB_URL, settings.MONGODB_DB_NAME)
            app.state.repositories = mongo_repositories()

    logger.info("Server running on %s:%s", settings.HOST, settings.PORT)

    yield

    # Shutdown
    logger.info("Shutting down")
    if client is not None:
        client.close()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Payroll and HR administration: employees, attendance, payroll, payslips and expenses",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": {
                "kind": "validation_error",
                "message": "Validation failed",
                "details": errors_from_validation(exc.errors()),
            },
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": {"kind": "internal_error", "message": "Server error", "details": []}},
    )


# Include routers
app.include_router(employees.router, prefix="/api/employees", tags=["Employees"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(payroll.router, prefix="/api/payroll", tags=["Payroll"])
app.include_router(expenses.router, prefix="/api/expenses", tags=["Expenses"])
app.include_router(reports.router, prefix="/api/reports", tags=["Reports"])
app.include_router(settings_routes.router, prefix="/api/settings", tags=["Settings"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Payroll Management System API",
        "version": settings.APP_VERSION,
        "docs": "/api/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "storage": settings.STORAGE_BACKEND,
        "timestamp": datetime.utcnow().isoformat()
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
