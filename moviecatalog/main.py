from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dotenv import load_dotenv
from moviecatalog.routes import auth, movies, reviews, user, admin
from moviecatalog.services.background_jobs import BackgroundJobService
from moviecatalog.services.session_store import SessionStore
from moviecatalog.utils.errors import AppError, Internal
from moviecatalog.utils.responses import error_body
import os
import logging

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events

    Startup:
    - Create the in-memory session store for this app instance
    - Start the session reaper

    Shutdown:
    - Stop background jobs gracefully (sessions are discarded)
    """
    # Startup
    logger.info("=" * 60)
    logger.info("Movie Catalog API Starting...")
    logger.info(f"   Environment: {os.getenv('ENVIRONMENT', 'development')}")
    logger.info("=" * 60)

    app.state.session_store = SessionStore()
    app.state.background_jobs = BackgroundJobService(app.state.session_store)

    try:
        app.state.background_jobs.start()
    except Exception as e:
        logger.error(f"Failed to start background jobs: {str(e)}")

    yield

    # Shutdown
    logger.info("=" * 60)
    logger.info("Movie Catalog API Shutting Down...")
    try:
        app.state.background_jobs.shutdown()
    except Exception as e:
        logger.error(f"Error stopping background jobs: {str(e)}")
    logger.info(f"   Discarded {len(app.state.session_store)} session(s)")
    logger.info("=" * 60)


# Create FastAPI app with lifespan handler
app = FastAPI(
    title="Movie Catalog API",
    description="Movie catalog with reviews, moderation and an admin dashboard",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# Security Configuration
# ============================================

# CORS - Whitelist allowed origins; credentials are needed for the session cookie
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
]
if production_url := os.getenv("FRONTEND_URL"):
    allowed_origins.append(production_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# ============================================
# Exception Handlers - every error uses the {success: false, error} envelope
# ============================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """Store failures are not retried; they surface as Internal (500)"""
    logger.error(f"Database error on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    error = Internal("Database error")
    return JSONResponse(status_code=error.status_code, content=error_body(error.message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are InvalidArgument (400)"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=error_body(message))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all: log with traceback, answer with a generic 500"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)

    # XSS Protection & Clickjacking
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    # Content Security Policy, relaxed for the Swagger UI assets
    response.headers["Content-Security-Policy"] = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' https://fastapi.tiangolo.com data: https:;"
    )

    return response

# Trusted Hosts - Production only
if os.getenv("ENVIRONMENT") == "production":
    if trusted_hosts := [h for h in os.getenv("TRUSTED_HOSTS", "").split(",") if h]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)

# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """Basic health check"""
    return {
        "success": True,
        "data": {
            "message": "Movie Catalog API",
            "version": API_VERSION,
            "status": "healthy",
            "docs": "/docs"
        }
    }


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Detailed health check for monitoring"""
    store = getattr(request.app.state, "session_store", None)
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "api_version": API_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "active_sessions": len(store) if store is not None else 0
        }
    }

app.include_router(auth.router)
app.include_router(movies.router)
app.include_router(reviews.router)
app.include_router(user.router)
app.include_router(admin.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
