from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from pydantic import ValidationError
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dotenv import load_dotenv
from app.routes import auth, games, admin, ratings, comments, user_games
from app.middleware.security import SecurityHeadersMiddleware, RateLimitMiddleware, RATE_LIMIT_ENABLED
from app.services.background_jobs import MaintenanceJobs
from app.stores.context import StoreContext
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


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events

    Startup:
    - Connect to every store (unless a StoreContext was injected)
    - Create schema, constraints and indexes
    - Sync game nodes into the graph, start maintenance jobs

    Shutdown:
    - Stop maintenance jobs gracefully
    - Close the store clients this lifespan opened
    """
    # Startup
    logger.info("=" * 60)
    logger.info("GameShelf API Starting...")
    logger.info(f"   Environment: {os.getenv('ENVIRONMENT', 'development')}")
    logger.info(f"   CORS Origins: {len(allowed_origins)} configured")
    logger.info("=" * 60)

    stores = getattr(app.state, "stores", None)
    owns_stores = stores is None
    if owns_stores:
        stores = StoreContext.from_env()
        stores.connect()
        app.state.stores = stores
    stores.init_schema()

    jobs = MaintenanceJobs(stores)
    app.state.jobs = jobs
    if os.getenv("SYNC_GRAPH_ON_STARTUP", "true").lower() == "true":
        jobs.run_job("sync_game_nodes")

    try:
        jobs.start()
    except Exception as e:
        logger.error(f"Failed to start background jobs: {str(e)}")

    yield

    # Shutdown
    logger.info("=" * 60)
    logger.info("GameShelf API Shutting Down...")
    try:
        jobs.shutdown()
    except Exception as e:
        logger.error(f"Error stopping background jobs: {str(e)}")
    if owns_stores:
        stores.close()
        app.state.stores = None
        logger.info("   Store connections closed")
    logger.info("=" * 60)


# Create FastAPI app with lifespan handler
app = FastAPI(
    title="GameShelf API",
    description="Video game catalogue with ratings, comments and co-rating recommendations",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# Security Configuration
# ============================================

# CORS - Whitelist allowed origins
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:5173",
    "http://localhost:5174",
]
if production_url := os.getenv("FRONTEND_URL"):
    allowed_origins.append(production_url)

# Added first so it runs innermost; 429 responses still pass through CORS
app.add_middleware(RateLimitMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# Trusted Hosts - Production only
if os.getenv("ENVIRONMENT") == "production":
    if trusted_hosts := [host for host in os.getenv("TRUSTED_HOSTS", "").split(",") if host]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# ============================================
# Exception Handlers - every error body is {"detail": "<message>"}
# ============================================

def _error_response(request: Request, status_code: int, detail: str, headers: dict = None) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content={"detail": detail}, headers=headers)

    # The catch-all handler runs outside CORSMiddleware, so add the headers here
    origin = request.headers.get("origin")
    if origin in allowed_origins:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Expose-Headers"] = "*"

    return response


def _first_error_message(errors) -> str:
    if not errors:
        return "Invalid request"
    error = errors[0]
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return f"{'.'.join(loc)}: {message}" if loc else message


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(request, exc.status_code, exc.detail, getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error_response(request, 400, _first_error_message(exc.errors()))


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError):
    """Schemas built inside handlers (e.g. the search query) fail the same way"""
    return _error_response(request, 400, _first_error_message(exc.errors()))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    return _error_response(request, 500, "Internal server error")

# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """Basic health check"""
    return {
        "message": "GameShelf API",
        "version": "1.0.0",
        "status": "healthy",
        "docs": "/docs"
    }

@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check for monitoring"""
    return {
        "status": "healthy",
        "api_version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "security": {
            "rate_limiting": "enabled" if RATE_LIMIT_ENABLED else "disabled",
            "security_headers": "enabled"
        }
    }

# Core routes
app.include_router(auth.router)
app.include_router(games.router)
app.include_router(ratings.router)
app.include_router(comments.router)
app.include_router(user_games.router)
app.include_router(admin.router)  # Catalogue management + maintenance jobs

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
