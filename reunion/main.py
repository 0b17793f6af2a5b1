"""Reunion Registration Web Application."""
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from reunion.collaborators import build_collaborators
from reunion.core.config import settings
from reunion.core.database import create_db_and_tables
from reunion.core.errors import ReunionError, Unauthorized, ValidationFailure
from reunion.core.ratelimit import build_global_limiter, build_registration_limiter, client_identity
from reunion.routes import accounts, gallery, registration

# Configure logging
log_dir = Path.home() / ".logs" / "reunion"
log_dir.mkdir(parents=True, exist_ok=True)
log_file = log_dir / "latest.log"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    filename=str(log_file),
)
logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    # Startup
    logger.info("Starting Reunion Registration application")
    create_db_and_tables()
    http = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
    app.state.collaborators = build_collaborators(http, settings)
    yield
    # Shutdown
    await http.aclose()
    logger.info("Reunion Registration application shut down")


app = FastAPI(
    title=settings.app_name,
    description="Participant registration, check-in QR codes and a community photo gallery",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.global_limiter = build_global_limiter()
app.state.registration_limiter = build_registration_limiter()

# Configure CORS for external access
origins = (
    ["*"]
    if settings.allowed_origins == "*"
    else [o.strip() for o in settings.allowed_origins.split(",")]
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def global_rate_limit(request: Request, call_next):
    """Apply the broad per-client window to every request."""
    limiter = request.app.state.global_limiter
    key = client_identity(request)
    decision = limiter.hit(key)
    if not decision.allowed:
        logger.warning(f"Global rate limit exceeded for {key}")
        return JSONResponse(
            {"message": limiter.message}, status_code=429, headers=decision.headers()
        )

    response = await call_next(request)
    # Route-level (tighter) limits set their own headers first
    for name, value in decision.headers().items():
        response.headers.setdefault(name, value)
    return response


@app.exception_handler(ReunionError)
async def reunion_error_handler(request: Request, exc: ReunionError):
    headers = getattr(exc, "headers", None)
    if isinstance(exc, Unauthorized):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"message": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    failure = ValidationFailure("Invalid request", jsonable_encoder(exc.errors()))
    return JSONResponse(failure.to_dict(), status_code=failure.status_code)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {exc}")
    return JSONResponse({"message": f"Database error: {exc}"}, status_code=500)


# Mount static files
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")

# Include routers
app.include_router(accounts.router)
app.include_router(registration.router)
app.include_router(gallery.router)


@app.get("/")
async def root(request: Request):
    """Redirect root to the sign-up page."""
    rp = request.scope.get("root_path", "")
    return RedirectResponse(f"{rp}/signup")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}
