from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
# Import routers
from krushi_sathi.api.endpoints import advisory as advisory_router_module
from krushi_sathi.api.endpoints import advisories as advisories_router_module
from krushi_sathi.api.endpoints import updates as updates_router_module
from krushi_sathi.core.config import settings
from krushi_sathi.core.errors import AdvisoryServiceError
from krushi_sathi.core.rate_limit import reset_rate_limiter
from krushi_sathi.db.persistence import get_store
from krushi_sathi.models.common import HealthResponse
from datetime import datetime, timezone
import logging
import time

# --- Configure Logging ---
logging.basicConfig(level=settings.LOG_LEVEL.upper(), format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logging.getLogger('httpx').setLevel(logging.WARNING)
logging.getLogger('httpcore').setLevel(logging.WARNING)
logging.getLogger('uvicorn.access').setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

START_TIME = time.time()

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
}

# --- FastAPI App Instantiation ---
app = FastAPI(
    title="Krushi Sathi",
    version=settings.APP_VERSION,
)

# --- Startup Event (prepares advisory storage) ---
@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI application startup...")
    logger.info(f"Environment: {settings.ENVIRONMENT}; AI configured: {settings.ai_configured}")
    if not settings.ai_configured:
        logger.warning(f"AI_API_KEY not set. Advisory fallback policy: '{settings.ADVISORY_FALLBACK_POLICY}'.")
    try:
        store = get_store()
        store.ensure_schema()
        logger.info(f"Advisory store ready: {type(store).__name__}")
    except AdvisoryServiceError as e:
        logger.error(f"Advisory store unavailable: {e.message}")

# --- Shutdown Event ---
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI application shutting down...")
    await reset_rate_limiter()

# --- CORS Configuration ---
origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS else ["*"]
logger.info(f"Configuring CORS for origins: {origins}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials="*" not in origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Request size guard and security headers ---
@app.middleware("http")
async def guard_and_harden(request: Request, call_next):
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > settings.MAX_REQUEST_BYTES:
        logger.warning(f"Rejected {request.url.path} body of {content_length} bytes.")
        response = JSONResponse(status_code=413, content={"error": "Request body too large", "code": "PAYLOAD_TOO_LARGE"})
    else:
        response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response

# --- Error handlers: every error body is {error, code, ...} ---
@app.exception_handler(AdvisoryServiceError)
async def advisory_service_error_handler(request: Request, exc: AdvisoryServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "code": "VALIDATION_ERROR", "details": jsonable_encoder(exc.errors())},
    )

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

# --- API Routers ---
logger.info("Including API routers...")
app.include_router(advisory_router_module.router, prefix="/api", tags=["Advisory"])
app.include_router(advisories_router_module.router, prefix="/api", tags=["Saved Advisories"])
app.include_router(updates_router_module.router, prefix="/api", tags=["Updates"])
logger.info("Included advisory, advisories and updates routers at /api")

# --- Root Endpoint ---
@app.get("/")
def read_root():
    return {"message": "Welcome to the Krushi Sathi agricultural advisory API"}

# --- Health Check Endpoint ---
@app.get("/api/health", response_model=HealthResponse)
def health_check():
    started = time.perf_counter()
    db_configured = bool(settings.DATABASE_URL) or not settings.is_production
    return {
        "ok": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
        "features": {
            "aiConfigured": settings.ai_configured,
            "dbConfigured": db_configured,
            "rateLimitBackend": "redis" if settings.RATE_LIMIT_REDIS_URL else "memory",
        },
        "performance": {
            "responseTimeMs": round((time.perf_counter() - started) * 1000, 3),
            "uptimeSeconds": round(time.time() - START_TIME, 3),
        },
        "version": settings.APP_VERSION,
    }
