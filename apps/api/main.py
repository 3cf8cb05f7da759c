# FastAPI entrypoint with all routes and middleware

import os

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.middleware.gzip import GZipMiddleware
from loguru import logger
import dotenv

from auth.auth_routes import router as auth_router
from auth.models import health_check as auth_health_check
from auth.security_middleware import (
    SecurityHeadersMiddleware,
    TokenBlacklistMiddleware,
    SecurityLoggingMiddleware,
    RateLimitMiddleware,
    AuditLoggingMiddleware,
)
from livestock.database import DatabaseManager
from livestock.routes import router as farm_router

dotenv.load_dotenv()

# Initialize FastAPI app
app = FastAPI(
    title="farmdesk API",
    description="Multi-tenant livestock and farm management with role-based access",
    version="1.0.0"
)

# ==================== SECURITY MIDDLEWARE STACK ====================

app.add_middleware(AuditLoggingMiddleware)
app.add_middleware(SecurityLoggingMiddleware)
app.add_middleware(TokenBlacklistMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RateLimitMiddleware, requests_per_minute=int(os.getenv("RATE_LIMIT_PER_MINUTE", "100")))
app.add_middleware(SecurityHeadersMiddleware)

# ==================== CORS MIDDLEWARE ====================

FRONTEND_DOMAINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_DOMAINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD", "PATCH"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Accept-Language",
        "Accept-Encoding",
        "Origin",
    ],
    max_age=86400,
)

# ==================== BASE ROUTER ====================

router = APIRouter(prefix="/api/base", tags=["base"])


@router.get("/")
async def base_root():
    """Root endpoint that returns API information and routes."""
    routes = [
        {
            "path": route.path,
            "name": route.name,
            "methods": sorted(route.methods - {"HEAD", "OPTIONS"})
        }
        for route in app.routes
        if isinstance(route, APIRoute)
    ]

    return {
        "message": "farmdesk API",
        "version": app.version,
        "routes": routes
    }


@router.get("/health")
async def health_check():
    """Health check endpoint for monitoring system status."""
    auth_db = auth_health_check()
    farm_db = DatabaseManager.health_check()
    return {
        "status": "healthy" if auth_db and farm_db else "unhealthy",
        "components": {"auth_database": auth_db, "farm_database": farm_db},
    }

# ==================== ROUTER REGISTRATION ====================

app.include_router(router)              # /api/base
app.include_router(auth_router)         # /api/auth
app.include_router(farm_router)         # /api/farm

# ==================== ROOT ENDPOINT ====================


@app.get("/")
async def root():
    """Root endpoint - returns simple welcome message."""
    return {
        "message": "farmdesk backend",
        "status": "running",
        "docs_url": "/docs",
        "api_base": "/api"
    }


@app.get("/health")
async def health():
    return await health_check()


@app.on_event("startup")
async def startup_event():
    """Initialize on startup."""
    try:
        logger.info("Initializing auth database...")
        from auth.models import init_database
        init_database()
        logger.info("Auth database initialized")
    except Exception as e:
        logger.error(f"Auth database init failed: {e}")
        raise

    try:
        logger.info("Initializing farm database...")
        DatabaseManager.initialize()
        logger.info("Farm database initialized and tables created")
    except Exception as e:
        logger.error(f"Farm database init failed: {e}")
        raise


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "apps.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
