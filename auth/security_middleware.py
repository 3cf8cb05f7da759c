"""
Security middleware for FastAPI:
- Security headers (CSP, HSTS, X-Frame-Options, etc.)
- Token blacklist checking
- Auth/admin request logging
- Per-IP rate limiting on auth endpoints
- Request/response audit logging
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from datetime import datetime
import logging
import threading
import time

from auth.auth_manager import auth_manager
from auth.cache_manager import cache_manager

logger = logging.getLogger(__name__)


def _bearer_token(request: Request):
    auth_header = request.headers.get("authorization")
    if auth_header and "Bearer " in auth_header:
        return auth_header.replace("Bearer ", "").strip()
    return None


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response


class TokenBlacklistMiddleware(BaseHTTPMiddleware):
    """Reject revoked tokens before the request reaches a route"""

    async def dispatch(self, request: Request, call_next):
        token = _bearer_token(request)
        if token and cache_manager.is_token_blacklisted(token):
            return JSONResponse(status_code=401, content={"detail": "Token has been revoked"})
        return await call_next(request)


class SecurityLoggingMiddleware(BaseHTTPMiddleware):
    """Log security-relevant events"""

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"
        path = request.url.path

        if path.startswith("/api/auth"):
            logger.info(f"Auth request: {request.method} {path} from {client_ip}")

        if "/roles" in path or "/audit-logs" in path:
            logger.warning(f"Admin endpoint access: {request.method} {path} from {client_ip}")

        return await call_next(request)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP rate limiting on auth endpoints over a sliding one-minute window.
    """
    def __init__(self, app, requests_per_minute: int = 60):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self._hits = {}
        self._last_sweep = time.monotonic()
        self._lock = threading.Lock()

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith("/api/auth"):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        if not self._check_rate_limit(client_ip):
            logger.warning(f"Rate limit exceeded for IP {client_ip}")
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests. Please try again later."}
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_minute)
        return response

    def _check_rate_limit(self, client_ip: str) -> bool:
        """Record a hit; False if the IP exceeded the limit"""
        now = time.monotonic()
        with self._lock:
            if now - self._last_sweep >= 60:
                self._sweep(now)
            hits = [t for t in self._hits.get(client_ip, []) if now - t < 60]
            if len(hits) >= self.requests_per_minute:
                self._hits[client_ip] = hits
                return False
            hits.append(now)
            self._hits[client_ip] = hits
            return True

    def _sweep(self, now: float):
        """Drop IPs with no hit inside the window (caller holds the lock)"""
        stale = [ip for ip, hits in self._hits.items() if not hits or now - hits[-1] >= 60]
        for ip in stale:
            del self._hits[ip]
        self._last_sweep = now


class AuditLoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/response audit logging.
    """
    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"

        user_id = None
        token = _bearer_token(request)
        if token:
            payload = auth_manager.verify_token(token)
            user_id = payload.get("sub") if payload else None

        logger.info(
            f"Request: {request.method} {request.url.path} | "
            f"User: {user_id} | IP: {client_ip} | "
            f"Time: {datetime.utcnow().isoformat()}"
        )

        response = await call_next(request)

        logger.info(
            f"Response: {response.status_code} for {request.method} {request.url.path} | "
            f"User: {user_id}"
        )

        return response
