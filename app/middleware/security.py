"""
Security middleware for the GameShelf API
Implements security headers and per-IP rate limiting
"""
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from dotenv import load_dotenv
import math
import os
import threading
import time
from typing import Dict, Tuple
import logging

load_dotenv()
logger = logging.getLogger(__name__)

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
RATE_LIMIT_MAX = int(os.getenv("RATE_LIMIT_MAX", "500"))
AUTH_RATE_LIMIT_MAX = int(os.getenv("AUTH_RATE_LIMIT_MAX", "10"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", str(15 * 60)))

API_PREFIX = "/api/"
AUTH_LIMITED_PATHS = ("/api/auth/login", "/api/auth/register")
TOO_MANY_REQUESTS = "Too many requests, please try again later."


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers (XSS, CSP, HSTS, etc.)"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        # XSS Protection
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"

        # HSTS
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        # Content Security Policy - swagger CDN for /docs, YouTube for trailers,
        # any https host or data: URI for cover images
        csp_directives = [
            "default-src 'self'",
            "script-src 'self' 'unsafe-inline' https://www.youtube.com https://cdn.jsdelivr.net",
            "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
            "img-src 'self' https: data:",
            "frame-src https://www.youtube.com",
        ]
        response.headers["Content-Security-Policy"] = "; ".join(csp_directives)

        # Additional headers
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"

        return response


class RateLimiter:
    """Fixed-window request counter keyed by (bucket, client IP)"""

    def __init__(self, window_seconds: int = RATE_LIMIT_WINDOW_SECONDS):
        self.window_seconds = window_seconds
        self.hits: Dict[Tuple[str, str], Tuple[int, float]] = {}  # key: (count, window_start)
        self._last_cleanup = 0.0
        self._lock = threading.Lock()

    def _drop_expired(self, now: float) -> None:
        expired = [
            key for key, (_, started) in self.hits.items()
            if now - started >= self.window_seconds
        ]
        for key in expired:
            del self.hits[key]
        self._last_cleanup = now
        if expired:
            logger.debug(f"Dropped {len(expired)} expired rate limit windows")

    def cleanup_expired(self):
        """Remove counters whose window has passed"""
        with self._lock:
            self._drop_expired(time.time())

    def hit(self, bucket: str, client: str, limit: int) -> float:
        """
        Count one request

        Returns:
            0 when the request is allowed, otherwise seconds until the window resets
        """
        now = time.time()
        key = (bucket, client)
        with self._lock:
            # sweep at most once per window
            if now - self._last_cleanup >= self.window_seconds:
                self._drop_expired(now)
            count, started = self.hits.get(key, (0, now))
            if now - started >= self.window_seconds:
                count, started = 0, now
            if count >= limit:
                return started + self.window_seconds - now
            self.hits[key] = (count + 1, started)
            return 0

    def reset(self):
        with self._lock:
            self.hits.clear()
            self._last_cleanup = 0.0


# Global instance
rate_limiter = RateLimiter()


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Apply the general limit to every /api route and the stricter auth limit
    to login/register. Anything outside /api (/, /health, /docs) is exempt.
    """

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if not RATE_LIMIT_ENABLED or not path.startswith(API_PREFIX):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        checks = [("api", RATE_LIMIT_MAX)]
        if path.rstrip("/") in AUTH_LIMITED_PATHS:
            checks.append(("auth", AUTH_RATE_LIMIT_MAX))

        for bucket, limit in checks:
            retry_after = rate_limiter.hit(bucket, client, limit)
            if retry_after:
                logger.warning(f"Rate limit ({bucket}) exceeded for {client} on {path}")
                return JSONResponse(
                    status_code=429,
                    content={"detail": TOO_MANY_REQUESTS},
                    headers={"Retry-After": str(max(1, math.ceil(retry_after)))}
                )

        return await call_next(request)
