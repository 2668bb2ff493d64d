"""
Middleware package for security and request processing
"""
from .security import SecurityHeadersMiddleware, RateLimitMiddleware, RateLimiter, rate_limiter

__all__ = [
    "SecurityHeadersMiddleware",
    "RateLimitMiddleware",
    "RateLimiter",
    "rate_limiter"
]
