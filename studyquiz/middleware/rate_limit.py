"""
Rate limiting middleware using slowapi
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
import structlog

from studyquiz.config import GENERATION_RATE_LIMIT

logger = structlog.get_logger()

# Create limiter instance
limiter = Limiter(key_func=get_remote_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Custom rate limit exceeded handler"""
    logger.warning("rate_limit_exceeded", client=request.client.host if request.client else "unknown", limit=exc.detail)
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "rate_limited",
            "detail": f"Rate limit exceeded: {exc.detail}. Please try again later.",
        },
    )


def generation_limit():
    """Rate limit for quiz generation and extraction endpoints"""
    return limiter.limit(GENERATION_RATE_LIMIT)
