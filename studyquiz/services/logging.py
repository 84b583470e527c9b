"""
Structured logging configuration
"""
import functools
import logging
import sys
from datetime import datetime

import structlog

from studyquiz.config import LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL):
    """Configure structured logging"""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)


def get_logger(name: str = None):
    """Get a structured logger"""
    return structlog.get_logger(name)


def log_performance(func_name: str):
    """Decorator to log how long a pipeline stage takes"""
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger("performance")
            start_time = datetime.now()

            try:
                result = func(*args, **kwargs)
                duration = (datetime.now() - start_time).total_seconds()
                logger.debug(
                    "function_completed",
                    function=func_name,
                    duration_seconds=duration,
                    status="success"
                )
                return result
            except Exception as e:
                duration = (datetime.now() - start_time).total_seconds()
                logger.warning(
                    "function_failed",
                    function=func_name,
                    duration_seconds=duration,
                    error=str(e),
                    status="error"
                )
                raise
        return wrapper
    return decorator


def log_api_request(request, response=None, error=None, duration=None):
    """Log an API request as started, completed with a status, or failed with an exception"""
    logger = get_logger("api")

    log_data = {
        "method": request.method,
        "path": request.url.path,
        "client_ip": request.client.host if request.client else "unknown",
    }

    if error is not None:
        logger.error(
            "api_request_failed",
            error=str(error),
            error_type=type(error).__name__,
            duration_seconds=duration,
            **log_data
        )
    elif response is not None:
        logger.info(
            "api_request_completed",
            status_code=response.status_code,
            duration_seconds=duration,
            **log_data
        )
    else:
        logger.info("api_request_started", **log_data)
