from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import time
import structlog

from studyquiz.config import CORS_ORIGINS
from studyquiz.errors import QuizPipelineError
from studyquiz.routers import quiz as quiz_router
from studyquiz.services.logging import configure_logging, log_api_request
from studyquiz.services.monitoring import health_checker, get_metrics, REQUEST_COUNT, REQUEST_DURATION
from studyquiz.services.pipeline import reset_salvage_pool
from studyquiz.middleware.rate_limit import limiter, rate_limit_exceeded_handler

# Configure logging
configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="StudyQuiz",
    description="Turns prose, pasted text or salvaged PDF text into study notes and a self-graded quiz",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


async def pipeline_error_handler(request: Request, exc: QuizPipelineError):
    logger.info("pipeline_error", error=exc.error_code, detail=exc.detail, path=request.url.path)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

app.add_exception_handler(QuizPipelineError, pipeline_error_handler)


# Add middleware for request logging and metrics
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    log_api_request(request)

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = time.time() - start_time
        REQUEST_COUNT.labels(method=request.method, endpoint=request.url.path, status=500).inc()
        log_api_request(request, error=e, duration=process_time)
        raise

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=request.url.path
    ).observe(process_time)

    log_api_request(request, response, duration=process_time)

    return response

@app.on_event("shutdown")
def on_shutdown():
    reset_salvage_pool()


# ----------------- Health & Monitoring Endpoints -----------------
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return health_checker.get_health_status()

@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return get_metrics()


# ----------------- Routers -----------------
app.include_router(quiz_router.router)
