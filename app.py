"""
FastAPI application proxying Veo video generation.

Features:
- Submit a generation request (prompt + reference images)
- Immediate stub result when Veo is disabled, unconfigured or unreachable
- Operation status lookups for deferred generations
"""
import time

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config
from common.error_messages import ErrorCode, get_error_response
from utils.logger import get_logger
from videos.routes import router as videos_router

logger = get_logger("main")

# Validate configuration on startup
try:
    Config.validate()
    logger.info("Configuration validated successfully")
except ValueError as e:
    logger.error(f"Configuration error: {e}")

if not Config.has_google_credentials():
    logger.warning("GOOGLE_GENAI_API_KEY is not set; video submissions will return stub responses")

app = FastAPI(
    title="Veo Operation Tracker API",
    description="Submit Veo video generations and poll their long-running operations.",
    version="1.0.0"
)


# CORS middleware - added first so it runs on all responses
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as { error: text }."""
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors, reported with the first problem found."""
    message, status_code = get_error_response(ErrorCode.INVALID_FORMAT)
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{location}: {first.get('msg')}" if location else first.get("msg")
        message = f"{message} ({detail})"
    logger.warning(f"Request validation failed for {request.url.path}: {message}")
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions globally."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    message, status_code = get_error_response(ErrorCode.UNKNOWN_ERROR)
    return JSONResponse(status_code=status_code, content={"error": message})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing."""
    start_time = time.time()
    client = request.client.host if request.client else "unknown"
    logger.info(f"→ {request.method} {request.url.path} - Client: {client}")
    try:
        response = await call_next(request)
    except Exception as e:
        process_time = (time.time() - start_time) * 1000
        logger.error(f"← {request.method} {request.url.path} - Error: {e} - Time: {process_time:.2f}ms")
        raise
    process_time = (time.time() - start_time) * 1000
    logger.info(f"← {request.method} {request.url.path} - Status: {response.status_code} - Time: {process_time:.2f}ms")
    return response


app.include_router(videos_router)
logger.info("Videos router included")


@app.on_event("startup")
async def startup_event():
    """Log startup event."""
    logger.info("=" * 80)
    logger.info("FastAPI application starting up")
    logger.info(f"Veo model: {Config.VEO_MODEL} - enabled: {Config.VIDEO_GENERATION_ENABLED}")
    logger.info(f"Host: {Config.HOST}:{Config.PORT}")
    logger.info("=" * 80)


@app.on_event("shutdown")
async def shutdown_event():
    """Log shutdown event."""
    logger.info("FastAPI application shutting down")


@app.get("/healthz")
def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "provider_configured": Config.has_google_credentials(),
        "generation_enabled": Config.VIDEO_GENERATION_ENABLED,
    }


# Run server directly
if __name__ == "__main__":
    logger.info(f"Starting server on {Config.HOST}:{Config.PORT}")
    uvicorn.run(
        "app:app",
        host=Config.HOST,
        port=Config.PORT,
        reload=True,
        log_level="info"
    )
