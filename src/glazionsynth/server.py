"""
Glazion Synthesis Server - FastAPI application
"""

import logging
import time
import uuid
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from . import __version__
from .settings import settings
from .secure_config import SecureConfig
from .synthesis_engine import SynthesisEngine
from .monitors import SynthesisMonitor

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Glazion Synthesis",
    description="Response synthesis for the Glazion pottery assistant",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global instances
engine: Optional[SynthesisEngine] = None
monitor: Optional[SynthesisMonitor] = None


class ChatRequest(BaseModel):
    """Request model for the chat endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    top_k: Optional[int] = Field(default=None, alias="topK")
    user_id: Optional[str] = Field(default=None, alias="userId")


class ChatResponse(BaseModel):
    """Response model for the chat endpoint"""
    content: str


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    global engine, monitor

    logger.info("Starting Glazion Synthesis server...")

    secure_config = SecureConfig(settings)
    logger.info(f"Configuration: {secure_config.get_config_summary()}")
    secure_config.validate_upstreams()

    monitor = SynthesisMonitor()
    engine = SynthesisEngine(settings, monitor=monitor)

    logger.info("Glazion Synthesis server started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    global engine, monitor

    logger.info("Shutting down Glazion Synthesis server...")

    if engine:
        await engine.close()

    if monitor:
        monitor.cleanup()

    logger.info("Glazion Synthesis server shutdown complete")


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    """Tag every request with an id that is echoed in a response header"""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed chat bodies get the same 400 shape as a missing message"""
    request_id = getattr(request.state, "request_id", "unknown")
    fields = {str(part) for error in exc.errors() for part in error.get("loc", ())}
    message = "Message is required" if "message" in fields else "Invalid request body"
    logger.info(f"[{request_id}] branch=bad_request: {message}")
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log the failure in full, return only the generic message"""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.error(
        f"[{request_id}] branch=unhandled_error path={request.url.path} "
        f"error_type={type(exc).__name__}: {exc}",
        exc_info=True
    )
    if monitor:
        monitor.record_error()
    return JSONResponse(
        status_code=500,
        content={"error": settings.generic_error_message},
        headers={"X-Request-ID": request_id}
    )


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy" if engine else "starting",
        "version": __version__,
        "timestamp": time.time(),
        "breakers": engine.breakers.get_status() if engine else {}
    }


@app.post("/api/chat", response_model=ChatResponse)
async def chat(payload: ChatRequest, request: Request):
    """Answer one question from both upstreams"""
    request_id = request.state.request_id

    if not payload.message or not payload.message.strip():
        logger.info(f"[{request_id}] branch=bad_request: no message provided")
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    if not engine:
        raise RuntimeError("Synthesis engine not initialized")

    logger.info(f"[{request_id}] Processing message: {payload.message[:100]}")

    result = await engine.answer(
        payload.message,
        top_k=payload.top_k,
        user_id=payload.user_id,
        request_id=request_id
    )

    return ChatResponse(content=result.content)


@app.get("/metrics")
async def get_metrics():
    """Get system metrics"""
    if not monitor:
        return JSONResponse(status_code=503, content={"error": "Monitor not initialized"})

    metrics = monitor.get_metrics()
    if engine:
        metrics["engine"] = engine.get_status()
    return metrics


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Glazion Synthesis - pottery assistant answer service",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


def main():
    """Main entry point for running the server"""
    import uvicorn

    uvicorn.run(
        "glazionsynth.server:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
