import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from .application.errors import DomainError
from .config import settings
from .infrastructure.db import engine
from .infrastructure.metrics import metrics_endpoint
from .infrastructure.models import Base
from .interfaces.http.middleware import observe_requests
from .interfaces.http.routers import admin, auth, content, ideas
from .logging_setup import configure_logging

configure_logging(settings.LOG_LEVEL)
logger = structlog.get_logger()

app = FastAPI(title="French Notes API", version="0.1.0")

app.middleware("http")(observe_requests)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.info("request_rejected", path=request.url.path, error=type(exc).__name__, detail=exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error("unhandled_error", path=request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.on_event("startup")
def on_startup():
    logger.info("Starting French Notes API", approval_mode=settings.LOGIN_APPROVAL_MODE,
                device_quota=settings.MAX_APPROVED_DEVICES)
    Base.metadata.create_all(bind=engine)
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


for module in (auth, admin, content, ideas):
    app.include_router(module.router)
