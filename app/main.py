"""
Main FastAPI application for the Video Store API.
Serves health, catalog, purchase, streaming routes and metrics.
"""
import logging
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.api.routes import health, orders, stream, videos
from app.db.session import create_all
from app.utils.metrics import router as metrics_router


logger = logging.getLogger("app.request")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.db_create_all:
        create_all()
    yield


app = FastAPI(
    title="Video Store API",
    description="Pay-per-video catalog with entitlement-gated range streaming",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
origins = settings.cors_origins_list
if not origins:
    origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range", "Accept-Ranges", "Content-Length"],
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = request.headers.get(settings.request_id_header) or uuid4().hex
    start = time.perf_counter()
    response = await call_next(request)
    response.headers[settings.request_id_header] = request_id
    logger.info(
        "http_request",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
        },
    )
    return response


register_exception_handlers(app)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(videos.router)
app.include_router(orders.router)
app.include_router(stream.router)
app.include_router(metrics_router)
