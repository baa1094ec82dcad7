from __future__ import annotations

import uuid
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.core.logging import configure_logging, get_logger
from app.routers import community, donations, follows, profiles
from app.services.community_service import CommunityError
from app.services.follow_service import SelfFollowError
from app.services.providers.data_store import DataStoreError

settings = get_settings()

configure_logging()
logger = get_logger()

app = FastAPI(
    title=settings.app_name,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(donations.router, prefix=settings.api_prefix)
app.include_router(follows.router, prefix=settings.api_prefix)
app.include_router(community.router, prefix=settings.api_prefix)
app.include_router(profiles.router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"service": settings.app_name}


@app.exception_handler(DataStoreError)
async def data_store_error(request: Request, exc: DataStoreError):
    logger.warning("data_store_failure", path=str(request.url.path), code=exc.code, status_code=exc.status_code)
    status_code = exc.status_code if exc.status_code in (409, 503) else 502
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(SelfFollowError)
@app.exception_handler(CommunityError)
async def domain_error(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    logger.info(
        "request",
        path=str(request.url.path),
        method=request.method,
        status_code=response.status_code,
        request_id=request_id,
    )
    response.headers["X-Request-ID"] = request_id
    return response
