from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from eventflow.api.routes import activities, events, health, registrations
from eventflow.core.config import get_settings
from eventflow.core.exceptions import AppError, DateConflictError
from eventflow.db.bootstrap import ensure_schema

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_schema()
    yield


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


async def date_conflict_handler(request: Request, exc: DateConflictError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "message": exc.message,
            "data": [item.model_dump(exclude_none=True) for item in exc.data],
        },
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=409, content={"message": "Integrity constraint violated"})


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(DateConflictError, date_conflict_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(activities.router, prefix=settings.api_prefix, tags=["activities"])
app.include_router(registrations.router, prefix=settings.api_prefix, tags=["registrations"])
app.include_router(events.router, prefix=settings.api_prefix, tags=["events"])
