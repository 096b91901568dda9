import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import (
    activity,
    assignments,
    classmates,
    courses,
    health,
    notifications,
    profile,
    timetable,
)
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.core.middleware import RequestSizeLimitMiddleware, SecurityHeadersMiddleware

settings = get_settings()
logger = logging.getLogger(__name__)


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("Unhandled application error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(profile.router, prefix=settings.api_prefix, tags=["profile"])
app.include_router(courses.router, prefix=settings.api_prefix, tags=["courses"])
app.include_router(classmates.router, prefix=settings.api_prefix, tags=["classmates"])
app.include_router(assignments.router, prefix=settings.api_prefix, tags=["assignments"])
app.include_router(timetable.router, prefix=settings.api_prefix, tags=["timetable"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
