"""Main FastAPI application."""
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from app.config import settings
from app.core.log_config import setup_logging
from app.dependencies.database import get_sessionmanager, initialize_db
from app.routers import archives, exam_attempts, grades, quizzes

logger = logging.getLogger("http")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context for application startup and shutdown."""
    setup_logging()

    async with initialize_db(get_sessionmanager()):
        yield


app = FastAPI(title="School Grading Service", lifespan=lifespan)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Turn unhandled errors into the service's 500 envelope and log them."""

    async def dispatch(self, request: Request, call_next):
        started = time.monotonic()
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "request failed",
                exc_info=exc,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": round((time.monotonic() - started) * 1000, 2),
                },
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"detail": {"error": "Internal server error", "code": "INTERNAL_ERROR"}},
            )


app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(exam_attempts.router)
app.include_router(quizzes.router)
app.include_router(archives.router)
app.include_router(grades.router)


@app.get("/health", status_code=status.HTTP_200_OK)
def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/", status_code=status.HTTP_200_OK)
def root() -> dict[str, Any]:
    return {"success": True, "service": "grading"}


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
