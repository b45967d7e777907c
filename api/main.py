"""FastAPI application for the Job Scheduling API."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import get_settings, router
from schedule_tool import __version__

settings = get_settings()

app = FastAPI(
    title="Job Scheduling API",
    description="Working-day scheduling, calendar layout and prorated job profit.",
    version=__version__,
)

# Set ALLOWED_ORIGINS="*" to allow any origin
_allow_all = settings.api.allow_all_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if _allow_all else settings.api.allowed_origins,
    allow_credentials=not _allow_all,  # credentials not allowed with wildcard
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    max_age=3600,
)

app.include_router(router)


@app.get("/")
async def root():
    return {
        "name": "Job Scheduling API",
        "version": __version__,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
