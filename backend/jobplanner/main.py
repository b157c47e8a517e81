"""
Job Planner API - Main Application Entry Point

This module initializes the FastAPI application with:
- Database connection and schema initialization
- Background scheduler for daily plan regeneration
- CORS middleware for frontend communication
- Prometheus metrics
- API router registration

Architecture:
    FastAPI App
    ├── Lifespan Management (startup/shutdown)
    ├── CORS Middleware (localhost:3000)
    ├── Prometheus Middleware (/metrics)
    └── API Router
        ├── /jobs/search - Aggregated, enriched, ranked search
        └── /daily-plan  - Per-user daily application plan
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from jobplanner.api import api_router
from jobplanner.config import get_settings
from jobplanner.database import init_db
from jobplanner.middleware import setup_metrics
from jobplanner.scheduler import start_scheduler, stop_scheduler
from jobplanner.services.cache import get_cache

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle events.

    Startup:
        1. Initialize database tables
        2. Start the daily plan scheduler

    Shutdown:
        1. Gracefully stop the scheduler
        2. Close the Redis connection
    """
    await init_db()
    start_scheduler()
    yield
    stop_scheduler()
    await (await get_cache()).close()


app = FastAPI(
    title="Job Planner API",
    description="Job discovery, enrichment, ranking and daily application plans",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_metrics(app)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    cache = await get_cache()
    return {
        "status": "healthy",
        "cache": await cache.health_check(),
        "cache_stats": cache.get_stats(),
    }
