"""
Ephemeral Share & Knowledge Graph - FastAPI Backend
Self-destructing content sharing plus the knowledge graph quiz API.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import settings
from database import engine, Base
import models  # noqa: F401
from routers import auth, content, graphs, health, knowledge
from routers.rate_limit import RateLimiter, rate_limit
from services.reaper import ContentReaper


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    print("🚀 Starting Ephemeral Share API...")
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            print("🗄️ Database schema verified.")
        except Exception as e:
            print(f"⚠️ Database bootstrap skipped: {e}")

    reaper = ContentReaper(settings.REAPER_INTERVAL_SECONDS)
    app.state.reaper = reaper
    purged = await reaper.start()
    if purged:
        print(f"🧹 Purged {purged} expired content item(s) on startup.")
    if reaper.running:
        print(f"📅 Content reaper enabled (every {reaper.interval_seconds}s).")
    yield
    # Shutdown
    await reaper.stop()
    app.state.rate_limiter.reset()
    print("👋 Shutting down API...")


app = FastAPI(
    title="Ephemeral Share API",
    description="Self-destructing content sharing and a knowledge graph quiz backend",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.rate_limiter = RateLimiter(
    limit=settings.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    backend=settings.RATE_LIMIT_BACKEND,
    redis_url=settings.REDIS_URL,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

graph_api_limit = [Depends(rate_limit("graph_api"))]

# Include routers
app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(content.router, prefix="/api/content", tags=["Content"])
app.include_router(auth.router, prefix="/api", tags=["Authentication"], dependencies=graph_api_limit)
app.include_router(graphs.router, prefix="/api/graphs", tags=["Graphs"], dependencies=graph_api_limit)
app.include_router(knowledge.router, prefix="/api", tags=["Knowledge"], dependencies=graph_api_limit)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Ephemeral Share API",
        "version": "0.1.0",
        "status": "running"
    }
