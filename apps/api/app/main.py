import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.db import engine
from app.routers import comments, health, research, similars

logging.basicConfig(level=settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    yield
    # Shutdown: dispose connection pool cleanly
    await engine.dispose()


app = FastAPI(
    title="Research Repository API",
    description="Supervisor administration for research submissions with duplicate detection",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(similars.router, prefix="/api/v1/research/similars", tags=["similarity"])
app.include_router(research.router, prefix="/api/v1/research", tags=["research"])
app.include_router(
    comments.router, prefix="/api/v1/research/{research_id}/comments", tags=["comments"]
)


@app.get("/")
async def root():
    return {"message": "Research Repository API", "version": "0.1.0"}
