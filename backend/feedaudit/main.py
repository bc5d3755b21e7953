"""FastAPI application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from feedaudit.api import analysis
from feedaudit.config import CORS_ORIGINS
from feedaudit.pipeline.fuzzy_matcher import FuzzyMatcher
from feedaudit.pipeline.keyword_volume import default_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: load the spelling dictionary, open/close the keyword client."""
    app.state.matcher = FuzzyMatcher()
    if not await asyncio.to_thread(app.state.matcher.load):
        logger.warning("Startup: spelling dictionary unavailable, spelling checks will report nothing")
    app.state.keyword_provider = default_provider()
    yield
    if app.state.keyword_provider is not None:
        app.state.keyword_provider.close()


app = FastAPI(
    title="Feed Audit",
    description="Quality rules and search-term mining for product catalog feeds",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analysis.router, prefix="/api/analyze", tags=["Analysis"])


@app.get("/api/health")
async def health():
    return {"status": "operational", "service": "Feed Audit"}
