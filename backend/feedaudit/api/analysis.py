"""Feed analysis endpoints with SSE progress streaming.

The spelling dictionary and the keyword-volume client are process-wide
collaborators: the application lifespan builds them once and parks them
on ``app.state``; handlers fetch them from there.
"""

import json
import asyncio
import logging
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from feedaudit.config import CHUNK_SIZE, MAX_CONCURRENT_ANALYSES, SEARCH_TERMS_CHUNK_SIZE
from feedaudit.pipeline.schemas import FeedItem, ProgressEvent
from feedaudit.pipeline.feed_reader import FeedReadError, parse_feed_text, read_feed
from feedaudit.pipeline.fuzzy_matcher import FuzzyMatcher
from feedaudit.pipeline.check_registry import CheckerRegistry, UnknownCheckError, build_registry
from feedaudit.pipeline.orchestrator import FeedQualityPipeline
from feedaudit.pipeline.keyword_volume import KeywordVolumeProvider
from feedaudit.pipeline.search_terms import SearchTermsAnalyzer

router = APIRouter()
logger = logging.getLogger(__name__)

# Semaphore limits how many passes run concurrently
_analysis_semaphore = asyncio.Semaphore(MAX_CONCURRENT_ANALYSES)


class FeedRequest(BaseModel):
    path: str | None = None          # TSV file on the server
    content: str | None = None       # or the TSV text itself
    enabled_checks: list[str] | None = None
    chunk_size: int | None = Field(default=None, gt=0)


def _matcher(request: Request) -> FuzzyMatcher:
    matcher = getattr(request.app.state, "matcher", None)
    if matcher is None:
        # Lifespan not run (e.g. bare test client): build lazily, load on first lookup
        matcher = FuzzyMatcher()
        request.app.state.matcher = matcher
    return matcher


def _keyword_provider(request: Request) -> KeywordVolumeProvider | None:
    return getattr(request.app.state, "keyword_provider", None)


async def _load_records(body: FeedRequest) -> list[FeedItem]:
    """Read the feed up front so an unreadable one is a 400, not a broken stream."""
    try:
        if body.content is not None:
            return await asyncio.to_thread(parse_feed_text, body.content)
        if body.path:
            return await asyncio.to_thread(read_feed, body.path)
    except FeedReadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    raise HTTPException(status_code=400, detail="Either path or content is required")


def _select_checks(request: Request, enabled: list[str] | None) -> CheckerRegistry:
    try:
        return build_registry(_matcher(request)).select(enabled)
    except UnknownCheckError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _sse(events) -> StreamingResponse:
    async def event_stream():
        async with _analysis_semaphore:
            try:
                async for event in events:
                    yield f"data: {json.dumps(event.to_dict())}\n\n"
            except Exception as e:
                logger.error(f"Analysis stream failed: {e}")
                failure = ProgressEvent(status="error", message=f"Analysis failed: {e}")
                yield f"data: {json.dumps(failure.to_dict())}\n\n"
            finally:
                await events.aclose()  # client gone: stop scheduling chunks

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@router.post("/feed/stream")
async def stream_feed_analysis(body: FeedRequest, request: Request):
    """SSE stream of a feed-quality pass: ``chunk`` events then ``complete``."""
    registry = _select_checks(request, body.enabled_checks)
    records = await _load_records(body)
    pipeline = FeedQualityPipeline(registry)
    logger.info(f"Feed analysis requested: {len(records)} record(s), {len(registry)} checker(s)")
    return _sse(pipeline.stream(records, body.chunk_size or CHUNK_SIZE))


@router.post("/search-terms/stream")
async def stream_search_terms_analysis(body: FeedRequest, request: Request):
    """SSE stream of a search-term pass."""
    records = await _load_records(body)
    analyzer = SearchTermsAnalyzer(keyword_provider=_keyword_provider(request))
    logger.info(f"Search-term analysis requested: {len(records)} record(s)")
    return _sse(analyzer.stream(records, body.chunk_size or SEARCH_TERMS_CHUNK_SIZE))


@router.get("/checks")
async def list_checks(request: Request):
    """Registered checks in the order their findings are reported."""
    return {"checks": build_registry(_matcher(request)).describe()}
