"""FastAPI server exposing Vue anti-pattern analysis."""
from __future__ import annotations

import threading
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse

from src.config import DetectorSettings, load_settings
from src.detection.core.thresholds import ThresholdSet, resolve_thresholds
from src.detection.engine import analyze, analyze_many
from src.detector_registry import list_detector_categories, list_pattern_ids, select_detectors
from src.report import calculate_summary


class AnalyzeRequest(BaseModel):
    """Request payload to analyze a single component."""

    file_path: str = Field(min_length=1)
    content: str
    thresholds: Optional[Dict[str, Any]] = None
    categories: Optional[List[str]] = None


class BatchFile(BaseModel):
    path: str = Field(min_length=1)
    content: str


class BatchAnalyzeRequest(BaseModel):
    """Request payload to analyze several components in one call."""

    files: List[BatchFile]
    thresholds: Optional[Dict[str, Any]] = None
    categories: Optional[List[str]] = None


class _RateLimiter:
    """Simple in-memory token bucket per client IP."""

    def __init__(self, rate_per_minute: int, burst: Optional[int] = None):
        self.rate_per_minute = max(rate_per_minute, 1)
        self.capacity = burst or self.rate_per_minute
        self.tokens: Dict[str, float] = {}
        self.last_refill: Dict[str, float] = {}
        self.lock = threading.Lock()

    def allow(self, key: str) -> bool:
        now = time.time()
        with self.lock:
            tokens = self.tokens.get(key, self.capacity)
            last = self.last_refill.get(key, now)
            elapsed = max(0.0, now - last)
            refill = elapsed * (self.rate_per_minute / 60.0)
            tokens = min(self.capacity, tokens + refill)
            if tokens < 1.0:
                self.tokens[key] = tokens
                self.last_refill[key] = now
                return False
            self.tokens[key] = tokens - 1.0
            self.last_refill[key] = now
            return True


def create_app(settings: Optional[DetectorSettings] = None) -> FastAPI:
    """Create a FastAPI app configured with detector settings."""

    base_settings = settings or load_settings()

    def _request_options(
        thresholds: Optional[Dict[str, Any]], categories: Optional[List[str]]
    ) -> ThresholdSet:
        """Merge request thresholds over the configured ones and check categories."""
        merged = dict(base_settings.thresholds)
        merged.update(thresholds or {})
        try:
            resolved = resolve_thresholds(merged)
            select_detectors(categories)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return resolved

    app = FastAPI(title="Vue Anti-Pattern Detector API", version="0.1.0")
    app.state.settings = base_settings

    if getattr(base_settings, "rate_limit_per_minute", 0) > 0:
        limiter = _RateLimiter(base_settings.rate_limit_per_minute)

        @app.middleware("http")
        async def rate_limit(request: Request, call_next):
            client_ip = request.client.host if request.client else "unknown"
            if not limiter.allow(client_ip):
                return JSONResponse(
                    status_code=429,
                    content={"detail": "Rate limit exceeded. Try again later."},
                )
            return await call_next(request)

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/patterns")
    async def patterns() -> Dict[str, Any]:
        return {"patterns": list_pattern_ids(), "categories": list_detector_categories()}

    @app.post("/analyze")
    async def analyze_file(request: AnalyzeRequest) -> Dict[str, Any]:
        thresholds = _request_options(request.thresholds, request.categories)
        result = await run_in_threadpool(
            analyze, request.file_path, request.content, thresholds, request.categories
        )
        return result.to_dict()

    @app.post("/analyze/batch")
    async def analyze_batch(request: BatchAnalyzeRequest) -> Dict[str, Any]:
        if not request.files:
            raise HTTPException(status_code=400, detail="files must not be empty")
        thresholds = _request_options(request.thresholds, request.categories)
        results = await run_in_threadpool(
            analyze_many,
            [{"path": item.path, "content": item.content} for item in request.files],
            thresholds,
            base_settings.max_workers,
            request.categories,
            base_settings.timeout_per_file,
        )
        return {
            "summary": calculate_summary(results),
            "results": [result.to_dict() for result in results],
        }

    return app
