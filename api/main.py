"""
PolicyLens API — Main Application

GET  /                      — Submission form
POST /analyze               — Analyze a policy and store the result
GET  /results/{id}          — Stored result (JSON)
GET  /results/{id}/report   — Stored result (HTML report)
GET  /download/{id}         — Stored result as a file download
GET  /patterns              — Loaded pattern library
GET  /health                — Health check
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse

from policylens import __version__
from policylens.config import settings
from policylens.library import load_library
from policylens.logging import setup_logging, get_logger
from policylens.pipeline import run_analysis
from policylens.report import render_index_html, render_results_html
from policylens.results import ResultNotFound, ResultStore
from policylens.schemas.analyze import (
    AnalyzeRequest,
    AnalyzeResponse,
    HealthResponse,
    PatternListResponse,
)

logger = get_logger("api")


# ============================================================
# STARTUP / SHUTDOWN
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the pattern library and open the result store. Bad settings or a bad library abort startup."""
    setup_logging()

    if settings.CHUNK_SIZE < 1:
        raise ValueError(f"POLICYLENS_CHUNK_SIZE must be at least 1, got {settings.CHUNK_SIZE}")
    app.state.library = load_library(settings.REFERENCE_PATH)
    app.state.store = ResultStore(settings.RESULTS_DIR)
    app.state.chunk_size = settings.CHUNK_SIZE

    logger.info(
        "PolicyLens API starting",
        extra={"pattern_count": len(app.state.library), "path": settings.RESULTS_DIR},
    )
    yield
    logger.info("PolicyLens API shutting down")


app = FastAPI(
    title="PolicyLens API",
    description="Clause pattern annotation for privacy policies and terms of service",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
    allow_credentials=False,
)


# ============================================================
# GLOBAL ERROR HANDLER
# ============================================================

@app.exception_handler(Exception)
async def global_error_handler(request: Request, exc: Exception):
    """Catch unhandled exceptions — return structured error, don't leak internals."""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra={"error": str(exc), "path": request.url.path, "method": request.method},
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The analysis could not be completed."},
    )


def _load_or_404(request: Request, result_id: str) -> dict:
    try:
        return request.app.state.store.load(result_id)
    except ResultNotFound:
        raise HTTPException(404, "Result not found")


# ============================================================
# ROUTES
# ============================================================

@app.get("/", include_in_schema=False)
async def root():
    """Serve the submission form."""
    return HTMLResponse(render_index_html())


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze_policy(body: AnalyzeRequest, request: Request):
    """Analyze a policy document and persist the annotated result."""
    policy = body.policy.strip()
    source = body.source.strip()

    if not policy:
        raise HTTPException(400, "Policy invalid")
    if not source:
        raise HTTPException(400, "Source invalid")
    if len(policy) > settings.MAX_POLICY_CHARS:
        raise HTTPException(413, "Policy too long")

    result = run_analysis(
        policy,
        source,
        library=request.app.state.library,
        chunk_size=request.app.state.chunk_size,
    )
    request.app.state.store.save(result)

    return {**result.to_dict(), "reference_count": result.reference_count}


@app.get("/results/{result_id}", response_model=AnalyzeResponse)
async def get_result(result_id: str, request: Request):
    """Return a stored result."""
    data = _load_or_404(request, result_id)
    refs = sum(len(c.get("references", [])) for c in data.get("chunks", []))
    return {**data, "reference_count": refs}


@app.get("/results/{result_id}/report", response_class=HTMLResponse)
async def get_report(result_id: str, request: Request):
    """Render a stored result as HTML."""
    data = _load_or_404(request, result_id)
    return HTMLResponse(render_results_html(data, request.app.state.library))


@app.get("/download/{result_id}")
async def download_result(result_id: str, request: Request):
    """Download the stored JSON for a result."""
    try:
        path = request.app.state.store.path_for(result_id)
    except ResultNotFound:
        raise HTTPException(404, "Result not found")
    return FileResponse(str(path), media_type="application/json", filename=f"{result_id}.json")


@app.get("/patterns", response_model=PatternListResponse)
async def get_patterns(request: Request):
    """Return the loaded pattern library."""
    library = request.app.state.library
    return {
        "total": len(library),
        "categories": library.categories(),
        "patterns": library.to_list(),
    }


@app.get("/health", response_model=HealthResponse)
async def health(request: Request):
    """Health check."""
    return {
        "status": "operational",
        "version": __version__,
        "patterns_loaded": len(request.app.state.library),
        "chunk_size": request.app.state.chunk_size,
    }


# ============================================================
# MIDDLEWARE
# ============================================================

_TOO_LARGE = {"detail": "Request body too large."}

_RESPONSE_HEADERS = {
    "X-PolicyLens-Version": __version__,
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _declared_length(request: Request) -> int:
    """Content-Length as an int; 0 when absent or malformed."""
    try:
        return int(request.headers.get("content-length") or 0)
    except ValueError:
        return 0


@app.middleware("http")
async def limit_analyze_body(request: Request, call_next):
    """Reject POST bodies over settings.MAX_BODY_BYTES, declared or streamed."""
    if request.method == "POST":
        limit = settings.MAX_BODY_BYTES
        if _declared_length(request) > limit or len(await request.body()) > limit:
            logger.warning(
                "Request body rejected",
                extra={"path": request.url.path, "status_code": 413},
            )
            return JSONResponse(status_code=413, content=_TOO_LARGE)
    return await call_next(request)


@app.middleware("http")
async def stamp_and_log(request: Request, call_next):
    """Set response headers and log each request except health checks."""
    start = time.time()
    response = await call_next(request)
    response.headers.update(_RESPONSE_HEADERS)

    if request.url.path != "/health":
        duration_ms = round((time.time() - start) * 1000, 1)
        logger.info(
            f"{request.method} {request.url.path} → {response.status_code} ({duration_ms}ms)",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
    return response
