"""
API Schemas — Request and Response Models

Pydantic models for the PolicyLens API.
"""

from __future__ import annotations

from typing import Optional
from pydantic import BaseModel, Field


# ============================================================
# ANALYZE
# ============================================================

class AnalyzeRequest(BaseModel):
    """POST /analyze request body."""
    policy: str = Field(..., description="The policy document text to analyze.")
    source: str = Field(..., description="Provenance label (URL or name). Not analyzed.")

    model_config = {"json_schema_extra": {"examples": [
        {
            "policy": "We do not sell your data. We may share data with partners.",
            "source": "https://example.com/privacy",
        },
    ]}}


class MatchResponse(BaseModel):
    pattern_id: str
    category: str
    confidence: str
    description: str = ""
    severity: str = ""
    source_title: str = ""
    source_url: str = ""
    trigger: Optional[str] = None


class ChunkResponse(BaseModel):
    sentences: list[str]
    text: str
    start: int
    end: int
    references: list[MatchResponse]


class AnalyzeResponse(BaseModel):
    """POST /analyze and GET /results/{id} response body."""
    id: str
    date: str
    source: str
    policy: str
    chunks: list[ChunkResponse]
    reference_count: int = 0


# ============================================================
# PATTERNS
# ============================================================

class PatternResponse(BaseModel):
    id: str
    category: str
    triggers: list[str]
    description: str = ""
    severity: str = ""
    source_title: str = ""
    source_url: str = ""


class PatternListResponse(BaseModel):
    total: int
    categories: list[str]
    patterns: list[PatternResponse]


# ============================================================
# HEALTH
# ============================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    patterns_loaded: int
    chunk_size: int
