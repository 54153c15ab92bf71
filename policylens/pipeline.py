"""
Analysis Pipeline — Segmenter -> Matcher

Composes the two stages for one policy document. Synchronous and
self-contained: each call owns its chunk sequence, and the library is
passed in explicitly, so independent runs can execute in parallel.

  - analyze:       chunk sequence only (the core)
  - run_analysis:  wraps the chunks in an AnalysisResult with id/timestamp
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from policylens.library import PatternLibrary
from policylens.logging import get_logger
from policylens.matcher import match
from policylens.segmenter import Chunk, segment

logger = get_logger("pipeline")


@dataclass(frozen=True)
class AnalysisResult:
    """A completed analysis, ready to persist."""
    id: str
    date: str
    source: str
    policy: str
    chunks: tuple[Chunk, ...]

    @property
    def reference_count(self) -> int:
        return sum(len(c.references) for c in self.chunks)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "source": self.source,
            "policy": self.policy,
            "chunks": [c.to_dict() for c in self.chunks],
        }


def analyze(policy: str, library: PatternLibrary, chunk_size: int) -> list[Chunk]:
    """Segment `policy` and annotate each chunk against `library`."""
    return match(segment(policy, chunk_size), library)


def run_analysis(
    policy: str,
    source: str,
    library: PatternLibrary,
    chunk_size: int,
) -> AnalysisResult:
    """
    Run the full pipeline and stamp the result.

    `policy` and `source` are expected to be validated (non-empty,
    trimmed) by the caller. `source` is carried through untouched.
    """
    start = time.time()
    chunks = analyze(policy, library, chunk_size)
    result = AnalysisResult(
        id=str(uuid.uuid4()),
        date=datetime.now(timezone.utc).isoformat(),
        source=source,
        policy=policy,
        chunks=tuple(chunks),
    )

    duration = int((time.time() - start) * 1000)
    logger.info(
        f"Analysis complete: {len(chunks)} chunk(s), {result.reference_count} match(es)",
        extra={
            "result_id": result.id,
            "chunk_count": len(chunks),
            "match_count": result.reference_count,
            "duration_ms": duration,
        },
    )
    return result
