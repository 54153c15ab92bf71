"""
PolicyLens — Clause Pattern Annotation for Policy Documents

Flags passages of privacy policies and terms of service that match a
curated library of known clause patterns.

Public API:
  - load_library / build_library: Build the immutable PatternLibrary
  - segment:       Split text into sentence-bounded, offset-tracked chunks
  - match:         Annotate chunks with negation-aware pattern matches
  - analyze:       Segment + match in one call
  - run_analysis:  Full pipeline returning a stamped AnalysisResult
  - ResultStore:   JSON-file persistence for results

Usage:
    from policylens import load_library, run_analysis
    library = load_library("reference.json")
    result = run_analysis(policy_text, "https://example.com/privacy", library, 4)
"""

__version__ = "1.0.0"

from policylens.library import (
    NEGATION_CUES,
    Pattern,
    PatternLibrary,
    PatternLibraryError,
    Trigger,
    build_library,
    load_library,
)
from policylens.segmenter import Chunk, ChunkBuilder, normalize_text, segment, split_sentences
from policylens.matcher import Confidence, Match, match, match_chunk
from policylens.pipeline import AnalysisResult, analyze, run_analysis
from policylens.results import ResultNotFound, ResultStore

__all__ = [
    "NEGATION_CUES",
    "Pattern",
    "PatternLibrary",
    "PatternLibraryError",
    "Trigger",
    "build_library",
    "load_library",
    "Chunk",
    "ChunkBuilder",
    "normalize_text",
    "segment",
    "split_sentences",
    "Confidence",
    "Match",
    "match",
    "match_chunk",
    "AnalysisResult",
    "analyze",
    "run_analysis",
    "ResultNotFound",
    "ResultStore",
]
