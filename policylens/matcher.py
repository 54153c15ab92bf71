"""
Matcher — Negation-Aware Clause Detection

Evaluates every pattern in the library against every chunk. Triggers are
tried in list order and the first one that matches wins; the recorded
confidence is that trigger's negation alignment with the chunk:

  - high:  chunk and trigger agree (both negated, or neither)
  - low:   exactly one of them carries a negation cue

Negation is detected on the WHOLE chunk text, not on the matched clause.
A pattern matches a chunk at most once.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable

from policylens.library import NEGATION_CUES, Pattern, PatternLibrary
from policylens.segmenter import Chunk


class Confidence(str, Enum):
    NONE = "none"   # pre-match default, never stored on a Match
    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class Match:
    """A pattern that matched a chunk."""
    pattern_id: str
    category: str
    confidence: Confidence
    description: str
    severity: str
    source_title: str
    source_url: str
    trigger: str

    def to_dict(self) -> dict:
        return {
            "pattern_id": self.pattern_id,
            "category": self.category,
            "confidence": self.confidence.value,
            "description": self.description,
            "severity": self.severity,
            "source_title": self.source_title,
            "source_url": self.source_url,
            "trigger": self.trigger,
        }


def match_pattern(
    lowered_text: str, chunk_negated: bool, pattern: Pattern,
) -> Match | None:
    """Return a Match for the first trigger that fires, or None."""
    confidence = Confidence.NONE
    for trigger in pattern.triggers:
        confidence = Confidence.HIGH if chunk_negated == trigger.negated else Confidence.LOW
        if trigger.matches(lowered_text):
            return Match(
                pattern_id=pattern.id,
                category=pattern.category,
                confidence=confidence,
                description=pattern.description,
                severity=pattern.severity,
                source_title=pattern.source_title,
                source_url=pattern.source_url,
                trigger=trigger.text,
            )
    return None


def match_chunk(chunk: Chunk, library: PatternLibrary) -> Chunk:
    """Return a copy of `chunk` whose references are one Match per matching pattern."""
    lowered = chunk.text.lower()
    chunk_negated = bool(NEGATION_CUES.search(chunk.text))

    references: list[Match] = []
    for pattern in library:
        found = match_pattern(lowered, chunk_negated, pattern)
        if found is not None:
            references.append(found)

    return replace(chunk, references=tuple(references))


def match(chunks: Iterable[Chunk], library: PatternLibrary) -> list[Chunk]:
    """Annotate every chunk, preserving order."""
    return [match_chunk(chunk, library) for chunk in chunks]
