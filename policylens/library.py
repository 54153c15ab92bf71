"""
Pattern Library — Immutable Reference Data

The pattern library is the curated set of clause patterns that every
analysis run is evaluated against. It is loaded once, validated in full,
and never mutated afterwards. Analysis runs receive it explicitly; there
is no module-level library instance.

Each trigger is classified at load time:
  - literal:  plain phrase, matched as a case-insensitive substring
  - regex:    carries a regex marker (".*" or "\\b") and compiled once
  - invalid:  carries a regex marker but does not compile; never matches

Usage:
    from policylens.library import load_library
    library = load_library("policylens/data/reference.json")
    for pattern in library:
        ...
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Union

from policylens.logging import get_logger

logger = get_logger("library")


# ============================================================
# NEGATION CUES
# ============================================================

NEGATION_CUES = re.compile(
    r"\b(not|no|never|don't|doesn't|won't|cannot)\b",
    re.IGNORECASE,
)

# Substrings that mark a trigger as a regex fragment
REGEX_MARKERS = (".*", "\\b")

TRIGGER_LITERAL = "literal"
TRIGGER_REGEX = "regex"
TRIGGER_INVALID = "invalid"


class PatternLibraryError(ValueError):
    """Raised when reference data cannot be loaded into a consistent library."""


# ============================================================
# DATA STRUCTURES
# ============================================================

@dataclass(frozen=True)
class Trigger:
    """A single trigger, classified and (for regex) compiled at load time."""
    text: str
    kind: str                       # "literal" | "regex" | "invalid"
    lowered: str
    negated: bool                   # trigger contains a negation cue
    regex: Optional[re.Pattern] = None

    @classmethod
    def parse(cls, text: str, pattern_id: str = "") -> "Trigger":
        negated = bool(NEGATION_CUES.search(text))
        if not any(marker in text for marker in REGEX_MARKERS):
            return cls(text=text, kind=TRIGGER_LITERAL, lowered=text.lower(), negated=negated)
        try:
            compiled = re.compile(text, re.IGNORECASE)
        except re.error as exc:
            logger.warning(
                f"Invalid regex trigger skipped: {text}",
                extra={"pattern_id": pattern_id, "trigger": text, "error": str(exc)},
            )
            return cls(text=text, kind=TRIGGER_INVALID, lowered=text.lower(), negated=negated)
        return cls(
            text=text, kind=TRIGGER_REGEX, lowered=text.lower(),
            negated=negated, regex=compiled,
        )

    def matches(self, lowered_text: str) -> bool:
        """Literal substring first, then the compiled regex if there is one."""
        if self.lowered in lowered_text:
            return True
        if self.regex is not None:
            return self.regex.search(lowered_text) is not None
        return False


@dataclass(frozen=True)
class Pattern:
    """A named clause pattern from the reference library."""
    id: str
    category: str
    triggers: tuple[Trigger, ...]
    description: str = ""
    severity: str = ""
    source_title: str = ""
    source_url: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "triggers": [t.text for t in self.triggers],
            "description": self.description,
            "severity": self.severity,
            "source_title": self.source_title,
            "source_url": self.source_url,
        }


class PatternLibrary:
    """
    Immutable, ordered collection of patterns.

    Iteration order is document order, which is also the order matches
    are attached to a chunk. Safe to share across concurrent analysis
    runs since nothing mutates it after construction.
    """

    __slots__ = ("_patterns", "_by_id")

    def __init__(self, patterns: tuple[Pattern, ...]):
        by_id: dict[str, Pattern] = {}
        for p in patterns:
            if p.id in by_id:
                raise PatternLibraryError(f"Duplicate pattern id: {p.id}")
            by_id[p.id] = p
        object.__setattr__(self, "_patterns", tuple(patterns))
        object.__setattr__(self, "_by_id", by_id)

    def __setattr__(self, name, value):
        raise AttributeError("PatternLibrary is immutable")

    def __iter__(self) -> Iterator[Pattern]:
        return iter(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._by_id

    def get(self, pattern_id: str) -> Optional[Pattern]:
        return self._by_id.get(pattern_id)

    def categories(self) -> list[str]:
        """Distinct categories in first-seen order."""
        seen: list[str] = []
        for p in self._patterns:
            if p.category not in seen:
                seen.append(p.category)
        return seen

    def to_list(self) -> list[dict]:
        return [p.to_dict() for p in self._patterns]


# ============================================================
# LOADING
# ============================================================

def _require_str(entry: dict, key: str, index: int, required: bool) -> str:
    value = entry.get(key, "")
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise PatternLibraryError(f"patterns[{index}].{key} must be a string")
    if required and not value.strip():
        raise PatternLibraryError(f"patterns[{index}].{key} is required")
    return value


def _build_pattern(entry: dict, index: int) -> Pattern:
    if not isinstance(entry, dict):
        raise PatternLibraryError(f"patterns[{index}] must be an object")

    pattern_id = _require_str(entry, "id", index, required=True)
    category = _require_str(entry, "category", index, required=True)

    raw_triggers = entry.get("triggers")
    if not isinstance(raw_triggers, list) or not raw_triggers:
        raise PatternLibraryError(f"Pattern {pattern_id}: triggers must be a non-empty list")
    for t in raw_triggers:
        if not isinstance(t, str) or not t:
            raise PatternLibraryError(f"Pattern {pattern_id}: every trigger must be a non-empty string")

    return Pattern(
        id=pattern_id,
        category=category,
        triggers=tuple(Trigger.parse(t, pattern_id) for t in raw_triggers),
        description=_require_str(entry, "description", index, required=False),
        severity=_require_str(entry, "severity", index, required=False),
        source_title=_require_str(entry, "source_title", index, required=False),
        source_url=_require_str(entry, "source_url", index, required=False),
    )


def build_library(data: Union[dict, list]) -> PatternLibrary:
    """
    Validate parsed reference data and build a PatternLibrary.

    Accepts either the full document ({"patterns": [...]}) or the bare
    list of pattern entries. Any malformed entry aborts the whole load.
    """
    if isinstance(data, dict):
        entries = data.get("patterns")
    else:
        entries = data
    if not isinstance(entries, list):
        raise PatternLibraryError("Reference data must contain a 'patterns' list")

    patterns = tuple(_build_pattern(entry, i) for i, entry in enumerate(entries))
    library = PatternLibrary(patterns)

    invalid = sum(1 for p in library for t in p.triggers if t.kind == TRIGGER_INVALID)
    logger.info(
        f"Pattern library built: {len(library)} patterns, {invalid} invalid trigger(s)",
        extra={"pattern_count": len(library)},
    )
    return library


def load_library(path: Union[str, Path]) -> PatternLibrary:
    """Read a reference JSON document from disk and build the library."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PatternLibraryError(f"Cannot read reference data at {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PatternLibraryError(f"Reference data at {path} is not valid JSON: {exc}") from exc
    return build_library(data)
