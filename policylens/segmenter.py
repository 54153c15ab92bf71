"""
Segmenter — Sentence-Bounded Chunking

Splits raw policy text into fixed-size chunks of sentences. Every chunk
carries character offsets into the NORMALIZED text (CRLF -> LF, whitespace
runs collapsed to one space, trimmed), so a chunk can be located in the
document after the fact.

Chunks are built with a ChunkBuilder and sealed into a frozen Chunk value;
a chunk is never observable in a partially-initialized state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# A terminal mark ends a sentence only when whitespace or the end of the
# text follows it, so "...", "U.S.-based" and "v1.2" stay inside one sentence.
TERMINAL_MARKS = frozenset(".!?")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Chunk:
    """A sealed window of consecutive sentences."""
    sentences: tuple[str, ...]
    text: str
    start: int
    end: int
    references: tuple = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "sentences": list(self.sentences),
            "text": self.text,
            "start": self.start,
            "end": self.end,
            "references": [r.to_dict() for r in self.references],
        }


class ChunkBuilder:
    """Accumulates sentences for one chunk; seal() produces the Chunk."""

    def __init__(self, start: int):
        self.start = start
        self._sentences: list[str] = []

    def __len__(self) -> int:
        return len(self._sentences)

    def add(self, sentence: str) -> None:
        self._sentences.append(sentence)

    def seal(self, end: int) -> Chunk:
        return Chunk(
            sentences=tuple(self._sentences),
            text=" ".join(self._sentences),
            start=self.start,
            end=end,
        )


def normalize_text(raw_text: str) -> str:
    """CRLF to LF, collapse whitespace runs, trim. Order matters."""
    text = raw_text.replace("\r\n", "\n")
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def split_sentences(normalized: str) -> list[str]:
    """
    Split normalized text on terminal punctuation in a single pass.

    Text after the last sentence-ending mark belongs to no sentence.
    With no terminal punctuation at all, the whole text is one sentence.
    Empty text has no sentences.
    """
    if not normalized:
        return []

    found: list[str] = []
    start = 0
    last = len(normalized) - 1
    for i, ch in enumerate(normalized):
        if ch in TERMINAL_MARKS and (i == last or normalized[i + 1].isspace()):
            found.append(normalized[start:i + 1].strip())
            start = i + 1
    return found or [normalized]


def segment(raw_text: str, chunk_size: int) -> list[Chunk]:
    """
    Segment raw text into chunks of `chunk_size` sentences.

    Offsets advance by len(sentence) + 1 per sentence to account for the
    joining space, and a chunk closes at `end = position - 1`, so
    normalized[chunk.start:chunk.end] == chunk.text.
    Always returns at least one chunk; an empty document yields a single
    empty chunk at offset 0.
    """
    if not isinstance(chunk_size, int) or isinstance(chunk_size, bool) or chunk_size < 1:
        raise ValueError(f"chunk_size must be a positive integer, got {chunk_size!r}")

    sentences = split_sentences(normalize_text(raw_text))

    chunks: list[Chunk] = []
    position = 0
    builder = ChunkBuilder(start=position)

    for sentence in sentences:
        builder.add(sentence)
        position += len(sentence) + 1

        if len(builder) >= chunk_size:
            chunks.append(builder.seal(end=position - 1))
            builder = ChunkBuilder(start=position)

    if len(builder):
        chunks.append(builder.seal(end=position - 1))
    elif not chunks:
        # Empty document: one empty chunk pinned at offset 0
        chunks.append(builder.seal(end=0))

    return chunks
