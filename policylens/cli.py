"""
policylens — command-line entry point.

Usage:
    policylens analyze policy.txt                      # Text summary
    policylens analyze policy.txt --source acme.com    # Label the result
    policylens analyze policy.txt --chunk-size 2       # Smaller chunks
    policylens analyze policy.txt --json --save        # JSON output, persisted
    policylens patterns                                # List the library
"""

from __future__ import annotations

import argparse
import json
import sys
from collections import Counter
from pathlib import Path

from policylens.config import settings
from policylens.library import PatternLibraryError, load_library
from policylens.logging import setup_logging
from policylens.pipeline import AnalysisResult, run_analysis
from policylens.results import ResultStore


def format_summary(result: AnalysisResult) -> str:
    lines = [
        f"Result {result.id}",
        f"Source: {result.source}",
        f"Chunks: {len(result.chunks)}    Matches: {result.reference_count}",
    ]
    counts = Counter(
        (ref.pattern_id, ref.confidence.value)
        for chunk in result.chunks
        for ref in chunk.references
    )
    for (pattern_id, confidence), n in sorted(counts.items()):
        lines.append(f"  {pattern_id:<32} {confidence:<5} x{n}")
    return "\n".join(lines)


def _cmd_analyze(args, library) -> int:
    path = Path(args.file)
    try:
        policy = path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        print(f"Error: cannot read {path}: {exc}", file=sys.stderr)
        return 1
    if not policy:
        print(f"Error: {path} is empty", file=sys.stderr)
        return 1

    source = (args.source or path.name).strip()
    result = run_analysis(policy, source, library, args.chunk_size)

    if args.save:
        ResultStore(args.results_dir).save(result)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(format_summary(result))
    return 0


def _cmd_patterns(args, library) -> int:
    if args.json:
        print(json.dumps(library.to_list(), indent=2))
        return 0
    for p in library:
        print(f"{p.id:<32} {p.category:<16} {p.severity:<8} {len(p.triggers)} trigger(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="policylens", description="PolicyLens clause annotator")
    parser.add_argument(
        "--reference",
        default=settings.REFERENCE_PATH,
        help="Path to the pattern library JSON (default: bundled reference.json)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_analyze = sub.add_parser("analyze", help="Analyze a policy text file")
    p_analyze.add_argument("file", help="Path to the policy text")
    p_analyze.add_argument("--source", default=None, help="Provenance label (default: file name)")
    p_analyze.add_argument(
        "--chunk-size",
        type=int,
        default=settings.CHUNK_SIZE,
        help=f"Sentences per chunk (default: {settings.CHUNK_SIZE})",
    )
    p_analyze.add_argument("--save", action="store_true", help="Persist the result as JSON")
    p_analyze.add_argument(
        "--results-dir",
        default=settings.RESULTS_DIR,
        help=f"Where --save writes results (default: {settings.RESULTS_DIR})",
    )
    p_analyze.add_argument("--json", action="store_true", help="Output the full JSON result")

    p_patterns = sub.add_parser("patterns", help="List the pattern library")
    p_patterns.add_argument("--json", action="store_true", help="Output JSON")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(fmt="text", stream=sys.stderr)

    if getattr(args, "chunk_size", 1) < 1:
        print("Error: --chunk-size must be at least 1", file=sys.stderr)
        return 1

    try:
        library = load_library(args.reference)
    except PatternLibraryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.command == "analyze":
        return _cmd_analyze(args, library)
    return _cmd_patterns(args, library)


if __name__ == "__main__":
    sys.exit(main())
