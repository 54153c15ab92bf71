"""
Result Store — One JSON File per Analysis

Completed analyses are written to `<results_dir>/<id>.json` with
indentation so the downloaded file is readable. Ids are canonical UUIDs;
anything else is treated as unknown, which keeps lookups inside the
results directory.
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Union

from policylens.logging import get_logger
from policylens.pipeline import AnalysisResult

logger = get_logger("results")


class ResultNotFound(LookupError):
    """No stored result exists for the requested id."""


def _canonical_id(result_id: str) -> str:
    try:
        parsed = uuid.UUID(str(result_id))
    except ValueError as exc:
        raise ResultNotFound(result_id) from exc
    if str(parsed) != result_id:
        raise ResultNotFound(result_id)
    return result_id


class ResultStore:
    """Filesystem-backed storage for analysis results."""

    def __init__(self, results_dir: Union[str, Path]):
        self.results_dir = Path(results_dir)
        self.results_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, result_id: str) -> Path:
        """Path of the stored file for `result_id`. Raises ResultNotFound if missing."""
        path = self.results_dir / f"{_canonical_id(result_id)}.json"
        if not path.is_file():
            raise ResultNotFound(result_id)
        return path

    def exists(self, result_id: str) -> bool:
        try:
            self.path_for(result_id)
        except ResultNotFound:
            return False
        return True

    def save(self, result: AnalysisResult) -> Path:
        path = self.results_dir / f"{_canonical_id(result.id)}.json"
        path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
        logger.info("Result saved", extra={"result_id": result.id, "path": str(path)})
        return path

    def load(self, result_id: str) -> dict:
        """Return the stored result as plain data."""
        path = self.path_for(result_id)
        return json.loads(path.read_text(encoding="utf-8"))
