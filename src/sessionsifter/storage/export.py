"""JSON export of analysis results."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path


def export_results(results: list[dict], output_dir: Path, summary: dict | None = None) -> Path:
    """Write one analysis batch to a timestamped JSON file and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    path = output_dir / f"analysis-results-{stamp}.json"
    _write_json(path, {
        "generated_at": datetime.now().isoformat(),
        "summary": summary or {},
        "results": results,
    })
    return path


def _write_json(path: Path, data):
    """Write data as formatted JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)
