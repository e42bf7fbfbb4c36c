"""End-to-end processing of recordings: fusion, naming, ledger and placement."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from pathlib import Path
from typing import Callable

from sessionsifter.fusion.directory import find_entry
from sessionsifter.fusion.engine import MetadataFusionEngine
from sessionsifter.ingest.evidence import evidence_from_folder
from sessionsifter.naming import build_basename, name_files, sanitize
from sessionsifter.storage.layout import LocalLayout
from sessionsifter.storage.models import FinalizedMetadataRecord, RecordingEvidence
from sessionsifter.storage.repository import Repository

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5


def date_stamp(evidence: RecordingEvidence) -> str:
    day = evidence.recording_date or date.today()
    return day.isoformat()


def review_reason(record: FinalizedMetadataRecord) -> str:
    return (
        f"low confidence: coach {record.coach.confidence:.2f}, "
        f"student {record.student.confidence:.2f}"
    )


def process_recording(
    evidence: RecordingEvidence,
    engine: MetadataFusionEngine,
    repo: Repository | None = None,
    layout: LocalLayout | None = None,
    resolve: Callable[[str], Path] = Path,
    skip_existing: bool = True,
) -> dict:
    """Process one recording and return a summary dict.

    Args:
        evidence: Everything gathered for the recording.
        engine: Fusion engine carrying settings and the student directory.
        repo: Ledger; when given, the session row is written and low-confidence
            records are queued for review.
        layout: When given, named files are copied into the folder tree. A
            failed copy raises before the ledger row is written.
        resolve: Maps a media file locator to a local path for placement.
        skip_existing: Return early for recordings already in the ledger.
    """
    recording_id = evidence.recording_id or sanitize(evidence.source_text) or "unknown"
    if repo and skip_existing and repo.session_exists(recording_id):
        logger.info("Recording %s already processed, skipping", recording_id)
        return {"recording_id": recording_id, "skipped": True}

    record = engine.fuse(evidence)
    stamp = date_stamp(evidence)
    settings = engine.settings
    base_name = build_basename(record, stamp, evidence.recording_id, settings)
    files = name_files(evidence.media_files, record, stamp, evidence.recording_id, settings)

    entry = find_entry(engine.directory, evidence.source_text, evidence.host_email)
    program = entry.program if entry else None

    placed = []
    if layout and files:
        student_key = entry.email if entry else sanitize(record.student.value or "Unknown Student")
        placed = layout.place(
            [(resolve(locator), name) for locator, _, name in files],
            record,
            student_key,
            program,
        )

    # Ledger row only after every copy succeeded
    if repo:
        repo.insert_session(
            recording_id,
            evidence.source_text,
            record,
            base_name,
            files,
            session_date=stamp,
            host_email=evidence.host_email,
            program=program,
        )
        if record.needs_review:
            repo.flag(recording_id, record, review_reason(record))

    return {
        "recording_id": recording_id,
        "skipped": False,
        "record": record,
        "base_name": base_name,
        "files": files,
        "placed": placed,
    }


def analyze_folders(
    root: Path, engine: MetadataFusionEngine, repo: Repository | None = None
) -> list[dict]:
    """Analyze every sub-folder of ``root`` as one local recording.

    With a repository the results are also written to the ledger; folders
    already recorded there are left out.
    """
    results = []
    for folder in sorted(p for p in Path(root).iterdir() if p.is_dir()):
        evidence = evidence_from_folder(folder)
        result = process_recording(evidence, engine, repo=repo)
        if result["skipped"]:
            continue
        result["folder"] = folder.name
        result["evidence"] = evidence
        results.append(result)
    return results


def result_to_dict(result: dict) -> dict:
    """JSON-ready form of one analyze_folders result."""
    return {
        "folder": result["folder"],
        "record": result["record"].to_dict(),
        "files": [
            {"source": source, "media_kind": kind.value, "file_name": name}
            for source, kind, name in result["files"]
        ],
    }


def _bucket(confidence: float) -> str:
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def summarize(results: list[dict]) -> dict:
    """Confidence buckets, categories and sources across a batch."""
    summary = {
        "total": len(results),
        "coach": Counter({"high": 0, "medium": 0, "low": 0}),
        "student": Counter({"high": 0, "medium": 0, "low": 0}),
        "categories": Counter(),
        "coach_sources": Counter(),
        "needs_review": 0,
    }
    for result in results:
        record: FinalizedMetadataRecord = result["record"]
        summary["coach"][_bucket(record.coach.confidence)] += 1
        summary["student"][_bucket(record.student.confidence)] += 1
        summary["categories"][record.category.value] += 1
        summary["coach_sources"][record.coach.source.value] += 1
        if record.needs_review:
            summary["needs_review"] += 1

    for key in ("coach", "student", "categories", "coach_sources"):
        summary[key] = dict(summary[key])
    return summary
