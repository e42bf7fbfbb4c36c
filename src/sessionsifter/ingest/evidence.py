"""Gather RecordingEvidence from a local recording folder or a webhook payload."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import urlparse

from sessionsifter.parser.patterns import extract_date
from sessionsifter.storage.models import RecordingEvidence

log = logging.getLogger(__name__)

DATE_FORMATS = ("%Y-%m-%d", "%m-%d-%Y", "%m-%d-%y", "%d-%m-%Y")

# Files in a recording folder that are never media
SKIP_FILES = {".ds_store", "thumbs.db"}


class DocumentFetcher(Protocol):
    def fetch(self, locator: str) -> bytes: ...


class LocalFetcher:
    """Resolve download locators against a local directory.

    A URL resolves to the file named by its last path segment under
    ``base_dir``; a plain path is taken relative to ``base_dir``.
    """

    def __init__(self, base_dir: Path | str = "."):
        self.base_dir = Path(base_dir)

    def resolve(self, locator: str) -> Path:
        parsed = urlparse(locator)
        if parsed.scheme in ("http", "https"):
            return self.base_dir / Path(parsed.path).name
        if parsed.scheme == "file":
            return Path(parsed.path)
        path = Path(locator)
        return path if path.is_absolute() else self.base_dir / path

    def fetch(self, locator: str) -> bytes:
        return self.resolve(locator).read_bytes()


def parse_date(text: Optional[str]) -> Optional[date]:
    """Date from an ISO timestamp or a folder-name date fragment."""
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def load_json_document(raw: bytes | str, label: str = "document"):
    """Parse JSON, returning None for malformed input."""
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8-sig")
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        log.warning("Malformed %s: %s", label, e)
        return None


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as e:
        log.warning("Cannot read %s: %s", path, e)
        return None


def _read_json(path: Path):
    try:
        raw = path.read_bytes()
    except OSError as e:
        log.warning("Cannot read %s: %s", path, e)
        return None
    return load_json_document(raw, path.name)


# ── Local folders ──────────────────────────────────────────────────


def evidence_from_folder(folder: Path) -> RecordingEvidence:
    """One local recording folder; the folder name is the source text."""
    folder = Path(folder)
    files = sorted(p for p in folder.iterdir() if p.is_file() and p.name.lower() not in SKIP_FILES)

    metadata = timeline = transcript = chat = None
    for path in files:
        lower = path.name.lower()
        if lower.endswith("metadata.json"):
            metadata = metadata or _read_json(path)
        elif "timeline" in lower and lower.endswith(".json"):
            timeline = timeline or _read_json(path)
        elif lower.endswith(".vtt"):
            transcript = transcript or _read_text(path)
        elif "chat" in lower and lower.endswith(".txt"):
            chat = chat or _read_text(path)

    if not isinstance(metadata, dict):
        metadata = None

    host_email = None
    recording_id = None
    if metadata:
        host = metadata.get("host")
        if isinstance(host, dict):
            host_email = host.get("email")
        elif isinstance(metadata.get("host_email"), str):
            host_email = metadata["host_email"]
        recording_id = metadata.get("meetingId") or metadata.get("uuid")

    recording_date = parse_date(extract_date(folder.name))
    if recording_date is None and metadata:
        recording_date = parse_date(metadata.get("start_time") or metadata.get("date"))

    log.debug(f"Folder {folder.name}: {len(files)} files")
    return RecordingEvidence(
        source_text=folder.name,
        timeline=timeline,
        transcript=transcript,
        chat=chat,
        metadata=metadata,
        host_email=host_email,
        recording_date=recording_date,
        recording_id=str(recording_id) if recording_id else None,
        media_files=tuple(
            (p.name, str(p)) for p in files if not p.name.lower().endswith("metadata.json")
        ),
    )


# ── Webhook payloads ───────────────────────────────────────────────


def recording_object(payload: dict) -> dict:
    """The recording object from a full webhook event or from the object itself."""
    if isinstance(payload.get("payload"), dict):
        obj = payload["payload"].get("object")
        if isinstance(obj, dict):
            return obj
    if isinstance(payload.get("object"), dict):
        return payload["object"]
    return payload


def _fetch_document(fetcher: DocumentFetcher, locator: str, file_type: str) -> Optional[bytes]:
    try:
        return fetcher.fetch(locator)
    except OSError as e:
        log.warning("Could not fetch %s document: %s", file_type, e)
        return None


def evidence_from_payload(payload: dict, fetcher: DocumentFetcher) -> RecordingEvidence:
    """Build evidence for a completed-recording webhook event.

    Timeline, transcript and chat documents are fetched through ``fetcher``;
    a failed or malformed document is treated as absent.
    """
    recording = recording_object(payload)
    files = [
        f for f in recording.get("recording_files") or []
        if isinstance(f, dict) and str(f.get("status") or "completed").lower() == "completed"
    ]

    timeline = transcript = chat = None
    for f in files:
        file_type = str(f.get("file_type", "")).upper()
        locator = f.get("download_url")
        if not locator or file_type not in ("TIMELINE", "TRANSCRIPT", "VTT", "CHAT"):
            continue
        raw = _fetch_document(fetcher, locator, file_type)
        if raw is None:
            continue
        if file_type == "TIMELINE" and timeline is None:
            timeline = load_json_document(raw, "timeline")
        elif file_type in ("TRANSCRIPT", "VTT") and transcript is None:
            transcript = raw.decode("utf-8-sig", errors="replace")
        elif file_type == "CHAT" and chat is None:
            chat = raw.decode("utf-8-sig", errors="replace")

    recording_id = recording.get("id") or recording.get("uuid")
    return RecordingEvidence(
        source_text=recording.get("topic") or "",
        timeline=timeline,
        transcript=transcript,
        chat=chat,
        host_email=recording.get("host_email"),
        recording_date=parse_date(recording.get("start_time")),
        recording_id=str(recording_id) if recording_id else None,
        media_files=tuple(
            (str(f.get("file_type", "")), f["download_url"]) for f in files if f.get("download_url")
        ),
    )
