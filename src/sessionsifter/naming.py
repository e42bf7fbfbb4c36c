"""Canonical output filenames for a recording's media files."""

from __future__ import annotations

import logging
import re
from pathlib import PurePath
from typing import Iterable, Optional

from sessionsifter.config import DEFAULT_SETTINGS, Settings
from sessionsifter.storage.models import Category, FinalizedMetadataRecord, MediaKind

logger = logging.getLogger(__name__)

UNKNOWN_COACH = "Unknown Coach"
UNKNOWN_STUDENT = "Unknown Student"

SUFFIXES = {
    MediaKind.VIDEO: ("_Video", ".mp4"),
    MediaKind.AUDIO: ("_Audio", ".m4a"),
    MediaKind.TRANSCRIPT: ("_Transcript", ".vtt"),
    MediaKind.CHAT: ("_Chat", ".txt"),
    MediaKind.TIMELINE: ("_Timeline", ".json"),
}

# Recording file types as reported by the meeting platform
FILE_TYPES = {
    "MP4": MediaKind.VIDEO,
    "M4A": MediaKind.AUDIO,
    "TRANSCRIPT": MediaKind.TRANSCRIPT,
    "VTT": MediaKind.TRANSCRIPT,
    "CHAT": MediaKind.CHAT,
    "TIMELINE": MediaKind.TIMELINE,
}

EXTENSIONS = {
    "mp4": MediaKind.VIDEO,
    "m4a": MediaKind.AUDIO,
    "m4": MediaKind.AUDIO,
    "vtt": MediaKind.TRANSCRIPT,
    "txt": MediaKind.CHAT,
}

# Local exports sometimes carry the meeting id after the extension: "video.mp4_8812345"
EXT_WITH_ID = re.compile(r"\.([A-Za-z0-9]+)_\d+$")

NAME_KEYWORDS = (
    ("video", MediaKind.VIDEO),
    ("audio", MediaKind.AUDIO),
    ("transcript", MediaKind.TRANSCRIPT),
    ("chat", MediaKind.CHAT),
    ("timeline", MediaKind.TIMELINE),
)

UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9 \-]")


class NamingError(ValueError):
    """Raised for a file whose media kind cannot be determined."""


def media_kind(file_type_or_name: str) -> MediaKind:
    """Media kind from a platform file type ("MP4") or a local filename."""
    if not file_type_or_name:
        raise NamingError("empty file type")
    if file_type_or_name.upper() in FILE_TYPES:
        return FILE_TYPES[file_type_or_name.upper()]

    name = PurePath(file_type_or_name).name
    lower = name.lower()
    if lower.endswith("metadata.json"):
        raise NamingError(f"not a media file: {name}")

    match = EXT_WITH_ID.search(name)
    if match:
        ext, stem = match.group(1).lower(), name[: match.start()]
    else:
        suffix = PurePath(name).suffix
        ext, stem = suffix[1:].lower(), name[: len(name) - len(suffix)]

    if ext == "json":
        if "timeline" in lower or stem.endswith("_"):
            return MediaKind.TIMELINE
        raise NamingError(f"not a timeline document: {name}")
    if ext in EXTENSIONS:
        return EXTENSIONS[ext]
    if not ext:
        for keyword, kind in NAME_KEYWORDS:
            if keyword in lower:
                return kind
    raise NamingError(f"unknown media kind: {file_type_or_name}")


def sanitize(component: str) -> str:
    """Restrict to letters, digits, spaces and hyphens; spaces become underscores."""
    cleaned = UNSAFE_CHARS.sub("", component or "")
    return "_".join(cleaned.split())


def _value(field, default: str) -> str:
    return field.value if field.known else default


def build_basename(
    record: FinalizedMetadataRecord,
    date_stamp: str,
    recording_id: Optional[str] = None,
    settings: Settings | None = None,
) -> str:
    settings = settings or DEFAULT_SETTINGS
    student = sanitize(_value(record.student, UNKNOWN_STUDENT))

    if record.category == Category.MISC:
        parts = ["MISC", sanitize(settings.misc_label)]
        if record.context:
            parts.append(sanitize(record.context))
        parts.append(student)
    elif record.category == Category.GENERIC_ORG:
        parts = [sanitize(settings.org_label), student]
    else:
        parts = [sanitize(_value(record.coach, UNKNOWN_COACH))]
        if settings.coach_token_policy == "keep_surname" and record.coach_surname:
            parts.append(sanitize(record.coach_surname))
        parts.append(student)
        if record.has_game_plan:
            parts.append("GamePlan")
        if record.week_number.known:
            parts.append(f"Wk{sanitize(record.week_number.value)}")

    parts.append(sanitize(date_stamp))
    if recording_id and settings.include_recording_id:
        parts.append(sanitize(recording_id))
    return "_".join(p for p in parts if p)


def build_filename(
    kind: MediaKind | str,
    record: FinalizedMetadataRecord,
    date_stamp: str,
    recording_id: Optional[str] = None,
    settings: Settings | None = None,
) -> str:
    """Full canonical filename, suffix and extension included."""
    if not isinstance(kind, MediaKind):
        try:
            kind = MediaKind(kind)
        except ValueError:
            raise NamingError(f"unknown media kind: {kind}") from None
    suffix, extension = SUFFIXES[kind]
    return f"{build_basename(record, date_stamp, recording_id, settings)}{suffix}{extension}"


def split_filename(filename: str) -> tuple[str, MediaKind]:
    """Inverse of build_filename: (basename, media kind)."""
    for kind, (suffix, extension) in SUFFIXES.items():
        tail = suffix + extension
        if filename.endswith(tail):
            return filename[: -len(tail)], kind
    raise NamingError(f"not a canonical filename: {filename}")


def name_files(
    files: Iterable[tuple[str, str]],
    record: FinalizedMetadataRecord,
    date_stamp: str,
    recording_id: Optional[str] = None,
    settings: Settings | None = None,
) -> list[tuple[str, MediaKind, str]]:
    """Name every (file type or name, locator) pair; unknown kinds are skipped."""
    named = []
    for file_type, locator in files:
        try:
            kind = media_kind(file_type)
        except NamingError as e:
            logger.warning("Skipping file %s: %s", locator, e)
            continue
        named.append((locator, kind, build_filename(kind, record, date_stamp, recording_id, settings)))
    return named
