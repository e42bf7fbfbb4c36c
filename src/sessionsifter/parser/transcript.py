"""Parse a WebVTT caption transcript into per-speaker statistics."""

from __future__ import annotations

import logging
import re

from sessionsifter.config import DEFAULT_SETTINGS, Settings
from sessionsifter.parser.names import capitalize, is_organization_name
from sessionsifter.parser.roles import (
    classify_role,
    first_token,
    hinted_role,
    phrase_role_hint,
)
from sessionsifter.storage.models import (
    ExtractedField,
    Role,
    Source,
    SpeakerStats,
    TranscriptAnalysis,
)

logger = logging.getLogger(__name__)

NUMERIC_LABEL = re.compile(r"^\d+$")

# Self-introductions; the captured name itself must be capitalized
NAME_PATTERNS = [
    re.compile(r"(?i:\bI[’']m|\bI am|\bthis is|\bmy name is)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)?)"),
    re.compile(r"(?i:\bcoach|\bprofessor|\bdr\.?)\s+([A-Z][a-z]+)"),
    re.compile(r"(?i:\bhi)\s+([A-Z][a-z]+),?\s+(?i:I[’']m|this is)"),
]


def parse_transcript(text: str) -> list[tuple[str, str]]:
    """Return (speaker, utterance) pairs, skipping cue timings and headers."""
    pairs = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line or "-->" in line or ":" not in line:
            continue
        speaker, _, utterance = line.partition(":")
        speaker = speaker.strip()
        if not speaker or NUMERIC_LABEL.match(speaker):
            continue
        pairs.append((speaker, utterance.strip()))
    return pairs


def extract_names(utterance: str) -> list[str]:
    names = []
    for pattern in NAME_PATTERNS:
        names.extend(m.group(1) for m in pattern.finditer(utterance))
    return names


def analyze_transcript(text: str, settings: Settings | None = None) -> TranscriptAnalysis:
    """Aggregate speakers, collect self-introduced names and look for the coach."""
    settings = settings or DEFAULT_SETTINGS
    t = settings.thresholds
    analysis = TranscriptAnalysis()

    for speaker, utterance in parse_transcript(text):
        if speaker.lower() == settings.org_spoken_alias.lower():
            speaker = settings.org_label

        stats = analysis.speakers.get(speaker)
        if stats is None:
            stats = analysis.speakers[speaker] = SpeakerStats(label=speaker)
        stats.message_count += 1

        for name in extract_names(utterance):
            if is_organization_name(name, settings):
                continue
            stats.possible_names.add(name)

        coach_hits, student_hits = phrase_role_hint(utterance)
        stats.coach_hits += coach_hits
        stats.student_hits += student_hits

    for stats in analysis.speakers.values():
        role = classify_role(stats.label, None, settings)
        if role is None:
            stats.role = Role.UNKNOWN
        elif role == Role.UNKNOWN:
            stats.role = hinted_role(stats.coach_hits, stats.student_hits)
        else:
            stats.role = role

    for stats in analysis.speakers.values():
        for name in sorted(stats.possible_names):
            token = first_token(name)
            if token in settings.coach_names:
                analysis.coach = ExtractedField(capitalize(token), t.transcript_coach, Source.TRANSCRIPT)
                logger.debug(f"Transcript coach from {stats.label!r}: {analysis.coach.value}")
                break
        if analysis.coach.known:
            break

    if not analysis.coach.known:
        hinted = _first_with_role(analysis, Role.COACH, settings)
        if hinted:
            token = first_token(hinted)
            value = capitalize(token) if token in settings.coach_names else hinted
            analysis.coach = ExtractedField(value, t.role_hint, Source.TRANSCRIPT)

    hinted = _first_with_role(analysis, Role.STUDENT, settings)
    if hinted:
        analysis.student = ExtractedField(hinted, t.role_hint, Source.TRANSCRIPT)

    logger.debug(f"Transcript: {len(analysis.speakers)} speakers")
    return analysis


def _first_with_role(analysis: TranscriptAnalysis, role: Role, settings: Settings):
    for stats in analysis.speakers.values():
        if stats.role != role:
            continue
        if stats.label == settings.org_label or is_organization_name(stats.label, settings):
            continue
        return stats.label
    return None
