"""Extract coach, student, week and game-plan hints from a folder name or topic."""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from sessionsifter.config import DEFAULT_SETTINGS, Settings
from sessionsifter.parser.names import capitalize, is_organization_name
from sessionsifter.storage.models import ABSENT, ExtractedField, PatternResult, Source

logger = logging.getLogger(__name__)

TOKEN_SPLIT = re.compile(r"[_\s]+")
NUMERIC_TOKEN = re.compile(r"^\d+$")
NAME_TOKEN = re.compile(r"^[A-Za-z][A-Za-z'\-]*$")

# Session qualifiers that sit between the coach and the student in folder names
NON_NAME_TOKENS = {
    "week", "wk", "session", "meeting", "zoom",
    "game", "plan", "gameplan", "prep",
}
WEEK_TOKEN = re.compile(r"^(?:w|wk|week)\d+$", re.IGNORECASE)

# Ordered: the first pattern that matches anywhere in the text wins
WEEK_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"(?<![a-z])week[_\s]+(\d+)",
        r"(?<![a-z])wk[_\s]+(\d+)",
        r"(?<![a-z])week[_\s]*#[_\s]*(\d+)",
        r"(?<![a-z])wk[_\s]*#[_\s]*(\d+)",
        r"(?<![a-z])w(?:ee)?k[_\s]*[#-]?[_\s]*(\d+)",
        r"session[_\s]*[#-]?[_\s]*(\d{1,3})(?!\d)",
        r"meeting[_\s]*[#-]?[_\s]*(\d{1,3})(?!\d)",
        r"(?<!\d)(\d{1,3})(?:st|nd|rd|th)?[_\s]*(?:week|session|meeting)",
        r"(?<![a-z])wk(\d+)",
        r"(?<![a-z])w(\d+)",
    )
]

GAME_PLAN_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"(?<![a-z])game[_\s]*plan(?![a-z])",
        r"(?<![a-z])gameplan(?![a-z])",
        r"(?<![a-z])strategy[_\s]*session(?![a-z])",
        r"(?<![a-z])planning[_\s]*meeting(?![a-z])",
    )
]

DATE_PATTERNS = [
    re.compile(r"(\d{4}-\d{2}-\d{2})"),
    re.compile(r"(\d{2}-\d{2}-\d{4})"),
    re.compile(r"(\d{1,2}[._-]\d{1,2}[._-]\d{2,4})"),
]


def tokenize(text: str) -> list[str]:
    return [t for t in TOKEN_SPLIT.split(text.strip()) if t]


def is_name_token(token: str) -> bool:
    """True for tokens that can be part of a person's name."""
    if not NAME_TOKEN.match(token):
        return False
    lower = token.lower()
    return lower not in NON_NAME_TOKENS and not WEEK_TOKEN.match(lower)


def _join_name(first: str, last: str) -> str:
    return f"{capitalize(first)} {capitalize(last)}"


def _student_from_remaining(
    remaining: list[str], settings: Settings
) -> tuple[ExtractedField, Optional[int]]:
    """Pick the student from the tokens after the coach.

    Returns the field and the index in ``remaining`` where the student's first
    name starts.
    """
    t = settings.thresholds
    hyphen_index = next(
        (i for i, tok in enumerate(remaining) if "-" in tok.strip("-")), None
    )
    if hyphen_index is not None and hyphen_index > 0:
        first, last = remaining[hyphen_index - 1], remaining[hyphen_index]
        return (
            ExtractedField(_join_name(first, last), t.folder_student_hyphenated,
                           Source.FOLDER_PATTERN_HYPHENATED),
            hyphen_index - 1,
        )
    if len(remaining) == 2:
        return (
            ExtractedField(_join_name(*remaining), t.folder_student_pair, Source.FOLDER_PATTERN),
            0,
        )
    if len(remaining) >= 3:
        # Trailing tokens are the student; leading ones are the coach's
        # surname or session qualifiers
        first, last = remaining[-2:]
        return (
            ExtractedField(_join_name(first, last), t.folder_student_trailing, Source.FOLDER_PATTERN),
            len(remaining) - 2,
        )
    return ABSENT, None


def _leading_coach(tokens: list[str], settings: Settings):
    """Coach_[CoachSurname_]StudentFirst_StudentLast[_...] folder names."""
    if len(tokens) < 4 or tokens[0].lower() not in settings.coach_names:
        return None

    coach = ExtractedField(
        capitalize(tokens[0]), settings.thresholds.folder_coach_leading, Source.FOLDER_PATTERN
    )
    remaining = [
        tok for tok in tokens[1:]
        if not NUMERIC_TOKEN.match(tok) and is_name_token(tok)
    ]
    student, start = _student_from_remaining(remaining, settings)
    surname = capitalize(remaining[0]) if start == 1 else None
    return coach, student, surname


def _coach_anywhere(tokens: list[str], settings: Settings):
    """First dictionary coach name at any position; student may precede it."""
    t = settings.thresholds
    for i, tok in enumerate(tokens):
        if tok.lower() not in settings.coach_names:
            continue
        coach = ExtractedField(capitalize(tok), t.folder_coach_any, Source.FOLDER_PATTERN)
        student = ABSENT
        if i >= 2 and is_name_token(tokens[i - 2]) and is_name_token(tokens[i - 1]):
            student = ExtractedField(
                _join_name(tokens[i - 2], tokens[i - 1]),
                t.folder_student_before_coach,
                Source.FOLDER_PATTERN,
            )
        return coach, student, None
    return None


NAME_STAGES: list[tuple[str, Callable]] = [
    ("leading_coach", _leading_coach),
    ("coach_anywhere", _coach_anywhere),
]


def _reject_organizations(value: ExtractedField, settings: Settings) -> ExtractedField:
    if value.known and is_organization_name(value.value, settings):
        logger.debug(f"Rejected organization name: {value.value}")
        return ABSENT
    return value


def extract_week(text: str, settings: Settings | None = None) -> ExtractedField:
    """Week number from the first matching pattern, taken verbatim."""
    settings = settings or DEFAULT_SETTINGS
    for pattern in WEEK_PATTERNS:
        match = pattern.search(text)
        if match:
            return ExtractedField(match.group(1), settings.thresholds.folder_week, Source.FOLDER_PATTERN)
    return ABSENT


def has_game_plan(text: str) -> bool:
    return any(p.search(text) for p in GAME_PLAN_PATTERNS)


def extract_from_text(text: str, settings: Settings | None = None) -> PatternResult:
    """Run the name stages, week patterns and game-plan check over one string."""
    settings = settings or DEFAULT_SETTINGS
    tokens = tokenize(text or "")

    coach, student, surname = ABSENT, ABSENT, None
    for name, stage in NAME_STAGES:
        found = stage(tokens, settings)
        if found:
            coach, student, surname = found
            logger.debug(f"Name stage {name} matched {text!r}: {coach.value} / {student.value}")
            break

    coach = _reject_organizations(coach, settings)
    student = _reject_organizations(student, settings)
    if surname and is_organization_name(surname, settings):
        surname = None

    return PatternResult(
        coach=coach,
        student=student,
        week_number=extract_week(text or "", settings),
        has_game_plan=has_game_plan(text or ""),
        coach_surname=surname if coach.known else None,
    )


def extract_date(text: str) -> Optional[str]:
    """Date fragment from a folder name, separators normalized to hyphens."""
    for pattern in DATE_PATTERNS:
        match = pattern.search(text or "")
        if match:
            return re.sub(r"[._]", "-", match.group(1))
    return None
