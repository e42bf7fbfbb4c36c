"""Coach/student role classification shared by every participant analyzer."""

from __future__ import annotations

import re
from typing import Optional

from sessionsifter.config import DEFAULT_SETTINGS, Settings
from sessionsifter.parser.names import is_org_email
from sessionsifter.storage.models import Role

NUMERIC_NAME = re.compile(r"^\d+$")
FIRST_TOKEN_SPLIT = re.compile(r"[.\s_-]+")

COACH_PHRASES = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bassignment\b",
        r"\bhomework\b",
        r"\bfeedback\b",
        r"\bI'?ll guide you\b",
        r"\blet'?s review\b",
        r"\bfor next week\b",
        r"\byour (?:essay|draft|application|list)\b",
        r"\bI (?:want|need) you to\b",
    )
]

STUDENT_PHRASES = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bcan you help\b",
        r"\bI have a question\b",
        r"\bI'?m (?:confused|not sure|stuck)\b",
        r"\bI don'?t understand\b",
        r"\bhow (?:do|should) I\b",
        r"\bcould you (?:explain|look)\b",
        r"\bmy (?:essay|draft|application)\b",
    )
]


def first_token(name: str) -> str:
    parts = [p for p in FIRST_TOKEN_SPLIT.split(name.strip().lower()) if p]
    return parts[0] if parts else ""


def is_excluded_participant(display_name: Optional[str], settings: Settings | None = None) -> bool:
    """Numeric-only names and the organization account never count as people."""
    settings = settings or DEFAULT_SETTINGS
    name = (display_name or "").strip()
    if not name:
        return True
    return bool(NUMERIC_NAME.match(name)) or name.lower() == settings.org_label.lower()


def classify_role(
    display_name: Optional[str],
    email: Optional[str],
    settings: Settings | None = None,
) -> Optional[Role]:
    """Classify one participant; None means excluded from the participant set.

    An organizational email means coach. Without an email, a first name from
    the coach dictionary means coach. Any other email means student.
    """
    settings = settings or DEFAULT_SETTINGS
    if is_excluded_participant(display_name, settings):
        return None

    email = (email or "").strip()
    if email:
        return Role.COACH if is_org_email(email, settings) else Role.STUDENT

    if first_token(display_name) in settings.coach_names:
        return Role.COACH
    return Role.UNKNOWN


def phrase_role_hint(text: str) -> tuple[int, int]:
    """Count coaching-register and help-seeking phrases in one utterance."""
    coach = sum(1 for p in COACH_PHRASES if p.search(text))
    student = sum(1 for p in STUDENT_PHRASES if p.search(text))
    return coach, student


def hinted_role(coach_hits: int, student_hits: int) -> Role:
    if coach_hits > student_hits:
        return Role.COACH
    if student_hits > coach_hits:
        return Role.STUDENT
    return Role.UNKNOWN
