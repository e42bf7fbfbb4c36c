"""Parse the meeting timeline JSON into a classified participant set."""

from __future__ import annotations

import logging
from typing import Iterator

from sessionsifter.config import DEFAULT_SETTINGS, Settings
from sessionsifter.parser.names import is_organization_name
from sessionsifter.parser.roles import classify_role
from sessionsifter.storage.models import (
    ExtractedField,
    ParticipantRecord,
    Role,
    Source,
    TimelineAnalysis,
)

logger = logging.getLogger(__name__)

# Account identifiers in order of preference
ID_FIELDS = ("zoom_userid", "user_id", "userId", "id")


def iter_timeline_users(document) -> Iterator[dict]:
    """Yield every user entry of every event, in document order."""
    if isinstance(document, dict):
        events = document.get("timeline") or []
    elif isinstance(document, list):
        events = document
    else:
        return
    for event in events:
        if not isinstance(event, dict):
            continue
        for user in event.get("users") or []:
            if isinstance(user, dict) and user.get("username"):
                yield user


def user_key(user: dict) -> str:
    """Stable identifier used to count a user once across events."""
    for name in ID_FIELDS:
        value = user.get(name)
        if value not in (None, ""):
            return f"id:{value}"
    email = (user.get("email_address") or user.get("email") or "").strip().lower()
    if email:
        return f"email:{email}"
    return f"name:{str(user['username']).strip().lower()}"


def analyze_timeline(
    document,
    settings: Settings | None = None,
    filter_organizations: bool = True,
) -> TimelineAnalysis:
    """Flatten timeline events into unique participants and pick coach/student."""
    settings = settings or DEFAULT_SETTINGS
    t = settings.thresholds
    analysis = TimelineAnalysis()

    unique: dict[str, dict] = {}
    for user in iter_timeline_users(document):
        email = (user.get("email_address") or user.get("email") or "").strip().lower()
        if email:
            analysis.emails_seen.add(email)
        unique.setdefault(user_key(user), user)

    for user in unique.values():
        username = str(user["username"]).strip()
        email = (user.get("email_address") or user.get("email") or "").strip().lower() or None
        role = classify_role(username, email, settings)
        if role is None:
            logger.debug(f"Excluded timeline participant: {username}")
            continue
        analysis.participants.append(ParticipantRecord(username, email, role))

    if filter_organizations:
        confidence, source = t.timeline, Source.TIMELINE_ENHANCED
        candidates = [
            p for p in analysis.participants
            if not is_organization_name(p.display_name, settings)
        ]
    else:
        confidence, source = t.timeline_basic, Source.TIMELINE
        candidates = analysis.participants

    coaches = [p for p in candidates if p.role == Role.COACH]
    students = [p for p in candidates if p.role == Role.STUDENT]
    unknown = [p for p in candidates if p.role == Role.UNKNOWN]

    if coaches:
        analysis.coach = ExtractedField(coaches[0].display_name, confidence, source)
    student_pick = students or unknown
    if student_pick:
        analysis.student = ExtractedField(student_pick[0].display_name, confidence, source)

    logger.debug(
        f"Timeline: {len(analysis.participants)} participants, "
        f"{len(coaches)} coaches, {len(students)} students"
    )
    return analysis
