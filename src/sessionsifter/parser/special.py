"""Detect recordings that get a category label instead of coach/student naming."""

from __future__ import annotations

import re
from typing import Optional

from sessionsifter.config import DEFAULT_SETTINGS, Settings
from sessionsifter.parser.names import capitalize, is_org_email, is_organization_name
from sessionsifter.storage.models import ABSENT, ExtractedField, Source, TimelineAnalysis

LONG_ID = re.compile(r"\d{10,}")
ALPHA_WORD = re.compile(r"[A-Za-z]+")
SEPARATORS = re.compile(r"[_\s]+")


def is_misc_host_category(text: str, settings: Settings | None = None) -> bool:
    """True if the keyword appears and is not a known student's surname."""
    settings = settings or DEFAULT_SETTINGS
    lower = SEPARATORS.sub("_", (text or "").lower())
    if settings.misc_keyword not in lower:
        return False
    return not any(
        SEPARATORS.sub("_", exception) in lower for exception in settings.misc_surname_exceptions
    )


def misc_student(text: str, settings: Settings | None = None) -> ExtractedField:
    """Student first name from '<keyword> & Name' or '<keyword> and Name'."""
    settings = settings or DEFAULT_SETTINGS
    pattern = re.compile(
        rf"{re.escape(settings.misc_keyword)}[_\s]*(?:&|and)[_\s]+([A-Za-z]+)",
        re.IGNORECASE,
    )
    match = pattern.search(text or "")
    if not match:
        return ABSENT
    name = capitalize(match.group(1))
    if is_organization_name(name, settings):
        return ABSENT
    return ExtractedField(name, settings.thresholds.misc_student, Source.SIRAJ_PATTERN)


def misc_coach(settings: Settings | None = None) -> ExtractedField:
    settings = settings or DEFAULT_SETTINGS
    return ExtractedField(settings.misc_label, settings.thresholds.misc_coach, Source.SIRAJ_PATTERN)


def misc_context(
    text: str, exclude: Optional[str] = None, settings: Settings | None = None
) -> Optional[str]:
    """Short context word for a miscellaneous recording's filename."""
    settings = settings or DEFAULT_SETTINGS
    cleaned = re.sub(re.escape(settings.misc_keyword), "", text or "", flags=re.IGNORECASE)
    cleaned = LONG_ID.sub("", cleaned)
    cleaned = re.sub(r"[_\s]+", " ", cleaned).strip()
    lower = cleaned.lower()

    for keyword in settings.misc_context_keywords:
        if keyword in lower:
            return capitalize(keyword)

    skip = (exclude or "").lower()
    for word in ALPHA_WORD.findall(cleaned):
        if len(word) >= 3 and word.lower() != skip and word.lower() != "and":
            return capitalize(word)
    return None


def is_generic_org_category(analysis: TimelineAnalysis, settings: Settings | None = None) -> bool:
    """True when the shared contact account is the only participant present."""
    settings = settings or DEFAULT_SETTINGS
    contact = settings.org_contact_email.lower()

    participants = analysis.participants
    if len(participants) != 1 or (participants[0].email or "").lower() != contact:
        return False

    other_org_emails = {
        e for e in analysis.emails_seen if e != contact and is_org_email(e, settings)
    }
    return not other_org_emails


def generic_org_coach(settings: Settings | None = None) -> ExtractedField:
    settings = settings or DEFAULT_SETTINGS
    return ExtractedField(
        settings.org_label, settings.thresholds.generic_org_coach, Source.IVYLEVEL_PATTERN
    )
