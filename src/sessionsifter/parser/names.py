"""Clean up name fragments and reject organization names posing as people."""

from __future__ import annotations

import re
from typing import Optional

from sessionsifter.config import DEFAULT_SETTINGS, Settings

PLACEHOLDER_EMAILS = {"unknown@student.com", "unknown@email.com", "null"}

# With short_indicators_whole_word, indicators this short only count as whole words
_WHOLE_WORD_MAX = 4
_WORD_SPLIT = re.compile(r"[^a-z0-9]+")


def capitalize(token: str) -> str:
    """Title-case one word, segment by segment for hyphenated names."""
    return "-".join(part[:1].upper() + part[1:].lower() for part in token.split("-"))


def is_organization_name(candidate: Optional[str], settings: Settings | None = None) -> bool:
    """True if the candidate looks like a company or the organization itself."""
    if not candidate:
        return False
    settings = settings or DEFAULT_SETTINGS

    lower = candidate.lower().strip()
    if lower in (settings.org_label.lower(), settings.org_spoken_alias.lower()):
        return True

    words = set(_WORD_SPLIT.split(lower))
    for indicator in settings.org_indicators:
        if settings.short_indicators_whole_word and len(indicator) <= _WHOLE_WORD_MAX:
            if indicator in words:
                return True
        elif indicator in lower:
            return True
    return False


def email_domain(email: Optional[str]) -> str:
    if not email or "@" not in email:
        return ""
    return email.rsplit("@", 1)[1].strip().lower()


def is_org_email(email: Optional[str], settings: Settings | None = None) -> bool:
    """True if the address is on one of the organization's domains."""
    settings = settings or DEFAULT_SETTINGS
    domain = email_domain(email)
    if not domain:
        return False
    return any(domain == d or domain.endswith("." + d) for d in settings.org_domains)


def name_from_email(email: Optional[str]) -> Optional[str]:
    """Derive a display name from an address like first.last@example.com."""
    if not email or email.lower() in PLACEHOLDER_EMAILS or "@" not in email:
        return None
    local = email.split("@", 1)[0]
    parts = [re.sub(r"\d+", "", p) for p in re.split(r"[._]+", local)]
    parts = [p for p in parts if p]
    if not parts:
        return None
    return " ".join(capitalize(p) for p in parts)
