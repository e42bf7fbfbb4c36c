"""Parse the in-meeting chat log."""

from __future__ import annotations

import logging
import re

from sessionsifter.config import DEFAULT_SETTINGS, Settings
from sessionsifter.parser.names import capitalize, is_organization_name
from sessionsifter.parser.roles import classify_role, hinted_role, phrase_role_hint
from sessionsifter.storage.models import (
    ChatAnalysis,
    ChatMessage,
    ChatParticipant,
    ExtractedField,
    Role,
    Source,
)

logger = logging.getLogger(__name__)

CHAT_LINE = re.compile(r"^(\d{2}:\d{2}:\d{2})\s+From\s+(.+?)\s+to\s+(.+?):\s*(.*)$")


def parse_chat(text: str) -> list[ChatMessage]:
    """Parse 'HH:MM:SS From <sender> to <recipient>: <message>' lines."""
    messages = []
    for line in (text or "").splitlines():
        match = CHAT_LINE.match(line.strip())
        if not match:
            continue
        timestamp, sender, recipient, message = match.groups()
        messages.append(ChatMessage(timestamp, sender.strip(), recipient.strip(), message))
    return messages


def analyze_chat(text: str, settings: Settings | None = None) -> ChatAnalysis:
    """Count messages per sender and match senders against coach names."""
    settings = settings or DEFAULT_SETTINGS
    t = settings.thresholds
    analysis = ChatAnalysis()

    for message in parse_chat(text):
        participant = analysis.participants.get(message.sender)
        if participant is None:
            participant = analysis.participants[message.sender] = ChatParticipant(name=message.sender)
        participant.message_count += 1
        participant.recipients.add(message.recipient)
        coach_hits, student_hits = phrase_role_hint(message.text)
        participant.coach_hits += coach_hits
        participant.student_hits += student_hits

    coach_names = sorted(settings.coach_names)
    for participant in analysis.participants.values():
        role = classify_role(participant.name, None, settings)
        if role == Role.UNKNOWN:
            role = hinted_role(participant.coach_hits, participant.student_hits)
        participant.role = role or Role.UNKNOWN

        if analysis.coach.known:
            continue
        lower = participant.name.lower()
        for name in coach_names:
            if name in lower:
                analysis.coach = ExtractedField(capitalize(name), t.chat_coach, Source.CHAT)
                logger.debug(f"Chat coach from sender {participant.name!r}: {analysis.coach.value}")
                break

    for participant in analysis.participants.values():
        if participant.role != Role.STUDENT:
            continue
        if is_organization_name(participant.name, settings):
            continue
        analysis.student = ExtractedField(participant.name, t.role_hint, Source.CHAT)
        break

    logger.debug(f"Chat: {len(analysis.participants)} senders")
    return analysis
