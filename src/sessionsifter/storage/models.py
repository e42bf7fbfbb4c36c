"""Data models for SessionSifter."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class Source(str, Enum):
    """Which analyzer or stage produced a field value."""

    FOLDER_PATTERN = "folder_pattern"
    FOLDER_PATTERN_HYPHENATED = "folder_pattern_hyphenated"
    TIMELINE = "timeline"
    TIMELINE_ENHANCED = "timeline_enhanced"
    TRANSCRIPT = "transcript"
    CHAT = "chat"
    METADATA_ORIGINAL_NAME = "metadata_original_name"
    METADATA_COACH_EMAIL = "metadata_coach_email"
    METADATA_STUDENT_EMAIL = "metadata_student_email"
    MAPPINGS = "mappings"
    CALCULATED = "calculated"
    CALCULATED_FALLBACK = "calculated_fallback"
    SIRAJ_PATTERN = "siraj_pattern"
    IVYLEVEL_PATTERN = "ivylevel_pattern"
    NONE = "none"


class Category(str, Enum):
    NORMAL = "Normal"
    MISC = "MiscHostCategory"
    GENERIC_ORG = "GenericOrgCategory"


class Role(str, Enum):
    COACH = "Coach"
    STUDENT = "Student"
    UNKNOWN = "Unknown"


class MediaKind(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    TRANSCRIPT = "transcript"
    CHAT = "chat"
    TIMELINE = "timeline"


@dataclass(frozen=True)
class ExtractedField:
    """A value with its confidence and provenance tag.

    Confidence 0 means the value is unknown, so a zero-confidence field never
    carries a value.
    """

    value: Optional[str] = None
    confidence: float = 0.0
    source: Source = Source.NONE

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence out of range: {self.confidence}")
        if self.confidence == 0.0 and self.value is not None:
            raise ValueError("a zero-confidence field cannot carry a value")
        if self.confidence > 0.0 and not self.value:
            raise ValueError("a field with confidence needs a value")

    @property
    def known(self) -> bool:
        return self.confidence > 0.0

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "confidence": self.confidence,
            "source": self.source.value,
        }


ABSENT = ExtractedField()


@dataclass(frozen=True)
class ParticipantRecord:
    display_name: str
    email: Optional[str]
    role: Role


@dataclass(frozen=True)
class StudentDirectoryEntry:
    email: str
    display_name: str
    coach_name: str = ""
    coach_email: str = ""
    program: str = ""
    start_date: Optional[date] = None


@dataclass(frozen=True)
class RecordingEvidence:
    """Everything known about one recording, gathered before fusion."""

    source_text: str
    timeline: Optional[object] = None  # parsed timeline JSON (dict or list)
    transcript: Optional[str] = None
    chat: Optional[str] = None
    metadata: Optional[dict] = None
    host_email: Optional[str] = None
    recording_date: Optional[date] = None
    recording_id: Optional[str] = None
    media_files: tuple = ()  # (file type or filename, locator) pairs


@dataclass(frozen=True)
class ProvenanceEntry:
    stage: str
    field: str
    value: Optional[str]
    confidence: float
    source: Source
    action: str  # accepted, forced, rejected_org, rejected_range, defaulted


@dataclass(frozen=True)
class FinalizedMetadataRecord:
    coach: ExtractedField = ABSENT
    student: ExtractedField = ABSENT
    week_number: ExtractedField = ABSENT
    has_game_plan: bool = False
    category: Category = Category.NORMAL
    coach_surname: Optional[str] = None
    context: Optional[str] = None
    needs_review: bool = False
    provenance: tuple = ()

    def to_dict(self) -> dict:
        return {
            "coach": self.coach.to_dict(),
            "student": self.student.to_dict(),
            "week_number": self.week_number.to_dict(),
            "has_game_plan": self.has_game_plan,
            "category": self.category.value,
            "coach_surname": self.coach_surname,
            "context": self.context,
            "needs_review": self.needs_review,
            "provenance": [
                {
                    "stage": p.stage,
                    "field": p.field,
                    "value": p.value,
                    "confidence": p.confidence,
                    "source": p.source.value,
                    "action": p.action,
                }
                for p in self.provenance
            ],
        }


# ── Analyzer outputs ───────────────────────────────────────────────


@dataclass(frozen=True)
class PatternResult:
    coach: ExtractedField = ABSENT
    student: ExtractedField = ABSENT
    week_number: ExtractedField = ABSENT
    has_game_plan: bool = False
    coach_surname: Optional[str] = None


@dataclass
class TimelineAnalysis:
    participants: list[ParticipantRecord] = field(default_factory=list)
    coach: ExtractedField = ABSENT
    student: ExtractedField = ABSENT
    emails_seen: set[str] = field(default_factory=set)


@dataclass
class SpeakerStats:
    label: str
    message_count: int = 0
    possible_names: set[str] = field(default_factory=set)
    coach_hits: int = 0
    student_hits: int = 0
    role: Role = Role.UNKNOWN


@dataclass
class TranscriptAnalysis:
    speakers: dict[str, SpeakerStats] = field(default_factory=dict)
    coach: ExtractedField = ABSENT
    student: ExtractedField = ABSENT


@dataclass(frozen=True)
class ChatMessage:
    timestamp: str
    sender: str
    recipient: str
    text: str


@dataclass
class ChatParticipant:
    name: str
    message_count: int = 0
    recipients: set[str] = field(default_factory=set)
    coach_hits: int = 0
    student_hits: int = 0
    role: Role = Role.UNKNOWN


@dataclass
class ChatAnalysis:
    participants: dict[str, ChatParticipant] = field(default_factory=dict)
    coach: ExtractedField = ABSENT
    student: ExtractedField = ABSENT
