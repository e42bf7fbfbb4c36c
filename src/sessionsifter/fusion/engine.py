"""Fuse every evidence source for one recording into a single metadata record.

Stages run in a fixed order of decreasing trust:

1. miscellaneous-host check on the topic (forced, short-circuits)
2. folder/topic patterns, then the metadata document (2b)
3. timeline participants, then the generic-organization check (forced)
4. transcript, only while coach or student is below the transcript gate
5. chat, only while coach or student is below the chat gate
6. student directory, only for fields that are still unknown
7. week number from the directory start date

A stage replaces a field only when its confidence is strictly higher than the
current one. Names that look like organizations are rejected before they are
merged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from sessionsifter.config import DEFAULT_SETTINGS, Settings
from sessionsifter.fusion.directory import StudentDirectory, calculate_week, find_entry
from sessionsifter.parser.chat import analyze_chat
from sessionsifter.parser.names import (
    capitalize,
    is_org_email,
    is_organization_name,
    name_from_email,
)
from sessionsifter.parser.patterns import extract_from_text
from sessionsifter.parser.roles import first_token
from sessionsifter.parser.special import (
    generic_org_coach,
    is_generic_org_category,
    is_misc_host_category,
    misc_coach,
    misc_context,
    misc_student,
)
from sessionsifter.parser.timeline import analyze_timeline
from sessionsifter.parser.transcript import analyze_transcript
from sessionsifter.storage.models import (
    ABSENT,
    Category,
    ExtractedField,
    FinalizedMetadataRecord,
    PatternResult,
    ProvenanceEntry,
    RecordingEvidence,
    Source,
    StudentDirectoryEntry,
)

logger = logging.getLogger(__name__)

# Labels written by the category overrides are never person names
LABEL_SOURCES = {Source.SIRAJ_PATTERN, Source.IVYLEVEL_PATTERN}


@dataclass
class _Draft:
    """Working state for one fusion run."""

    settings: Settings
    coach: ExtractedField = ABSENT
    student: ExtractedField = ABSENT
    week: ExtractedField = ABSENT
    has_game_plan: bool = False
    category: Category = Category.NORMAL
    coach_surname: Optional[str] = None
    surname_owner: Optional[ExtractedField] = None
    provenance: list[ProvenanceEntry] = field(default_factory=list)

    def note(self, stage: str, name: str, value: ExtractedField, action: str):
        self.provenance.append(
            ProvenanceEntry(stage, name, value.value, value.confidence, value.source, action)
        )

    def merge(self, stage: str, name: str, candidate: ExtractedField) -> bool:
        """Replace the field if the candidate is strictly more confident."""
        if not candidate.known:
            return False
        if (
            name in ("coach", "student")
            and candidate.source not in LABEL_SOURCES
            and is_organization_name(candidate.value, self.settings)
        ):
            self.note(stage, name, candidate, "rejected_org")
            logger.debug(f"[{stage}] rejected organization name for {name}: {candidate.value}")
            return False
        current = getattr(self, name)
        if candidate.confidence <= current.confidence:
            return False
        setattr(self, name, candidate)
        self.note(stage, name, candidate, "accepted")
        logger.debug(
            f"[{stage}] {name} = {candidate.value} ({candidate.confidence:.2f}, {candidate.source.value})"
        )
        return True

    def force(self, stage: str, name: str, candidate: ExtractedField):
        setattr(self, name, candidate)
        self.note(stage, name, candidate, "forced")
        logger.debug(f"[{stage}] forced {name} = {candidate.value}")

    def below(self, gate: float) -> bool:
        return self.coach.confidence < gate or self.student.confidence < gate


class MetadataFusionEngine:
    """Turn one recording's evidence into a FinalizedMetadataRecord."""

    def __init__(self, settings: Settings | None = None, directory: StudentDirectory | None = None):
        self.settings = settings or DEFAULT_SETTINGS
        self.directory = directory

    def fuse(self, evidence: RecordingEvidence) -> FinalizedMetadataRecord:
        s = self.settings
        t = s.thresholds
        text = evidence.source_text or ""
        draft = _Draft(settings=s)

        # 1. Miscellaneous host
        if is_misc_host_category(text, s):
            draft.category = Category.MISC
            draft.force("misc_host", "coach", misc_coach(s))
            draft.merge("misc_host", "student", misc_student(text, s))
            context = misc_context(text, exclude=draft.student.value, settings=s)
            return self._assemble(draft, evidence, context=context)

        # 2. Folder/topic patterns
        self._merge_pattern("pattern", draft, extract_from_text(text, s))

        # 2b. Metadata document and host email
        self._merge_metadata(draft, evidence)

        # 3. Timeline
        if evidence.timeline is not None:
            timeline = analyze_timeline(evidence.timeline, s)
            draft.merge("timeline", "coach", timeline.coach)
            draft.merge("timeline", "student", timeline.student)
            if is_generic_org_category(timeline, s):
                draft.category = Category.GENERIC_ORG
                draft.force("generic_org", "coach", generic_org_coach(s))

        # 4. Transcript
        if evidence.transcript and draft.below(t.transcript_gate):
            transcript = analyze_transcript(evidence.transcript, s)
            draft.merge("transcript", "coach", transcript.coach)
            draft.merge("transcript", "student", transcript.student)

        # 5. Chat
        if evidence.chat and draft.below(t.chat_gate):
            chat = analyze_chat(evidence.chat, s)
            draft.merge("chat", "coach", chat.coach)
            draft.merge("chat", "student", chat.student)

        # 6. Student directory
        entry = None
        if not draft.coach.known or not draft.student.known:
            entry = self._directory_entry(evidence)
            if entry:
                self._merge_directory(draft, entry)

        self._check_week_range(draft)

        # 7. Week from elapsed program time
        if not draft.week.known:
            entry = entry or self._directory_entry(evidence)
            if entry:
                weeks = calculate_week(entry.start_date, evidence.recording_date, t.max_week)
                if weeks is not None:
                    draft.merge(
                        "calculated", "week",
                        ExtractedField(str(weeks), t.calculated, Source.CALCULATED),
                    )

        return self._assemble(draft, evidence)

    # ── Stages ─────────────────────────────────────────────────────

    def _merge_pattern(
        self, stage: str, draft: _Draft, result: PatternResult, source: Source | None = None,
        floor: float = 0.0,
    ):
        coach, student, week = result.coach, result.student, result.week_number
        if source is not None:
            coach = _retag(coach, source, floor)
            student = _retag(student, source, floor)
            week = _retag(week, source)

        if draft.merge(stage, "coach", coach) and result.coach_surname:
            draft.coach_surname = result.coach_surname
            draft.surname_owner = coach
        draft.merge(stage, "student", student)
        if not draft.week.known:
            draft.merge(stage, "week", week)
        draft.has_game_plan = draft.has_game_plan or result.has_game_plan

    def _merge_metadata(self, draft: _Draft, evidence: RecordingEvidence):
        s = self.settings
        t = s.thresholds
        meta = evidence.metadata if isinstance(evidence.metadata, dict) else {}

        original = meta.get("originalFolderName")
        if isinstance(original, str) and original.strip():
            self._merge_pattern(
                "metadata", draft, extract_from_text(original, s),
                source=Source.METADATA_ORIGINAL_NAME, floor=t.metadata_original_name,
            )

        if not draft.coach.known:
            coach_email = _nested_email(meta.get("coach"))
            name = self._coach_name_from_email(coach_email, require_dictionary=False)
            if name:
                draft.merge("metadata", "coach",
                            ExtractedField(name, t.metadata_email, Source.METADATA_COACH_EMAIL))

        if not draft.student.known:
            name = name_from_email(_nested_email(meta.get("student")))
            if name:
                draft.merge("metadata", "student",
                            ExtractedField(name, t.metadata_email, Source.METADATA_STUDENT_EMAIL))

        if evidence.host_email and is_org_email(evidence.host_email, s):
            name = self._coach_name_from_email(evidence.host_email, require_dictionary=True)
            if name:
                draft.merge("host_email", "coach",
                            ExtractedField(name, t.metadata_email, Source.METADATA_COACH_EMAIL))

    def _coach_name_from_email(self, email: Optional[str], require_dictionary: bool) -> Optional[str]:
        name = name_from_email(email)
        if not name:
            return None
        token = first_token(name)
        if token in self.settings.coach_names:
            return capitalize(token)
        return None if require_dictionary else name

    def _directory_entry(self, evidence: RecordingEvidence) -> Optional[StudentDirectoryEntry]:
        if self.directory is None:
            return None
        entry = find_entry(self.directory, evidence.source_text, evidence.host_email)
        if entry:
            logger.debug(f"Directory match: {entry.email}")
        return entry

    def _merge_directory(self, draft: _Draft, entry: StudentDirectoryEntry):
        confidence = self.settings.thresholds.mappings
        if not draft.student.known and entry.display_name:
            draft.merge("directory", "student",
                        ExtractedField(entry.display_name, confidence, Source.MAPPINGS))
        if not draft.coach.known and entry.coach_name:
            draft.merge("directory", "coach",
                        ExtractedField(entry.coach_name, confidence, Source.MAPPINGS))

    def _check_week_range(self, draft: _Draft):
        if not draft.week.known:
            return
        week = int(draft.week.value)
        if 1 <= week <= self.settings.thresholds.max_week:
            return
        logger.warning(f"Discarding out-of-range week number: {draft.week.value}")
        draft.note("week_range", "week", draft.week, "rejected_range")
        draft.week = ABSENT

    # ── Assembly ───────────────────────────────────────────────────

    def _assemble(
        self, draft: _Draft, evidence: RecordingEvidence, context: Optional[str] = None
    ) -> FinalizedMetadataRecord:
        t = self.settings.thresholds

        if draft.category == Category.MISC:
            draft.week = ABSENT
            draft.has_game_plan = False
        elif draft.category == Category.NORMAL and not draft.week.known:
            default = ExtractedField("1", t.calculated_fallback, Source.CALCULATED_FALLBACK)
            draft.week = default
            draft.note("assembly", "week", default, "defaulted")

        needs_review = draft.category != Category.MISC and (
            draft.coach.confidence < t.review_gate or draft.student.confidence < t.review_gate
        )
        if needs_review:
            logger.info(
                f"Low confidence for {evidence.source_text!r}: "
                f"coach {draft.coach.confidence:.2f}, student {draft.student.confidence:.2f}"
            )

        surname = None
        if draft.coach_surname and draft.coach == draft.surname_owner:
            surname = draft.coach_surname

        return FinalizedMetadataRecord(
            coach=draft.coach,
            student=draft.student,
            week_number=draft.week,
            has_game_plan=draft.has_game_plan,
            category=draft.category,
            coach_surname=surname,
            context=context,
            needs_review=needs_review,
            provenance=tuple(draft.provenance),
        )


def _retag(value: ExtractedField, source: Source, floor: float = 0.0) -> ExtractedField:
    if not value.known:
        return value
    return ExtractedField(value.value, max(value.confidence, floor), source)


def _nested_email(block) -> Optional[str]:
    if isinstance(block, dict):
        email = block.get("email")
        return email if isinstance(email, str) else None
    return None
