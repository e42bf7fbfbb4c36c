"""Tests for the miscellaneous-host and generic-organization categories."""

from __future__ import annotations

from sessionsifter.config import Settings
from sessionsifter.parser.special import (
    generic_org_coach,
    is_generic_org_category,
    is_misc_host_category,
    misc_coach,
    misc_context,
    misc_student,
)
from sessionsifter.parser.timeline import analyze_timeline
from sessionsifter.storage.models import Source


class TestMiscHost:
    def test_keyword(self):
        assert is_misc_host_category("Siraj & Sam checkpoint")
        assert is_misc_host_category("meeting_with_SIRAJ")

    def test_surname_exceptions(self):
        assert not is_misc_host_category("Erin_Huda_Siraj_Week_2")
        assert not is_misc_host_category("alice_siraj session")

    def test_surname_exceptions_with_spaces(self):
        assert not is_misc_host_category("Erin Huda Siraj Week 2")
        assert not is_misc_host_category("Sameeha  Siraj review")
        settings = Settings(misc_surname_exceptions=("noor siraj",))
        assert not is_misc_host_category("Jenny_Noor_Siraj", settings)

    def test_absent(self):
        assert not is_misc_host_category("Jenny_John_Smith_Week_2")

    def test_coach_label(self):
        coach = misc_coach()
        assert coach.value == "Siraj"
        assert coach.confidence == 1.0
        assert coach.source == Source.SIRAJ_PATTERN

    def test_student(self):
        student = misc_student("Siraj & Sam checkpoint")
        assert student.value == "Sam"
        assert student.confidence == 0.80
        assert misc_student("siraj_and_alex").value == "Alex"

    def test_student_absent(self):
        assert not misc_student("Siraj planning").known


class TestMiscContext:
    def test_context_keyword(self):
        assert misc_context("Siraj & Sam checkpoint 8812345678", exclude="Sam") == "Checkpoint"

    def test_first_word_fallback(self):
        assert misc_context("Siraj_and_Sam_essays", exclude="Sam") == "Essays"

    def test_nothing_left(self):
        assert misc_context("Siraj 88123456789") is None


class TestGenericOrg:
    def test_contact_only(self, contact_only_timeline):
        analysis = analyze_timeline(contact_only_timeline)
        assert is_generic_org_category(analysis)

    def test_student_present(self, contact_only_timeline):
        contact_only_timeline["timeline"][0]["users"].append(
            {"username": "John Smith", "email_address": "john@gmail.com", "zoom_userid": "s1"}
        )
        assert not is_generic_org_category(analyze_timeline(contact_only_timeline))

    def test_other_org_email_seen(self, contact_only_timeline):
        # Excluded from participants, but its email still counts
        contact_only_timeline["timeline"][0]["users"].append(
            {"username": "16505551234", "email_address": "jenny@ivymentors.co", "zoom_userid": "d1"}
        )
        analysis = analyze_timeline(contact_only_timeline)
        assert len(analysis.participants) == 1
        assert not is_generic_org_category(analysis)

    def test_coach_label(self):
        coach = generic_org_coach()
        assert coach.value == "Ivylevel"
        assert coach.confidence == 0.90
        assert coach.source == Source.IVYLEVEL_PATTERN
