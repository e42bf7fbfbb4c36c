"""Tests for folder-name and topic pattern extraction."""

from __future__ import annotations

import pytest

from sessionsifter.parser.patterns import (
    extract_date,
    extract_from_text,
    extract_week,
    has_game_plan,
    is_name_token,
    tokenize,
)
from sessionsifter.storage.models import Source


class TestTokens:
    def test_tokenize(self):
        assert tokenize("Jenny_Duan  John Smith__Week_3") == [
            "Jenny", "Duan", "John", "Smith", "Week", "3",
        ]

    def test_name_tokens(self):
        assert is_name_token("Smith")
        assert is_name_token("Lee-Park")
        assert not is_name_token("Week")
        assert not is_name_token("Wk3")
        assert not is_name_token("GamePlan")
        assert not is_name_token("2024")


class TestLeadingCoach:
    def test_coach_surname_and_student(self):
        result = extract_from_text("Jenny_Duan_John_Smith_Week_3")
        assert result.coach.value == "Jenny"
        assert result.coach.confidence == 0.85
        assert result.coach.source == Source.FOLDER_PATTERN
        assert result.student.value == "John Smith"
        assert result.student.confidence == 0.75
        assert result.coach_surname == "Duan"
        assert result.week_number.value == "3"

    def test_student_pair(self):
        result = extract_from_text("jenny_john_smith_Wk5")
        assert result.coach.value == "Jenny"
        assert result.student.value == "John Smith"
        assert result.student.confidence == 0.80
        assert result.coach_surname is None
        assert result.week_number.value == "5"

    def test_hyphenated_surname(self):
        result = extract_from_text("Noor_Anna_Smith-Jones_Week_1")
        assert result.student.value == "Anna Smith-Jones"
        assert result.student.confidence == 0.85
        assert result.student.source == Source.FOLDER_PATTERN_HYPHENATED

    def test_hyphenated_first_name_is_a_pair(self):
        result = extract_from_text("Noor_Mary-Jane_Smith_Week_1")
        assert result.student.value == "Mary-Jane Smith"
        assert result.student.confidence == 0.80
        assert result.student.source == Source.FOLDER_PATTERN

    def test_too_few_tokens(self):
        result = extract_from_text("Jenny_John_Smith")
        # Falls through to the any-position stage
        assert result.coach.value == "Jenny"
        assert result.coach.confidence == 0.80
        assert not result.student.known


class TestCoachAnywhere:
    def test_student_before_coach(self):
        result = extract_from_text("John_Smith_Jenny_Week_2")
        assert result.coach.value == "Jenny"
        assert result.coach.confidence == 0.80
        assert result.student.value == "John Smith"
        assert result.student.confidence == 0.80

    def test_no_student(self):
        result = extract_from_text("Meeting with Jenny")
        assert result.coach.value == "Jenny"
        assert not result.student.known

    def test_no_coach(self):
        result = extract_from_text("Weekly check in")
        assert not result.coach.known
        assert not result.student.known
        assert result.coach_surname is None


class TestOrganizations:
    def test_company_student_rejected(self):
        result = extract_from_text("Jenny_Acme_Corp_Week_1")
        assert result.coach.value == "Jenny"
        assert not result.student.known

    def test_company_word_inside_name_rejected(self):
        result = extract_from_text("Jenny_Duan_Bright_Techcorp_Week_1")
        assert result.coach.value == "Jenny"
        assert not result.student.known


class TestWeek:
    def test_spelled_out(self):
        assert extract_week("Week 12 review").value == "12"
        assert extract_week("wk_4").value == "4"
        assert extract_week("Week #7").value == "7"
        assert extract_week("Session-3").value == "3"

    def test_compact(self):
        assert extract_week("John_W6").value == "6"
        assert extract_week("Wk10").value == "10"

    def test_ordinal(self):
        assert extract_week("3rd session with Noor").value == "3"

    def test_verbatim_large_number(self):
        assert extract_week("Weekly Meeting 123").value == "123"

    def test_meeting_id_is_not_a_week(self):
        assert not extract_week("Zoom Meeting 85612345678").known

    def test_absent(self):
        assert not extract_week("Jenny and John").known

    def test_marker_inside_word(self):
        assert not extract_week("Hawk 5").known
        assert extract_week("Hawk_Week_4").value == "4"

    def test_week_confidence(self):
        week = extract_week("Week 2")
        assert week.confidence == 0.80
        assert week.source == Source.FOLDER_PATTERN


class TestGamePlan:
    def test_variants(self):
        assert has_game_plan("Jenny_John_Smith_GamePlan")
        assert has_game_plan("game plan session")
        assert has_game_plan("Strategy Session with Erin")

    def test_embedded_word(self):
        assert not has_game_plan("endgameplanning notes")
        assert not has_game_plan("Jenny_John_Smith_Week_2")

    def test_flag_in_result(self):
        assert extract_from_text("Erin_Kwame_Osei_Game_Plan").has_game_plan


class TestDates:
    def test_iso(self):
        assert extract_date("Jenny_John_Smith_2024-03-05") == "2024-03-05"

    def test_us(self):
        assert extract_date("John 03-05-2024") == "03-05-2024"

    def test_dotted(self):
        assert extract_date("John 3.5.24") == "3-5-24"

    def test_absent(self):
        assert extract_date("no date here") is None


class TestProperties:
    @pytest.mark.parametrize("text", [
        "Jenny_Duan_John_Smith_Week_3",
        "John_Smith_Jenny_Week_2",
        "Noor_Anna_Smith-Jones_GamePlan_Wk4",
        "Weekly Meeting 123",
        "",
    ])
    def test_same_input_same_result(self, text):
        assert extract_from_text(text) == extract_from_text(text)

    @pytest.mark.parametrize("text, week", [
        ("week_7", "7"),
        ("Jenny_John_Smith_Session_2_Week_7_notes", "7"),
        ("W5 catch-up then week_11 review", "11"),
        ("Meeting_3_week_22", "22"),
        ("notes before week 9 and after", "9"),
    ])
    def test_explicit_week_wins_anywhere(self, text, week):
        assert extract_week(text).value == week
