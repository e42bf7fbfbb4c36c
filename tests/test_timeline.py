"""Tests for the timeline participant analyzer."""

from __future__ import annotations

from sessionsifter.parser.timeline import analyze_timeline, iter_timeline_users, user_key
from sessionsifter.storage.models import Role, Source


class TestParticipants:
    def test_deduplicated_and_classified(self, sample_timeline):
        analysis = analyze_timeline(sample_timeline)
        names = [(p.display_name, p.role) for p in analysis.participants]
        assert names == [("Jenny Duan", Role.COACH), ("John Smith", Role.STUDENT)]

    def test_emails_seen(self, sample_timeline):
        analysis = analyze_timeline(sample_timeline)
        assert analysis.emails_seen == {"jenny@ivymentors.co", "john.smith@gmail.com"}

    def test_bare_event_list(self, sample_timeline):
        users = list(iter_timeline_users(sample_timeline["timeline"]))
        assert len(users) == 4

    def test_malformed_documents(self):
        assert list(iter_timeline_users("not json")) == []
        assert list(iter_timeline_users({"timeline": [None, {"users": [{"no": "name"}]}]})) == []
        assert analyze_timeline(None).participants == []

    def test_user_key_fallbacks(self):
        assert user_key({"username": "A", "zoom_userid": "u1"}) == "id:u1"
        assert user_key({"username": "A", "email_address": "A@X.com"}) == "email:a@x.com"
        assert user_key({"username": " Ann "}) == "name:ann"


class TestCandidates:
    def test_enhanced(self, sample_timeline):
        analysis = analyze_timeline(sample_timeline)
        assert analysis.coach.value == "Jenny Duan"
        assert analysis.coach.confidence == 0.90
        assert analysis.coach.source == Source.TIMELINE_ENHANCED
        assert analysis.student.value == "John Smith"

    def test_basic(self, sample_timeline):
        analysis = analyze_timeline(sample_timeline, filter_organizations=False)
        assert analysis.coach.confidence == 0.80
        assert analysis.coach.source == Source.TIMELINE

    def test_organization_student_skipped(self):
        doc = {"timeline": [{"users": [
            {"username": "Acme Consulting", "email_address": "info@acme.com"},
            {"username": "Priya Shah", "email_address": "priya@gmail.com"},
        ]}]}
        assert analyze_timeline(doc).student.value == "Priya Shah"

    def test_unknown_used_when_no_student(self):
        doc = {"timeline": [{"users": [
            {"username": "Noor", "zoom_userid": "1"},
            {"username": "Guest Caller", "zoom_userid": "2"},
        ]}]}
        analysis = analyze_timeline(doc)
        assert analysis.coach.value == "Noor"
        assert analysis.student.value == "Guest Caller"

    def test_empty(self):
        analysis = analyze_timeline({"timeline": []})
        assert not analysis.coach.known
        assert not analysis.student.known
