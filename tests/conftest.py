"""Shared test fixtures for SessionSifter."""

from __future__ import annotations

import json
from datetime import date

import pytest

from sessionsifter.config import Settings
from sessionsifter.fusion.directory import InMemoryDirectory
from sessionsifter.storage.database import Database
from sessionsifter.storage.models import StudentDirectoryEntry
from sessionsifter.storage.repository import Repository

SAMPLE_TRANSCRIPT = """WEBVTT

1
00:00:01.000 --> 00:00:04.000
Speaker 1: Hi everyone, I'm Aditi and I'll guide you today.

2
00:00:05.000 --> 00:00:08.000
John Smith: I have a question about my essay.
"""

SAMPLE_CHAT = """10:00:01 From Jenny Duan to Everyone: Hello, welcome back
10:00:05 From John Smith to Everyone: can you help me with my draft?
10:01:10 From John Smith to Jenny Duan: thanks
"""


@pytest.fixture
def tmp_db(tmp_path):
    """Temp database with schema initialized."""
    db_path = tmp_path / "test.db"
    with Database(db_path) as db:
        yield db


@pytest.fixture
def repo(tmp_db):
    """Repository backed by the temp database."""
    return Repository(tmp_db)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def sample_timeline():
    """Timeline with one coach, one student and a dial-in number."""
    return {
        "timeline": [
            {
                "ts": "00:00:01.000",
                "users": [
                    {"username": "Jenny Duan", "email_address": "jenny@ivymentors.co", "zoom_userid": "u1"},
                    {"username": "John Smith", "email_address": "john.smith@gmail.com", "zoom_userid": "u2"},
                ],
            },
            {
                "ts": "00:05:00.000",
                "users": [
                    {"username": "Jenny Duan", "email_address": "jenny@ivymentors.co", "zoom_userid": "u1"},
                    {"username": "16505551234", "zoom_userid": "u3"},
                ],
            },
        ]
    }


@pytest.fixture
def contact_only_timeline():
    """Timeline where only the shared organization account is present."""
    return {
        "timeline": [
            {"ts": "00:00:01.000", "users": [
                {"username": "Contact", "email_address": "contact@ivymentors.co", "zoom_userid": "c1"},
            ]},
        ]
    }


@pytest.fixture
def sample_transcript():
    return SAMPLE_TRANSCRIPT


@pytest.fixture
def sample_chat():
    return SAMPLE_CHAT


@pytest.fixture
def directory_entries():
    return [
        StudentDirectoryEntry(
            email="maria.lopez@gmail.com",
            display_name="Maria Lopez",
            coach_name="Erin",
            coach_email="erin@ivymentors.co",
            program="Summer Intensive",
            start_date=date(2024, 1, 1),
        ),
        StudentDirectoryEntry(
            email="kwame.osei@gmail.com",
            display_name="Kwame Osei",
            coach_name="Rishi",
            program="Full Cycle",
            start_date=date(2023, 9, 4),
        ),
    ]


@pytest.fixture
def directory(directory_entries):
    return InMemoryDirectory(directory_entries)


@pytest.fixture
def recording_folder(tmp_path, sample_timeline, sample_transcript, sample_chat):
    """A local recording folder as exported from the meeting platform."""
    folder = tmp_path / "recordings" / "Jenny_Duan_John_Smith_Week_3_2024-03-05"
    folder.mkdir(parents=True)
    (folder / "metadata.json").write_text(json.dumps({
        "meetingId": "8812345",
        "host": {"email": "jenny.duan@ivymentors.co"},
    }))
    (folder / "meeting_timeline.json").write_text(json.dumps(sample_timeline))
    (folder / "closed_caption.vtt").write_text(sample_transcript)
    (folder / "meeting_saved_chat.txt").write_text(sample_chat)
    (folder / "video1234.mp4").write_bytes(b"\x00\x00video")
    (folder / "audio_only.m4a").write_bytes(b"\x00\x00audio")
    return folder
