"""Tests for gathering evidence from folders and webhook payloads."""

from __future__ import annotations

import json
from datetime import date

import pytest

from sessionsifter.ingest.evidence import (
    LocalFetcher,
    evidence_from_folder,
    evidence_from_payload,
    load_json_document,
    parse_date,
    recording_object,
)


class TestParseDate:
    def test_formats(self):
        assert parse_date("2024-03-05T15:00:00Z") == date(2024, 3, 5)
        assert parse_date("2024-03-05") == date(2024, 3, 5)
        assert parse_date("03-05-2024") == date(2024, 3, 5)
        assert parse_date("3-5-24") == date(2024, 3, 5)

    def test_unparseable(self):
        assert parse_date("someday") is None
        assert parse_date(None) is None


class TestFolder:
    def test_documents_loaded(self, recording_folder):
        evidence = evidence_from_folder(recording_folder)
        assert evidence.source_text == "Jenny_Duan_John_Smith_Week_3_2024-03-05"
        assert evidence.timeline["timeline"][0]["users"][0]["username"] == "Jenny Duan"
        assert "Aditi" in evidence.transcript
        assert "From Jenny Duan" in evidence.chat
        assert evidence.host_email == "jenny.duan@ivymentors.co"
        assert evidence.recording_id == "8812345"
        assert evidence.recording_date == date(2024, 3, 5)

    def test_media_files_exclude_metadata(self, recording_folder):
        evidence = evidence_from_folder(recording_folder)
        names = sorted(name for name, _ in evidence.media_files)
        assert names == [
            "audio_only.m4a",
            "closed_caption.vtt",
            "meeting_saved_chat.txt",
            "meeting_timeline.json",
            "video1234.mp4",
        ]

    def test_malformed_timeline_is_absent(self, recording_folder):
        (recording_folder / "meeting_timeline.json").write_text("{not json")
        evidence = evidence_from_folder(recording_folder)
        assert evidence.timeline is None
        assert evidence.transcript is not None

    def test_bare_folder(self, tmp_path):
        folder = tmp_path / "Noor_Kwame_Osei_Week_2"
        folder.mkdir()
        evidence = evidence_from_folder(folder)
        assert evidence.timeline is None
        assert evidence.metadata is None
        assert evidence.recording_date is None
        assert evidence.media_files == ()


@pytest.fixture
def payload():
    return {
        "event": "recording.completed",
        "payload": {
            "object": {
                "id": 8812345,
                "uuid": "abc==",
                "topic": "Jenny_Duan_John_Smith_Week_3",
                "host_email": "jenny.duan@ivymentors.co",
                "start_time": "2024-03-05T15:00:00Z",
                "recording_files": [
                    {"file_type": "MP4", "status": "completed",
                     "download_url": "https://zoom.us/rec/download/video.mp4"},
                    {"file_type": "TIMELINE", "status": "completed",
                     "download_url": "https://zoom.us/rec/download/timeline.json"},
                    {"file_type": "TRANSCRIPT", "status": "completed",
                     "download_url": "https://zoom.us/rec/download/missing.vtt"},
                    {"file_type": "CHAT", "status": "processing",
                     "download_url": "https://zoom.us/rec/download/chat.txt"},
                ],
            }
        },
    }


class TestPayload:
    def test_recording_object(self, payload):
        obj = recording_object(payload)
        assert obj["topic"] == "Jenny_Duan_John_Smith_Week_3"
        assert recording_object(obj) is obj

    def test_evidence(self, payload, tmp_path, sample_timeline):
        (tmp_path / "timeline.json").write_text(json.dumps(sample_timeline))
        (tmp_path / "chat.txt").write_text("10:00:01 From Noor to Everyone: hi\n")

        evidence = evidence_from_payload(payload, LocalFetcher(tmp_path))

        assert evidence.source_text == "Jenny_Duan_John_Smith_Week_3"
        assert evidence.host_email == "jenny.duan@ivymentors.co"
        assert evidence.recording_id == "8812345"
        assert evidence.recording_date == date(2024, 3, 5)
        assert evidence.timeline == sample_timeline
        # missing file degrades to absent; unfinished files are ignored
        assert evidence.transcript is None
        assert evidence.chat is None
        assert [t for t, _ in evidence.media_files] == ["MP4", "TIMELINE", "TRANSCRIPT"]

    def test_null_status_counts_as_completed(self, payload, tmp_path):
        files = payload["payload"]["object"]["recording_files"]
        files[0]["status"] = None
        del files[1]["status"]
        evidence = evidence_from_payload(payload, LocalFetcher(tmp_path))
        assert [t for t, _ in evidence.media_files] == ["MP4", "TIMELINE", "TRANSCRIPT"]


class TestFetcher:
    def test_resolve(self, tmp_path):
        fetcher = LocalFetcher(tmp_path)
        assert fetcher.resolve("https://zoom.us/rec/download/a.mp4") == tmp_path / "a.mp4"
        assert fetcher.resolve("b.vtt") == tmp_path / "b.vtt"
        assert fetcher.resolve(str(tmp_path / "c.txt")) == tmp_path / "c.txt"

    def test_fetch_missing(self, tmp_path):
        with pytest.raises(OSError):
            LocalFetcher(tmp_path).fetch("nothing.json")

    def test_load_json_document(self):
        assert load_json_document(b'{"a": 1}') == {"a": 1}
        assert load_json_document("[1, 2]") == [1, 2]
        assert load_json_document(b"\xff\xfe") is None
        assert load_json_document("{") is None
