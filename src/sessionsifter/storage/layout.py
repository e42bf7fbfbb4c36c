"""Place named recording files into the By Program / By Coach / By Student tree."""

from __future__ import annotations

import logging
import shutil
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from sessionsifter.storage.models import FinalizedMetadataRecord

logger = logging.getLogger(__name__)

AXES = ("By Program", "By Coach", "By Student")
UNKNOWN_PROGRAM = "Unknown Program"
UNKNOWN_COACH = "Unknown Coach"
NO_WEEK = "No Week"

_UNSAFE = str.maketrans({c: "_" for c in '/\\:*?"<>|'})


def _folder_name(name: str) -> str:
    return name.translate(_UNSAFE).strip() or "_"


class LocalLayout:
    """Folder tree under ``root`` with a cache of folders already created.

    The cache is keyed by (parent, name) and may be shared between threads;
    two threads creating the same folder both end up with the same path.
    """

    def __init__(self, root: Path, max_workers: int = 4):
        self.root = Path(root)
        self.max_workers = max_workers
        self._folders: dict[tuple[Path, str], Path] = {}
        self._lock = threading.Lock()

    def folder(self, parent: Path, name: str) -> Path:
        key = (parent, _folder_name(name))
        with self._lock:
            cached = self._folders.get(key)
        if cached is not None:
            return cached
        path = parent / key[1]
        path.mkdir(parents=True, exist_ok=True)
        with self._lock:
            self._folders.setdefault(key, path)
        return path

    def week_folders(
        self,
        record: FinalizedMetadataRecord,
        student_key: str,
        program: Optional[str] = None,
    ) -> dict[str, Path]:
        """Destination folder on every axis for one recording."""
        week = f"Week {record.week_number.value}" if record.week_number.known else NO_WEEK
        coach = record.coach.value if record.coach.known else UNKNOWN_COACH

        by_program = self.folder(self.root, "By Program")
        by_coach = self.folder(self.root, "By Coach")
        by_student = self.folder(self.root, "By Student")

        program_student = self.folder(self.folder(by_program, program or UNKNOWN_PROGRAM), student_key)
        coach_student = self.folder(self.folder(by_coach, coach), student_key)
        return {
            "By Program": self.folder(program_student, week),
            "By Coach": self.folder(coach_student, week),
            "By Student": self.folder(self.folder(by_student, student_key), week),
        }

    def place(
        self,
        files: list[tuple[Path, str]],
        record: FinalizedMetadataRecord,
        student_key: str,
        program: Optional[str] = None,
    ) -> list[Path]:
        """Copy every (source, canonical name) pair into every axis concurrently."""
        targets = self.week_folders(record, student_key, program)
        jobs = [
            (Path(source), targets[axis] / name)
            for source, name in files
            for axis in AXES
        ]
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            placed = list(pool.map(lambda job: _copy(*job), jobs))
        logger.info("Placed %d files for %s", len(files), student_key)
        return placed


def _copy(source: Path, destination: Path) -> Path:
    shutil.copy2(source, destination)
    logger.debug(f"Copied {source.name} -> {destination}")
    return destination
