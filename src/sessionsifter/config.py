"""Configuration and constants for SessionSifter."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

# Paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_DB_PATH = DEFAULT_DATA_DIR / "sessionsifter.db"
SETTINGS_JSON_PATH = PROJECT_ROOT / "sessionsifter.json"
CONFIG_ENV_VAR = "SESSIONSIFTER_CONFIG"

# Coach first names as they appear in meeting topics and folder names
COACH_NAMES = frozenset({
    "noor", "jenny", "aditi", "marissa", "rishi", "erin",
    "janice", "summer", "jamie", "alice", "alan", "andrew", "juli",
})

# Organization identity
ORG_DOMAINS = ("ivymentors.co", "stanford.edu")
ORG_CONTACT_EMAIL = "contact@ivymentors.co"
ORG_LABEL = "Ivylevel"
ORG_SPOKEN_ALIAS = "Ivy Mentors"

# Substrings that mark a candidate name as a company rather than a person
ORG_INDICATORS = (
    "ivy mentor", "ivymentor",
    "company", "corporation", "corp", "inc", "llc", "ltd",
    "organization", "org", "institute", "academy",
    "services", "consulting", "partners", "group",
)

# Miscellaneous-host recordings
MISC_KEYWORD = "siraj"
MISC_LABEL = "Siraj"
# Students whose surname is the keyword
MISC_SURNAME_EXCEPTIONS = ("sameeha_siraj", "huda_siraj", "alice_siraj")
MISC_CONTEXT_KEYWORDS = (
    "checkpoint", "review", "planning", "strategy",
    "meeting", "discussion", "presentation",
)

COACH_TOKEN_POLICIES = ("keep_surname", "single")


class ConfigurationError(ValueError):
    """Raised when the settings file is unusable."""


@dataclass(frozen=True)
class Thresholds:
    """Every confidence constant used by the analyzers and the fusion engine."""

    # Folder/topic patterns
    folder_coach_leading: float = 0.85
    folder_student_hyphenated: float = 0.85
    folder_student_pair: float = 0.80
    folder_student_trailing: float = 0.75
    folder_coach_any: float = 0.80
    folder_student_before_coach: float = 0.80
    folder_week: float = 0.80

    # Category overrides
    misc_coach: float = 1.0
    misc_student: float = 0.80
    generic_org_coach: float = 0.90

    # Evidence documents
    timeline: float = 0.90
    timeline_basic: float = 0.80
    transcript_coach: float = 0.85
    chat_coach: float = 0.60
    role_hint: float = 0.40
    metadata_original_name: float = 0.90
    metadata_email: float = 0.80

    # Fallbacks
    mappings: float = 0.90
    calculated: float = 0.70
    calculated_fallback: float = 0.60

    # Gates
    transcript_gate: float = 0.80
    chat_gate: float = 0.70
    review_gate: float = 0.50

    max_week: int = 52


@dataclass(frozen=True)
class Settings:
    """Deployment settings consumed by every analyzer."""

    coach_names: frozenset = COACH_NAMES
    org_domains: tuple = ORG_DOMAINS
    org_contact_email: str = ORG_CONTACT_EMAIL
    org_label: str = ORG_LABEL
    org_spoken_alias: str = ORG_SPOKEN_ALIAS
    org_indicators: tuple = ORG_INDICATORS
    misc_keyword: str = MISC_KEYWORD
    misc_label: str = MISC_LABEL
    misc_surname_exceptions: tuple = MISC_SURNAME_EXCEPTIONS
    misc_context_keywords: tuple = MISC_CONTEXT_KEYWORDS
    coach_token_policy: str = "keep_surname"
    include_recording_id: bool = False
    short_indicators_whole_word: bool = False
    thresholds: Thresholds = field(default_factory=Thresholds)
    db_path: Path = DEFAULT_DB_PATH


DEFAULT_SETTINGS = Settings()


def _coerce(name: str, value):
    """Convert a JSON value into the type the Settings field expects."""
    if name == "coach_names":
        if not isinstance(value, list):
            raise ConfigurationError("coach_names must be a list")
        return frozenset(str(v).lower() for v in value)
    if name in ("org_domains", "org_indicators", "misc_surname_exceptions", "misc_context_keywords"):
        if not isinstance(value, list):
            raise ConfigurationError(f"{name} must be a list")
        return tuple(str(v).lower() for v in value)
    if name == "db_path":
        path = Path(value)
        return path if path.is_absolute() else PROJECT_ROOT / path
    if name in ("include_recording_id", "short_indicators_whole_word"):
        return bool(value)
    if name == "coach_token_policy":
        if value not in COACH_TOKEN_POLICIES:
            raise ConfigurationError(
                f"coach_token_policy must be one of {', '.join(COACH_TOKEN_POLICIES)}"
            )
        return value
    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be a string")
    return value


def _load_thresholds(raw: dict) -> Thresholds:
    known = {f.name: f for f in fields(Thresholds)}
    values = {}
    for key, value in raw.items():
        if key not in known:
            raise ConfigurationError(f"Unknown threshold: {key}")
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise ConfigurationError(f"Threshold {key} must be a number")
        values[key] = int(value) if key == "max_week" else float(value)
    return replace(Thresholds(), **values)


def settings_path(path: Path | str | None = None) -> Path:
    """Resolve which settings file to read."""
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return SETTINGS_JSON_PATH


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from JSON, falling back to the built-in defaults."""
    config_path = settings_path(path)
    if not config_path.exists():
        if path:
            raise ConfigurationError(f"Settings file not found: {config_path}")
        return Settings()

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read settings from {config_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError("Settings file must contain a JSON object")

    known = {f.name for f in fields(Settings)}
    values = {}
    for key, value in raw.items():
        if key not in known:
            raise ConfigurationError(f"Unknown setting: {key}")
        if key == "thresholds":
            if not isinstance(value, dict):
                raise ConfigurationError("thresholds must be an object")
            values[key] = _load_thresholds(value)
        else:
            values[key] = _coerce(key, value)

    return replace(Settings(), **values)
