# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for SqlGuard."""

import os
from dataclasses import dataclass, field

from .version import __version__

DEFAULT_USER_AGENT = f"SqlGuard/{__version__} (SQL injection analysis)"
DEFAULT_SEMANTIC_URL = "http://localhost:3002"
DEFAULT_DETECTION_URL = "http://localhost:3001"


def _float_env(name: str, default: float) -> float:
    try:
        value = os.getenv(name)
        return float(value) if value is not None else default
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _optional_str_env(name: str, default: str | None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value or None


def _unit_interval(value: float, default: float) -> float:
    return value if 0.0 <= value <= 1.0 else default


@dataclass
class DetectionSettings:
    """Tunables for the pattern engine and the scan aggregator."""

    vulnerability_score_threshold: int = 20
    max_input_length: int = 20_000
    max_evidence_length: int = 200
    max_occurrences_per_pattern: int = 10
    multi_class_boost: int = 10

    @classmethod
    def from_env(cls) -> "DetectionSettings":
        max_input_length = _int_env("SQLGUARD_MAX_INPUT_LENGTH", cls.max_input_length)
        if max_input_length <= 0:
            max_input_length = cls.max_input_length
        max_evidence_length = _int_env("SQLGUARD_MAX_EVIDENCE_LENGTH", cls.max_evidence_length)
        if max_evidence_length <= 0:
            max_evidence_length = cls.max_evidence_length
        return cls(
            vulnerability_score_threshold=_int_env("SQLGUARD_VULNERABILITY_SCORE_THRESHOLD", cls.vulnerability_score_threshold),
            max_input_length=max_input_length,
            max_evidence_length=max_evidence_length,
            max_occurrences_per_pattern=max(1, _int_env("SQLGUARD_MAX_OCCURRENCES", cls.max_occurrences_per_pattern)),
            multi_class_boost=max(0, _int_env("SQLGUARD_MULTI_CLASS_BOOST", cls.multi_class_boost)),
        )


@dataclass
class RemoteSettings:
    """Transport, retry and circuit-breaker defaults for remote analyzers."""

    timeout: float = 10.0
    max_retries: int = 3
    backoff_base: float = 0.5
    failure_threshold: int = 5
    cooldown: float = 30.0
    user_agent: str = DEFAULT_USER_AGENT
    verify_ssl: bool = True
    max_body_bytes: int = 4 * 1024 * 1024
    semantic_url: str = DEFAULT_SEMANTIC_URL
    semantic_api_key: str | None = None
    detection_url: str = DEFAULT_DETECTION_URL
    detection_api_key: str | None = None

    @classmethod
    def from_env(cls) -> "RemoteSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_body_bytes = _int_env("SQLGUARD_MAX_BODY_BYTES", cls.max_body_bytes)
        if max_body_bytes <= 0:
            max_body_bytes = cls.max_body_bytes
        timeout = _float_env("SQLGUARD_REMOTE_TIMEOUT", cls.timeout)
        if timeout <= 0:
            timeout = cls.timeout
        return cls(
            timeout=timeout,
            max_retries=_int_env("SQLGUARD_REMOTE_MAX_RETRIES", cls.max_retries),
            backoff_base=max(0.0, _float_env("SQLGUARD_REMOTE_BACKOFF_BASE", cls.backoff_base)),
            failure_threshold=max(1, _int_env("SQLGUARD_CIRCUIT_FAILURE_THRESHOLD", cls.failure_threshold)),
            cooldown=max(0.0, _float_env("SQLGUARD_CIRCUIT_COOLDOWN", cls.cooldown)),
            user_agent=os.getenv("SQLGUARD_USER_AGENT", cls.user_agent),
            verify_ssl=_bool_env("SQLGUARD_VERIFY_SSL", cls.verify_ssl),
            max_body_bytes=max_body_bytes,
            semantic_url=os.getenv("SQLGUARD_SEMANTIC_URL", cls.semantic_url).rstrip("/"),
            semantic_api_key=_optional_str_env("SQLGUARD_SEMANTIC_API_KEY", cls.semantic_api_key),
            detection_url=os.getenv("SQLGUARD_DETECTION_URL", cls.detection_url).rstrip("/"),
            detection_api_key=_optional_str_env("SQLGUARD_DETECTION_API_KEY", cls.detection_api_key),
        )


@dataclass
class OrchestratorSettings:
    """Escalation policy and request deadline defaults."""

    high_confidence_threshold: float = 0.85
    complex_pattern_count: int = 2
    request_deadline: float = 30.0
    max_workers: int = 4

    @classmethod
    def from_env(cls) -> "OrchestratorSettings":
        deadline = _float_env("SQLGUARD_REQUEST_DEADLINE", cls.request_deadline)
        if deadline <= 0:
            deadline = cls.request_deadline
        return cls(
            high_confidence_threshold=_unit_interval(
                _float_env("SQLGUARD_HIGH_CONFIDENCE_THRESHOLD", cls.high_confidence_threshold),
                cls.high_confidence_threshold,
            ),
            complex_pattern_count=max(0, _int_env("SQLGUARD_COMPLEX_PATTERN_COUNT", cls.complex_pattern_count)),
            request_deadline=deadline,
            max_workers=max(1, _int_env("SQLGUARD_MAX_WORKERS", cls.max_workers)),
        )


@dataclass
class GuardSettings:
    """Aggregate settings handed to the SqlGuard facade."""

    detection: DetectionSettings = field(default_factory=DetectionSettings)
    remote: RemoteSettings = field(default_factory=RemoteSettings)
    orchestrator: OrchestratorSettings = field(default_factory=OrchestratorSettings)

    @classmethod
    def from_env(cls) -> "GuardSettings":
        return cls(
            detection=DetectionSettings.from_env(),
            remote=RemoteSettings.from_env(),
            orchestrator=OrchestratorSettings.from_env(),
        )


def load_detection_settings() -> DetectionSettings:
    return DetectionSettings.from_env()


def load_remote_settings() -> RemoteSettings:
    """Load remote client settings from environment with sensible defaults."""
    return RemoteSettings.from_env()


def load_orchestrator_settings() -> OrchestratorSettings:
    return OrchestratorSettings.from_env()


def load_settings() -> GuardSettings:
    """Load every settings group from the environment."""
    return GuardSettings.from_env()
