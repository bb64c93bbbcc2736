"""
Configuration for the transcript worker.

Reads and validates environment variables (or a .env file) with sensible
defaults. Invalid values raise ``ValueError`` naming the variable.
"""

import os
from dataclasses import dataclass
from typing import Any, Optional

from dotenv import load_dotenv


LOCK_NAME = "transcript_worker"
DEFAULT_BUCKET = "transcripts"


@dataclass
class TranscriptWorkerConfig:
    """Configuration for the transcript worker"""

    enabled: bool = True
    # Publication window in hours (1 hour to 1 week)
    lookback_hours: int = 24
    # Maximum candidate episodes, and so Taddy lookups, per run
    max_requests: int = 15
    concurrency: int = 10
    use_advisory_lock: bool = True

    # Re-check mode: ignore existing transcripts and take the most recent episodes
    last10_mode: bool = False
    last10_count: int = 10

    # Cooperative deadline: no episode is started once it has passed
    run_timeout_seconds: Optional[int] = None

    bucket_name: str = DEFAULT_BUCKET

    def __post_init__(self):
        _check_range("TRANSCRIPT_LOOKBACK", self.lookback_hours, 1, 168)
        _check_range("TRANSCRIPT_MAX_REQUESTS", self.max_requests, 1, 100)
        _check_range("TRANSCRIPT_CONCURRENCY", self.concurrency, 1, 50)
        if self.concurrency > self.max_requests:
            raise ValueError(
                f"TRANSCRIPT_CONCURRENCY ({self.concurrency}) cannot exceed "
                f"TRANSCRIPT_MAX_REQUESTS ({self.max_requests})."
            )
        _check_range("TRANSCRIPT_WORKER_L10_COUNT", self.last10_count, 1, None)
        if self.run_timeout_seconds is not None:
            _check_range("TRANSCRIPT_RUN_TIMEOUT", self.run_timeout_seconds, 1, None)
        if not self.bucket_name:
            raise ValueError("TRANSCRIPT_BUCKET cannot be empty.")

    @property
    def candidate_limit(self) -> int:
        """Number of episodes selected per run."""
        return self.last10_count if self.last10_mode else self.max_requests


def _check_range(name: str, value: int, minimum: int, maximum: Optional[int]) -> None:
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f"between {minimum} and {maximum}" if maximum is not None else f"at least {minimum}"
        raise ValueError(f"Invalid {name}: \"{value}\". Must be a number {bounds}.")


def _parse_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid {name}: \"{raw}\". Must be an integer.")


def load_transcript_worker_config() -> TranscriptWorkerConfig:
    """
    Parse and validate the transcript worker configuration from the environment.

    Returns:
        TranscriptWorkerConfig: Validated configuration

    Raises:
        ValueError: If a variable is not a valid value
    """
    load_dotenv()
    return TranscriptWorkerConfig(
        # Disabled only if explicitly set to 'false'
        enabled=os.getenv("TRANSCRIPT_WORKER_ENABLED") != "false",
        lookback_hours=_parse_int("TRANSCRIPT_LOOKBACK", 24),
        max_requests=_parse_int("TRANSCRIPT_MAX_REQUESTS", 15),
        concurrency=_parse_int("TRANSCRIPT_CONCURRENCY", 10),
        use_advisory_lock=os.getenv("TRANSCRIPT_ADVISORY_LOCK") != "false",
        last10_mode=os.getenv("TRANSCRIPT_WORKER_L10") == "true",
        last10_count=_parse_int("TRANSCRIPT_WORKER_L10_COUNT", 10),
        run_timeout_seconds=_parse_int("TRANSCRIPT_RUN_TIMEOUT", None),
        bucket_name=os.getenv("TRANSCRIPT_BUCKET") or DEFAULT_BUCKET,
    )


def get_config_summary(config: TranscriptWorkerConfig) -> dict[str, Any]:
    """Human-readable summary of the configuration, for logging."""
    return {
        "enabled": config.enabled,
        "lookback_hours": config.lookback_hours,
        "max_requests_per_run": config.max_requests,
        "max_concurrent": config.concurrency,
        "advisory_lock": config.use_advisory_lock,
        "last10_mode": config.last10_mode,
        "last10_count": config.last10_count,
        "run_timeout_seconds": config.run_timeout_seconds,
        "bucket": config.bucket_name,
    }
