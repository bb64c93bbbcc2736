"""Transcript worker: configuration, batch orchestrator and CLI (``python -m src.worker``)."""

from .config import (
    LOCK_NAME,
    TranscriptWorkerConfig,
    get_config_summary,
    load_transcript_worker_config,
)
from .transcript_worker import EpisodeProcessingResult, RunSummary, TranscriptWorker

__all__ = [
    "LOCK_NAME",
    "TranscriptWorkerConfig",
    "get_config_summary",
    "load_transcript_worker_config",
    "EpisodeProcessingResult",
    "RunSummary",
    "TranscriptWorker",
]
