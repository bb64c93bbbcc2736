# Transcription module - Main API for acquiring episode transcripts

from src.transcription.service import TranscriptService
from src.taddy.results import (
    FullTranscript,
    NoMatchTranscript,
    NotFoundTranscript,
    PartialTranscript,
    ProcessingTranscript,
    TranscriptError,
    TranscriptResult,
)

# Main public API - these are the names other modules should use
__all__ = [
    "TranscriptService",
    "FullTranscript",
    "NoMatchTranscript",
    "NotFoundTranscript",
    "PartialTranscript",
    "ProcessingTranscript",
    "TranscriptError",
    "TranscriptResult",
]
