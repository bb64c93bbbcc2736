"""Taddy Business API client and transcript result classification."""

from .client import (
    FallbackLookup,
    HealthCheckResult,
    TaddyBusinessClient,
    extract_search_term,
)
from .classifier import (
    assemble_transcript_text,
    classify_transcript,
    count_segment_words,
    count_words,
)
from .config import TaddyConfig
from .errors import (
    QUOTA_EXHAUSTED_MESSAGE,
    SchemaMismatchError,
    TaddyError,
    TaddyGraphQLError,
    TaddyHTTPError,
    is_quota_exhausted_error,
    is_schema_mismatch_error,
)
from .results import (
    FullTranscript,
    NoMatchTranscript,
    NotFoundTranscript,
    PartialTranscript,
    ProcessingTranscript,
    TranscriptError,
    TranscriptResult,
)
from .retry import is_retryable_error, with_http_retry, with_retry

__all__ = [
    "FallbackLookup",
    "HealthCheckResult",
    "TaddyBusinessClient",
    "extract_search_term",
    "assemble_transcript_text",
    "classify_transcript",
    "count_segment_words",
    "count_words",
    "TaddyConfig",
    "QUOTA_EXHAUSTED_MESSAGE",
    "SchemaMismatchError",
    "TaddyError",
    "TaddyGraphQLError",
    "TaddyHTTPError",
    "is_quota_exhausted_error",
    "is_schema_mismatch_error",
    "FullTranscript",
    "NoMatchTranscript",
    "NotFoundTranscript",
    "PartialTranscript",
    "ProcessingTranscript",
    "TranscriptError",
    "TranscriptResult",
    "is_retryable_error",
    "with_http_retry",
    "with_retry",
]
