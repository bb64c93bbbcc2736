"""Mapping of raw Taddy episode and transcript data to a TranscriptResult."""

import logging
from typing import Any, Iterable, Mapping, Optional

from .results import (
    TADDY_SOURCE,
    FullTranscript,
    NotFoundTranscript,
    ProcessingTranscript,
    TranscriptError,
    TranscriptResult,
)

logger = logging.getLogger("taddy_client")

STATUS_PROCESSING = "PROCESSING"
STATUS_FAILED = "FAILED"
STATUS_COMPLETED = "COMPLETED"

BASE_CREDITS = 1


def assemble_transcript_text(segments: Iterable[Mapping[str, Any]]) -> str:
    """Join segments into one text, one line per non-blank segment.

    A segment with a non-blank speaker renders as ``"<speaker>: <text>"``.
    """
    lines = []
    for segment in segments:
        text = segment.get("text") or ""
        if not text.strip():
            continue
        speaker = segment.get("speaker") or ""
        lines.append(f"{speaker}: {text}" if speaker.strip() else text)
    return "\n".join(lines).strip()


def count_words(text: str) -> int:
    return len(text.split())


def count_segment_words(segments: Iterable[Mapping[str, Any]]) -> int:
    """Word count of the spoken text only, speaker labels excluded."""
    return sum(count_words(segment.get("text") or "") for segment in segments)


def classify_transcript(
    segments: Optional[list[Mapping[str, Any]]],
    episode_info: Optional[Mapping[str, Any]],
) -> TranscriptResult:
    """
    Classify a transcript lookup.

    Args:
        segments: Transcript segments as returned by the API (``text``,
            optional ``speaker``, ``startTimecode``, ``endTimecode``), or None.
        episode_info: Episode fields, ``taddyTranscribeStatus`` in particular.

    Returns:
        TranscriptResult: ``processing`` and ``error`` follow the episode
        status, ``not_found`` for no segments, ``full`` otherwise.
    """
    status = (episode_info or {}).get("taddyTranscribeStatus")
    episode_uuid = (episode_info or {}).get("uuid")

    if status == STATUS_PROCESSING:
        logger.debug(f"Transcript still processing: episode_uuid={episode_uuid}")
        return ProcessingTranscript(source=TADDY_SOURCE, credits_consumed=BASE_CREDITS)

    if status == STATUS_FAILED:
        logger.debug(f"Transcript generation failed: episode_uuid={episode_uuid}")
        return TranscriptError(
            message=f"taddyTranscribeStatus={STATUS_FAILED}",
            credits_consumed=BASE_CREDITS,
        )

    if not segments:
        logger.debug(f"No transcript segments: episode_uuid={episode_uuid}")
        return NotFoundTranscript(credits_consumed=BASE_CREDITS)

    text = assemble_transcript_text(segments)
    word_count = count_segment_words(segments)

    # PartialTranscript has no trigger: the API gives no completeness signal
    # besides COMPLETED, and every other non-empty result is treated as full.
    logger.debug(
        f"Classified as full transcript: episode_uuid={episode_uuid} status={status} "
        f"segments={len(segments)} word_count={word_count}"
    )
    return FullTranscript(
        text=text,
        word_count=word_count,
        source=TADDY_SOURCE,
        credits_consumed=BASE_CREDITS,
    )
