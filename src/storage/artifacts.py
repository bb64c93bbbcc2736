"""
Transcript artifact format.

An artifact is one gzip-compressed file per episode, stored at
``<show_id>/<episode_id>.jsonl.gz``. Decompressed, it holds exactly one JSON
line with at least ``episode_id``, ``show_id`` and ``transcript``.

Readers rely on the ``application/gzip`` content type; changing it breaks them.
"""

import gzip
import json
from datetime import datetime, timezone
from typing import Any, Optional


TRANSCRIPT_CONTENT_TYPE = "application/gzip"
TRANSCRIPT_EXTENSION = ".jsonl.gz"


def transcript_storage_path(show_id: str, episode_id: str) -> str:
    """Object key of an episode's transcript artifact."""
    return f"{show_id}/{episode_id}{TRANSCRIPT_EXTENSION}"


def build_transcript_artifact(
    episode_id: str,
    show_id: str,
    transcript: str,
    word_count: int,
    source: str,
    created_at: Optional[datetime] = None,
) -> dict[str, Any]:
    """Assemble the artifact record written for a full or partial transcript."""
    created_at = created_at or datetime.now(timezone.utc)
    return {
        "episode_id": episode_id,
        "show_id": show_id,
        "transcript": transcript,
        "word_count": word_count,
        "source": source,
        "created_at": created_at.isoformat(),
    }


def encode_artifact(record: dict[str, Any]) -> bytes:
    """Serialize a record as a single JSON line and gzip it."""
    line = json.dumps(record, ensure_ascii=False) + "\n"
    return gzip.compress(line.encode("utf-8"))


def decode_artifact(data: bytes) -> dict[str, Any]:
    """Inverse of ``encode_artifact``.

    Raises:
        ValueError: If the payload is not exactly one JSON line.
    """
    lines = [line for line in gzip.decompress(data).decode("utf-8").splitlines() if line.strip()]
    if len(lines) != 1:
        raise ValueError(f"Expected exactly one JSON line in artifact, found {len(lines)}")
    return json.loads(lines[0])
