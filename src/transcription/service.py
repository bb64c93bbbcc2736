"""Transcript service used by the transcript worker."""

import logging
from typing import Optional

from src.db.transcripts import EpisodeCandidate
from src.taddy.client import TaddyBusinessClient
from src.taddy.config import TaddyConfig
from src.taddy.results import TranscriptError, TranscriptResult

logger = logging.getLogger("taddy_client")


class TranscriptService:
    """
    Single entry point for transcript lookups.

    Checks that an episode carries what the provider needs (feed URL and GUID)
    before delegating to the Taddy client.
    """

    def __init__(self, client: Optional[TaddyBusinessClient] = None):
        self.client = client or TaddyBusinessClient(TaddyConfig.from_env())

    async def __aenter__(self) -> "TranscriptService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.client.close()

    async def get_transcript(self, episode: EpisodeCandidate) -> TranscriptResult:
        if not episode.feed_url:
            logger.warning(f"Episode {episode.id} has no show feed URL")
            return TranscriptError(
                message=f"Episode {episode.id} has no show RSS feed URL", credits_consumed=0
            )
        if not episode.guid:
            logger.warning(f"Episode {episode.id} has no GUID")
            return TranscriptError(message=f"Episode {episode.id} has no GUID", credits_consumed=0)

        return await self.client.fetch_transcript(episode.feed_url, episode.guid)
