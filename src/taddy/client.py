"""
Client for Taddy's Business tier GraphQL API.

The transcript lookup resolves a chain of three queries:

    1. podcast series by RSS feed URL   (fallback: free-text search)
    2. episode by GUID within the series (fallback: series episode list)
    3. transcript segments of the episode, using on-demand credits if needed

Fallbacks run only when the API rejects the primary query shape. Each step is
retried on transient failures. ``fetch_transcript`` never raises: every
failure is returned as a ``TranscriptError``.

Usage:
    async with TaddyBusinessClient(TaddyConfig.from_env()) as client:
        result = await client.fetch_transcript(feed_url, episode_guid)
"""

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar
from urllib.parse import urlparse

import httpx

from src.logger import setup_logging, default_log_file
from .classifier import classify_transcript
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
from .results import NoMatchTranscript, TranscriptError, TranscriptResult
from .retry import DEFAULT_BASE_DELAY, with_http_retry

logger = setup_logging(
    logger_name="taddy_client",
    log_file=default_log_file("taddy_client"),
    verbose=False,
)

T = TypeVar("T")

SERIES_BY_RSS_QUERY = """
query GetPodcastSeries($rssUrl: String!) {
  getPodcastSeries(rssUrl: $rssUrl) {
    uuid
    name
    rssUrl
  }
}
"""

SEARCH_SERIES_QUERY = """
query SearchPodcastSeries($term: String!) {
  search(term: $term, filterForTypes: PODCASTSERIES) {
    podcastSeries {
      uuid
      name
      rssUrl
    }
  }
}
"""

EPISODE_BY_GUID_QUERY = """
query GetPodcastEpisode($guid: String!, $seriesUuidForLookup: ID!) {
  getPodcastEpisode(guid: $guid, seriesUuidForLookup: $seriesUuidForLookup) {
    uuid
    name
    guid
    taddyTranscribeStatus
  }
}
"""

SERIES_EPISODES_QUERY = """
query GetPodcastSeriesEpisodes($uuid: ID!) {
  getPodcastSeries(uuid: $uuid) {
    uuid
    episodes {
      uuid
      name
      guid
      taddyTranscribeStatus
    }
  }
}
"""

EPISODE_TRANSCRIPT_QUERY = """
query GetEpisodeTranscript($uuid: ID!) {
  getEpisodeTranscript(uuid: $uuid, useOnDemandCreditsIfNeeded: true) {
    id
    text
    speaker
    startTimecode
    endTimecode
  }
}
"""

HEALTH_CHECK_QUERY = """
query HealthCheck {
  me {
    id
    myDeveloperDetails {
      isBusinessPlan
      allowedOnDemandTranscriptsLimit
      currentOnDemandTranscriptsUsage
    }
  }
}
"""

DEFAULT_SEARCH_TERM = "podcast"


def extract_search_term(feed_url: str) -> str:
    """
    Guess a show name from the last path segment of its feed URL.

    ``https://example.com/feeds/my-great_show.rss`` -> ``"my great show"``.
    Falls back to ``"podcast"`` when nothing usable is left.
    """
    try:
        parts = [part for part in urlparse(feed_url).path.split("/") if part]
    except ValueError:
        return DEFAULT_SEARCH_TERM
    if not parts:
        return DEFAULT_SEARCH_TERM

    term = parts[-1]
    for extension in (".xml", ".rss"):
        if term.lower().endswith(extension):
            term = term[: -len(extension)]
            break
    term = term.replace("-", " ").replace("_", " ").strip().lower()
    return term or DEFAULT_SEARCH_TERM


@dataclass(frozen=True)
class FallbackLookup(Generic[T]):
    """Two query strategies for one lookup.

    ``fallback`` runs only when ``primary`` is rejected as a schema mismatch;
    any other error propagates.
    """

    name: str
    primary: Callable[[], Awaitable[T]]
    fallback: Callable[[], Awaitable[T]]

    async def run(self) -> T:
        try:
            return await self.primary()
        except Exception as e:
            if not is_schema_mismatch_error(e):
                raise
            logger.warning(f"{self.name}: primary query rejected by schema, using fallback: {e}")
        return await self.fallback()


@dataclass
class HealthCheckResult:
    connected: bool
    is_business_plan: bool = False
    transcripts_limit: Optional[int] = None
    transcripts_usage: Optional[int] = None
    error: Optional[str] = None


class TaddyBusinessClient:
    """
    Async client for Taddy's Business tier GraphQL API.

    Owns its ``httpx.AsyncClient`` unless one is injected, in which case the
    caller closes it.
    """

    def __init__(
        self,
        config: TaddyConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
    ):
        self.config = config
        self.retry_base_delay = retry_base_delay
        self._headers = {
            "X-API-KEY": config.api_key,
            "X-USER-ID": config.user_id,
            "User-Agent": config.user_agent,
            "Content-Type": "application/json",
        }
        self._owns_http_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            timeout=config.timeout, headers=self._headers
        )
        logger.debug(
            f"TaddyBusinessClient initialized: endpoint={config.endpoint} "
            f"timeout={config.timeout} has_api_key={bool(config.api_key)}"
        )

    async def __aenter__(self) -> "TaddyBusinessClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def _execute(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        POST a GraphQL query and return its ``data`` object.

        Raises:
            TaddyHTTPError: On 429, 5xx, or any non-2xx without GraphQL errors.
            SchemaMismatchError: When the API rejects the query shape.
            TaddyGraphQLError: On any other GraphQL error.
            TaddyError: When a 2xx body is not a JSON object.
        """
        response = await self._http_client.post(
            self.config.endpoint,
            json={"query": query, "variables": variables or {}},
            headers=self._headers,
        )

        try:
            payload = response.json()
        except ValueError:
            payload = None
        errors = payload.get("errors") if isinstance(payload, dict) else None

        status = response.status_code
        if status == 429 or status >= 500 or (not response.is_success and not errors):
            raise TaddyHTTPError(status, response.reason_phrase or response.text[:200])

        if errors:
            error = TaddyGraphQLError(errors)
            if is_schema_mismatch_error(error):
                raise SchemaMismatchError(errors)
            raise error

        if not isinstance(payload, dict):
            raise TaddyError(f"Invalid JSON response from Taddy API (HTTP {status})")

        return payload.get("data") or {}

    async def _retry(self, func: Callable[[], Awaitable[T]]) -> T:
        return await with_http_retry(func, max_attempts=2, base_delay=self.retry_base_delay)

    # Step 1: series

    async def _query_series_by_rss(self, feed_url: str) -> Optional[dict[str, Any]]:
        data = await self._execute(SERIES_BY_RSS_QUERY, {"rssUrl": feed_url})
        return data.get("getPodcastSeries")

    async def _search_series(self, feed_url: str) -> Optional[dict[str, Any]]:
        term = extract_search_term(feed_url)
        data = await self._execute(SEARCH_SERIES_QUERY, {"term": term})
        candidates = (data.get("search") or {}).get("podcastSeries") or []
        logger.debug(f"Series search: term='{term}' candidates={len(candidates)}")
        for candidate in candidates:
            if candidate.get("rssUrl") == feed_url:
                return candidate
        return candidates[0] if candidates else None

    def series_lookup(self, feed_url: str) -> FallbackLookup[Optional[dict[str, Any]]]:
        return FallbackLookup(
            name="series lookup",
            primary=lambda: self._query_series_by_rss(feed_url),
            fallback=lambda: self._search_series(feed_url),
        )

    # Step 2: episode

    async def _query_episode_by_guid(self, series_uuid: str, guid: str) -> Optional[dict[str, Any]]:
        data = await self._execute(
            EPISODE_BY_GUID_QUERY, {"guid": guid, "seriesUuidForLookup": series_uuid}
        )
        return data.get("getPodcastEpisode")

    async def _find_episode_in_series(self, series_uuid: str, guid: str) -> Optional[dict[str, Any]]:
        data = await self._execute(SERIES_EPISODES_QUERY, {"uuid": series_uuid})
        episodes = (data.get("getPodcastSeries") or {}).get("episodes") or []
        return next((episode for episode in episodes if episode.get("guid") == guid), None)

    def episode_lookup(self, series_uuid: str, guid: str) -> FallbackLookup[Optional[dict[str, Any]]]:
        return FallbackLookup(
            name="episode lookup",
            primary=lambda: self._query_episode_by_guid(series_uuid, guid),
            fallback=lambda: self._find_episode_in_series(series_uuid, guid),
        )

    # Step 3: transcript

    async def _query_transcript(self, episode_uuid: str) -> Optional[list[dict[str, Any]]]:
        data = await self._execute(EPISODE_TRANSCRIPT_QUERY, {"uuid": episode_uuid})
        return data.get("getEpisodeTranscript")

    async def fetch_transcript(self, feed_url: str, episode_guid: str) -> TranscriptResult:
        """
        Fetch and classify the transcript of an episode.

        Args:
            feed_url: RSS feed URL of the show
            episode_guid: GUID of the episode in that feed

        Returns:
            TranscriptResult: Never raises; failures become ``TranscriptError``
            (``CREDITS_EXCEEDED`` for quota exhaustion).
        """
        start_time = time.monotonic()
        logger.debug(f"Starting transcript lookup: feed_url={feed_url} guid={episode_guid}")

        try:
            series = await self._retry(self.series_lookup(feed_url).run)
            if not series:
                logger.info(f"No podcast series found: feed_url={feed_url}")
                return NoMatchTranscript(credits_consumed=1)

            episode = await self._retry(self.episode_lookup(series["uuid"], episode_guid).run)
            if not episode:
                logger.info(
                    f"No episode found: guid={episode_guid} series_uuid={series['uuid']}"
                )
                return NoMatchTranscript(credits_consumed=1)

            segments = await self._retry(lambda: self._query_transcript(episode["uuid"]))
            result = classify_transcript(segments, episode)

        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            if is_quota_exhausted_error(e):
                logger.warning(
                    f"Taddy quota exhausted: feed_url={feed_url} guid={episode_guid} "
                    f"error={e} duration_ms={duration_ms}"
                )
                return TranscriptError(message=QUOTA_EXHAUSTED_MESSAGE, credits_consumed=0)
            if is_schema_mismatch_error(e):
                logger.error(
                    f"Unhandled schema mismatch: feed_url={feed_url} guid={episode_guid} error={e}"
                )
                return TranscriptError(message=f"SCHEMA_MISMATCH: {e}", credits_consumed=0)

            logger.error(
                f"Transcript lookup failed: feed_url={feed_url} guid={episode_guid} "
                f"error={type(e).__name__}: {e} duration_ms={duration_ms}"
            )
            return TranscriptError(message=f"Taddy Business API error: {e}", credits_consumed=0)

        duration_ms = int((time.monotonic() - start_time) * 1000)
        logger.info(
            f"Transcript lookup completed: feed_url={feed_url} guid={episode_guid} "
            f"result={result.kind} credits={result.credits_consumed} "
            f"word_count={getattr(result, 'word_count', None)} duration_ms={duration_ms}"
        )
        return result

    async def health_check(self) -> HealthCheckResult:
        """Check connectivity and plan status. Single attempt, never raises."""
        try:
            data = await self._execute(HEALTH_CHECK_QUERY)
        except Exception as e:
            logger.error(f"Taddy health check failed: {e}")
            return HealthCheckResult(connected=False, error=str(e))

        details = (data.get("me") or {}).get("myDeveloperDetails") or {}
        result = HealthCheckResult(
            connected=True,
            is_business_plan=bool(details.get("isBusinessPlan")),
            transcripts_limit=details.get("allowedOnDemandTranscriptsLimit"),
            transcripts_usage=details.get("currentOnDemandTranscriptsUsage"),
        )
        logger.info(
            f"Taddy health check completed: is_business_plan={result.is_business_plan} "
            f"limit={result.transcripts_limit} usage={result.transcripts_usage}"
        )
        return result
