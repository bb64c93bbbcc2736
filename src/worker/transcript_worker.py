"""
Transcript worker: one batch run of transcript acquisition.

A run takes the ``transcript_worker`` lock, selects candidate episodes, then
drains them through ``concurrency`` worker slots sharing one queue. Each slot
asks the TranscriptService for a transcript, stores full/partial transcripts
as gzip artifacts and records the outcome in the ``transcripts`` table.

Quota exhaustion stops dispatch: the episode that hit it gets an ``error`` row,
slots finish the episode they hold and take no new one. Episodes never started
get no row and stay candidates for the next run.

Blocking database and storage calls run in threads (``asyncio.to_thread``).
"""

import asyncio
import time
from contextlib import AbstractContextManager
from dataclasses import asdict, dataclass
from typing import Callable, Optional

from sqlalchemy.orm import Session

from src.db import (
    BaseLock,
    EpisodeCandidate,
    TranscriptStatus,
    create_worker_lock,
    fetch_candidate_episodes,
    get_db_session,
    get_engine,
    upsert_transcript,
)
from src.logger import setup_logging, log_function, default_log_file
from src.storage import (
    TRANSCRIPT_CONTENT_TYPE,
    BaseStorage,
    build_transcript_artifact,
    encode_artifact,
    transcript_storage_path,
)
from src.taddy.errors import is_quota_exhausted_error
from src.taddy.results import (
    TADDY_SOURCE,
    FullTranscript,
    NoMatchTranscript,
    NotFoundTranscript,
    PartialTranscript,
    ProcessingTranscript,
    TranscriptError,
    TranscriptResult,
)
from src.transcription import TranscriptService
from .config import LOCK_NAME, TranscriptWorkerConfig, get_config_summary


logger = setup_logging(
    logger_name="transcript_worker",
    log_file=default_log_file("transcript_worker"),
    verbose=False,
)

QUOTA_ABORT_WARNING = "quota exhausted - aborting remaining episodes"
UPLOAD_ERROR_PREFIX = "Failed to upload transcript to storage"


@dataclass
class RunSummary:
    """Counters of one worker run. Logged, never persisted."""

    total_episodes: int = 0
    processed_episodes: int = 0
    available_transcripts: int = 0
    processing_count: int = 0
    error_count: int = 0
    not_found_count: int = 0
    no_match_count: int = 0
    skipped_episodes: int = 0
    quota_exhausted: bool = False
    lock_acquired: bool = False
    total_elapsed_ms: int = 0
    average_processing_time_ms: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class EpisodeProcessingResult:
    episode_id: str
    status: str
    elapsed_ms: int = 0
    storage_path: Optional[str] = None
    word_count: Optional[int] = None
    error: Optional[str] = None
    quota_exhausted: bool = False


class TranscriptWorker:
    """Batch orchestrator for transcript acquisition."""

    def __init__(
        self,
        config: TranscriptWorkerConfig,
        transcript_service: Optional[TranscriptService],
        storage: Optional[BaseStorage],
        lock: Optional[BaseLock] = None,
        session_factory: Callable[[], AbstractContextManager[Session]] = get_db_session,
        dry_run: bool = False,
    ):
        """
        Args:
            config: Validated worker configuration.
            transcript_service: Transcript lookups. Only optional for dry runs.
            storage: Destination of transcript artifacts. Only optional for dry runs.
            lock: Cross-instance lock. Built from the configured engine when
                None and ``config.use_advisory_lock`` is set.
            session_factory: Context manager yielding a database session.
            dry_run: Select and log candidates without fetching anything.
        """
        if not dry_run and (transcript_service is None or storage is None):
            raise ValueError(
                "A transcript service and a storage are required unless dry_run is set"
            )
        self.config = config
        self.transcript_service = transcript_service
        self.storage = storage
        self.lock = lock
        self.session_factory = session_factory
        self.dry_run = dry_run

    @log_function(logger_name="transcript_worker", log_execution_time=True)
    async def run(self) -> RunSummary:
        """
        Execute one batch run.

        Returns:
            RunSummary: Zero-valued when disabled or when the lock is held
            elsewhere (``lock_acquired`` is False then).

        Raises:
            Exception: Candidate selection failures, after the lock is released.
        """
        start_time = time.monotonic()
        summary = RunSummary()

        if not self.config.enabled:
            logger.info("Transcript worker is disabled, skipping run")
            return summary

        logger.info(f"Transcript worker run started: {get_config_summary(self.config)}")

        lock_held = False
        try:
            if self.config.use_advisory_lock:
                lock_held = await self._acquire_lock()
                if not lock_held:
                    summary.total_elapsed_ms = _elapsed_ms(start_time)
                    return summary
            summary.lock_acquired = True

            try:
                candidates = await asyncio.to_thread(self._select_candidates)
            except Exception as e:
                logger.error(f"Candidate selection failed: {e}", exc_info=True)
                raise

            summary.total_episodes = len(candidates)
            if not candidates:
                logger.info("No candidate episodes found")
            elif self.dry_run:
                for candidate in candidates:
                    logger.info(
                        f"[dry-run] Would fetch transcript: episode_id={candidate.id} "
                        f"show_id={candidate.show_id} guid={candidate.guid} "
                        f"pub_date={candidate.pub_date}"
                    )
                summary.skipped_episodes = len(candidates)
            else:
                await self._process_candidates(candidates, summary, start_time)

        finally:
            if lock_held:
                await self._release_lock()

        summary.total_elapsed_ms = _elapsed_ms(start_time)
        logger.info(f"Transcript worker run completed: {summary.to_dict()}")
        return summary

    async def _acquire_lock(self) -> bool:
        if self.lock is None:
            self.lock = create_worker_lock(get_engine())
        try:
            acquired = await asyncio.to_thread(self.lock.try_acquire, LOCK_NAME)
        except Exception as e:
            logger.warning(f"Could not acquire lock '{LOCK_NAME}': {e}")
            return False
        if not acquired:
            logger.warning(f"Lock '{LOCK_NAME}' is held by another run, skipping")
        return acquired

    async def _release_lock(self) -> None:
        try:
            await asyncio.to_thread(self.lock.release, LOCK_NAME)
        except Exception as e:
            logger.error(f"Failed to release lock '{LOCK_NAME}': {e}", exc_info=True)

    def _select_candidates(self) -> list[EpisodeCandidate]:
        with self.session_factory() as session:
            return fetch_candidate_episodes(
                session,
                lookback_hours=self.config.lookback_hours,
                limit=self.config.candidate_limit,
                include_existing=self.config.last10_mode,
            )

    async def _process_candidates(
        self,
        candidates: list[EpisodeCandidate],
        summary: RunSummary,
        start_time: float,
    ) -> None:
        queue: asyncio.Queue = asyncio.Queue()
        for candidate in candidates:
            queue.put_nowait(candidate)

        abort = asyncio.Event()
        results: list[EpisodeProcessingResult] = []
        deadline = (
            start_time + self.config.run_timeout_seconds
            if self.config.run_timeout_seconds is not None
            else None
        )

        async def worker_slot() -> None:
            while not abort.is_set():
                if deadline is not None and time.monotonic() >= deadline:
                    if not abort.is_set():
                        abort.set()
                        logger.warning(
                            f"Run timeout of {self.config.run_timeout_seconds}s reached - "
                            f"not starting remaining episodes"
                        )
                    return
                try:
                    candidate = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return

                result = await self._process_episode(candidate)
                results.append(result)

                if result.quota_exhausted and not summary.quota_exhausted:
                    summary.quota_exhausted = True
                    abort.set()
                    logger.warning(QUOTA_ABORT_WARNING)

        slot_count = min(self.config.concurrency, len(candidates))
        await asyncio.gather(*(worker_slot() for _ in range(slot_count)))

        summary.processed_episodes = len(results)
        summary.skipped_episodes = queue.qsize()
        for result in results:
            if result.status in (TranscriptStatus.FULL.value, TranscriptStatus.PARTIAL.value):
                summary.available_transcripts += 1
            elif result.status == TranscriptStatus.PROCESSING.value:
                summary.processing_count += 1
            elif result.status == TranscriptStatus.NOT_FOUND.value:
                summary.not_found_count += 1
            elif result.status == TranscriptStatus.NO_MATCH.value:
                summary.no_match_count += 1
            else:
                summary.error_count += 1
        if results:
            summary.average_processing_time_ms = sum(r.elapsed_ms for r in results) / len(results)

    async def _process_episode(self, candidate: EpisodeCandidate) -> EpisodeProcessingResult:
        start_time = time.monotonic()
        result = None
        try:
            result = await self.transcript_service.get_transcript(candidate)
            outcome = await self._handle_result(candidate, result)
        except Exception as e:
            message = f"Unexpected error: {e}"
            logger.error(f"Error processing episode {candidate.id}: {e}", exc_info=True)
            try:
                await asyncio.to_thread(
                    self._record, candidate.id, TranscriptStatus.ERROR, error_details=message
                )
            except Exception as write_error:
                logger.error(
                    f"Could not record error for episode {candidate.id}: {write_error}"
                )
            # Quota hits still abort the run when the row write fails
            outcome = EpisodeProcessingResult(
                episode_id=candidate.id,
                status=TranscriptStatus.ERROR.value,
                error=message,
                quota_exhausted=isinstance(result, TranscriptError)
                and is_quota_exhausted_error(result.message),
            )

        outcome.elapsed_ms = _elapsed_ms(start_time)
        logger.info(
            f"Episode processed: episode_id={outcome.episode_id} status={outcome.status} "
            f"word_count={outcome.word_count} elapsed_ms={outcome.elapsed_ms}"
        )
        return outcome

    async def _handle_result(
        self, candidate: EpisodeCandidate, result: TranscriptResult
    ) -> EpisodeProcessingResult:
        if isinstance(result, (FullTranscript, PartialTranscript)):
            return await self._store_transcript(candidate, result)

        if isinstance(result, ProcessingTranscript):
            await asyncio.to_thread(
                self._record, candidate.id, TranscriptStatus.PROCESSING, source=result.source
            )
            return EpisodeProcessingResult(candidate.id, TranscriptStatus.PROCESSING.value)

        if isinstance(result, (NotFoundTranscript, NoMatchTranscript)):
            status = (
                TranscriptStatus.NOT_FOUND
                if isinstance(result, NotFoundTranscript)
                else TranscriptStatus.NO_MATCH
            )
            await asyncio.to_thread(self._record, candidate.id, status, source=TADDY_SOURCE)
            return EpisodeProcessingResult(candidate.id, status.value)

        if isinstance(result, TranscriptError):
            quota_exhausted = is_quota_exhausted_error(result.message)
            if quota_exhausted:
                logger.info(f"Quota error for episode {candidate.id}: {result.message}")
            else:
                logger.error(
                    f"Transcript lookup error for episode {candidate.id}: {result.message}"
                )
            await asyncio.to_thread(
                self._record,
                candidate.id,
                TranscriptStatus.ERROR,
                source=TADDY_SOURCE,
                error_details=result.message,
            )
            return EpisodeProcessingResult(
                candidate.id,
                TranscriptStatus.ERROR.value,
                error=result.message,
                quota_exhausted=quota_exhausted,
            )

        raise TypeError(f"Unhandled transcript result: {result!r}")

    async def _store_transcript(
        self, candidate: EpisodeCandidate, result: TranscriptResult
    ) -> EpisodeProcessingResult:
        status = (
            TranscriptStatus.FULL if isinstance(result, FullTranscript) else TranscriptStatus.PARTIAL
        )
        storage_path = transcript_storage_path(candidate.show_id, candidate.id)
        artifact = build_transcript_artifact(
            episode_id=candidate.id,
            show_id=candidate.show_id,
            transcript=result.text,
            word_count=result.word_count,
            source=result.source,
        )

        try:
            await asyncio.to_thread(
                self.storage.upload,
                storage_path,
                encode_artifact(artifact),
                TRANSCRIPT_CONTENT_TYPE,
            )
        except Exception as e:
            message = f"{UPLOAD_ERROR_PREFIX}: {e}"
            logger.error(f"Episode {candidate.id}: {message}")
            await asyncio.to_thread(
                self._record,
                candidate.id,
                TranscriptStatus.ERROR,
                source=result.source,
                error_details=message,
            )
            return EpisodeProcessingResult(
                candidate.id, TranscriptStatus.ERROR.value, error=message
            )

        await asyncio.to_thread(
            self._record,
            candidate.id,
            status,
            storage_path=storage_path,
            word_count=result.word_count,
            source=result.source,
        )
        return EpisodeProcessingResult(
            candidate.id,
            status.value,
            storage_path=storage_path,
            word_count=result.word_count,
        )

    def _record(self, episode_id: str, status: TranscriptStatus, **fields) -> None:
        with self.session_factory() as session:
            upsert_transcript(session, episode_id, status, **fields)
            session.commit()


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)
