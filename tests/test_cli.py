import sys

import httpx
import pytest

from src.db import Base, check_database_connection, configure_database
from src.db import database
from src.taddy.client import TaddyBusinessClient
from src.taddy.config import TaddyConfig
from src.worker.__main__ import apply_overrides, build_parser, main, run_health_check, run_worker
from src.worker.config import TranscriptWorkerConfig


def parse(*argv):
    return build_parser().parse_args(list(argv))


def test_no_flags_keep_config():
    config = TranscriptWorkerConfig(lookback_hours=48, concurrency=4)

    assert apply_overrides(config, parse()) == config


def test_flags_override_config():
    config = TranscriptWorkerConfig()

    updated = apply_overrides(
        config,
        parse("--lookback-hours", "72", "--max-requests", "30", "--concurrency", "5",
              "--no-lock", "--last10"),
    )

    assert updated.lookback_hours == 72
    assert updated.max_requests == 30
    assert updated.concurrency == 5
    assert updated.use_advisory_lock is False
    assert updated.last10_mode is True
    assert config.lookback_hours == 24


def test_invalid_override_is_rejected():
    with pytest.raises(ValueError, match="TRANSCRIPT_CONCURRENCY"):
        apply_overrides(TranscriptWorkerConfig(), parse("--concurrency", "99"))


def test_local_and_dry_run_flags():
    args = parse("--dry-run", "--local", "data/out")

    assert args.dry_run
    assert args.local == "data/out"
    assert not args.health_check
    assert not args.check_db


async def test_dry_run_needs_no_taddy_credentials(configured_database, add_episode, monkeypatch):
    monkeypatch.delenv("TADDY_API_KEY", raising=False)
    monkeypatch.delenv("TADDY_USER_ID", raising=False)
    add_episode("episode-1")

    summary = await run_worker(
        TranscriptWorkerConfig(use_advisory_lock=False), storage=None, dry_run=True
    )

    assert summary.total_episodes == 1
    assert summary.skipped_episodes == 1
    assert summary.processed_episodes == 0


def health_client(handler):
    return TaddyBusinessClient(
        TaddyConfig(api_key="test-key", user_id="test-user"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


async def test_health_check_passes_on_non_business_plan():
    def handler(request):
        details = {
            "isBusinessPlan": False,
            "allowedOnDemandTranscriptsLimit": 0,
            "currentOnDemandTranscriptsUsage": 0,
        }
        return httpx.Response(200, json={"data": {"me": {"id": "1", "myDeveloperDetails": details}}})

    assert await run_health_check(health_client(handler)) is True


async def test_health_check_fails_when_unreachable():
    def handler(request):
        return httpx.Response(503, text="maintenance")

    assert await run_health_check(health_client(handler)) is False


def test_check_database_connection_ready(configured_database):
    healthy, detail = check_database_connection()

    assert healthy
    assert "sqlite" in detail


def test_check_database_connection_reports_missing_tables(tmp_path, monkeypatch):
    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_session_factory", None)
    engine = configure_database(f"sqlite:///{tmp_path / 'empty.db'}")

    healthy, detail = check_database_connection()
    engine.dispose()

    assert not healthy
    assert detail.startswith("Missing tables: podcast_shows, podcast_episodes, transcripts")
    assert "worker_locks" in detail


@pytest.mark.parametrize("create_tables, exit_code", [(True, 0), (False, 1)])
def test_check_db_flag_exit_code(tmp_path, monkeypatch, create_tables, exit_code):
    url = f"sqlite:///{tmp_path / 'worker.db'}"
    if create_tables:
        engine = database.create_db_engine(url)
        Base.metadata.create_all(engine)
        engine.dispose()
    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_session_factory", None)
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setattr(sys, "argv", ["transcript-worker", "--check-db"])

    with pytest.raises(SystemExit) as exit_info:
        main()

    assert exit_info.value.code == exit_code
