import gzip
import json
from datetime import datetime, timezone

import boto3
import pytest
from botocore.stub import Stubber

from src.storage import (
    TRANSCRIPT_CONTENT_TYPE,
    CloudStorage,
    LocalStorage,
    StorageError,
    build_transcript_artifact,
    decode_artifact,
    encode_artifact,
    transcript_storage_path,
)


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_storage_path():
    assert transcript_storage_path("show-1", "episode-1") == "show-1/episode-1.jsonl.gz"


def test_content_type_is_plain_gzip():
    assert TRANSCRIPT_CONTENT_TYPE == "application/gzip"


def test_artifact_is_one_gzipped_json_line():
    record = build_transcript_artifact(
        episode_id="episode-1",
        show_id="show-1",
        transcript="Host: Bonjour à tous\nWelcome",
        word_count=5,
        source="taddy",
        created_at=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
    )

    data = encode_artifact(record)
    lines = gzip.decompress(data).decode("utf-8").splitlines()

    assert len(lines) == 1
    assert json.loads(lines[0]) == record
    assert decode_artifact(data) == record
    assert record["created_at"] == "2026-10-01T12:00:00+00:00"


def test_decode_rejects_multiple_lines():
    data = gzip.compress(b'{"a": 1}\n{"b": 2}\n')

    with pytest.raises(ValueError):
        decode_artifact(data)


def test_cloud_upload_sends_gzip_content_type(s3_client):
    data = encode_artifact({"episode_id": "episode-1", "show_id": "show-1", "transcript": "x"})
    storage = CloudStorage("transcripts", client=s3_client)

    with Stubber(s3_client) as stubber:
        stubber.add_response(
            "put_object",
            {},
            expected_params={
                "Bucket": "transcripts",
                "Key": "show-1/episode-1.jsonl.gz",
                "Body": data,
                "ContentType": "application/gzip",
            },
        )
        path = storage.upload("show-1/episode-1.jsonl.gz", data, TRANSCRIPT_CONTENT_TYPE)
        stubber.assert_no_pending_responses()

    assert path == "show-1/episode-1.jsonl.gz"


def test_cloud_upload_error_becomes_storage_error(s3_client):
    storage = CloudStorage("transcripts", client=s3_client)

    with Stubber(s3_client) as stubber:
        stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
        with pytest.raises(StorageError):
            storage.upload("show-1/episode-1.jsonl.gz", b"data", TRANSCRIPT_CONTENT_TYPE)


def test_cloud_exists(s3_client):
    storage = CloudStorage("transcripts", client=s3_client)

    with Stubber(s3_client) as stubber:
        stubber.add_response("head_object", {}, expected_params={"Bucket": "transcripts", "Key": "a"})
        stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
        assert storage.exists("a")
        assert not storage.exists("b")


def test_cloud_storage_requires_credentials(monkeypatch):
    for name in ("BUCKET_ENDPOINT", "BUCKET_KEY_ID", "BUCKET_ACCESS_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("src.storage.cloud.load_dotenv", lambda: None)

    with pytest.raises(RuntimeError):
        CloudStorage("transcripts")


def test_local_storage_round_trip(tmp_path):
    storage = LocalStorage(str(tmp_path))
    data = encode_artifact({"episode_id": "e", "show_id": "s", "transcript": "t"})

    path = storage.upload("s/e.jsonl.gz", data, TRANSCRIPT_CONTENT_TYPE)

    assert path == "s/e.jsonl.gz"
    assert storage.exists("s/e.jsonl.gz")
    assert (tmp_path / "s" / "e.jsonl.gz").read_bytes() == data
    assert decode_artifact(storage.download("s/e.jsonl.gz"))["transcript"] == "t"
    assert not storage.exists("s/missing.jsonl.gz")


def test_local_storage_missing_object(tmp_path):
    with pytest.raises(StorageError):
        LocalStorage(str(tmp_path)).download("nope")
