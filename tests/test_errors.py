import pytest

from src.taddy.errors import (
    SchemaMismatchError,
    TaddyGraphQLError,
    TaddyHTTPError,
    is_quota_exhausted_error,
    is_schema_mismatch_error,
)


@pytest.mark.parametrize(
    "message",
    [
        "Credits exceeded for this billing period",
        "QUOTA EXCEEDED",
        "Rate limit hit, slow down",
        "HTTP 429: Too Many Requests - quota exceeded",
        "too many requests",
        "CREDITS_EXCEEDED",
        "credits_exceeded",
    ],
)
def test_quota_messages(message):
    assert is_quota_exhausted_error(message)
    assert is_quota_exhausted_error(RuntimeError(message))


def test_quota_from_status_code():
    assert is_quota_exhausted_error("anything", status_code=429)
    assert is_quota_exhausted_error(TaddyHTTPError(429))


@pytest.mark.parametrize(
    "error",
    [
        "Internal server error",
        "Episode not found",
        TaddyHTTPError(500, "Internal Server Error"),
        TaddyHTTPError(400),
        None,
        "",
    ],
)
def test_not_quota(error):
    assert not is_quota_exhausted_error(error)


def test_not_quota_for_other_status():
    assert not is_quota_exhausted_error("bad request", status_code=400)


def test_http_error_message_carries_status():
    error = TaddyHTTPError(503, "Service Unavailable")

    assert str(error) == "HTTP 503: Service Unavailable"
    assert error.status_code == 503


@pytest.mark.parametrize(
    "message",
    [
        'Cannot query field "getPodcastEpisode" on type "Query"',
        'Unknown argument "seriesUuidForLookup" on field "Query.getPodcastEpisode"',
        "GRAPHQL_VALIDATION_FAILED",
    ],
)
def test_schema_mismatch_messages(message):
    assert is_schema_mismatch_error(message)


def test_schema_mismatch_from_graphql_extensions_code():
    error = TaddyGraphQLError(
        [{"message": "Validation failed", "extensions": {"code": "GRAPHQL_VALIDATION_FAILED"}}]
    )

    assert "GRAPHQL_VALIDATION_FAILED" in str(error)
    assert is_schema_mismatch_error(error)


def test_schema_mismatch_class_and_negatives():
    assert is_schema_mismatch_error(SchemaMismatchError([{"message": "shape"}]))
    assert not is_schema_mismatch_error(TaddyGraphQLError([{"message": "Not authorized"}]))
    assert not is_schema_mismatch_error(None)
