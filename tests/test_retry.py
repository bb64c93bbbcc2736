import httpx
import pytest

from src.taddy.errors import SchemaMismatchError, TaddyHTTPError
from src.taddy.retry import calculate_delay, is_retryable_error, with_http_retry, with_retry


class FlakyCall:
    """Raises the queued errors in order, then returns ``result``."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


async def test_transient_error_is_retried():
    call = FlakyCall([TaddyHTTPError(503, "Service Unavailable")])

    assert await with_http_retry(call, base_delay=0) == "ok"
    assert call.calls == 2


async def test_attempts_are_capped():
    call = FlakyCall([httpx.ConnectError("refused")] * 3)

    with pytest.raises(httpx.ConnectError):
        await with_retry(call, max_attempts=2, base_delay=0)
    assert call.calls == 2


@pytest.mark.parametrize(
    "error",
    [
        TaddyHTTPError(429, "Too Many Requests"),
        TaddyHTTPError(400, "Bad Request"),
        SchemaMismatchError([{"message": 'Cannot query field "x" on type "Query"'}]),
        ValueError("credits exceeded"),
    ],
)
async def test_permanent_errors_are_not_retried(error):
    call = FlakyCall([error])

    with pytest.raises(type(error)):
        await with_http_retry(call, base_delay=0)
    assert call.calls == 1


async def test_custom_should_retry():
    call = FlakyCall([KeyError("a"), KeyError("b")])

    result = await with_retry(
        call,
        max_attempts=3,
        base_delay=0,
        should_retry=lambda error, attempt: isinstance(error, KeyError),
    )

    assert result == "ok"
    assert call.calls == 3


async def test_invalid_max_attempts():
    with pytest.raises(ValueError):
        await with_retry(FlakyCall([]), max_attempts=0)


@pytest.mark.parametrize(
    "error, expected",
    [
        (httpx.ConnectTimeout("timed out"), True),
        (httpx.ReadError("connection reset by peer"), True),
        (TaddyHTTPError(502), True),
        (TaddyHTTPError(404), False),
        (RuntimeError("request timeout"), True),
        (RuntimeError("Episode not found"), False),
    ],
)
def test_is_retryable_error(error, expected):
    assert is_retryable_error(error) is expected


def test_delay_grows_exponentially_up_to_cap():
    delays = [calculate_delay(attempt, 1.0, 5.0, 2.0, 0.0) for attempt in range(1, 5)]

    assert delays == [1.0, 2.0, 4.0, 5.0]


def test_delay_jitter_stays_in_range():
    for _ in range(50):
        delay = calculate_delay(1, 1.0, 5.0, 2.0, 0.1)
        assert 0.9 <= delay <= 1.1
