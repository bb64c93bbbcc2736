"""
Exceptions raised by the Taddy client and the predicates used to classify them.

Hierarchy:
    TaddyError
    ├── TaddyHTTPError        non-2xx response (message carries "HTTP <code>")
    └── TaddyGraphQLError     "errors" array in a 2xx response
        └── SchemaMismatchError   the API rejected the query shape
"""

from typing import Any, Optional, Union


QUOTA_EXHAUSTED_MESSAGE = "CREDITS_EXCEEDED"

QUOTA_INDICATORS = (
    "credits exceeded",
    "quota exceeded",
    "rate limit",
    "too many requests",
    "CREDITS_EXCEEDED",
)

SCHEMA_MISMATCH_INDICATORS = (
    "Cannot query field",
    "Unknown argument",
    "GRAPHQL_VALIDATION_FAILED",
)


class TaddyError(Exception):
    """Base class for Taddy API failures."""


class TaddyHTTPError(TaddyError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, detail: str = ""):
        self.status_code = status_code
        self.detail = detail
        message = f"HTTP {status_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class TaddyGraphQLError(TaddyError):
    """The API returned GraphQL errors."""

    def __init__(self, errors: list[dict[str, Any]]):
        self.errors = errors
        super().__init__("; ".join(_describe_error(error) for error in errors) or "GraphQL error")


class SchemaMismatchError(TaddyGraphQLError):
    """The query shape is not accepted by the current API schema."""


def _describe_error(error: dict[str, Any]) -> str:
    message = str(error.get("message", ""))
    code = (error.get("extensions") or {}).get("code")
    if code and code not in message:
        message = f"{message} [{code}]" if message else str(code)
    return message


def _message_of(error_or_message: Union[BaseException, str, None]) -> str:
    if error_or_message is None:
        return ""
    return str(error_or_message)


def is_quota_exhausted_error(
    error_or_message: Union[BaseException, str, None],
    status_code: Optional[int] = None,
) -> bool:
    """
    Whether an error means the provider rejects further requests for now.

    True for an HTTP 429 status, given explicitly or carried by a
    ``TaddyHTTPError``, and for messages containing (case-insensitive) any
    quota indicator.
    """
    if status_code == 429:
        return True
    if isinstance(error_or_message, TaddyHTTPError) and error_or_message.status_code == 429:
        return True

    message = _message_of(error_or_message).lower()
    return any(indicator.lower() in message for indicator in QUOTA_INDICATORS)


def is_schema_mismatch_error(error_or_message: Union[BaseException, str, None]) -> bool:
    """Whether an error means the API rejected the shape of the query."""
    if isinstance(error_or_message, SchemaMismatchError):
        return True
    message = _message_of(error_or_message)
    return any(indicator in message for indicator in SCHEMA_MISMATCH_INDICATORS)
