"""
Outcome of a transcript lookup.

``TranscriptResult`` is a closed union of frozen dataclasses, each carrying a
``kind`` tag matching the status stored for it:

    FullTranscript       complete text          -> "full"
    PartialTranscript    incomplete text        -> "partial"
    ProcessingTranscript provider still working -> "processing"
    NotFoundTranscript   no transcript exists   -> "not_found"
    NoMatchTranscript    show/episode unknown   -> "no_match"
    TranscriptError      lookup failed          -> "error"

``credits_consumed`` is an estimate: the provider does not report real usage.
"""

from dataclasses import dataclass
from typing import ClassVar, Union


TADDY_SOURCE = "taddy"


def _check_credits(credits_consumed: int) -> None:
    if credits_consumed < 0:
        raise ValueError(f"credits_consumed must be non-negative, got {credits_consumed}")


@dataclass(frozen=True)
class FullTranscript:
    text: str
    word_count: int
    source: str = TADDY_SOURCE
    credits_consumed: int = 1

    kind: ClassVar[str] = "full"

    def __post_init__(self):
        _check_credits(self.credits_consumed)


@dataclass(frozen=True)
class PartialTranscript:
    text: str
    word_count: int
    source: str = TADDY_SOURCE
    credits_consumed: int = 1

    kind: ClassVar[str] = "partial"

    def __post_init__(self):
        _check_credits(self.credits_consumed)


@dataclass(frozen=True)
class ProcessingTranscript:
    source: str = TADDY_SOURCE
    credits_consumed: int = 1

    kind: ClassVar[str] = "processing"

    def __post_init__(self):
        _check_credits(self.credits_consumed)


@dataclass(frozen=True)
class NotFoundTranscript:
    credits_consumed: int = 1

    kind: ClassVar[str] = "not_found"

    def __post_init__(self):
        _check_credits(self.credits_consumed)


@dataclass(frozen=True)
class NoMatchTranscript:
    credits_consumed: int = 1

    kind: ClassVar[str] = "no_match"

    def __post_init__(self):
        _check_credits(self.credits_consumed)


@dataclass(frozen=True)
class TranscriptError:
    message: str
    credits_consumed: int = 0

    kind: ClassVar[str] = "error"

    def __post_init__(self):
        _check_credits(self.credits_consumed)


TranscriptResult = Union[
    FullTranscript,
    PartialTranscript,
    ProcessingTranscript,
    NotFoundTranscript,
    NoMatchTranscript,
    TranscriptError,
]
