"""Error kinds raised by the buffer cache and the synchronized mixer."""

from __future__ import annotations


class TandemError(Exception):
    """Base class for every error raised by tandem."""


class SourceReadError(TandemError, OSError):
    """The source bytes for a path could not be read."""


class DecodeError(TandemError, ValueError):
    """The bytes are not a supported (or are a corrupt) audio encoding."""


class BufferNotFoundError(TandemError, LookupError):
    def __init__(self, key: str) -> None:
        super().__init__(f"buffer {key} is not loaded")
        self.key = key


class FormatNotInitializedError(TandemError, RuntimeError):
    def __init__(self) -> None:
        super().__init__("cannot get format, no buffer has been loaded yet")


class PositionOutOfRangeError(TandemError, ValueError):
    def __init__(self, position: int, length: int) -> None:
        super().__init__(f"cannot seek to position {position}, out of bounds [0, {length}]")
        self.position = position
        self.length = length


class LengthMismatchError(TandemError, ValueError):
    def __init__(self, participant_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"cannot add streamer {participant_id}: expected length {expected}, got length {actual}"
        )
        self.participant_id = participant_id
        self.expected = expected
        self.actual = actual


class ParticipantSeekError(TandemError):
    """A mixer participant refused to seek to the shared position.

    Recorded by the mixer, never raised from `stream`.
    """

    def __init__(self, participant_id: str, position: int) -> None:
        super().__init__(f"cannot seek streamer {participant_id} to position {position}")
        self.participant_id = participant_id
        self.position = position
