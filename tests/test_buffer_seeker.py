from __future__ import annotations

import numpy as np
import pytest

from tandem.audio import BufferSeeker, PositionOutOfRangeError
from tandem.audio.types import AudioFormat, DecodedBuffer


def _buffer(frames: int) -> DecodedBuffer:
    ramp = np.arange(frames, dtype=np.float32)
    samples = np.stack([ramp, ramp], axis=1)
    samples.flags.writeable = False
    return DecodedBuffer(key="ramp", samples=samples, format=AudioFormat(samplerate=44100))


def test_stream_reads_and_flags_tail() -> None:
    seeker = BufferSeeker(_buffer(10))
    out = np.zeros((4, 2), dtype=np.float32)

    assert seeker.stream(out) == (4, False)
    assert seeker.stream(out) == (4, False)
    assert seeker.stream(out) == (2, True)
    np.testing.assert_array_equal(out[:2, 0], [8, 9])
    assert seeker.stream(out) == (0, False)
    assert seeker.position() == 10
    assert seeker.err() is None


def test_seek_bounds() -> None:
    seeker = BufferSeeker(_buffer(10))
    seeker.seek(10)
    with pytest.raises(PositionOutOfRangeError):
        seeker.seek(11)
    with pytest.raises(PositionOutOfRangeError):
        seeker.seek(-1)
    assert seeker.position() == 10


def test_window_is_relative() -> None:
    seeker = BufferSeeker(_buffer(10), 3, 7)
    out = np.zeros((8, 2), dtype=np.float32)

    assert len(seeker) == 4
    assert seeker.stream(out) == (4, True)
    np.testing.assert_array_equal(out[:4, 1], [3, 4, 5, 6])


def test_invalid_window_is_rejected() -> None:
    with pytest.raises(ValueError):
        BufferSeeker(_buffer(10), 5, 11)
    with pytest.raises(ValueError):
        BufferSeeker(_buffer(10), 6, 5)
