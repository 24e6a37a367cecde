"""Independent read cursors over cached buffers."""

from __future__ import annotations

from threading import Lock
from typing import Optional, Tuple

import numpy as np

from tandem.audio.errors import PositionOutOfRangeError
from tandem.audio.types import DecodedBuffer, check_sample_block


class BufferSeeker:
    """Read cursor over the frames `[start, end)` of a `DecodedBuffer`.

    The seeker keeps a reference to the buffer, so it stays readable after
    the cache releases the key. Positions are relative to `start`.
    """

    def __init__(self, buffer: DecodedBuffer, start: int = 0, end: Optional[int] = None) -> None:
        total = len(buffer)
        end = total if end is None else end
        if not 0 <= start <= end <= total:
            raise ValueError(f"invalid seeker window [{start}, {end}) for buffer of length {total}")
        self._buffer = buffer
        self._start = start
        self._end = end
        self._pos = 0
        self._lock = Lock()

    @property
    def buffer(self) -> DecodedBuffer:
        return self._buffer

    def __len__(self) -> int:
        return self._end - self._start

    def position(self) -> int:
        with self._lock:
            return self._pos

    def seek(self, position: int) -> None:
        length = len(self)
        if position < 0 or position > length:
            raise PositionOutOfRangeError(position, length)
        with self._lock:
            self._pos = position

    def stream(self, samples: np.ndarray) -> Tuple[int, bool]:
        check_sample_block(samples)
        length = len(self)
        with self._lock:
            if self._pos >= length:
                return 0, False
            n = min(samples.shape[0], length - self._pos)
            first = self._start + self._pos
            samples[:n] = self._buffer.samples[first : first + n]
            self._pos += n
            return n, self._pos == length

    def err(self) -> Optional[Exception]:
        return None

    def __repr__(self) -> str:
        return f"BufferSeeker(key={self._buffer.key!r}, position={self.position()}, length={len(self)})"
