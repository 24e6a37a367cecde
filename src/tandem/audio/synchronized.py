"""Lock-step mixing of equal-length stream seekers."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from tandem.audio.errors import LengthMismatchError, ParticipantSeekError, PositionOutOfRangeError
from tandem.audio.types import SAMPLE_DTYPE, STEREO_CHANNELS, StreamSeeker, check_sample_block
from tandem.core.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


class SynchronizedMixer:
    """Streams several seekers together over one shared cursor.

    Every participant must have the length fixed by the first one added.
    Participants can be added and removed while streaming; a new one starts
    contributing at the current shared position. The mixer is a
    `StreamSeeker` itself, so mixers can be nested.
    """

    def __init__(self) -> None:
        self._participants: Dict[str, StreamSeeker] = {}
        self._position = 0
        self._length = 0
        self._initialized = False
        self._err: Optional[ParticipantSeekError] = None
        self._stream_errors: Dict[str, ParticipantSeekError] = {}
        self._scratch = np.zeros((0, STEREO_CHANNELS), dtype=SAMPLE_DTYPE)
        self._lock = ReadWriteLock()

    def __len__(self) -> int:
        with self._lock.read():
            return self._length

    def position(self) -> int:
        with self._lock.read():
            return self._position

    def is_initialized(self) -> bool:
        with self._lock.read():
            return self._initialized

    def seek(self, position: int) -> None:
        """Move the shared cursor. Participants follow on the next `stream`."""
        with self._lock.write():
            if position < 0 or position > self._length:
                raise PositionOutOfRangeError(position, self._length)
            self._position = position

    def stream(self, samples: np.ndarray) -> Tuple[int, bool]:
        """Mix up to `len(samples)` frames from the shared position.

        Returns `(n, finished)`; `finished` is true only for the read that
        reaches the end. Once drained every call returns `(0, False)`.
        """
        check_sample_block(samples)
        with self._lock.write():
            self._stream_errors = {}
            if self._position >= self._length:
                return 0, False

            n = min(samples.shape[0], self._length - self._position)
            samples[:n] = 0.0
            if self._scratch.shape[0] < n:
                self._scratch = np.zeros((n, STEREO_CHANNELS), dtype=SAMPLE_DTYPE)

            for participant_id, seeker in self._snapshot():
                try:
                    seeker.seek(self._position)
                except Exception as exc:  # pylint: disable=broad-except
                    error = ParticipantSeekError(participant_id, self._position)
                    error.__cause__ = exc
                    self._err = error
                    self._stream_errors[participant_id] = error
                    logger.warning("%s: %s", error, exc)
                    continue
                chunk = self._scratch[:n]
                produced, _ = seeker.stream(chunk)
                if produced:
                    samples[:produced] += chunk[:produced]

            self._position += n
            return n, self._position == self._length

    def err(self) -> Optional[ParticipantSeekError]:
        """Latest participant seek failure, or None if there never was one."""
        with self._lock.read():
            return self._err

    def stream_errors(self) -> Dict[str, ParticipantSeekError]:
        """Participant seek failures of the most recent `stream` call."""
        with self._lock.read():
            return dict(self._stream_errors)

    def add(self, seeker: StreamSeeker, participant_id: str) -> None:
        """Add `seeker` under `participant_id`; an existing id is left untouched."""
        with self._lock.write():
            if participant_id in self._participants:
                return
            length = len(seeker)
            if not self._initialized:
                self._length = length
                self._initialized = True
                logger.debug("Mixer length fixed to %d by %s", length, participant_id)
            if length != self._length:
                raise LengthMismatchError(participant_id, self._length, length)
            self._participants[participant_id] = seeker

    def remove(self, participant_id: str) -> None:
        with self._lock.write():
            self._participants.pop(participant_id, None)

    def participant_ids(self) -> List[str]:
        with self._lock.read():
            return sorted(self._participants)

    def __contains__(self, participant_id: object) -> bool:
        with self._lock.read():
            return participant_id in self._participants

    def _snapshot(self) -> List[Tuple[str, StreamSeeker]]:
        return list(self._participants.items())
