"""Audio type definitions shared by the buffer cache and the mixer.

Kept apart from the implementation modules so that readers, decoders and
seekers can be typed without importing the cache or the mixer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple

import numpy as np

STEREO_CHANNELS = 2
SAMPLE_DTYPE = np.float32
DEFAULT_RESAMPLE_QUALITY = 4


@dataclass(frozen=True)
class AudioFormat:
    samplerate: int
    channels: int = STEREO_CHANNELS

    def __post_init__(self) -> None:
        if int(self.samplerate) <= 0:
            raise ValueError(f"samplerate must be positive, got {self.samplerate}")
        if int(self.channels) <= 0:
            raise ValueError(f"channels must be positive, got {self.channels}")

    def duration(self, frames: int) -> float:
        return frames / float(self.samplerate)

    def frames(self, seconds: float) -> int:
        return int(round(max(0.0, seconds) * self.samplerate))


@dataclass(frozen=True)
class DecodedBuffer:
    """One fully decoded track, normalized to the cache format.

    `samples` is a read-only float32 array of shape (frames, 2).
    """

    key: str
    samples: np.ndarray
    format: AudioFormat

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        return self.format.duration(len(self))


class StreamSeeker(Protocol):
    def __len__(self) -> int: ...

    def position(self) -> int: ...

    def seek(self, position: int) -> None: ...

    def stream(self, samples: np.ndarray) -> Tuple[int, bool]: ...

    def err(self) -> Optional[Exception]: ...


def new_sample_block(frames: int) -> np.ndarray:
    return np.zeros((max(0, int(frames)), STEREO_CHANNELS), dtype=SAMPLE_DTYPE)


def check_sample_block(samples) -> None:
    if not isinstance(samples, np.ndarray) or samples.ndim != 2 or samples.shape[1] != STEREO_CHANNELS:
        shape = getattr(samples, "shape", None)
        raise ValueError(f"expected a (frames, {STEREO_CHANNELS}) sample array, got shape {shape}")
