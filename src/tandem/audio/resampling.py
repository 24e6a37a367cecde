"""Sample-rate conversion used to normalize buffers to the cache format."""

from __future__ import annotations

import numpy as np

from tandem.audio.types import DEFAULT_RESAMPLE_QUALITY, SAMPLE_DTYPE

MIN_RESAMPLE_QUALITY = 1
MAX_RESAMPLE_QUALITY = 64


def check_quality(quality: int) -> int:
    quality = int(quality)
    if not MIN_RESAMPLE_QUALITY <= quality <= MAX_RESAMPLE_QUALITY:
        raise ValueError(
            f"resample quality must be in [{MIN_RESAMPLE_QUALITY}, {MAX_RESAMPLE_QUALITY}], got {quality}"
        )
    return quality


def resampled_length(frames: int, from_rate: int, to_rate: int) -> int:
    return int(round(frames * float(to_rate) / float(from_rate)))


def _interp_linear(block: np.ndarray, positions: np.ndarray) -> np.ndarray:
    src_idx = np.arange(block.shape[0], dtype=np.float64)
    resampled = np.empty((positions.shape[0], block.shape[1]), dtype=np.float64)
    for channel in range(block.shape[1]):
        resampled[:, channel] = np.interp(positions, src_idx, block[:, channel])
    return resampled


def _interp_lagrange(block: np.ndarray, positions: np.ndarray, quality: int) -> np.ndarray:
    # 2 * quality taps around each position, edges clamped to the first/last frame
    last = block.shape[0] - 1
    base = np.floor(positions).astype(np.int64)
    frac = positions - base
    offsets = range(1 - quality, quality + 1)
    resampled = np.zeros((positions.shape[0], block.shape[1]), dtype=np.float64)
    for k in offsets:
        weight = np.ones_like(frac)
        for m in offsets:
            if m != k:
                weight *= (frac - m) / float(k - m)
        idx = np.clip(base + k, 0, last)
        resampled += block[idx].astype(np.float64) * weight[:, None]
    return resampled


def resample(
    samples: np.ndarray,
    from_rate: int,
    to_rate: int,
    *,
    quality: int = DEFAULT_RESAMPLE_QUALITY,
) -> np.ndarray:
    """Convert `samples` (frames, channels) from `from_rate` to `to_rate`.

    `quality` is the number of frames looked at on each side of the
    interpolated position; 1 is plain linear interpolation. The result has
    `round(frames * to_rate / from_rate)` frames.
    """
    quality = check_quality(quality)
    if from_rate <= 0 or to_rate <= 0:
        raise ValueError(f"sample rates must be positive, got {from_rate} -> {to_rate}")
    if from_rate == to_rate:
        return np.array(samples, dtype=SAMPLE_DTYPE, copy=True)

    src_frames = samples.shape[0]
    target_frames = resampled_length(src_frames, from_rate, to_rate)
    if src_frames == 0 or target_frames == 0:
        return np.zeros((target_frames, samples.shape[1]), dtype=SAMPLE_DTYPE)
    if src_frames == 1:
        return np.repeat(samples, target_frames, axis=0).astype(SAMPLE_DTYPE)

    step = float(from_rate) / float(to_rate)
    positions = np.arange(target_frames, dtype=np.float64) * step
    if quality == 1:
        resampled = _interp_linear(samples, positions)
    else:
        resampled = _interp_lagrange(samples, positions, quality)
    return resampled.astype(SAMPLE_DTYPE)
