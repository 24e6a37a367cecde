"""Decode-once cache of format-normalized audio buffers."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from tandem.audio.decoding import Decoder, SoundFileDecoder
from tandem.audio.errors import BufferNotFoundError, DecodeError, FormatNotInitializedError
from tandem.audio.reader import FileReader, Reader
from tandem.audio.resampling import check_quality, resample
from tandem.audio.seeker import BufferSeeker
from tandem.audio.types import (
    DEFAULT_RESAMPLE_QUALITY,
    SAMPLE_DTYPE,
    AudioFormat,
    DecodedBuffer,
    check_sample_block,
)
from tandem.core.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


class BufferCache:
    """Maps a key (source path) to a decoded buffer in the cache format.

    The format of the first buffer ever loaded becomes the cache format;
    later loads with another sample rate are resampled to it. Loading and
    releasing take the lock exclusively, issuing seekers and reading the
    format share it.
    """

    def __init__(
        self,
        reader: Optional[Reader] = None,
        decoder: Optional[Decoder] = None,
        *,
        resample_quality: int = DEFAULT_RESAMPLE_QUALITY,
    ) -> None:
        self._reader: Reader = reader if reader is not None else FileReader()
        self._decoder: Decoder = decoder if decoder is not None else SoundFileDecoder()
        self._resample_quality = check_quality(resample_quality)
        self._buffers: Dict[str, DecodedBuffer] = {}
        self._format: Optional[AudioFormat] = None
        self._lock = ReadWriteLock()

    @property
    def resample_quality(self) -> int:
        return self._resample_quality

    def load(self, key: str) -> None:
        """Decode `key` and keep it in memory. Loading a cached key does nothing."""
        with self._lock.write():
            if key in self._buffers:
                return
            stream = self._reader.open(key)
            try:
                samples, decoded_format = self._decoder.decode(stream)
            finally:
                stream.close()
            try:
                check_sample_block(samples)
            except ValueError as exc:
                raise DecodeError(f"decoder returned unusable frames for {key}: {exc}") from exc

            cache_format = self._format if self._format is not None else decoded_format
            if decoded_format.samplerate == cache_format.samplerate:
                normalized = samples.astype(SAMPLE_DTYPE, copy=True)
            else:
                logger.debug(
                    "Resampling %s from %d Hz to %d Hz (quality %d)",
                    key,
                    decoded_format.samplerate,
                    cache_format.samplerate,
                    self._resample_quality,
                )
                normalized = resample(
                    samples,
                    decoded_format.samplerate,
                    cache_format.samplerate,
                    quality=self._resample_quality,
                )
            normalized.flags.writeable = False

            if self._format is None:
                self._format = cache_format
                logger.info("Cache format set to %d Hz, %d channels", cache_format.samplerate, cache_format.channels)
            self._buffers[key] = DecodedBuffer(key=key, samples=normalized, format=cache_format)
            logger.debug("Loaded %s (%d frames)", key, normalized.shape[0])

    def release(self, key: str) -> None:
        """Drop `key` from the cache. Unknown keys are ignored."""
        with self._lock.write():
            if self._buffers.pop(key, None) is not None:
                logger.debug("Released %s", key)

    def release_all(self, *, reset_format: bool = False) -> None:
        """Drop every buffer.

        The adopted format survives unless `reset_format` is set, so buffers
        loaded afterwards keep matching seekers issued earlier.
        """
        with self._lock.write():
            count = len(self._buffers)
            self._buffers.clear()
            if reset_format:
                self._format = None
            logger.debug("Released %d buffers (format reset: %s)", count, reset_format)

    def get_stream_seeker(self, key: str) -> BufferSeeker:
        with self._lock.read():
            buffer = self._buffers.get(key)
        if buffer is None:
            raise BufferNotFoundError(key)
        return BufferSeeker(buffer, 0, len(buffer))

    def get_buffer(self, key: str) -> DecodedBuffer:
        with self._lock.read():
            buffer = self._buffers.get(key)
        if buffer is None:
            raise BufferNotFoundError(key)
        return buffer

    def get_format(self) -> AudioFormat:
        with self._lock.read():
            if self._format is None:
                raise FormatNotInitializedError()
            return self._format

    def is_loaded(self, key: str) -> bool:
        with self._lock.read():
            return key in self._buffers

    def keys(self) -> List[str]:
        with self._lock.read():
            return sorted(self._buffers)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.is_loaded(key)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._buffers)
