"""Build the cache, the mixer and the player from settings."""

from __future__ import annotations

from typing import Callable, Optional

from tandem.audio.buffers import BufferCache
from tandem.audio.decoding import Decoder, SoundFileDecoder
from tandem.audio.output import SynchronizedPlayer
from tandem.audio.reader import Reader
from tandem.audio.synchronized import SynchronizedMixer
from tandem.core.config import SettingsManager
from tandem.core.logging_setup import configure_logging


def configure_logging_from_settings(settings: SettingsManager) -> int:
    """Apply `logging.level` from settings; `LOGLEVEL` still wins."""
    return configure_logging(settings.get_log_level())


def create_buffer_cache(
    settings: SettingsManager,
    *,
    reader: Optional[Reader] = None,
    decoder: Optional[Decoder] = None,
) -> BufferCache:
    if decoder is None:
        decoder = SoundFileDecoder(ffmpeg_fallback=settings.get_ffmpeg_fallback())
    return BufferCache(reader, decoder, resample_quality=settings.get_resample_quality())


def create_player(
    settings: SettingsManager,
    cache: BufferCache,
    mixer: SynchronizedMixer,
    *,
    stream_factory=None,
    on_finished: Optional[Callable[[], None]] = None,
) -> SynchronizedPlayer:
    """Player for `mixer` in the cache format. Needs at least one loaded buffer."""
    return SynchronizedPlayer(
        mixer,
        cache.get_format(),
        block_size=settings.get_block_size(),
        device=settings.get_output_device(),
        stream_factory=stream_factory,
        on_finished=on_finished,
    )
