"""Output side: pulls mixed blocks from a mixer and writes them to a device.

The mixer itself never touches audio hardware. `SynchronizedPlayer` runs
the pull loop on a daemon thread and writes into a `sounddevice`
OutputStream, or into a `NullOutputStream` when no device is available.
"""

from __future__ import annotations

import logging
from threading import Event, Lock, Thread
from typing import Callable, Optional, Protocol

import numpy as np

from tandem.audio.types import AudioFormat, StreamSeeker, new_sample_block

logger = logging.getLogger(__name__)

try:
    import sounddevice as sd
except (ImportError, OSError):  # pragma: no cover - sounddevice/PortAudio optional
    sd = None


class _StreamFactory(Protocol):
    def __call__(self, samplerate: float, channels: int): ...


class NullOutputStream:
    """OutputStream stand-in used when sounddevice is not available."""

    def __init__(self, samplerate: float, channels: int, writes: Optional[list] = None):
        self.samplerate = samplerate
        self.channels = channels
        self._writes = writes

    def write(self, data) -> None:
        if self._writes is not None:
            self._writes.append(np.array(data, copy=True))

    def __enter__(self) -> "NullOutputStream":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:  # pragma: no cover - trivial
        return False


def default_stream_factory(
    *,
    sd,
    device: Optional[int],
    block_size: int,
    samplerate: float,
    channels: int,
):
    if sd is None:
        return NullOutputStream(samplerate, channels)
    kwargs = {
        "device": device,
        "samplerate": samplerate,
        "channels": channels,
        "dtype": "float32",
        "blocksize": block_size,
    }
    return sd.OutputStream(**kwargs)


class SynchronizedPlayer:
    """Plays a mixer (or any stream seeker) on an output stream.

    After the source reports the end, or yields nothing, the loop idles until
    `play()` is called again, e.g. after a seek or after adding a track.
    """

    def __init__(
        self,
        source: StreamSeeker,
        audio_format: AudioFormat,
        *,
        block_size: int = 1024,
        device: Optional[int] = None,
        stream_factory: Optional[_StreamFactory] = None,
        on_finished: Optional[Callable[[], None]] = None,
    ) -> None:
        if block_size <= 0:
            raise ValueError(f"block_size must be positive, got {block_size}")
        self.source = source
        self.format = audio_format
        self.device = device
        self._block_size = block_size
        self._on_finished = on_finished
        self._active_event = Event()
        self._stop_event = Event()
        self._thread: Thread | None = None
        self._thread_lock = Lock()
        self._stream_factory = stream_factory
        if self._stream_factory is None:
            self._stream_factory = lambda samplerate, channels: default_stream_factory(
                sd=sd,
                device=self.device,
                block_size=self._block_size,
                samplerate=samplerate,
                channels=channels,
            )

    def play(self) -> None:
        self._active_event.set()
        self._ensure_thread()

    def pause(self) -> None:
        self._active_event.clear()

    def is_playing(self) -> bool:
        return self._active_event.is_set()

    def close(self) -> None:
        self._stop_event.set()
        self._active_event.set()
        with self._thread_lock:
            thread = self._thread
            self._thread = None
        if thread and thread.is_alive():
            thread.join(timeout=1.5)
        self._active_event.clear()

    def _ensure_thread(self) -> None:
        with self._thread_lock:
            if self._thread and self._thread.is_alive():
                return
            self._stop_event.clear()
            self._thread = Thread(target=self._run, name="tandem-player", daemon=True)
            self._thread.start()

    def _run(self) -> None:
        block = new_sample_block(self._block_size)
        try:
            with self._stream_factory(float(self.format.samplerate), int(self.format.channels)) as stream:
                while not self._stop_event.is_set():
                    if not self._active_event.wait(timeout=0.05):
                        continue
                    if self._stop_event.is_set():
                        break
                    frames, finished = self.source.stream(block)
                    if frames:
                        try:
                            stream.write(block[:frames])
                        except Exception as exc:  # pylint: disable=broad-except
                            logger.error("Error writing to output stream: %s", exc)
                            break
                    if finished or frames == 0:
                        self._active_event.clear()
                    if finished:
                        self._notify_finished()
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Playback thread failed: %s", exc)
        finally:
            self._active_event.clear()

    def _notify_finished(self) -> None:
        if self._on_finished is None:
            return
        try:
            self._on_finished()
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Error in playback finished callback: %s", exc)
