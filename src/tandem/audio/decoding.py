"""Decode capability: byte stream -> stereo float32 frames plus their format."""

from __future__ import annotations

import io
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional, Protocol, Tuple

import numpy as np
import soundfile as sf

from tandem.audio.errors import DecodeError
from tandem.audio.types import SAMPLE_DTYPE, STEREO_CHANNELS, AudioFormat

logger = logging.getLogger(__name__)


class Decoder(Protocol):
    def decode(self, stream: BinaryIO) -> Tuple[np.ndarray, AudioFormat]: ...


def match_channels(data: np.ndarray, channels: int) -> np.ndarray:
    if data.shape[1] == channels:
        return data
    if data.shape[1] > channels:
        return data[:, :channels]
    pad_count = channels - data.shape[1]
    pad = np.repeat(data[:, -1:], pad_count, axis=1)
    return np.concatenate([data, pad], axis=1)


def decode_with_soundfile(stream: BinaryIO) -> Tuple[np.ndarray, AudioFormat]:
    try:
        data, samplerate = sf.read(stream, dtype="float32", always_2d=True)
    except Exception as exc:  # pylint: disable=broad-except
        raise DecodeError(f"unsupported or corrupt audio data: {exc}") from exc
    if data.shape[1] == 0:
        raise DecodeError("decoded audio has no channels")
    data = match_channels(data, STEREO_CHANNELS).astype(SAMPLE_DTYPE, copy=False)
    return data, AudioFormat(samplerate=int(samplerate), channels=STEREO_CHANNELS)


def transcode_to_wav(payload: bytes, *, ffmpeg: Optional[str] = None) -> bytes:
    """Run `payload` through ffmpeg and return a stereo PCM WAV at the native rate."""

    ffmpeg = ffmpeg or shutil.which("ffmpeg")
    if not ffmpeg:
        raise DecodeError("FFmpeg is required to decode this audio encoding")
    fd_in, source_name = tempfile.mkstemp(suffix=".bin")
    os.close(fd_in)
    fd_out, target_name = tempfile.mkstemp(suffix=".wav")
    os.close(fd_out)
    source = Path(source_name)
    target = Path(target_name)
    cmd = [
        ffmpeg,
        "-y",
        "-i",
        str(source),
        "-vn",
        "-acodec",
        "pcm_f32le",
        "-ac",
        str(STEREO_CHANNELS),
        str(target),
    ]
    try:
        source.write_bytes(payload)
        subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        return target.read_bytes()
    except FileNotFoundError as exc:  # pragma: no cover - depends on the environment
        raise DecodeError("FFmpeg was not found in PATH") from exc
    except subprocess.CalledProcessError as exc:
        raise DecodeError("FFmpeg could not decode the audio data") from exc
    finally:
        source.unlink(missing_ok=True)
        target.unlink(missing_ok=True)


class SoundFileDecoder:
    """Decodes anything libsndfile understands, optionally falling back to ffmpeg."""

    def __init__(self, *, ffmpeg_fallback: bool = True) -> None:
        self.ffmpeg_fallback = ffmpeg_fallback

    def decode(self, stream: BinaryIO) -> Tuple[np.ndarray, AudioFormat]:
        payload = stream.read()
        if not payload:
            raise DecodeError("audio source is empty")
        try:
            return decode_with_soundfile(io.BytesIO(payload))
        except DecodeError as exc:
            if not self.ffmpeg_fallback:
                raise
            logger.debug("libsndfile rejected the data (%s), trying FFmpeg", exc)
            rejected = exc
        try:
            transcoded = transcode_to_wav(payload)
        except DecodeError as exc:
            raise DecodeError(f"{exc}; libsndfile: {rejected}") from rejected
        return decode_with_soundfile(io.BytesIO(transcoded))
