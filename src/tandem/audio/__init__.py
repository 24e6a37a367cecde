"""Buffer cache and synchronized mixer façade.

Public surface:
- `BufferCache`
- `SynchronizedMixer`
- `SynchronizedPlayer`
- readers, decoders and error kinds
"""

from __future__ import annotations

from tandem.audio.buffers import BufferCache
from tandem.audio.decoding import Decoder, SoundFileDecoder
from tandem.audio.errors import (
    BufferNotFoundError,
    DecodeError,
    FormatNotInitializedError,
    LengthMismatchError,
    ParticipantSeekError,
    PositionOutOfRangeError,
    SourceReadError,
    TandemError,
)
from tandem.audio.output import NullOutputStream, SynchronizedPlayer
from tandem.audio.reader import FileReader, MemoryReader, Reader, StaticReader
from tandem.audio.seeker import BufferSeeker
from tandem.audio.synchronized import SynchronizedMixer
from tandem.audio.types import AudioFormat, DecodedBuffer, StreamSeeker

__all__ = [
    "AudioFormat",
    "BufferCache",
    "BufferNotFoundError",
    "BufferSeeker",
    "DecodeError",
    "DecodedBuffer",
    "Decoder",
    "FileReader",
    "FormatNotInitializedError",
    "LengthMismatchError",
    "MemoryReader",
    "NullOutputStream",
    "ParticipantSeekError",
    "PositionOutOfRangeError",
    "Reader",
    "SoundFileDecoder",
    "SourceReadError",
    "StaticReader",
    "StreamSeeker",
    "SynchronizedMixer",
    "SynchronizedPlayer",
    "TandemError",
]
