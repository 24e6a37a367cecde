"""tandem - decode-once audio buffers and lock-step multi-track playback."""

__version__ = "0.1.0"
