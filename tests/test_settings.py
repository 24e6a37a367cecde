from __future__ import annotations

import logging
import time

import numpy as np
import pytest
import yaml

from tandem.audio import DecodeError, MemoryReader, NullOutputStream, StaticReader, SynchronizedMixer
from tandem.audio.types import AudioFormat
from tandem.core.config import DEFAULT_CONFIG, SettingsManager
from tandem.core.logging_setup import configure_logging
from tandem.factory import configure_logging_from_settings, create_buffer_cache, create_player


def _wait_for(predicate, timeout: float = 1.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_defaults_without_config_file(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    settings = SettingsManager(config_path=tmp_path / "settings.yaml")

    assert settings.get_resample_quality() == 4
    assert settings.get_ffmpeg_fallback() is True
    assert settings.get_block_size() == 1024
    assert settings.get_output_device() is None
    assert settings.get_log_level() == "WARNING"
    assert settings.get_raw() == DEFAULT_CONFIG


def test_user_config_is_merged_over_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"buffers": {"resample_quality": 8}, "playback": {"device": "3"}}), encoding="utf-8")

    settings = SettingsManager(config_path=path)

    assert settings.get_resample_quality() == 8
    assert settings.get_ffmpeg_fallback() is True
    assert settings.get_output_device() == 3


def test_bad_values_fall_back_or_clamp(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump({"buffers": {"resample_quality": 500}, "playback": {"block_size": "lots", "device": "usb"}}),
        encoding="utf-8",
    )

    settings = SettingsManager(config_path=path)

    assert settings.get_resample_quality() == 64
    assert settings.get_block_size() == 1024
    assert settings.get_output_device() is None


def test_malformed_yaml_root_is_ignored(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")

    assert SettingsManager(config_path=path).get_raw() == DEFAULT_CONFIG


def test_non_mapping_section_keeps_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"buffers": "fast", "extra": {"kept": True}}), encoding="utf-8")

    settings = SettingsManager(config_path=path)

    assert settings.get_resample_quality() == 4
    assert settings.get_raw()["extra"] == {"kept": True}


def test_save_and_reload_round_trip(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    path = tmp_path / "nested" / "settings.yaml"
    settings = SettingsManager(config_path=path)
    settings.set_resample_quality(2)
    settings.set_ffmpeg_fallback(False)
    settings.set_block_size(256)
    settings.set_output_device(1)
    settings.set_log_level("debug")
    settings.save()

    reloaded = SettingsManager(config_path=path)

    assert reloaded.get_resample_quality() == 2
    assert reloaded.get_ffmpeg_fallback() is False
    assert reloaded.get_block_size() == 256
    assert reloaded.get_output_device() == 1
    assert reloaded.get_log_level() == "DEBUG"


def test_environment_overrides_config_location(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.setenv("TANDEM_CONFIG_DIR", str(tmp_path / "cfg"))
    assert SettingsManager().config_path == tmp_path / "cfg" / "settings.yaml"

    monkeypatch.setenv("TANDEM_CONFIG_PATH", str(tmp_path / "explicit.yaml"))
    assert SettingsManager().config_path == tmp_path / "explicit.yaml"


def test_factory_builds_cache_and_player_from_settings(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    settings = SettingsManager(config_path=tmp_path / "settings.yaml")
    settings.set_resample_quality(2)
    settings.set_block_size(8)

    class ToneDecoder:
        def decode(self, stream):
            stream.read()
            return np.full((16, 2), 0.5, dtype=np.float32), AudioFormat(samplerate=16000)

    cache = create_buffer_cache(settings, reader=MemoryReader({"tone": b"x"}), decoder=ToneDecoder())
    assert cache.resample_quality == 2
    cache.load("tone")
    mixer = SynchronizedMixer()
    mixer.add(cache.get_stream_seeker("tone"), "tone")
    writes: list = []

    player = create_player(settings, cache, mixer, stream_factory=lambda sr, ch: NullOutputStream(sr, ch, writes))
    player.play()
    assert _wait_for(lambda: mixer.position() == 16)
    player.close()

    assert player.format.samplerate == 16000
    assert player.device is None
    assert [len(chunk) for chunk in writes] == [8, 8]


def test_factory_uses_configured_ffmpeg_fallback(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    settings = SettingsManager(config_path=tmp_path / "settings.yaml")
    settings.set_ffmpeg_fallback(False)

    cache = create_buffer_cache(settings, reader=StaticReader(b"foo bar baz qux"))

    with pytest.raises(DecodeError):
        cache.load("anything")


def test_configure_logging_prefers_environment(monkeypatch) -> None:
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        monkeypatch.setenv("LOGLEVEL", "debug")
        assert configure_logging("ERROR") == logging.DEBUG

        monkeypatch.delenv("LOGLEVEL")
        assert configure_logging("error") == logging.ERROR
        assert configure_logging("nonsense") == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_logging_level_comes_from_settings(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("TANDEM_CONFIG_PATH", raising=False)
    monkeypatch.delenv("TANDEM_CONFIG_DIR", raising=False)
    monkeypatch.delenv("LOGLEVEL", raising=False)
    settings = SettingsManager(config_path=tmp_path / "settings.yaml")
    settings.set_log_level("info")
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        assert configure_logging_from_settings(settings) == logging.INFO
        assert root.level == logging.INFO

        monkeypatch.setenv("LOGLEVEL", "error")
        assert configure_logging_from_settings(settings) == logging.ERROR
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
