from __future__ import annotations

from models.config_models import Config, Configuration, PlaybackHistoryItem
from tests.fakes import EN_US


def test_configuration_defaults() -> None:
    configuration = Configuration()

    assert configuration.rate == 0.5
    assert configuration.pitch == 1.0
    assert configuration.volume == 1.0
    assert configuration.pause_between_sentences == 0.5
    assert configuration.auto_language_detection is True
    assert configuration.preferred_voice is None
    assert configuration.is_within_range()


def test_clamped_returns_copy() -> None:
    configuration = Configuration(rate=1.5, pitch=3.0, volume=-0.2, pause_between_sentences=-1.0)

    clamped = configuration.clamped()

    assert (clamped.rate, clamped.pitch, clamped.volume, clamped.pause_between_sentences) == (1.0, 2.0, 0.0, 0.0)
    assert configuration.rate == 1.5
    assert not configuration.is_within_range()


def test_copy_is_independent() -> None:
    configuration = Configuration(preferred_voice=EN_US)
    duplicate = configuration.copy()
    duplicate.rate = 0.9

    assert configuration.rate == 0.5
    assert duplicate.preferred_voice is EN_US


def test_history_item_defaults_to_utc_now() -> None:
    item = PlaybackHistoryItem(id="1", text="Hi.", voice=EN_US)

    assert item.timestamp.tzinfo is not None
    assert item.duration is None
    assert "timestamp" in item.to_dict(encode_json=True)


def test_application_settings_defaults() -> None:
    config = Config()

    assert config.ENGINE.DEFAULT == "local"
    assert config.ENGINE.ENABLED == ["local"]
    assert config.AZURE.REGION == "eastus"
    assert config.GTTS.TLD == "com"
    assert Config().ENGINE.ENABLED is not config.ENGINE.ENABLED
