from __future__ import annotations

from textwrap import dedent
from typing import TYPE_CHECKING

import pytest

from config.loader import (
    ConfigFileNotFoundError,
    ConfigFormatError,
    ConfigLoader,
    ConfigTypeError,
    ConfigValueError,
)

if TYPE_CHECKING:
    from pathlib import Path


def _write_ini(tmp_path: Path, content: str) -> Path:
    ini_path: Path = tmp_path / "chat_analysis.ini"
    ini_path.write_text(dedent(content), encoding="utf-8")
    return ini_path


def test_config_loader_raises_for_missing_file(tmp_path: Path) -> None:
    ini_path: Path = tmp_path / "missing.ini"
    with pytest.raises(ConfigFileNotFoundError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(tmp_path, "")

    loader = ConfigLoader(config_filename=str(ini_path), script_name="test")

    assert loader.config.ORCHESTRATOR.CONFIDENCE_THRESHOLD == 0.6
    assert loader.config.COORDINATOR.DEBOUNCE_MS == 800
    assert loader.config.RATE_LIMIT.LIMITS["google_cloud"] == 100
    assert loader.config.GENERAL.SCRIPT_NAME == "test"


def test_config_loader_parses_values_and_overrides(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [GENERAL]
        DEBUG = False

        [ORCHESTRATOR]
        CONFIDENCE_THRESHOLD = 0.75
        DEFAULT_LANGUAGE = "en"

        [PROVIDERS]
        TRANSLATION = ["deepl", "libre_translate"]
        COST_HINTS = {"deepl": 2.0}

        [RATE_LIMIT]
        LIMITS = {"deepl": 50}
        WINDOW_MS = 30_000
        ADAPTIVE_COOLDOWN = no

        [UNKNOWN]
        KEY = 1
        """,
    )

    loader = ConfigLoader(
        config_filename=str(ini_path),
        script_name="test",
        debug=True,
        log_file="analysis.log",
    )

    assert loader.config.GENERAL.DEBUG is True
    assert loader.config.GENERAL.LOG_FILE == "analysis.log"
    assert loader.config.ORCHESTRATOR.CONFIDENCE_THRESHOLD == 0.75
    assert loader.config.ORCHESTRATOR.DEFAULT_LANGUAGE == "en"
    assert loader.config.PROVIDERS.TRANSLATION == ["deepl", "libre_translate"]
    assert loader.config.PROVIDERS.COST_HINTS == {"deepl": 2.0}
    assert loader.config.RATE_LIMIT.LIMITS == {"deepl": 50}
    assert loader.config.RATE_LIMIT.WINDOW_MS == 30000
    assert loader.config.RATE_LIMIT.ADAPTIVE_COOLDOWN is False


def test_unknown_provider_is_only_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [PROVIDERS]
        EMOTION = ["azure_text", "mystery"]
        """,
    )

    loader = ConfigLoader(config_filename=str(ini_path), script_name="test")

    assert loader.config.PROVIDERS.EMOTION == ["azure_text", "mystery"]
    assert "Unknown value 'mystery'" in caplog.text


def test_out_of_range_threshold_raises_config_value_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [ORCHESTRATOR]
        CONFIDENCE_THRESHOLD = 1.5
        """,
    )

    with pytest.raises(ConfigValueError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_detection_settings_are_loaded_and_range_checked(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [DETECTION]
        RELIABLE_CONFIDENCE = 0.9
        FALLBACK_LANGUAGE = "fr"
        """,
    )

    loader = ConfigLoader(config_filename=str(ini_path), script_name="test")

    assert loader.config.DETECTION.RELIABLE_CONFIDENCE == 0.9
    assert loader.config.DETECTION.FALLBACK_LANGUAGE == "fr"
    assert loader.config.DETECTION.LOCAL_RELIABLE_CONFIDENCE == 0.6

    _write_ini(
        tmp_path,
        """
        [DETECTION]
        LOCAL_RELIABLE_CONFIDENCE = 2
        """,
    )
    with pytest.raises(ConfigValueError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_zero_window_raises_config_value_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [RATE_LIMIT]
        WINDOW_MS = 0
        """,
    )

    with pytest.raises(ConfigValueError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_invalid_boolean_value_raises_config_value_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [RATE_LIMIT]
        ADAPTIVE_COOLDOWN = maybe
        """,
    )

    with pytest.raises(ConfigValueError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_invalid_provider_list_type_raises_type_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [PROVIDERS]
        TRANSLATION = 1
        """,
    )

    with pytest.raises(ConfigTypeError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


def test_unparsable_literal_raises_format_error(tmp_path: Path) -> None:
    ini_path: Path = _write_ini(
        tmp_path,
        """
        [PROVIDERS]
        TRANSLATION = ["deepl"
        """,
    )

    with pytest.raises(ConfigFormatError):
        ConfigLoader(config_filename=str(ini_path), script_name="test")


@pytest.mark.parametrize(
    ("limits", "error"),
    [
        ('{"deepl": "ten"}', ConfigTypeError),
        ('{"deepl": -1}', ConfigValueError),
    ],
)
def test_invalid_rate_limits(tmp_path: Path, limits: str, error: type[Exception]) -> None:
    ini_path: Path = _write_ini(tmp_path, f"[RATE_LIMIT]\nLIMITS = {limits}\n")

    with pytest.raises(error):
        ConfigLoader(config_filename=str(ini_path), script_name="test")
