"""Configuration file loader and validator.

Handles reading, formatting, and validating settings from the INI configuration file.
Raises exceptions for any issues encountered during loading.
"""

from __future__ import annotations

import ast
import configparser
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from models.config_models import Config
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField
else:
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "Config",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ALLOWED_TRANSLATION_PROVIDERS: Final[list[str]] = ["deepl", "google_cloud", "azure_translator", "libre_translate"]
ALLOWED_EMOTION_PROVIDERS: Final[list[str]] = ["azure_text", "google_nl", "openai"]

# (section, key) pairs whose value must lie in [0, 1].
_UNIT_INTERVAL_SETTINGS: Final[tuple[tuple[str, str], ...]] = (
    ("ORCHESTRATOR", "CONFIDENCE_THRESHOLD"),
    ("ORCHESTRATOR", "TRANSLATION_CACHE_THRESHOLD"),
    ("ORCHESTRATOR", "EMOTION_CACHE_THRESHOLD"),
    ("CACHE", "EVICTION_RATIO"),
    ("OFFLINE", "HEURISTIC_CONFIDENCE"),
    ("OFFLINE", "PENDING_CONFIDENCE"),
    ("DETECTION", "RELIABLE_CONFIDENCE"),
    ("DETECTION", "LOCAL_RELIABLE_CONFIDENCE"),
    ("DETECTION", "FALLBACK_CONFIDENCE"),
)
# (section, key) pairs whose value must be strictly positive.
_POSITIVE_SETTINGS: Final[tuple[tuple[str, str], ...]] = (
    ("ORCHESTRATOR", "MIN_TEXT_LENGTH"),
    ("ORCHESTRATOR", "DEFAULT_TIMEOUT_MS"),
    ("RATE_LIMIT", "WINDOW_MS"),
    ("RATE_LIMIT", "BASE_COOLDOWN_SEC"),
    ("RATE_LIMIT", "MAX_COOLDOWN_SEC"),
    ("CACHE", "TTL_MS"),
    ("CACHE", "MAX_ENTRIES"),
)
# (section, key) pairs whose value must not be negative.
_NON_NEGATIVE_SETTINGS: Final[tuple[tuple[str, str], ...]] = (
    ("COORDINATOR", "DEBOUNCE_MS"),
    ("COORDINATOR", "SERIAL_SPACING_MS"),
)


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Handles loading and validation of configuration settings.

    Reads the INI file into a ``Config`` object, coercing each value to the type of the matching
    dataclass default, applies command-line overrides and validates the result.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Executing script name, used in error messaging.
        debug (bool): Optional override that forces ``GENERAL.DEBUG``.
        log_file (str | None): Optional override for ``GENERAL.LOG_FILE``.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str,
        script_name: str,
        **args,
    ) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' in the same directory as '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser()
        # Keep keys upper-case so they match the dataclass field names.
        parser.optionxform = str  # type: ignore[assignment, method-assign]

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self._convert_settings(parser)
        self.config.GENERAL.SCRIPT_NAME = script_name
        # Apply command-line argument overrides
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True
        if args.get("log_file") is not None:
            self.config.GENERAL.LOG_FILE = args["log_file"]
        self._validate_settings()

    def _convert_settings(self, parser: ConfigParser) -> None:
        """Convert every known section of the parser into the Config object.

        Unknown sections are reported and ignored.

        Args:
            parser (ConfigParser): Parsed INI data.

        Raises:
            ConfigFormatError: If a value cannot be parsed or coerced to the expected type.
        """
        known_sections: set[str] = {section.name for section in fields(self.config)}
        for section_name in parser.sections():
            if section_name not in known_sections:
                logger.warning("Ignoring unknown configuration section: '%s'", section_name)

        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Section '%s' not defined, using defaults", section.name)
                continue
            self._convert_section_field(parser, formatter, section)

    def _convert_section_field(
        self, parser: ConfigParser, formatter: _ConfigFormatter, section: DataclassField[Any]
    ) -> None:
        """Convert all fields in a configuration section.

        Args:
            parser (ConfigParser): Parsed INI data.
            formatter (_ConfigFormatter): Formatter used to coerce string values to typed values.
            section (Field[Any]): Target configuration section dataclass field.

        Raises:
            ConfigFormatError: If a value fails to format correctly.
        """
        section_obj: Any = getattr(self.config, section.name)
        known_keys: set[str] = {key.name for key in fields(section_obj)}
        for key_name in parser[section.name]:
            if key_name not in known_keys:
                logger.warning("Ignoring unknown setting: '%s.%s'", section.name, key_name)

        for key in fields(section_obj):
            if not parser.has_option(section.name, key.name):
                logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                continue

            formatted_value = formatter.apply_format(section, key)
            setattr(section_obj, key.name, formatted_value)

    def _validate_settings(self) -> None:
        """Validate numeric ranges, provider lists and rate limits.

        Raises:
            ConfigFormatError: If validation fails for any setting.
        """
        for section_name, key_name in _UNIT_INTERVAL_SETTINGS:
            self._validate_range(section_name, key_name, lower=0.0, upper=1.0)
        for section_name, key_name in _POSITIVE_SETTINGS:
            self._validate_range(section_name, key_name, lower=0.0, upper=None, inclusive_lower=False)
        for section_name, key_name in _NON_NEGATIVE_SETTINGS:
            self._validate_range(section_name, key_name, lower=0.0, upper=None)

        self._inspect_defined_item("PROVIDERS", "TRANSLATION", ALLOWED_TRANSLATION_PROVIDERS)
        self._inspect_defined_item("PROVIDERS", "EMOTION", ALLOWED_EMOTION_PROVIDERS)
        self._inspect_defined_item(
            "PROVIDERS", "DISABLED", ALLOWED_TRANSLATION_PROVIDERS + ALLOWED_EMOTION_PROVIDERS
        )
        self._validate_rate_limits()

    def _validate_range(
        self,
        section_name: str,
        key_name: str,
        *,
        lower: float,
        upper: float | None,
        inclusive_lower: bool = True,
    ) -> None:
        """Check that a numeric setting lies within bounds.

        Raises:
            ConfigTypeError: If the value is not numeric.
            ConfigValueError: If the value is out of range.
        """
        value: Any = getattr(getattr(self.config, section_name), key_name)
        field_name: str = f"{section_name}.{key_name}"

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            msg: str = f"Unsupported type used for '{field_name}': {type(value)}"
            raise ConfigTypeError(msg)

        too_low: bool = value < lower if inclusive_lower else value <= lower
        too_high: bool = upper is not None and value > upper
        if too_low or too_high:
            bound: str = f"[{lower}, {upper}]" if upper is not None else f"{'>=' if inclusive_lower else '>'} {lower}"
            msg = f"Value for '{field_name}' must be {bound}: {value}"
            raise ConfigValueError(msg)

    def _inspect_defined_item(self, section_name: str, key_name: str, defined_list: list[str]) -> None:
        """Verify that configuration values match allowed options.

        Logs warnings for unrecognized values but does not raise exceptions.

        Args:
            section_name (str): Section name in the config model.
            key_name (str): Field name to inspect.
            defined_list (list[str]): Allowed values.

        Raises:
            ConfigTypeError: If the configured value is neither list nor str.
        """
        value: str | list[str] = getattr(getattr(self.config, section_name), key_name)
        field_name: str = f"{section_name}.{key_name}"

        if isinstance(value, (list, str)):
            values: list[str] = value if isinstance(value, list) else [value]
            for val in values:
                if val not in defined_list:
                    logger.warning("Unknown value '%s' is set for '%s'", val, field_name)
        else:
            msg: str = f"Unsupported type used for '{field_name}': {type(value)}"
            raise ConfigTypeError(msg)

    def _validate_rate_limits(self) -> None:
        """Check that ``RATE_LIMIT.LIMITS`` maps provider names to non-negative integers.

        Raises:
            ConfigTypeError: If the mapping or one of its values has the wrong type.
            ConfigValueError: If a limit is negative.
        """
        limits: Any = self.config.RATE_LIMIT.LIMITS
        msg: str
        if not isinstance(limits, dict):
            msg = f"Unsupported type used for 'RATE_LIMIT.LIMITS': {type(limits)}"
            raise ConfigTypeError(msg)

        for provider_id, limit in limits.items():
            if isinstance(limit, bool) or not isinstance(limit, int):
                msg = f"Rate limit for '{provider_id}' must be an integer: {limit!r}"
                raise ConfigTypeError(msg)
            if limit < 0:
                msg = f"Rate limit for '{provider_id}' must not be negative: {limit}"
                raise ConfigValueError(msg)


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, str, list, dict)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert INI value to the expected Python type based on the Config field default.

        Args:
            section (DataclassField[Any]): Configuration section field containing the key.
            key (DataclassField[Any]): Target field within the section.

        Returns:
            Any: Parsed value coerced to the type declared in the config dataclass.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If the literal does not match the expected container type.
        """
        formatters: dict[
            type[bool | int | float | str], Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float | str]
        ] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
            str: self.parse_as_string,
        }

        default_value: Any = getattr(getattr(self.config, section.name), key.name)
        formatter: Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float | str] | None = (
            formatters.get(type(default_value))
        )
        if formatter:
            try:
                return formatter(section, key)
            except ValueError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigValueError(msg) from err
            except TypeError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigTypeError(msg) from err

        value_str: str = self.parser[section.name][key.name]
        try:
            value: Any = ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigFormatError(msg) from err

        if not isinstance(value, type(default_value)):
            msg = f"Expected {type(default_value).__name__} for {section.name}.{key.name}: {value_str}"
            raise ConfigTypeError(msg)
        return value

    def _raw(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        value: str = self.parser.get(section.name, key.name).strip()
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return value

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        """Convert INI string to float."""
        return float(self._raw(section, key).replace("_", ""))

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        """Convert INI string to integer."""
        return int(float(self._raw(section, key).replace("_", "")))

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        """Convert INI string to boolean."""
        return self.parser.getboolean(section.name, key.name)

    def parse_as_string(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        """Return the INI string with surrounding quotes removed."""
        return self._raw(section, key)
