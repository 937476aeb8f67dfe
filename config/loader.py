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
from typing import TYPE_CHECKING, Any

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

ALLOWED_TRANSLATION_ENGINES: list[str] = ["auto", "built_in", "google", "deepl", "microsoft", "tencent"]


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

    This class reads the configuration file, applies formatting rules, and validates settings.
    It raises exceptions for any issues encountered during the loading process.

    Args:
        config_filename (str | None): INI file name to load. None uses the built-in defaults.
        script_name (str): Executing script name, used in error messaging.
        **args: Command-line overrides: ``engine``, ``source``, ``target`` and ``debug``.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str | None,
        script_name: str,
        **args,
    ) -> None:
        self.config = Config()
        self.config.GENERAL.SCRIPT_NAME = script_name
        if config_filename is not None:
            self._load_file(config_filename, script_name)
        self._apply_overrides(args)
        self._validate_settings()

    def _load_file(self, config_filename: str, script_name: str) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' in the same directory as '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser()

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self._convert_settings(parser)
        logger.debug("Configuration loaded from '%s'", config_filename)

    def _apply_overrides(self, args: dict[str, Any]) -> None:
        """Apply command-line argument overrides."""
        if args.get("engine") is not None:
            self.config.TRANSLATION.ENGINE = args["engine"]
        if args.get("source") is not None:
            self.config.TRANSLATION.SOURCE_LANGUAGE = args["source"]
            self.config.TRANSLATION.AUTO_DETECT_LANGUAGE = False
        if args.get("target") is not None:
            self.config.TRANSLATION.TARGET_LANGUAGE = args["target"]
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True

    def _convert_settings(self, parser: ConfigParser) -> None:
        """Convert configuration settings from the parser to the Config object.

        This method iterates through each section and field in the Config object,
        applying the appropriate formatting based on the field type.

        Args:
            parser (ConfigParser): Parsed INI data.

        Raises:
            ConfigFormatError: If a value cannot be parsed or coerced to the expected type.
        """
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Section not defined, using defaults: '%s'", section.name)
                continue
            self._convert_section_field(parser, formatter, section)

    def _convert_section_field(
        self, parser: ConfigParser, formatter: _ConfigFormatter, section: DataclassField[Any]
    ) -> None:
        """Convert all fields in a configuration section.

        Raises:
            ConfigFormatError: If a value fails to format correctly.
        """
        for key in fields(getattr(self.config, section.name)):
            try:
                parser[section.name][key.name]
            except KeyError:
                logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                continue

            formatted_value = formatter.apply_format(section, key)
            setattr(getattr(self.config, section.name), key.name, formatted_value)

    def _validate_settings(self) -> None:
        """Validate engine selection, dispatch limits, cache bounds and engine weights.

        Raises:
            ConfigFormatError: If validation fails for any setting.
        """
        try:
            self._inspect_defined_item("TRANSLATION", "ENGINE", ALLOWED_TRANSLATION_ENGINES)
            self._validate_number("TRANSLATION", "TIMEOUT", minimum=0.0, inclusive=False)
            self._validate_number("TRANSLATION", "RETRY_BACKOFF", minimum=0.0)
            self._validate_number("DISPATCH", "REQUESTS_PER_SECOND", minimum=0.0)
            self._validate_number("DISPATCH", "MAX_CONCURRENT", minimum=0, inclusive=False)
            self._validate_number("CACHE", "TTL_DAYS", minimum=0.0, inclusive=False)
            self._validate_number("CACHE", "MAX_ENTRIES", minimum=0, inclusive=False)
            self._validate_number("CACHE", "CLEANUP_INTERVAL", minimum=0)
            self._validate_number("BATCH", "DEBOUNCE_SEC", minimum=0.0)
            self._validate_number("BATCH", "ITEM_DELAY_SEC", minimum=0.0)
            self._validate_engine_weights()
        except (AttributeError, TypeError) as err:
            msg: str = f"Invalid configuration value: {err}"
            raise ConfigFormatError(msg) from None

    def _inspect_defined_item(self, section_name: str, key_name: str, defined_list: list[str]) -> None:
        """Verify that configuration values match allowed options.

        Logs warnings for unrecognized values but does not raise exceptions.

        Args:
            section_name (str): Section name in the config model.
            key_name (str): Field name to inspect.
            defined_list (list[str]): Allowed values.

        Raises:
            ConfigTypeError: If the configured value is not a str.
        """
        value: Any = getattr(getattr(self.config, section_name), key_name)
        field_name: str = f"{section_name}.{key_name}"

        if not isinstance(value, str):
            msg: str = f"Unsupported type used for '{field_name}': {type(value)}"
            raise ConfigTypeError(msg)
        if value not in defined_list:
            logger.warning("Unknown value '%s' is set for '%s'", value, field_name)

    def _validate_number(
        self, section_name: str, key_name: str, *, minimum: float, inclusive: bool = True
    ) -> None:
        """Check a numeric setting against a lower bound.

        Raises:
            ConfigValueError: If the value is below the bound (or equal to it when not inclusive).
        """
        value: float = getattr(getattr(self.config, section_name), key_name)
        field_name: str = f"{section_name}.{key_name}"
        if value < minimum or (not inclusive and value == minimum):
            relation: str = "at least" if inclusive else "greater than"
            msg: str = f"'{field_name}' must be {relation} {minimum}: {value}"
            raise ConfigValueError(msg)

    def _validate_engine_weights(self) -> None:
        """Check ``TRANSLATION.ENGINE_WEIGHTS``.

        Raises:
            ConfigTypeError: If the setting is not a dict of str to int.
            ConfigValueError: If a weight is negative.
        """
        weights: Any = self.config.TRANSLATION.ENGINE_WEIGHTS
        if not isinstance(weights, dict):
            msg: str = f"Unsupported type used for 'TRANSLATION.ENGINE_WEIGHTS': {type(weights)}"
            raise ConfigTypeError(msg)

        for engine, weight in weights.items():
            if not isinstance(engine, str) or isinstance(weight, bool) or not isinstance(weight, int):
                msg = f"Invalid weight entry in 'TRANSLATION.ENGINE_WEIGHTS': {engine!r}: {weight!r}"
                raise ConfigTypeError(msg)
            if weight < 0:
                msg = f"Weight for '{engine}' must not be negative: {weight}"
                raise ConfigValueError(msg)
            if engine not in ALLOWED_TRANSLATION_ENGINES:
                logger.warning("Unknown engine '%s' in 'TRANSLATION.ENGINE_WEIGHTS'", engine)


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, str, dict)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert INI value to the expected Python type based on the Config field type.

        Args:
            section (DataclassField[Any]): Configuration section field containing the key.
            key (DataclassField[Any]): Target field within the section.

        Returns:
            Any: Parsed value coerced to the type declared in the config dataclass.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If an unexpected type is encountered during coercion.
        """
        formatters: dict[
            type[bool | int | float], Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float]
        ] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
        }

        formatter: Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float] | None = formatters.get(
            type(getattr(getattr(self.config, section.name), key.name))
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
            return ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigFormatError(msg) from err

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        """Convert INI string to float."""
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return float(value)

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        """Convert INI string to integer."""
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return int(float(value))

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        """Convert INI string to boolean."""
        return self.parser.getboolean(section.name, key.name)
