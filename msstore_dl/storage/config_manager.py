"""
Manages loading and validation of the optional INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from msstore_dl.exceptions import ConfigurationError
from msstore_dl.models.config import ResolverConfig

log = logging.getLogger(__name__)

_FLOAT_KEYS = {"timeout"}
_INT_KEYS = {"max_concurrency"}


class ConfigManager:
    """
    Handles the application's INI config file.

    The file is optional: without it every setting keeps its default and only
    CLI overrides apply.
    """

    def __init__(self, config_file_path: Optional[Path]):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> ResolverConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated ResolverConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path is not None:
            if not self.config_file_path.is_file():
                raise ConfigurationError(
                    f"Configuration file not found at '{self.config_file_path}'."
                )
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e
            config_from_file = self._get_config_as_dict()
            log.debug(f"Loaded {len(config_from_file)} settings from '{self.config_file_path}'")

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return ResolverConfig(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the known keys of the 'DEFAULT' section into a dictionary."""
        section = self._parser["DEFAULT"]
        known_keys = ResolverConfig.get_ini_keys()
        values: dict[str, Any] = {}

        for key in section:
            if key not in known_keys:
                log.warning(f"[yellow]Ignoring unknown config key '{key}'.[/yellow]")
                continue
            try:
                if key in _FLOAT_KEYS:
                    values[key] = section.getfloat(key)
                elif key in _INT_KEYS:
                    values[key] = section.getint(key)
                else:
                    values[key] = section.get(key)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for '{key}': {e}") from e
        return values
