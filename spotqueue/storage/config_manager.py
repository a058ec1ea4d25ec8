"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from spotqueue.exceptions import ConfigurationError
from spotqueue.models.config import DEFAULT_CHUNK_SIZE, DownloadConfig

log = logging.getLogger(__name__)

CREDENTIALS_FILE_NAME = "credentials.json"


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    @property
    def config_dir(self) -> Path:
        return self.config_file_path.parent

    @property
    def default_credentials_path(self) -> Path:
        return self.config_dir / CREDENTIALS_FILE_NAME

    def defaults(self) -> dict[str, Any]:
        """Values used for keys absent from the file."""
        return {
            "username": "",
            "stored_credentials": str(self.default_credentials_path),
            "output_dir": ".",
            "helper": "",
            "quality": "very_high",
            "chunk_size": DEFAULT_CHUNK_SIZE,
            "skip_existing": False,
        }

    def load_config(
        self, cli_options: dict[str, Any] | None = None, require_file: bool = False
    ) -> DownloadConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.
            require_file: Fail if the INI file does not exist instead of falling
                back to defaults.

        Returns:
            A validated DownloadConfig object.

        Raises:
            ConfigurationError: If the config file is missing (when required),
            invalid, or validation fails.
        """
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_values = self._get_config_as_dict()
        elif require_file:
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'spotqueue init' first."
            )
        else:
            log.debug(
                f"No configuration file at '{self.config_file_path}', using defaults."
            )
            config_values = self.defaults()

        if cli_options:
            config_values.update(cli_options)

        try:
            return DownloadConfig(**config_values, config_path=str(self.config_dir))
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save. Passwords are never written.
        """
        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {}
        defaults = self.defaults()

        for key in DownloadConfig.get_ini_keys():
            value = settings.get(key, defaults.get(key))
            if isinstance(value, bool):
                config["DEFAULT"][key] = "true" if value else "false"
            elif value is not None:
                config["DEFAULT"][key] = str(value)

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def read_raw(self) -> dict[str, Any]:
        """Returns the file's values without validating them."""
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'."
            )
        self._parser.read(self.config_file_path, encoding="utf-8")
        return self._get_config_as_dict()

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        section = self._parser["DEFAULT"]
        defaults = self.defaults()
        try:
            return {
                "username": section.get("username", defaults["username"]),
                "stored_credentials": section.get(
                    "stored_credentials", defaults["stored_credentials"]
                ),
                "output_dir": section.get("output_dir", defaults["output_dir"]),
                "helper": section.get("helper", defaults["helper"]),
                "quality": section.get("quality", defaults["quality"]),
                "chunk_size": section.getint("chunk_size", defaults["chunk_size"]),
                "skip_existing": section.getboolean(
                    "skip_existing", defaults["skip_existing"]
                ),
            }
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = self.defaults()
        config_section = self._parser["DEFAULT"]
        needs_saving = False

        for key in DownloadConfig.get_ini_keys():
            if key not in config_section:
                default_value = defaults[key]
                if isinstance(default_value, bool):
                    config_section[key] = "true" if default_value else "false"
                else:
                    config_section[key] = str(default_value)
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
