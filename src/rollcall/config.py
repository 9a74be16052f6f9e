"""Manage configuration settings for the Rollcall application."""

import argparse
import dataclasses
import enum
import logging
import pathlib
import shutil
import tomllib
from typing import Optional

from rollcall.model import kvstore


DB_FILE_NAME = "rollcall.db"
CONFIG_FILE_NAME = "rollcall.toml"
EXAMPLE_CONFIG_PATH = pathlib.Path(__file__).parent / "example-config.toml"


class ConfigError(Exception):
    """Errors when setting or accessing settings."""

    class ErrorType(enum.Enum):
        NOT_A_FILE = 1
        PATH_DOES_NOT_EXIST = 2
        ALREADY_EXISTS = 3
        INVALID_FILE = 4

    error_type: ErrorType

    def __init__(self, message: str, error_type: ErrorType) -> None:
        """Set error type."""
        super().__init__(message)
        self.error_type = error_type


@dataclasses.dataclass
class Settings:
    """Configuration data for the rollcall application.

    students_key and attendance_key name the entries in the key-value store
    that hold the roster and the attendance records.
    """

    db_path: Optional[pathlib.Path] = None
    config_path: Optional[pathlib.Path] = None
    students_key: str = kvstore.STUDENTS_KEY
    attendance_key: str = kvstore.ATTENDANCE_KEY
    log_level: str = "WARNING"

    def update_from_args(self, args: argparse.Namespace) -> None:
        """Read settings.

        The config file is read first so that a db_path given on the command
        line takes precedence over one in the file.
        """
        config_path = getattr(args, "config_path", None)
        if config_path is not None:
            self.config_path = self._convert_path_to_absolute(config_path)
            self._read_config_file()
        else:
            default_config = pathlib.Path.cwd() / CONFIG_FILE_NAME
            if default_config.is_file():
                self.config_path = default_config
                self._read_config_file()
        db_path = getattr(args, "db_path", None)
        if db_path is not None:
            self.db_path = self._convert_path_to_absolute(db_path)
        elif self.db_path is None:
            self.db_path = pathlib.Path.cwd() / DB_FILE_NAME
        if getattr(args, "verbose", False):
            self.log_level = "DEBUG"

    @staticmethod
    def _convert_path_to_absolute(path: pathlib.Path | str) -> pathlib.Path:
        """Convert relative paths to absolute paths."""
        if isinstance(path, str):
            path = pathlib.Path(path)
        return path if path.is_absolute() else pathlib.Path.cwd() / path

    def _read_config_file(self) -> None:
        """Read TOML configuration file."""
        if self.config_path is None:
            return
        if not self.config_path.exists():
            raise ConfigError(
                f"Config file {self.config_path} does not exist.",
                ConfigError.ErrorType.PATH_DOES_NOT_EXIST,
            )
        if not self.config_path.is_file():
            raise ConfigError(
                f"Config path {self.config_path} is not a file.",
                ConfigError.ErrorType.NOT_A_FILE,
            )
        app_settings = dataclasses.asdict(self)
        try:
            with open(self.config_path, "rb") as toml_file:
                file_settings = tomllib.load(toml_file)
        except tomllib.TOMLDecodeError as err:
            raise ConfigError(
                f"Unable to parse {self.config_path}: {err}",
                ConfigError.ErrorType.INVALID_FILE,
            ) from err
        for setting_name, value in file_settings.items():
            if setting_name not in app_settings or setting_name == "config_path":
                continue
            if isinstance(value, str) and value.lower() in ["", "none", "null"]:
                value = None
            if setting_name == "db_path":
                # Relative database paths are relative to the config file.
                if value is not None:
                    value = pathlib.Path(value)
                    if not value.is_absolute():
                        value = self.config_path.parent / value
                setattr(self, setting_name, value)
            elif value is not None:
                setattr(self, setting_name, value)
        self._check_log_level()

    def _check_log_level(self) -> None:
        """Ensure log_level names a logging level, e.g. INFO or DEBUG."""
        if (
            not isinstance(self.log_level, str)
            or self.log_level.upper() not in logging.getLevelNamesMapping()
        ):
            raise ConfigError(
                f"Unknown log_level {self.log_level!r} in {self.config_path}.",
                ConfigError.ErrorType.INVALID_FILE,
            )
        self.log_level = self.log_level.upper()

    @staticmethod
    def create_new_config_file(config_path: pathlib.Path) -> None:
        """Create a new configuration file with default settings."""
        if config_path.exists():
            raise ConfigError(
                f"Cannot create config file at {config_path}, file already exists.",
                ConfigError.ErrorType.ALREADY_EXISTS,
            )
        config_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(EXAMPLE_CONFIG_PATH, config_path)
