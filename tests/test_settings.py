"""Test command-line args and settings."""
import argparse
import pathlib

import pytest

from rollcall import config


DATA_PATH = pathlib.Path(__file__).parent / "data"


def test_read_config() -> None:
    """Read the configuration from a TOML file."""
    # Arrange
    settings = config.Settings()
    args = argparse.Namespace(config_path=DATA_PATH / "rollcall.toml", db_path=None)
    # Act
    settings.update_from_args(args)
    # Assert
    assert settings.db_path == DATA_PATH / "attendance.db"
    assert settings.students_key == "test_students"
    assert settings.attendance_key == "test_attendance"
    assert settings.log_level == "INFO"


def test_command_line_overrides_config(empty_output_folder: pathlib.Path) -> None:
    """A db_path on the command line wins over the config file."""
    # Arrange
    settings = config.Settings()
    args = argparse.Namespace(
        config_path=DATA_PATH / "rollcall.toml",
        db_path=empty_output_folder / "other.db",
        verbose=True,
    )
    # Act
    settings.update_from_args(args)
    # Assert
    assert settings.db_path == empty_output_folder / "other.db"
    assert settings.log_level == "DEBUG"


def test_defaults_use_working_directory(
    empty_output_folder: pathlib.Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Without arguments the database is in the working directory."""
    # Arrange
    monkeypatch.chdir(empty_output_folder)
    settings = config.Settings()
    # Act
    settings.update_from_args(argparse.Namespace())
    # Assert
    assert settings.db_path == empty_output_folder / config.DB_FILE_NAME
    assert settings.config_path is None
    assert settings.students_key == "students"


def test_missing_config_file() -> None:
    """A config path that doesn't exist raises an error."""
    # Arrange
    settings = config.Settings()
    args = argparse.Namespace(config_path=DATA_PATH / "missing.toml")
    # Act, Assert
    with pytest.raises(config.ConfigError) as excinfo:
        settings.update_from_args(args)
    assert excinfo.value.error_type == config.ConfigError.ErrorType.PATH_DOES_NOT_EXIST


def test_config_path_is_folder() -> None:
    """A config path that is a folder raises an error."""
    # Arrange
    settings = config.Settings()
    args = argparse.Namespace(config_path=DATA_PATH)
    # Act, Assert
    with pytest.raises(config.ConfigError) as excinfo:
        settings.update_from_args(args)
    assert excinfo.value.error_type == config.ConfigError.ErrorType.NOT_A_FILE


def test_invalid_config_file() -> None:
    """A config file that isn't valid TOML raises an error."""
    # Arrange
    settings = config.Settings()
    args = argparse.Namespace(config_path=DATA_PATH / "invalid.toml")
    # Act, Assert
    with pytest.raises(config.ConfigError) as excinfo:
        settings.update_from_args(args)
    assert excinfo.value.error_type == config.ConfigError.ErrorType.INVALID_FILE


def test_create_new_config_file(empty_output_folder: pathlib.Path) -> None:
    """The example config file is copied and can be read back."""
    # Arrange
    config_path = empty_output_folder / "rollcall.toml"
    settings = config.Settings()
    # Act
    settings.create_new_config_file(config_path)
    settings.update_from_args(argparse.Namespace(config_path=config_path))
    # Assert
    assert settings.db_path == empty_output_folder / "rollcall.db"
    assert settings.log_level == "WARNING"
    with pytest.raises(config.ConfigError):
        settings.create_new_config_file(config_path)


def test_unknown_log_level() -> None:
    """A log_level that isn't a logging level raises an error."""
    # Arrange
    settings = config.Settings()
    args = argparse.Namespace(config_path=DATA_PATH / "bad-log-level.toml")
    # Act, Assert
    with pytest.raises(config.ConfigError) as excinfo:
        settings.update_from_args(args)
    assert excinfo.value.error_type == config.ConfigError.ErrorType.INVALID_FILE


def test_log_level_case_insensitive(empty_output_folder: pathlib.Path) -> None:
    """Lowercase level names are accepted."""
    # Arrange
    config_path = empty_output_folder / "rollcall.toml"
    config_path.write_text('log_level = "debug"\n')
    settings = config.Settings()
    # Act
    settings.update_from_args(argparse.Namespace(config_path=config_path))
    # Assert
    assert settings.log_level == "DEBUG"
