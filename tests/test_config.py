from pathlib import Path

import pytest
import structlog
from pydantic import ValidationError

from arcanepaths.config import Settings
from arcanepaths.logging_config import setup_logging
from arcanepaths.storage import DEFAULT_STORAGE_KEY


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.data_dir == Path(".arcanepaths")
    assert settings.database_path == Path(".arcanepaths") / "progress.db"
    assert settings.storage_key == DEFAULT_STORAGE_KEY
    assert settings.log_level == "INFO"
    assert settings.log_format == "plain"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ARCANEPATHS_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("ARCANEPATHS_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("ARCANEPATHS_STORAGE_KEY", "profile_b")

    settings = Settings(_env_file=None)
    assert settings.database_path == tmp_path / "progress.db"
    assert settings.log_level == "DEBUG"
    assert settings.storage_key == "profile_b"


def test_invalid_log_settings_are_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_level="LOUD")
    with pytest.raises(ValidationError):
        Settings(_env_file=None, log_format="xml")


def test_setup_logging_accepts_both_formats() -> None:
    for log_format in ("plain", "json"):
        setup_logging(Settings(_env_file=None, log_format=log_format))
        structlog.get_logger("arcanepaths.test").info("Logging configured", log_format=log_format)
    assert structlog.is_configured()
