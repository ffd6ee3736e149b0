"""
Test environment file loading and settings resolution.

The nearest .env (working directory or a parent) is loaded once, and
already-set environment variables take precedence over it.
"""

import pytest
from pydantic import ValidationError

from clinicrecords.core.config import (
    ClinicalSettings,
    _load_env_file_if_available,
    get_settings,
    reset_settings,
)

ENV_KEYS = (
    "APP_ENV",
    "MONGO_URI",
    "MONGO_DB_NAME",
    "CLINICAL_EVOLUTION_MIN_SESSIONS",
    "LOG_LEVEL",
)


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Empty working directory and no settings variables; undone after the test."""
    for key in ENV_KEYS:
        # setenv first so that monkeypatch restores the original state on teardown
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield tmp_path
    reset_settings()


def test_env_file_is_loaded(isolated_env):
    (isolated_env / ".env").write_text(
        "MONGO_URI=mongodb://from-env-file:27017/test\n"
        "MONGO_DB_NAME=from_env\n"
        "CLINICAL_EVOLUTION_MIN_SESSIONS=3\n"
    )

    settings = get_settings()

    assert settings.database.uri == "mongodb://from-env-file:27017/test"
    assert settings.database.db_name == "from_env"
    assert settings.clinical.evolution_min_sessions == 3


def test_env_file_search_in_parent_directories(isolated_env, monkeypatch):
    (isolated_env / ".env").write_text("MONGO_DB_NAME=from_parent\n")
    nested = isolated_env / "a" / "b"
    nested.mkdir(parents=True)
    monkeypatch.chdir(nested)

    assert get_settings().database.db_name == "from_parent"


def test_nearest_env_file_wins(isolated_env, monkeypatch):
    (isolated_env / ".env").write_text("MONGO_DB_NAME=from_parent\n")
    child = isolated_env / "child"
    child.mkdir()
    (child / ".env").write_text("MONGO_DB_NAME=from_child\n")
    monkeypatch.chdir(child)

    assert get_settings().database.db_name == "from_child"


def test_already_set_env_vars_take_precedence(isolated_env, monkeypatch):
    monkeypatch.setenv("MONGO_DB_NAME", "already_set")
    (isolated_env / ".env").write_text("MONGO_DB_NAME=from_env\n")

    assert get_settings().database.db_name == "already_set"


def test_no_env_files_no_crash(isolated_env):
    _load_env_file_if_available()

    settings = get_settings()
    assert settings.database.uri == "mongodb://localhost:27017"
    assert settings.database.db_name == "clinicrecords"
    assert settings.clinical.evolution_min_sessions == 2
    assert settings.clinical.evolution_max_sessions == 10


def test_settings_are_cached_until_reset(isolated_env):
    first = get_settings()
    assert get_settings() is first

    reset_settings()
    assert get_settings() is not first


def test_production_environment(isolated_env, monkeypatch):
    monkeypatch.setenv("APP_ENV", "Production")

    settings = get_settings()

    assert settings.app_env == "production"
    assert settings.is_production


def test_invalid_mongo_uri_is_rejected(isolated_env, monkeypatch):
    monkeypatch.setenv("MONGO_URI", "postgres://localhost/db")

    with pytest.raises(ValidationError):
        get_settings()


def test_invalid_log_level_is_rejected(isolated_env, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "LOUD")

    with pytest.raises(ValidationError):
        get_settings()


def test_clinical_session_counts_must_be_positive():
    with pytest.raises(ValidationError):
        ClinicalSettings(evolution_min_sessions=0)
