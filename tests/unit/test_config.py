"""Unit tests for settings validation and reload behavior."""

from __future__ import annotations

import importlib

import pytest
from pydantic import ValidationError


def test_reload_settings_updates_module_binding(monkeypatch):
    """reload_settings should update both `config.settings` and `config.settings.settings`."""
    import config

    settings_module = importlib.import_module("config.settings")

    old = config.settings

    monkeypatch.setenv("PAPERSCOPE_LOG_LEVEL", "DEBUG")
    try:
        new = config.reload_settings()

        assert new is not old
        assert new is config.settings
        assert new is settings_module.settings
        assert new.log_level == "DEBUG"
    finally:
        monkeypatch.undo()
        config.reload_settings()


def test_db_path_defaults_into_data_dir():
    from config import settings

    assert settings.db.path.endswith("corpus.db")
    assert str(settings.data_dir) in settings.db.path


def test_search_defaults():
    from config.settings import AnnSettings, SearchSettings

    search = SearchSettings()
    assert (search.max_papers, search.overfetch_factor, search.snippet_window) == (10, 10, 400)
    assert AnnSettings().ef_search == 1000


@pytest.mark.parametrize("field", ["max_papers", "overfetch_factor", "snippet_window", "embedding_limit"])
def test_non_positive_search_tuning_rejected(field):
    from config.settings import SearchSettings

    with pytest.raises(ValidationError):
        SearchSettings(**{field: 0})


def test_ann_ef_search_must_be_positive():
    from config.settings import AnnSettings

    with pytest.raises(ValidationError):
        AnnSettings(ef_search=0)


def test_search_env_override(monkeypatch):
    from config.settings import SearchSettings

    monkeypatch.setenv("PAPERSCOPE_SEARCH_OVERFETCH_FACTOR", "25")
    assert SearchSettings().overfetch_factor == 25


def test_cli_env_template(capsys):
    from config.cli import cmd_env

    cmd_env(None)
    out = capsys.readouterr().out
    assert "PAPERSCOPE_SEARCH_OVERFETCH_FACTOR=" in out
    assert "PAPERSCOPE_ANN_EF_SEARCH=" in out


def test_cli_validate_passes_with_defaults(capsys):
    from config.cli import cmd_validate

    assert cmd_validate(None) == 0
    assert "validation passed" in capsys.readouterr().out
