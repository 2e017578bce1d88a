"""Tests for environment-driven settings."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from nb_text_classifier.config import Settings


class TestSettings:
    """Tests for Settings defaults and validation."""

    def test_defaults(self):
        settings = Settings()
        assert settings.lowercase is False
        assert settings.workers == 1
        assert settings.encoding == "utf-8"
        assert settings.delimiter is None
        assert settings.log_level_value == logging.WARNING

    def test_invalid_workers(self):
        with pytest.raises(ValueError, match="workers"):
            Settings(workers=0)

    def test_invalid_log_level(self):
        with pytest.raises(ValueError, match="log_level"):
            Settings(log_level="LOUD")


class TestFromEnv:
    """Tests for Settings.from_env."""

    def test_empty_environment(self):
        assert Settings.from_env({}) == Settings()

    def test_reads_prefixed_variables(self):
        settings = Settings.from_env({
            "NBTEXT_LOWERCASE": "yes",
            "NBTEXT_WORKERS": "4",
            "NBTEXT_ENCODING": "latin-1",
            "NBTEXT_DELIMITER": "\\t",
            "NBTEXT_LOG_LEVEL": "debug",
            "UNRELATED": "ignored",
        })
        assert settings.lowercase is True
        assert settings.workers == 4
        assert settings.encoding == "latin-1"
        assert settings.delimiter == "\t"
        assert settings.log_level == "DEBUG"

    def test_non_ascii_delimiter(self):
        assert Settings.from_env({"NBTEXT_DELIMITER": "§"}).delimiter == "§"
        assert Settings.from_env({"NBTEXT_DELIMITER": "→"}).delimiter == "→"

    def test_delimiter_escapes(self):
        assert Settings.from_env({"NBTEXT_DELIMITER": "\\t§"}).delimiter == "\t§"
        assert Settings.from_env({"NBTEXT_DELIMITER": "\\\\"}).delimiter == "\\"
        assert Settings.from_env({"NBTEXT_DELIMITER": "\\q"}).delimiter == "\\q"

    def test_empty_delimiter_is_unset(self):
        assert Settings.from_env({"NBTEXT_DELIMITER": ""}).delimiter is None

    def test_false_values(self):
        assert Settings.from_env({"NBTEXT_LOWERCASE": "off"}).lowercase is False

    def test_bad_boolean(self):
        with pytest.raises(ValueError, match="NBTEXT_LOWERCASE"):
            Settings.from_env({"NBTEXT_LOWERCASE": "maybe"})

    def test_bad_integer(self):
        with pytest.raises(ValueError, match="NBTEXT_WORKERS"):
            Settings.from_env({"NBTEXT_WORKERS": "many"})

    def test_os_environ(self, monkeypatch):
        monkeypatch.setenv("NBTEXT_WORKERS", "3")
        assert Settings.from_env(dotenv=False).workers == 3

    def test_dotenv_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("NBTEXT_WORKERS", raising=False)
        (tmp_path / ".env").write_text("NBTEXT_WORKERS=5\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)
        try:
            assert Settings.from_env().workers == 5
        finally:
            monkeypatch.delenv("NBTEXT_WORKERS", raising=False)
