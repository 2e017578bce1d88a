"""Runtime settings read from the environment.

Values come from ``NBTEXT_*`` environment variables; a ``.env`` file in
the working directory is loaded first. Command-line options override
whatever is configured here.

=====================  ==========  =========================================
Variable               Default     Meaning
=====================  ==========  =========================================
``NBTEXT_LOWERCASE``   ``false``   Lowercase tokens when loading datasets
``NBTEXT_WORKERS``     ``1``       Threads used to classify a test corpus
``NBTEXT_ENCODING``    ``utf-8``   Encoding of dataset files
``NBTEXT_DELIMITER``   (unset)     Separator between label and text
``NBTEXT_LOG_LEVEL``   ``WARNING`` Logging level for the CLI
=====================  ==========  =========================================
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "NBTEXT_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "\\": "\\"}
_ESCAPE_RE = re.compile(r"\\(.)")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _decode_escapes(raw: str) -> str:
    """Expand \\t, \\n, \\r and \\\\ in ``raw``; other characters pass through."""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(0)), raw)


@dataclass(frozen=True)
class Settings:
    """Loader, classifier and logging settings."""

    lowercase: bool = False
    workers: int = 1
    encoding: str = "utf-8"
    delimiter: Optional[str] = None
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be at least 1")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got {self.log_level!r}")

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper())

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> "Settings":
        """Build settings from ``NBTEXT_*`` variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.
            dotenv: Load a ``.env`` file into ``os.environ`` first.

        Raises:
            ValueError: If a variable holds an invalid value.
        """
        if environ is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ

        values = {
            key[len(ENV_PREFIX):]: value
            for key, value in environ.items()
            if key.startswith(ENV_PREFIX)
        }

        kwargs: dict = {}
        if "LOWERCASE" in values:
            kwargs["lowercase"] = _parse_bool(ENV_PREFIX + "LOWERCASE", values["LOWERCASE"])
        if "WORKERS" in values:
            try:
                kwargs["workers"] = int(values["WORKERS"])
            except ValueError:
                raise ValueError(
                    f"{ENV_PREFIX}WORKERS must be an integer, got {values['WORKERS']!r}"
                ) from None
        if "ENCODING" in values:
            kwargs["encoding"] = values["ENCODING"]
        if "DELIMITER" in values:
            # Allow escapes such as "\t" in .env files.
            kwargs["delimiter"] = _decode_escapes(values["DELIMITER"]) or None
        if "LOG_LEVEL" in values:
            kwargs["log_level"] = values["LOG_LEVEL"].upper()
        return cls(**kwargs)
