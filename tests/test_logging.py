"""Tests for codi_repo.logging (CodiLogging, level/format from config)."""

import logging
import sys

from codi_repo.config import LoggingConfig
from codi_repo.logging import DEFAULT_FORMAT, DEFAULT_LEVEL, LEVELS, CodiLogging, _resolve_level


class TestResolveLevel:
    """_resolve_level maps level names to logging constants."""

    def test_known_levels(self) -> None:
        """Known level names return correct logging constant."""
        for name, value in LEVELS.items():
            assert _resolve_level(name) == value

    def test_lowercase_and_whitespace(self) -> None:
        """Level is stripped and uppercased before lookup."""
        assert _resolve_level(" debug ") == logging.DEBUG

    def test_unknown_level_returns_info(self) -> None:
        assert _resolve_level("TRACE") == logging.INFO
        assert DEFAULT_LEVEL == "INFO"


class TestCodiLogging:
    """CodiLogging applies LoggingConfig to the root logger."""

    def test_setup_sets_level_and_format(self) -> None:
        custom = "%(levelname)s | %(message)s"
        CodiLogging(LoggingConfig(level="WARNING", format=custom)).setup()
        assert logging.root.level == logging.WARNING
        assert logging.root.handlers[0].formatter._fmt == custom

    def test_records_go_to_stderr(self) -> None:
        CodiLogging(LoggingConfig(level="INFO")).setup()
        assert logging.root.handlers[0].stream is sys.stderr

    def test_empty_format_uses_default(self) -> None:
        CodiLogging(LoggingConfig(level="INFO", format="")).setup()
        assert logging.root.handlers[0].formatter._fmt == DEFAULT_FORMAT

    def test_verbose_forces_debug(self) -> None:
        cfg = LoggingConfig(level="ERROR")
        assert CodiLogging(cfg, verbose=True).level == logging.DEBUG
        assert CodiLogging(cfg).level == logging.ERROR

    def test_urllib3_kept_at_warning(self) -> None:
        CodiLogging(LoggingConfig(level="DEBUG")).setup()
        assert logging.getLogger("urllib3").level == logging.WARNING
