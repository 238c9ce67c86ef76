"""Logging for the codi-repo CLI.

Command results are printed to stdout; log records go to stderr so they
never mix with machine-readable output such as `status --json`.

Levels (inclusive):
- ERROR: the command failed
- WARNING: skipped repositories, blocked merges, and ERROR
- INFO: progress messages, WARNING, and ERROR
- DEBUG: forge and git calls and all levels above

Configure via .codi-repo/config.yaml (logging.level, logging.format), env
(LOGGING_LEVEL, LOGGING_FORMAT) or --verbose.
"""

import logging
import sys

from codi_repo.config import LoggingConfig

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "%(levelname)s %(name)s: %(message)s"

# Third-party loggers that are noisy below WARNING
QUIET_LOGGERS = ("urllib3",)


def _resolve_level(level: str) -> int:
    """Map level name to logging constant; unknown names give INFO."""
    return LEVELS.get(level.upper().strip(), logging.INFO)


class CodiLogging:
    """Configures the root logger from LoggingConfig.

    verbose forces DEBUG regardless of the configured level.
    """

    def __init__(self, config: LoggingConfig, verbose: bool = False) -> None:
        self._level = logging.DEBUG if verbose else _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT

    @property
    def level(self) -> int:
        return self._level

    def setup(self) -> None:
        """Send records to stderr with the configured level and format."""
        logging.basicConfig(
            level=self._level,
            format=self._format,
            stream=sys.stderr,
            force=True,
        )
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(self._level, logging.WARNING))
