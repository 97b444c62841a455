"""Console logging for the capture client.

Logs go to stderr so command output on stdout stays clean. Records that
carry a capture ``stage`` (passed through ``extra``) are prefixed with it.
"""
import logging
import os
import sys

from shared.utils import SignedUrlFilter

RESET = '\033[0m'
QUIET_LOGGERS = ('urllib3',)


class StageFormatter(logging.Formatter):
    """Console formatter with a ``[stage]`` prefix and optional level colors."""

    COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }

    def __init__(self, use_colors=False):
        super().__init__('%(asctime)s %(levelname)-8s %(name)-22s %(stage_prefix)s%(message)s')
        self.use_colors = use_colors

    def format(self, record):
        stage = getattr(record, 'stage', None)
        record.stage_prefix = f"[{stage}] " if stage else ''
        line = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{line}{RESET}" if color else line


def colors_enabled(stream):
    """LOG_COLORS (default on) and only when ``stream`` is a terminal."""
    wanted = os.getenv('LOG_COLORS', 'true').lower() in ('true', '1', 'yes')
    return wanted and hasattr(stream, 'isatty') and stream.isatty()


def setup_logging(stream=None):
    """Configure the root logger for the capture client. LOG_LEVEL defaults to INFO."""
    stream = stream or sys.stderr
    log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(StageFormatter(use_colors=colors_enabled(stream)))
    console_handler.addFilter(SignedUrlFilter())

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    root.addHandler(console_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.debug(f"Client logging initialized (level: {log_level_str})")
    return root
