"""Logging configuration for the Pole Capture backend.

Records go to a rotating JSON log and to the console. Pipeline context
passed through ``extra`` (see CONTEXT_FIELDS) is written as top-level keys,
and records emitted while serving a request carry its method and path.
"""
import json
import logging
import os
from logging.handlers import RotatingFileHandler

from flask import has_request_context, request

from shared.models import now
from shared.utils import SignedUrlFilter

LOG_FILE_NAME = 'backend.log'
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

CONTEXT_FIELDS = ('stage', 'object_key', 'content_type', 'taker_id', 'pole_id', 'status')
QUIET_LOGGERS = ('werkzeug', 'sqlalchemy.engine', 'urllib3', 'botocore', 'boto3')


def record_context(record):
    """Pipeline context attached to ``record``, in CONTEXT_FIELDS order."""
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record):
        log_entry = {
            'timestamp': now().isoformat() + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        log_entry.update(record_context(record))

        if has_request_context():
            log_entry['request'] = f"{request.method} {request.path}"

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Plain console line with the pipeline context appended as key=value pairs."""

    def __init__(self):
        super().__init__('%(asctime)s %(levelname)-8s %(name)-32s %(message)s')

    def formatMessage(self, record):
        line = super().formatMessage(record)
        context = record_context(record)
        if not context:
            return line
        return f"{line} [{' '.join(f'{k}={v}' for k, v in context.items())}]"


def setup_logging():
    """Configure the root logger for the backend.

    LOG_LEVEL picks the level (INFO by default) and LOG_DIR the directory of
    ``backend.log`` (``logs/`` beside the package by default).
    """
    log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    logs_dir = os.getenv('LOG_DIR') or os.path.join(os.path.dirname(__file__), '..', 'logs')
    os.makedirs(logs_dir, exist_ok=True)
    log_file = os.path.join(logs_dir, LOG_FILE_NAME)

    file_handler = RotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
    file_handler.setFormatter(StructuredFormatter())
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ConsoleFormatter())

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()
    for handler in (file_handler, console_handler):
        handler.setLevel(log_level)
        handler.addFilter(SignedUrlFilter())
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.info(f"Backend logging initialized (level: {log_level_str}, file: {log_file})", extra={'stage': 'startup'})
    return root
