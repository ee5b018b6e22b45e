#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Logging setup of otacrypto applications.

Console messages go to stderr, colored per level when the stream is a terminal.
Everything including debug messages is also appended to a rotating log file unless
``OTACRYPTO_DEBUG_LOGGING_DISABLED`` is set. Users may override the setup with
``~/.otacrypto/logging.yaml`` in :func:`logging.config.dictConfig` format.
"""

import logging
import logging.config
import logging.handlers
import os
import platform
import re
import sys
from datetime import datetime
from typing import Optional, TextIO

import colorama
import cryptography

from otacrypto import OTACRYPTO_DEBUG_LOG_FILE, OTACRYPTO_DEBUG_LOGGING_DISABLED, __version__
from otacrypto.exceptions import OTAError
from otacrypto.utils.misc import find_file, load_configuration

colorama.just_fix_windows_console()

USER_CONFIG_DIR = "~/.otacrypto"
DEBUG_LOG_MAX_BYTES = 1_000_000
DEBUG_LOG_BACKUPS = 5

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

_MESSAGE = logging.BASIC_FORMAT
_LOCATED_MESSAGE = _MESSAGE + " (%(relativeCreated)dms since start, %(filename)s:%(lineno)d)"

# (color, include source location)
_LEVEL_STYLES = {
    logging.DEBUG: (colorama.Fore.BLUE, True),
    logging.INFO: (colorama.Fore.WHITE + colorama.Style.BRIGHT, False),
    logging.WARNING: (colorama.Fore.YELLOW, True),
    logging.ERROR: (colorama.Fore.RED, True),
    logging.CRITICAL: (colorama.Fore.RED + colorama.Style.BRIGHT, True),
}


def load_logging_config() -> Optional[str]:
    """Apply user logging configuration ``logging.yaml`` if there is one.

    A configuration that can't be applied is reported and ignored.

    :return: Path of the applied configuration file, None otherwise.
    """
    config_path = find_file(
        "logging.yaml", search_paths=[os.path.expanduser(USER_CONFIG_DIR)], raise_exc=False
    )
    if not config_path:
        return None
    try:
        logging.config.dictConfig(load_configuration(config_path))
    except (OTAError, ValueError, TypeError) as exc:
        logging.getLogger(__name__).warning(f"Ignoring logging config {config_path}: {exc}")
        return None
    return config_path


class ColoredFormatter(logging.Formatter):
    """Formatter choosing color and detail by the record level.

    Without colors, ANSI sequences already present in messages are removed too.
    """

    def __init__(self, colored: bool = True) -> None:
        super().__init__()
        self.colored = colored
        self.formatters = {
            level: logging.Formatter(self._level_format(color, located))
            for level, (color, located) in _LEVEL_STYLES.items()
        }

    def _level_format(self, color: str, located: bool) -> str:
        fmt = _LOCATED_MESSAGE if located else _MESSAGE
        if self.colored:
            fmt = color + fmt + colorama.Style.RESET_ALL
        return fmt

    def format(self, record: logging.LogRecord) -> str:
        """Format the record with the format of its level.

        :param record: Logging record.
        :return: Formatted message.
        """
        if not self.colored and isinstance(record.msg, str):
            record.msg = _ANSI_ESCAPE.sub("", record.msg)
        formatter = self.formatters.get(record.levelno, self.formatters[logging.CRITICAL])
        return formatter.format(record)


class ConsoleHandler(logging.StreamHandler):
    """Console handler installed by otacrypto applications."""


def _stream_supports_colors(stream: TextIO) -> bool:
    # https://no-color.org/
    if "NO_COLOR" in os.environ:
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _install_debug_log(target_logger: logging.Logger) -> None:
    log_file = os.path.abspath(OTACRYPTO_DEBUG_LOG_FILE)
    for handler in target_logger.handlers:
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            if handler.baseFilename == log_file:
                return
    try:
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=DEBUG_LOG_MAX_BYTES,
            backupCount=DEBUG_LOG_BACKUPS,
            encoding="utf-8",
        )
    except OSError as exc:
        target_logger.warning(f"Debug log {log_file} can't be created: {exc}")
        return
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(ColoredFormatter(colored=False))
    target_logger.addHandler(file_handler)

    title = f"OTACRYPTO DEBUG LOGGING STARTED {datetime.now():%Y-%m-%d %H:%M:%S}"
    session = [
        title,
        f"otacrypto: {__version__}, cryptography: {cryptography.__version__}",
        f"Python: {sys.version.split()[0]} on {platform.platform()}",
        f"Command: {' '.join(sys.argv)}",
    ]
    width = max(len(line) for line in session)
    target_logger.debug("=" * (width + 4))
    for line in session:
        target_logger.debug(f"| {line.ljust(width)} |")
    target_logger.debug("=" * (width + 4))


def install(
    level: Optional[int] = None,
    stream: TextIO = sys.stderr,
    colored: Optional[bool] = None,
    logger: Optional[logging.Logger] = None,
    create_debug_logger: bool = True,
) -> None:
    """Install otacrypto log handlers.

    Installing again replaces the console handler, the debug log file is opened once.

    :param level: Console level, WARNING by default.
    :param stream: Console stream.
    :param colored: Force colors on or off, detected from the stream when None.
    :param logger: Logger to configure, "otacrypto" by default.
    :param create_debug_logger: Also log into the rotating debug file.
    """
    load_logging_config()
    target_logger = logger or logging.getLogger("otacrypto")
    target_logger.setLevel(logging.DEBUG)

    for handler in [h for h in target_logger.handlers if isinstance(h, ConsoleHandler)]:
        target_logger.removeHandler(handler)
    console = ConsoleHandler(stream)
    console.setLevel(level or logging.WARNING)
    console.setFormatter(
        ColoredFormatter(_stream_supports_colors(stream) if colored is None else colored)
    )
    target_logger.addHandler(console)

    if create_debug_logger and not OTACRYPTO_DEBUG_LOGGING_DISABLED:
        _install_debug_log(target_logger)
