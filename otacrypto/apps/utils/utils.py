#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Application utilities: error handling of CLI entry points and output checks."""

import logging
import os
import sys
from functools import wraps
from typing import Any, Callable, NoReturn, Optional

import click

from otacrypto import OTACRYPTO_DEBUG_LOG_FILE, OTACRYPTO_DEBUG_LOGGING_DISABLED
from otacrypto.exceptions import OTAError

logger = logging.getLogger(__name__)

EXIT_LIBRARY_ERROR = 2
EXIT_UNEXPECTED_ERROR = 3


class OTAAppError(OTAError):
    """Expected failure of a command, reported without traceback.

    :cvar fmt: Message format, only the description is shown.
    """

    fmt = "{description}"

    def __init__(self, desc: Optional[str] = None, error_code: int = 1) -> None:
        """Initialize the error.

        :param desc: Message for the user.
        :param error_code: Process exit code, values outside 1..255 exit with 1.
        """
        super().__init__(desc)
        self.error_code = error_code if 0 < error_code < 256 else 1


def _fail(message: str, exit_code: int, exc: BaseException) -> NoReturn:
    click.echo(message, err=True)
    logger.debug(message, exc_info=exc)
    if not OTACRYPTO_DEBUG_LOGGING_DISABLED:
        click.secho(f"Details are in the debug log {OTACRYPTO_DEBUG_LOG_FILE}", fg="yellow")
    sys.exit(exit_code)


def catch_ota_error(function: Callable) -> Callable:
    """Turn exceptions of a CLI entry point into messages and exit codes.

    ``OTAAppError`` exits with its own code, ``OTAError`` and ``AssertionError`` with 2,
    anything else including ``KeyboardInterrupt`` with 3.

    :param function: Entry point.
    :return: Wrapped entry point.
    """

    @wraps(function)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return function(*args, **kwargs)
        except OTAAppError as exc:
            if exc.description:
                click.echo(f"{type(exc).__name__}: {exc}", err=True)
            sys.exit(exc.error_code)
        except (AssertionError, OTAError) as exc:
            _fail(f"{type(exc).__name__}: {exc}", EXIT_LIBRARY_ERROR, exc)
        except (Exception, KeyboardInterrupt) as exc:  # pylint: disable=broad-except
            _fail(f"GENERAL ERROR: {type(exc).__name__}: {exc}", EXIT_UNEXPECTED_ERROR, exc)

    return wrapper


def check_file_exists(path: str, force_overwrite: bool = False) -> None:
    """Refuse to overwrite an existing file unless forced.

    :param path: Output file.
    :param force_overwrite: Overwriting is allowed.
    :raises OTAAppError: The file exists and overwriting is not allowed.
    """
    if not force_overwrite and os.path.isfile(path):
        raise OTAAppError(f"File '{path}' already exists, use --force to overwrite it.")
