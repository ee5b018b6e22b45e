#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""otacrypto exception classes.

This module defines the base of the exception hierarchy used throughout the
otacrypto library. Exceptions of this hierarchy signal fatal conditions
(misconfigured environment, programming errors); expected validation failures
are reported by return values instead.
"""

from typing import Optional

#######################################################################
# # otacrypto Exceptions
#######################################################################


class OTAError(Exception):
    """otacrypto Base Exception.

    Base exception class for all otacrypto-related errors. Besides the human readable
    description it may carry a diagnostic string coming from the underlying
    cryptographic library.

    :cvar fmt: Default error message format template.
    """

    fmt = "OTA: {description}"

    def __init__(self, desc: Optional[str] = None, diagnostic: Optional[str] = None) -> None:
        """Initialize the base otacrypto Exception.

        :param desc: Optional description of the exception.
        :param diagnostic: Optional diagnostic message of the underlying library.
        """
        super().__init__()
        self.description = desc
        self.diagnostic = diagnostic

    def __str__(self) -> str:
        """Return string representation of the exception.

        If no description is provided, defaults to "Unknown Error".

        :return: Formatted exception message as string.
        """
        message = self.fmt.format(description=self.description or "Unknown Error")
        if self.diagnostic:
            message += f" ({self.diagnostic})"
        return message


class OTAKeyError(OTAError, KeyError):
    """otacrypto Key Error exception for missing or invalid dictionary keys."""


class OTAValueError(OTAError, ValueError):
    """otacrypto standard value error exception."""


class OTATypeError(OTAError, TypeError):
    """otacrypto standard type error exception."""


class OTAIOError(OTAError, IOError):
    """otacrypto standard IO error exception.

    Raised when reading of keys, certificates or streamed data fails.
    """


class OTAUnsupportedOperation(OTAError):
    """otacrypto unsupported operation exception."""
