#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Cryptographic random number generation utilities.

Thin wrappers around Python's secrets module. The operating system CSPRNG behind it is
process-wide and thread-safe.
"""

import logging
import os
from secrets import randbelow, token_bytes, token_hex

from otacrypto.crypto.exceptions import OTAInsufficientEntropy

logger = logging.getLogger(__name__)


def random_bytes(length: int) -> bytes:
    """Generate cryptographically secure random bytes.

    :param length: The number of random bytes to generate.
    :return: Random bytes of specified length.
    """
    return token_bytes(length)


def random_hex(length: int) -> str:
    """Generate random hexadecimal string of specified byte length.

    :param length: The length in bytes of the random data to generate.
    :return: Random hexadecimal string (twice the byte length).
    """
    return token_hex(length)


def rand_below(upper_bound: int) -> int:
    """Generate a random integer in the range [0, upper_bound).

    :param upper_bound: Exclusive upper bound.
    :return: Random integer.
    """
    return randbelow(upper_bound)


def ensure_rng_seeded() -> None:
    """Check that the system random generator is ready to produce secure output.

    On platforms providing getrandom(2) the entropy pool is queried without blocking;
    elsewhere the OS generator is assumed seeded once it returns data.

    :raises OTAInsufficientEntropy: The generator has not been sufficiently seeded.
    """
    getrandom = getattr(os, "getrandom", None)
    try:
        if getrandom is not None:
            getrandom(1, os.GRND_NONBLOCK)
        else:
            os.urandom(1)
    except BlockingIOError as exc:
        raise OTAInsufficientEntropy(
            "Random generator has not been sufficiently seeded.", diagnostic=str(exc)
        ) from exc
    except (OSError, NotImplementedError) as exc:
        raise OTAInsufficientEntropy(
            "Random generator is not available.", diagnostic=str(exc)
        ) from exc
    logger.debug("Random generator is seeded")
