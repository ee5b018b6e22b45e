#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""otacrypto - cryptographic trust primitives for OTA update clients.

The package provides the building blocks an update client needs to decide whether
downloaded metadata and images can be trusted:

    - public key representation with canonical key identifiers
    - RSA-PSS and Ed25519 signing and verification
    - SHA-256/SHA-512 digests, one-shot and streamed
    - X.509 certificate generation, CA signing and PKCS#12 import

Behavior of the package can be tuned by the environment variables defined below.
"""

import os
from typing import Optional, Union

from packaging.version import Version, parse
from platformdirs import PlatformDirs


def get_otacrypto_version() -> Version:
    """Get otacrypto version information.

    Retrieves the version either from the pre-generated __version__ module
    or dynamically using setuptools_scm if the version file is not available.

    :raises ImportError: When both __version__ module and setuptools_scm are unavailable.
    :return: Parsed version object.
    """
    try:
        from .__version__ import __version__ as otacrypto_version
    except ImportError:
        from setuptools_scm import get_version

        otacrypto_version = get_version(
            root=os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."),
            fallback_version="0.0.0",
        )
    return parse(otacrypto_version)


def value_to_bool(value: Optional[Union[bool, int, str]]) -> bool:
    """Convert value to boolean from various input formats.

    Supports conversion from string representations like "True", "true", "T", "1"
    and standard Python truthy/falsy values for other types.

    :param value: Value to convert to boolean (string, int, bool, or None).
    :return: Boolean representation of the input value.
    """
    if isinstance(value, str):
        return value in ("True", "true", "T", "1")
    return bool(value)


def value_to_int(value: Optional[str], default: int) -> int:
    """Convert environment value to integer.

    :param value: String value taken from environment, None if not set.
    :param default: Value used when the input is not set or is not a number.
    :return: Integer representation of the input value.
    """
    if value is None:
        return default
    try:
        return int(value, 0)
    except ValueError:
        return default


version = get_otacrypto_version()

__author__ = "otacrypto developers"
__license__ = "BSD-3-Clause"
__version__ = str(version)


OTACRYPTO_VERSION_BASE = version.base_version
OTACRYPTO_PLATFORM_DIRS = PlatformDirs(
    appname="otacrypto",
    version=OTACRYPTO_VERSION_BASE,
)

OTACRYPTO_DEBUG_LOGGING_DISABLED = value_to_bool(
    os.environ.get("OTACRYPTO_DEBUG_LOGGING_DISABLED")
)
OTACRYPTO_DEBUG_LOG_FILE = os.environ.get(
    "OTACRYPTO_DEBUG_LOG_FILE", os.path.join(OTACRYPTO_PLATFORM_DIRS.user_log_dir, "debug.log")
)

# Historical floor for ad-hoc (test/dev) RSA key generation, not a security bound
OTACRYPTO_MIN_RSA_KEY_SIZE = value_to_int(os.environ.get("OTACRYPTO_MIN_RSA_KEY_SIZE"), 31)

# Size of chunks used for streamed digests
OTACRYPTO_HASH_CHUNK_SIZE = max(
    1, value_to_int(os.environ.get("OTACRYPTO_HASH_CHUNK_SIZE"), 64 * 1024)
)
