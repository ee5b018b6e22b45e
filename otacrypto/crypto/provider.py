#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Process-wide initialization of the cryptographic provider.

``initialize_crypto_provider`` is meant to be called once at process start. It makes sure
the OpenSSL backend of ``cryptography`` is loaded together with its "default" and
"legacy" provider sets. A missing provider only produces a warning; operations needing
an algorithm of the missing provider then fail on their own.

The legacy provider is loaded by ``cryptography`` itself unless the environment variable
``CRYPTOGRAPHY_OPENSSL_NO_LEGACY`` is set.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InternalError, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CryptoProviderStatus:
    """Result of the provider initialization."""

    openssl_version: str
    default_loaded: bool
    legacy_loaded: bool


_lock = threading.Lock()
_status: Optional[CryptoProviderStatus] = None


def _openssl_version() -> str:
    try:
        from cryptography.hazmat.backends.openssl.backend import backend

        return backend.openssl_version_text()
    except (ImportError, AttributeError) as exc:
        logger.debug(f"OpenSSL version is not available: {exc}")
        return "unknown"


def _probe_default_provider() -> bool:
    try:
        digest = hashes.Hash(hashes.SHA256())
        digest.update(b"")
        digest.finalize()
    except (UnsupportedAlgorithm, InternalError) as exc:
        logger.debug(f"Default provider probe failed: {exc!r}")
        return False
    return True


def _legacy_provider_loaded() -> bool:
    try:
        from cryptography.hazmat.bindings._rust import openssl as rust_openssl
    except ImportError as exc:
        logger.debug(f"OpenSSL bindings are not available: {exc}")
        return False
    return bool(getattr(rust_openssl, "_legacy_provider_loaded", False))


def initialize_crypto_provider() -> CryptoProviderStatus:
    """Initialize the cryptographic provider, idempotent and thread-safe.

    :return: Status of the loaded providers, the same object on repeated calls.
    """
    global _status  # pylint: disable=global-statement
    with _lock:
        if _status is not None:
            return _status
        status = CryptoProviderStatus(
            openssl_version=_openssl_version(),
            default_loaded=_probe_default_provider(),
            legacy_loaded=_legacy_provider_loaded(),
        )
        if not status.default_loaded:
            logger.warning("Failed to load the default cryptographic provider")
        if not status.legacy_loaded:
            logger.warning("Failed to load the legacy cryptographic provider")
        logger.debug(f"Cryptographic provider initialized: {status}")
        _status = status
        return status


def get_crypto_provider_status() -> Optional[CryptoProviderStatus]:
    """Get status of the provider initialization.

    :return: Status, None if the provider has not been initialized yet.
    """
    return _status
