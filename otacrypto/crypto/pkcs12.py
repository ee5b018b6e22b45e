#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""PKCS#12 bundle import.

A bundle which can't be opened (corrupted data, wrong password, missing key or leaf
certificate) is a recoverable condition: ``import_pkcs12`` returns None and the caller
may retry with another password.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

logger = logging.getLogger(__name__)


@dataclass
class CertificateBundle:
    """Private key with certificate chain, all PEM encoded.

    :param private_key_pem: Private key (PKCS#8).
    :param certificate_pem: Leaf certificate followed by all CA certificates.
    :param ca_chain_pem: CA certificates in container order, empty if there are none.
    """

    private_key_pem: str
    certificate_pem: str
    ca_chain_pem: str


def _password_candidates(password: Optional[str]) -> list[Optional[bytes]]:
    if password:
        return [password.encode("utf-8")]
    # bundles exported "without password" use either no or an empty password
    return [None, b""]


def import_pkcs12(data: bytes, password: Optional[str] = None) -> Optional[CertificateBundle]:
    """Import PKCS#12 bundle.

    :param data: DER encoded PKCS#12 container.
    :param password: Password protecting the container.
    :return: Certificate bundle, None if the bundle can't be opened.
    """
    loaded = None
    for candidate in _password_candidates(password):
        try:
            loaded = pkcs12.load_key_and_certificates(data, candidate)
            break
        except (ValueError, TypeError) as exc:
            logger.debug(f"Can't open PKCS#12 bundle: {exc}")
    if loaded is None:
        logger.warning("Could not parse PKCS#12 bundle, wrong password or corrupted data")
        return None

    private_key, certificate, ca_certificates = loaded
    if private_key is None:
        logger.warning("PKCS#12 bundle doesn't contain a private key")
        return None
    if certificate is None:
        logger.warning("PKCS#12 bundle doesn't contain a certificate")
        return None

    key_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    ca_chain_pem = "".join(
        ca.public_bytes(serialization.Encoding.PEM).decode("ascii") for ca in ca_certificates
    )
    leaf_pem = certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")
    logger.debug(f"PKCS#12 bundle imported, {len(ca_certificates)} CA certificate(s)")
    return CertificateBundle(
        private_key_pem=key_pem,
        certificate_pem=leaf_pem + ca_chain_pem,
        ca_chain_pem=ca_chain_pem,
    )
