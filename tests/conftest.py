#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Shared fixtures of otacrypto tests.

Generated keys and the test CA are session scoped, RSA key generation is slow.
"""

import os

import pytest
from cryptography.hazmat.backends.openssl import backend

# Must be set before otacrypto gets imported
os.environ["OTACRYPTO_DEBUG_LOGGING_DISABLED"] = "True"

# pylint: disable=wrong-import-position
from otacrypto.crypto.certificate import generate_certificate
from otacrypto.crypto.crypto_types import KeyType
from otacrypto.crypto.keys_management import generate_key_pair
from otacrypto.utils.misc import write_file
from tests.cli_runner import CliRunner

# Disable RSA key blinding to speed up unit tests in cryptography 37+
# https://github.com/pyca/cryptography/issues/7236
setattr(backend, "_rsa_skip_check_key", True)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Get CLI runner instance.

    :return: CliRunner checking exit codes.
    """
    return CliRunner()


@pytest.fixture(scope="session")
def rsa_key_pairs() -> dict[KeyType, tuple[str, str]]:
    """Generate RSA key pairs of all supported sizes.

    :return: Dictionary mapping key type to (public PEM, private PEM).
    """
    return {
        key_type: generate_key_pair(key_type)
        for key_type in (KeyType.RSA2048, KeyType.RSA3072, KeyType.RSA4096)
    }


@pytest.fixture(scope="session")
def ed25519_key_pair() -> tuple[str, str]:
    """Generate Ed25519 key pair.

    :return: Tuple of hex public key and hex private key.
    """
    return generate_key_pair(KeyType.ED25519)


@pytest.fixture(scope="session")
def ca_files(tmp_path_factory: pytest.TempPathFactory) -> tuple[str, str]:
    """Create self-signed test CA.

    :return: Tuple of paths to CA certificate and CA private key.
    """
    ca_dir = tmp_path_factory.mktemp("ca")
    ca = generate_certificate(
        rsa_bits=2048,
        days=365,
        common_name="OTA Test Root CA",
        country="CZ",
        organization="OTA Test",
        self_sign=True,
    )
    key_pem, cert_pem = ca.serialize()
    ca_cert_path = str(ca_dir / "ca.crt")
    ca_key_path = str(ca_dir / "ca.key")
    write_file(cert_pem, ca_cert_path)
    write_file(key_pem, ca_key_path)
    return ca_cert_path, ca_key_path
