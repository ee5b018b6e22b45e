#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause
"""Module for key pair generation (RSA and Ed25519) and saving keys to file."""

import logging
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa

from otacrypto import OTACRYPTO_MIN_RSA_KEY_SIZE
from otacrypto.crypto.crypto_types import KeyType, is_rsa_key_type
from otacrypto.crypto.exceptions import OTACryptoError, OTAUnsupportedAlgorithm
from otacrypto.crypto.rng import ensure_rng_seeded
from otacrypto.exceptions import OTAValueError
from otacrypto.utils.misc import write_file

logger = logging.getLogger(__name__)

RSA_PUBLIC_EXPONENT = 65537


def generate_rsa_private_key(
    key_size: int = 2048, min_key_size: Optional[int] = None
) -> rsa.RSAPrivateKey:
    """Generate RSA private key.

    The lower bound of the key size is a historical permissive floor meant for short
    test keys, the cryptographic backend may impose a stricter one.

    :param key_size: Key size in bits.
    :param min_key_size: Minimal accepted key size, defaults to OTACRYPTO_MIN_RSA_KEY_SIZE.
    :raises OTAValueError: Key size is below the floor.
    :raises OTAInsufficientEntropy: Random generator is not seeded.
    :raises OTACryptoError: The backend failed to generate the key.
    :return: RSA private key.
    """
    floor = OTACRYPTO_MIN_RSA_KEY_SIZE if min_key_size is None else min_key_size
    if key_size < floor:
        raise OTAValueError(f"RSA key size can't be smaller than {floor} bits, got {key_size}")
    ensure_rng_seeded()
    try:
        return rsa.generate_private_key(public_exponent=RSA_PUBLIC_EXPONENT, key_size=key_size)
    except (ValueError, TypeError) as exc:
        raise OTACryptoError(
            f"Failed to generate RSA key of {key_size} bits", diagnostic=str(exc)
        ) from exc


def rsa_public_key_to_pem(public_key: rsa.RSAPublicKey) -> str:
    """Encode RSA public key as SubjectPublicKeyInfo PEM.

    :param public_key: RSA public key.
    :return: PEM text.
    """
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


def rsa_private_key_to_pem(private_key: rsa.RSAPrivateKey) -> str:
    """Encode RSA private key as unencrypted traditional ("RSA PRIVATE KEY") PEM.

    :param private_key: RSA private key.
    :return: PEM text.
    """
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def generate_rsa_key_pair(key_type: KeyType) -> tuple[str, str]:
    """Generate RSA key pair of the size given by key type.

    :param key_type: One of RSA2048, RSA3072 or RSA4096.
    :raises OTAUnsupportedAlgorithm: Not an RSA key type.
    :return: Tuple of public key PEM and private key PEM.
    """
    if not is_rsa_key_type(key_type):
        raise OTAUnsupportedAlgorithm(f"Not an RSA key type: {key_type}")
    assert key_type.key_size
    logger.debug(f"Generating {key_type.description} key pair")
    private_key = generate_rsa_private_key(key_type.key_size)
    return rsa_public_key_to_pem(private_key.public_key()), rsa_private_key_to_pem(private_key)


def generate_ed25519_key_pair() -> tuple[str, str]:
    """Generate Ed25519 key pair.

    :return: Tuple of hex public key (32 bytes) and hex private key (64 bytes,
        seed followed by public key), both upper-case.
    """
    ensure_rng_seeded()
    private_key = ed25519.Ed25519PrivateKey.generate()
    public_raw = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw, format=serialization.PublicFormat.Raw
    )
    seed = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return public_raw.hex().upper(), (seed + public_raw).hex().upper()


def generate_key_pair(key_type: KeyType) -> tuple[str, str]:
    """Generate key pair of given type.

    :param key_type: Key type.
    :raises OTAUnsupportedAlgorithm: Unknown key type.
    :raises OTAInsufficientEntropy: Random generator is not seeded.
    :return: Tuple of encoded public key and encoded private key.
    """
    if key_type == KeyType.ED25519:
        return generate_ed25519_key_pair()
    if is_rsa_key_type(key_type):
        return generate_rsa_key_pair(key_type)
    raise OTAUnsupportedAlgorithm(f"Can't generate key pair of type {key_type}")


def save_key_pair(public_key: str, private_key: str, public_path: str, private_path: str) -> None:
    """Store encoded key pair into files.

    :param public_key: Encoded public key.
    :param private_key: Encoded private key.
    :param public_path: Path of the public key file.
    :param private_path: Path of the private key file.
    """
    write_file(public_key, public_path)
    write_file(private_key, private_path)
