#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Signature creation and verification.

RSA signatures use PSS padding with MGF1/SHA-256 over a SHA-256 digest of the message.
The signer always uses the maximal salt length the key allows, the verifier recovers the
salt length from the signature, so signatures made with any salt length verify.

Ed25519 keys are hex strings: 32 bytes for the public key and either a 32 byte seed or
the 64 byte seed || public key form for the private key.

Failures caused by the keys or signatures (unparsable PEM, bad hex or base64, wrong
sizes) are never raised: signing returns an empty signature, verification returns False.
"""

import base64
import binascii
import logging
from typing import TYPE_CHECKING, Optional, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from otacrypto.crypto.crypto_types import KeyType, is_rsa_key_type
from otacrypto.crypto.exceptions import OTACryptoError, OTAUnsupportedAlgorithm
from otacrypto.exceptions import OTAError

if TYPE_CHECKING:
    from otacrypto.crypto.key_store import KeyStore

logger = logging.getLogger(__name__)

ED25519_PUBLIC_KEY_SIZE = 32
ED25519_SEED_SIZE = 32
ED25519_SIGNATURE_SIZE = 64


def _to_bytes(data: Union[str, bytes]) -> bytes:
    return data.encode("utf-8") if isinstance(data, str) else data


def load_rsa_public_key(data: Union[str, bytes]) -> Optional[rsa.RSAPublicKey]:
    """Parse PEM encoded RSA public key.

    :param data: PEM data.
    :return: RSA public key, None if the data is not a PEM RSA public key.
    """
    try:
        public_key = serialization.load_pem_public_key(_to_bytes(data))
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        logger.debug(f"Data is not a PEM public key: {exc}")
        return None
    if not isinstance(public_key, rsa.RSAPublicKey):
        logger.debug(f"Public key is not RSA: {type(public_key).__name__}")
        return None
    return public_key


def load_private_key(data: Union[str, bytes], password: Optional[str] = None) -> PrivateKeyTypes:
    """Parse PEM encoded private key, both traditional and PKCS#8 forms are accepted.

    :param data: PEM data.
    :param password: Optional password of an encrypted key.
    :raises OTACryptoError: The data is not a PEM private key.
    :return: Private key object.
    """
    try:
        return serialization.load_pem_private_key(
            _to_bytes(data), password=password.encode("utf-8") if password else None
        )
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise OTACryptoError("Can't load private key", diagnostic=str(exc)) from exc


def load_rsa_private_key(
    data: Union[str, bytes], password: Optional[str] = None
) -> rsa.RSAPrivateKey:
    """Parse PEM encoded RSA private key.

    :param data: PEM data.
    :param password: Optional password of an encrypted key.
    :raises OTACryptoError: The data is not a PEM RSA private key.
    :return: RSA private key.
    """
    private_key = load_private_key(data, password)
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise OTACryptoError(f"Private key is not RSA: {type(private_key).__name__}")
    return private_key


def ed25519_private_key_from_hex(private_key: str) -> ed25519.Ed25519PrivateKey:
    """Create Ed25519 private key from hex string.

    :param private_key: Hex encoded 32 byte seed or 64 byte seed || public key.
    :raises OTACryptoError: Invalid hex or size.
    :return: Ed25519 private key.
    """
    try:
        raw = bytes.fromhex(private_key.strip())
    except ValueError as exc:
        raise OTACryptoError("Ed25519 private key is not a hex string") from exc
    if len(raw) not in (ED25519_SEED_SIZE, ED25519_SEED_SIZE + ED25519_PUBLIC_KEY_SIZE):
        raise OTACryptoError(f"Invalid Ed25519 private key length: {len(raw)}")
    return ed25519.Ed25519PrivateKey.from_private_bytes(raw[:ED25519_SEED_SIZE])


def _rsa_pss_padding(salt_length: int) -> padding.PSS:
    return padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=salt_length)


def rsa_pss_sign(private_key: Union[str, bytes, rsa.RSAPrivateKey], message: bytes) -> bytes:
    """Sign message with RSA-PSS using maximal salt length.

    :param private_key: PEM private key or already loaded RSA key.
    :param message: Message to sign.
    :return: Raw signature of the modulus size, empty bytes when the key can't be loaded.
    """
    if not isinstance(private_key, rsa.RSAPrivateKey):
        try:
            private_key = load_rsa_private_key(private_key)
        except OTACryptoError as exc:
            logger.error(f"Failed to load RSA private key: {exc}")
            return b""
    return private_key.sign(message, _rsa_pss_padding(padding.PSS.MAX_LENGTH), hashes.SHA256())


def rsa_pss_verify(public_key: Union[str, bytes], signature: bytes, message: bytes) -> bool:
    """Verify RSA-PSS signature, the salt length is recovered from the signature.

    :param public_key: PEM public key.
    :param signature: Raw signature.
    :param message: Signed message.
    :return: True if the signature is valid, never raises.
    """
    key = load_rsa_public_key(public_key)
    if key is None:
        logger.debug("Can't verify RSA signature, public key can't be loaded")
        return False
    try:
        key.verify(signature, message, _rsa_pss_padding(padding.PSS.AUTO), hashes.SHA256())
    except (InvalidSignature, ValueError, TypeError) as exc:
        logger.debug(f"RSA signature verification failed: {exc!r}")
        return False
    return True


def rsa_pss_verify_b64(public_key: Union[str, bytes], signature: str, message: bytes) -> bool:
    """Verify base64 encoded RSA-PSS signature.

    :param public_key: PEM public key.
    :param signature: Base64 encoded signature.
    :param message: Signed message.
    :return: True if the signature is valid, never raises.
    """
    raw_signature = _from_base64(signature)
    if raw_signature is None:
        return False
    return rsa_pss_verify(public_key, raw_signature, message)


def ed25519_sign(private_key: Union[str, ed25519.Ed25519PrivateKey], message: bytes) -> bytes:
    """Produce detached Ed25519 signature.

    :param private_key: Hex encoded private key or already loaded key.
    :param message: Message to sign.
    :return: 64 byte signature, empty bytes when the key is invalid.
    """
    if not isinstance(private_key, ed25519.Ed25519PrivateKey):
        try:
            private_key = ed25519_private_key_from_hex(private_key)
        except OTACryptoError as exc:
            logger.error(f"Failed to load Ed25519 private key: {exc}")
            return b""
    return private_key.sign(message)


def ed25519_verify(public_key: Union[str, bytes], signature: bytes, message: bytes) -> bool:
    """Verify detached Ed25519 signature.

    Buffers shorter than the fixed key/signature size are rejected, longer ones are
    truncated to that size.

    :param public_key: Raw public key bytes or their hex string.
    :param signature: Raw signature.
    :param message: Signed message.
    :return: True if the signature is valid, never raises.
    """
    if isinstance(public_key, str):
        try:
            public_key = bytes.fromhex(public_key.strip())
        except ValueError:
            logger.debug("Ed25519 public key is not a hex string")
            return False
    if len(public_key) < ED25519_PUBLIC_KEY_SIZE or len(signature) < ED25519_SIGNATURE_SIZE:
        return False
    try:
        key = ed25519.Ed25519PublicKey.from_public_bytes(public_key[:ED25519_PUBLIC_KEY_SIZE])
        key.verify(signature[:ED25519_SIGNATURE_SIZE], message)
    except (InvalidSignature, ValueError) as exc:
        logger.debug(f"Ed25519 signature verification failed: {exc!r}")
        return False
    return True


def ed25519_verify_b64(public_key: str, signature: str, message: bytes) -> bool:
    """Verify base64 encoded Ed25519 signature against hex encoded public key.

    :param public_key: Hex encoded public key.
    :param signature: Base64 encoded signature.
    :param message: Signed message.
    :return: True if the signature is valid, never raises.
    """
    raw_signature = _from_base64(signature)
    if raw_signature is None:
        return False
    return ed25519_verify(public_key, raw_signature, message)


def _from_base64(data: str) -> Optional[bytes]:
    try:
        return base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError, TypeError):
        logger.debug("Signature is not a valid base64 string")
        return None


def sign(
    key_type: KeyType,
    private_key: str,
    message: bytes,
    key_store: Optional["KeyStore"] = None,
) -> bytes:
    """Sign the message with the algorithm of the key type.

    :param key_type: Type of the signing key.
    :param private_key: Private key material (PEM for RSA, hex for Ed25519), or key
        reference when a key store is used.
    :param message: Message to sign.
    :param key_store: Optional external key store resolving the key reference.
    :raises OTAUnsupportedAlgorithm: The key type can't be used for signing.
    :return: Raw signature, empty bytes when the private key can't be loaded.
    """
    if key_type != KeyType.ED25519 and not is_rsa_key_type(key_type):
        raise OTAUnsupportedAlgorithm(f"Unsupported key type for signing: {key_type}")

    if key_store is not None:
        try:
            key_obj = key_store.load_private_key(private_key)
        except OTAError as exc:
            logger.error(f"Failed to load key '{private_key}' from {key_store.info()}: {exc}")
            return b""
        if key_type == KeyType.ED25519:
            if not isinstance(key_obj, ed25519.Ed25519PrivateKey):
                logger.error(f"Key '{private_key}' in {key_store.info()} is not an Ed25519 key")
                return b""
            return ed25519_sign(key_obj, message)
        if not isinstance(key_obj, rsa.RSAPrivateKey):
            logger.error(f"Key '{private_key}' in {key_store.info()} is not an RSA key")
            return b""
        return rsa_pss_sign(key_obj, message)

    if key_type == KeyType.ED25519:
        return ed25519_sign(private_key, message)
    return rsa_pss_sign(private_key, message)
