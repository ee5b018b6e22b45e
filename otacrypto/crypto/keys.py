#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Public key representation.

A ``PublicKey`` is an immutable pair of key type and encoded key material: a PEM public
key for RSA, a hex string of the raw 32 key bytes for Ed25519. Keys coming from trust
metadata are untrusted, so parsing them never raises and yields ``KeyType.UNKNOWN`` for
anything malformed.
"""

import json
import logging
from typing import Any, Union

from typing_extensions import Self

from otacrypto.crypto.crypto_types import KeyType, is_rsa_key_type, rsa_key_type_from_size
from otacrypto.crypto.exceptions import OTAInvalidState, OTAKeyLengthMismatch
from otacrypto.crypto.hash import sha256_digest_hex
from otacrypto.crypto.signing import ed25519_verify_b64, load_rsa_public_key, rsa_pss_verify_b64
from otacrypto.utils.misc import json_to_canonical_str, load_binary

logger = logging.getLogger(__name__)

__all__ = ["KeyType", "PublicKey", "identify_rsa_key_type", "is_rsa_key_type"]

_TRUST_KEYTYPES = {
    KeyType.ED25519.tag: "ED25519",
    KeyType.RSA2048.tag: "RSA",
    KeyType.RSA3072.tag: "RSA",
    KeyType.RSA4096.tag: "RSA",
    KeyType.UNKNOWN.tag: "unknown",
}


def identify_rsa_key_type(data: Union[str, bytes]) -> KeyType:
    """Infer RSA key type from the size of the modulus.

    The size is counted in whole bytes of the modulus, i.e. ``8 * byte_length``.
    Only 2048, 3072 and 4096 bits are recognized.

    :param data: PEM encoded RSA public key.
    :return: Detected RSA key type or UNKNOWN.
    """
    public_key = load_rsa_public_key(data)
    if public_key is None:
        return KeyType.UNKNOWN
    key_size = 8 * ((public_key.key_size + 7) // 8)
    key_type = rsa_key_type_from_size(key_size)
    if key_type == KeyType.UNKNOWN:
        logger.warning(f"Weird key length: {key_size}")
    return key_type


class PublicKey:
    """Immutable typed public key.

    Equality is structural: both the type and the material must be equal.
    """

    def __init__(self, value: str, key_type: KeyType) -> None:
        """Create public key with explicit type.

        :param value: PEM public key for RSA, hex encoded key for Ed25519.
        :param key_type: Declared key type.
        :raises OTAKeyLengthMismatch: RSA key size doesn't match the declared type.
        """
        if is_rsa_key_type(key_type):
            detected = identify_rsa_key_type(value)
            if detected != key_type:
                raise OTAKeyLengthMismatch(
                    f"RSA key length is incorrect: declared {key_type.label}, "
                    f"detected {detected.label}"
                )
        self._value = value
        self._key_type = key_type

    @classmethod
    def _unchecked(cls, value: str, key_type: KeyType) -> Self:
        key = cls.__new__(cls)
        key._value = value
        key._key_type = key_type
        return key

    @classmethod
    def parse(cls, data: Union[str, bytes]) -> Self:
        """Create public key from key material, the type is inferred.

        Only RSA public keys are recognized, any other material is kept as is
        with UNKNOWN type.

        :param data: Key material.
        :return: Public key.
        """
        value = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
        return cls._unchecked(value, identify_rsa_key_type(value))

    @classmethod
    def load(cls, path: str) -> Self:
        """Load public key from file, the type is inferred.

        :param path: Path to the key file.
        :raises OTAIOError: The file can't be read.
        :return: Public key.
        """
        return cls.parse(load_binary(path))

    @classmethod
    def from_trust_descriptor(cls, descriptor: Union[str, dict[str, Any]]) -> Self:
        """Create public key from untrusted metadata key descriptor.

        The descriptor has form ``{"keytype": "ed25519"|"rsa", "keyval": {"public": ...}}``,
        ``keytype`` is matched case-insensitively. Structurally malformed descriptors give
        UNKNOWN key with empty material, an unknown ``keytype`` keeps the material.

        :param descriptor: Descriptor as parsed JSON object or JSON text.
        :return: Public key, never raises.
        """
        unknown = cls._unchecked("", KeyType.UNKNOWN)
        if isinstance(descriptor, (str, bytes)):
            try:
                descriptor = json.loads(descriptor)
            except (ValueError, RecursionError) as exc:
                logger.debug(f"Key descriptor is not a valid JSON: {exc}")
                return unknown
        if not isinstance(descriptor, dict):
            return unknown
        keytype = descriptor.get("keytype")
        keyval = descriptor.get("keyval")
        if not isinstance(keytype, str) or not isinstance(keyval, dict):
            return unknown
        value = keyval.get("public")
        if not isinstance(value, str):
            return unknown

        keytype = keytype.lower()
        if keytype == "ed25519":
            key_type = KeyType.ED25519
        elif keytype == "rsa":
            key_type = identify_rsa_key_type(value)
            if key_type == KeyType.UNKNOWN:
                logger.warning("Couldn't identify length of RSA key")
        else:
            key_type = KeyType.UNKNOWN
        return cls._unchecked(value, key_type)

    @property
    def value(self) -> str:
        """Encoded key material."""
        return self._value

    @property
    def key_type(self) -> KeyType:
        """Key type."""
        return self._key_type

    @property
    def trust_keytype(self) -> str:
        """Key type name used in trust metadata.

        :raises OTAInvalidState: The key type is outside of the known set.
        """
        keytype = (
            _TRUST_KEYTYPES.get(self._key_type.tag)
            if isinstance(self._key_type, KeyType)
            else None
        )
        if keytype is None:
            raise OTAInvalidState(f"Unknown key type in public key: {self._key_type}")
        return keytype

    def verify_signature(self, signature: str, message: bytes) -> bool:
        """Verify detached signature of the message.

        Never raises, malformed input simply doesn't verify.

        :param signature: Base64 encoded signature.
        :param message: Signed message.
        :return: True if the signature is valid.
        """
        if self._key_type == KeyType.ED25519:
            return ed25519_verify_b64(self._value, signature, message)
        if is_rsa_key_type(self._key_type):
            return rsa_pss_verify_b64(self._value, signature, message)
        return False

    def to_trust_descriptor(self) -> dict[str, Any]:
        """Get the key descriptor used in trust metadata.

        :raises OTAInvalidState: The key type is outside of the known set.
        :return: Descriptor dictionary.
        """
        return {"keytype": self.trust_keytype, "keyval": {"public": self._value}}

    def key_id(self) -> str:
        """Get canonical key identifier.

        Trailing new lines of the material are ignored, the rest is serialized as a
        canonical JSON string and hashed with SHA-256.

        :return: Lower-case hex key id.
        """
        key_content = self._value.rstrip("\n")
        return sha256_digest_hex(json_to_canonical_str(key_content).encode("utf-8"))

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, PublicKey)
            and self._key_type.tag == other.key_type.tag
            and self._value == other.value
        )

    def __hash__(self) -> int:
        return hash((self._key_type.tag, self._value))

    def __repr__(self) -> str:
        return f"PublicKey({self._key_type.label}, id={self.key_id()[:12]})"
