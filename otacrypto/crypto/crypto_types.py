#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Key type enumeration shared by key representation, signing and key generation."""

from typing import Optional

from otacrypto.utils.ota_enum import OtaEnum


class KeyType(OtaEnum):
    """Closed set of key types, ordered from the preferred one."""

    ED25519 = (0, "ed25519", "Ed25519")
    RSA2048 = (1, "rsa2048", "RSA 2048 bits")
    RSA3072 = (2, "rsa3072", "RSA 3072 bits")
    RSA4096 = (3, "rsa4096", "RSA 4096 bits")
    UNKNOWN = (4, "unknown", "Unknown key type")

    @property
    def key_size(self) -> Optional[int]:
        """RSA modulus size in bits, None for non-RSA types."""
        return _RSA_KEY_SIZES.get(self.tag)


_RSA_KEY_SIZES = {
    KeyType.RSA2048.tag: 2048,
    KeyType.RSA3072.tag: 3072,
    KeyType.RSA4096.tag: 4096,
}


def is_rsa_key_type(key_type: KeyType) -> bool:
    """Check whether the key type is one of the RSA variants.

    :param key_type: Key type to check.
    :return: True for RSA2048, RSA3072 and RSA4096.
    """
    return isinstance(key_type, KeyType) and key_type.tag in _RSA_KEY_SIZES


def rsa_key_type_from_size(key_size: int) -> KeyType:
    """Map RSA modulus size to key type.

    :param key_size: Size in bits.
    :return: RSA key type, UNKNOWN for unsupported sizes.
    """
    for tag, size in _RSA_KEY_SIZES.items():
        if size == key_size:
            return KeyType.from_tag(tag)
    return KeyType.UNKNOWN
