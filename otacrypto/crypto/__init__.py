#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Cryptographic trust primitives: digests, keys, signatures and certificates."""

from otacrypto.crypto.certificate import (
    Certificate,
    extract_subject_cn,
    generate_certificate,
    serialize_certificate,
    sign_with_ca,
    verify_certificate_signature,
)
from otacrypto.crypto.crypto_types import KeyType, is_rsa_key_type
from otacrypto.crypto.hash import (
    Hash,
    Hasher,
    HashType,
    sha256_digest,
    sha256_digest_hex,
    sha512_digest,
    sha512_digest_hex,
)
from otacrypto.crypto.key_store import FileKeyStore, KeyStore
from otacrypto.crypto.keys import PublicKey, identify_rsa_key_type
from otacrypto.crypto.keys_management import generate_key_pair, generate_rsa_private_key
from otacrypto.crypto.pkcs12 import CertificateBundle, import_pkcs12
from otacrypto.crypto.provider import initialize_crypto_provider
from otacrypto.crypto.signing import rsa_pss_sign, rsa_pss_verify, sign

__all__ = [
    "Certificate",
    "CertificateBundle",
    "FileKeyStore",
    "Hash",
    "HashType",
    "Hasher",
    "KeyStore",
    "KeyType",
    "PublicKey",
    "extract_subject_cn",
    "generate_certificate",
    "generate_key_pair",
    "generate_rsa_private_key",
    "identify_rsa_key_type",
    "import_pkcs12",
    "initialize_crypto_provider",
    "is_rsa_key_type",
    "rsa_pss_sign",
    "rsa_pss_verify",
    "serialize_certificate",
    "sha256_digest",
    "sha256_digest_hex",
    "sha512_digest",
    "sha512_digest_hex",
    "sign",
    "sign_with_ca",
    "verify_certificate_signature",
]
