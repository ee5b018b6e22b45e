#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Digest engine: SHA-256/SHA-512 in one-shot and streamed mode.

Two textual forms of a digest exist in this module. The ``sha*_digest_hex`` helpers and
``Hasher.finalize`` return lower-case hex, while a ``Hash`` value always stores its digest
upper-cased. Compare ``Hash`` objects rather than raw strings.
"""

import logging
from typing import BinaryIO, Iterable, Optional

from cryptography.hazmat.primitives import hashes
from typing_extensions import Self

from otacrypto import OTACRYPTO_HASH_CHUNK_SIZE
from otacrypto.crypto.exceptions import OTAInvalidState, OTAUnsupportedAlgorithm
from otacrypto.exceptions import OTAIOError
from otacrypto.utils.ota_enum import OtaEnum

logger = logging.getLogger(__name__)


class HashType(OtaEnum):
    """Supported digest types, ordered from the preferred one."""

    SHA256 = (0, "sha256", "SHA-256")
    SHA512 = (1, "sha512", "SHA-512")
    UNKNOWN = (2, "unknown", "Unknown hash type")


def get_hash_algorithm(hash_type: HashType) -> hashes.HashAlgorithm:
    """Get cryptography hash algorithm instance for given hash type.

    :param hash_type: Hash type.
    :raises OTAUnsupportedAlgorithm: If the hash type has no algorithm.
    :return: Instance of the corresponding hash algorithm class.
    """
    if hash_type == HashType.SHA256:
        return hashes.SHA256()
    if hash_type == HashType.SHA512:
        return hashes.SHA512()
    raise OTAUnsupportedAlgorithm(f"Unsupported hash type: {hash_type.label}")


def get_hash(data: bytes, hash_type: HashType = HashType.SHA256) -> bytes:
    """Compute binary digest of the data.

    :param data: Input data to be hashed.
    :param hash_type: Hash type to use.
    :raises OTAUnsupportedAlgorithm: If the hash type is not supported.
    :return: Hash digest as bytes.
    """
    hash_obj = hashes.Hash(get_hash_algorithm(hash_type))
    hash_obj.update(data)
    return hash_obj.finalize()


def sha256_digest(data: bytes) -> bytes:
    """Compute SHA-256 digest.

    :param data: Input data.
    :return: Binary digest.
    """
    return get_hash(data, HashType.SHA256)


def sha512_digest(data: bytes) -> bytes:
    """Compute SHA-512 digest.

    :param data: Input data.
    :return: Binary digest.
    """
    return get_hash(data, HashType.SHA512)


def sha256_digest_hex(data: bytes) -> str:
    """Compute SHA-256 digest as lower-case hex string.

    :param data: Input data.
    :return: Hex digest.
    """
    return sha256_digest(data).hex()


def sha512_digest_hex(data: bytes) -> str:
    """Compute SHA-512 digest as lower-case hex string.

    :param data: Input data.
    :return: Hex digest.
    """
    return sha512_digest(data).hex()


class Hasher:
    """Incremental digest computation.

    The hasher has a single owner and a one-way lifecycle: create, ``update`` any number
    of times, ``finalize`` once. It can't be copied nor restarted, and it is not
    thread-safe.
    """

    def __init__(self, hash_type: HashType) -> None:
        """Initialize the hasher.

        :param hash_type: Hash type to compute.
        :raises OTAUnsupportedAlgorithm: If the hash type is not supported.
        """
        self.hash_type = hash_type
        self._hash_obj: Optional[hashes.Hash] = hashes.Hash(get_hash_algorithm(hash_type))

    def __copy__(self) -> Self:
        raise OTAInvalidState("Hasher can't be copied")

    def __deepcopy__(self, memo: dict) -> Self:
        raise OTAInvalidState("Hasher can't be copied")

    @property
    def finalized(self) -> bool:
        """Whether the hasher has already produced its digest."""
        return self._hash_obj is None

    def update(self, data: bytes) -> Self:
        """Feed data into the hasher.

        :param data: Chunk of data.
        :raises OTAInvalidState: The hasher has been already finalized.
        :return: The hasher itself.
        """
        if self._hash_obj is None:
            raise OTAInvalidState("Hasher has been already finalized")
        self._hash_obj.update(data)
        return self

    def finalize(self) -> str:
        """Finish the computation.

        :raises OTAInvalidState: The hasher has been already finalized.
        :return: Lower-case hex digest.
        """
        if self._hash_obj is None:
            raise OTAInvalidState("Hasher has been already finalized")
        hash_obj, self._hash_obj = self._hash_obj, None
        return hash_obj.finalize().hex()


class Hash:
    """Immutable digest value: hash type and upper-case hex digest.

    Equality is structural, a SHA-256 and a SHA-512 of the same data never compare equal.
    """

    def __init__(self, hash_type: HashType, digest: str) -> None:
        """Initialize the hash value.

        :param hash_type: Type of the digest.
        :param digest: Hex encoded digest, stored upper-cased.
        """
        self._hash_type = hash_type
        self._digest = digest.upper()

    @property
    def hash_type(self) -> HashType:
        """Type of the digest."""
        return self._hash_type

    @property
    def digest(self) -> str:
        """Upper-case hex digest."""
        return self._digest

    @property
    def type_string(self) -> str:
        """Digest type as used in trust metadata, "unknown" for unknown type."""
        return self._hash_type.label

    @classmethod
    def from_type_string(cls, type_string: str, digest: str) -> Self:
        """Create hash value from metadata type name.

        :param type_string: "sha256" or "sha512", any other value gives unknown type.
        :param digest: Hex encoded digest.
        :return: Hash value.
        """
        if type_string in (HashType.SHA256.label, HashType.SHA512.label):
            return cls(HashType.from_label(type_string), digest)
        return cls(HashType.UNKNOWN, digest)

    @classmethod
    def generate(cls, hash_type: HashType, data: bytes) -> Self:
        """Compute one-shot digest of in-memory data.

        :param hash_type: SHA256 or SHA512.
        :param data: Input data.
        :raises OTAUnsupportedAlgorithm: If the hash type is not supported.
        :return: Hash value.
        """
        return cls(hash_type, get_hash(data, hash_type).hex())

    @classmethod
    def generate_from_stream(
        cls, hash_type: HashType, stream: BinaryIO, chunk_size: Optional[int] = None
    ) -> tuple[Self, int]:
        """Compute digest of a stream read to its end.

        :param hash_type: SHA256 or SHA512.
        :param stream: Binary stream, it's read till EOF.
        :param chunk_size: Size of the read chunks, defaults to OTACRYPTO_HASH_CHUNK_SIZE.
        :raises OTAUnsupportedAlgorithm: If the hash type is not supported.
        :raises OTAIOError: Reading of the stream failed.
        :return: Tuple of hash value and number of bytes read.
        """
        hasher = Hasher(hash_type)
        chunk_size = chunk_size or OTACRYPTO_HASH_CHUNK_SIZE
        bytes_read = 0
        try:
            while True:
                chunk = stream.read(chunk_size)
                if not chunk:
                    break
                hasher.update(chunk)
                bytes_read += len(chunk)
        except OSError as exc:
            raise OTAIOError(
                f"Reading failed after {bytes_read} bytes", diagnostic=str(exc)
            ) from exc
        logger.debug(f"Computed {hash_type.label} digest of {bytes_read} streamed bytes")
        return cls(hash_type, hasher.finalize()), bytes_read

    @staticmethod
    def short_tag(hashes_list: Iterable["Hash"]) -> str:
        """Get short tag of the preferred hash in the collection.

        The hash with the lowest type wins, the first one on ties.

        :param hashes_list: Hashes to choose from.
        :return: First 12 lower-case hex characters, or "(unknown)" if none is usable.
        """
        best: Optional[Hash] = None
        for item in hashes_list:
            if item.hash_type < (best.hash_type if best else HashType.UNKNOWN):
                best = item
        if best is None:
            return "(unknown)"
        return best.digest[:12].lower()

    def to_trust_descriptor(self) -> dict[str, str]:
        """Get the hash in the form used by trust metadata.

        :raises OTAUnsupportedAlgorithm: The hash type is unknown.
        :return: Dictionary mapping type string to lower-case digest.
        """
        if self._hash_type == HashType.UNKNOWN:
            raise OTAUnsupportedAlgorithm("Hash of unknown type can't be described")
        return {self.type_string: self._digest.lower()}

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Hash)
            and self._hash_type.tag == other.hash_type.tag
            and self._digest == other.digest
        )

    def __hash__(self) -> int:
        return hash((self._hash_type.tag, self._digest))

    def __repr__(self) -> str:
        return f"Hash({self._hash_type.label}, {self._digest})"

    def __str__(self) -> str:
        return f"{self._hash_type.label}:{self._digest.lower()}"
