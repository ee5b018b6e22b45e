#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""X.509 certificate generation and CA signing.

A ``Certificate`` owns its embedded RSA key from generation on. It is signed either by
itself or under a CA (which replaces issuer and signature in place) and finally
serialized into a private key PEM and a certificate PEM.

Every failure in here is fatal and raised as ``OTACertificateConstructionError``, the
only exception being ``verify_certificate_signature`` which answers with a boolean.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import CertificateIssuerPrivateKeyTypes
from cryptography.x509.oid import NameOID

from otacrypto.crypto.exceptions import OTACertificateConstructionError, OTACryptoError
from otacrypto.crypto.keys_management import generate_rsa_private_key, rsa_private_key_to_pem
from otacrypto.crypto.rng import rand_below
from otacrypto.crypto.signing import load_private_key
from otacrypto.exceptions import OTAError, OTAValueError
from otacrypto.utils.misc import load_binary

logger = logging.getLogger(__name__)

SERIAL_NUMBER_BITS = 20


def random_serial_number(bits: int = SERIAL_NUMBER_BITS) -> int:
    """Generate random positive certificate serial number.

    :param bits: Maximal bit length of the serial number.
    :return: Serial number in range [1, 2**bits - 1].
    """
    return rand_below((1 << bits) - 1) + 1


def _load_certificate(data: Union[str, bytes]) -> x509.Certificate:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return x509.load_pem_x509_certificate(data)


class Certificate:
    """In-progress X.509v3 certificate with embedded RSA key."""

    def __init__(
        self,
        subject: x509.Name,
        private_key: rsa.RSAPrivateKey,
        not_valid_before: datetime,
        not_valid_after: datetime,
        serial_number: Optional[int] = None,
    ) -> None:
        """Initialize unsigned certificate.

        :param subject: Subject name.
        :param private_key: Embedded RSA key, the certificate takes over its ownership.
        :param not_valid_before: Start of validity.
        :param not_valid_after: End of validity.
        :param serial_number: Positive serial number, random 20 bit number if not specified.
        :raises OTAValueError: Serial number is not positive.
        """
        self.subject = subject
        self.issuer = subject
        self.private_key = private_key
        self.not_valid_before = not_valid_before
        self.not_valid_after = not_valid_after
        if serial_number is None:
            serial_number = random_serial_number()
        elif serial_number <= 0:
            raise OTAValueError(f"Certificate serial number must be positive: {serial_number}")
        self.serial_number = serial_number
        self._certificate: Optional[x509.Certificate] = None

    @property
    def is_signed(self) -> bool:
        """Whether the certificate has been signed."""
        return self._certificate is not None

    @property
    def signed_certificate(self) -> x509.Certificate:
        """Signed certificate object.

        :raises OTACertificateConstructionError: The certificate has not been signed yet.
        """
        if self._certificate is None:
            raise OTACertificateConstructionError("Certificate has not been signed")
        return self._certificate

    def _sign(self, issuer: x509.Name, signing_key: CertificateIssuerPrivateKeyTypes) -> None:
        algorithm: Optional[hashes.HashAlgorithm] = hashes.SHA256()
        if isinstance(signing_key, (ed25519.Ed25519PrivateKey, ed448.Ed448PrivateKey)):
            algorithm = None
        try:
            builder = x509.CertificateBuilder(
                subject_name=self.subject,
                issuer_name=issuer,
                public_key=self.private_key.public_key(),
                serial_number=self.serial_number,
                not_valid_before=self.not_valid_before,
                not_valid_after=self.not_valid_after,
            )
            self._certificate = builder.sign(signing_key, algorithm)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise OTACertificateConstructionError(
                "Certificate signing failed", diagnostic=str(exc)
            ) from exc
        self.issuer = issuer

    def self_sign(self) -> None:
        """Sign the certificate with its own embedded key using SHA-256.

        :raises OTACertificateConstructionError: Signing failed.
        """
        self._sign(self.subject, self.private_key)
        logger.info(
            "Successfully self-signed the generated certificate. "
            "This should not be used in production!"
        )

    def sign_with_ca(self, ca_certificate_path: str, ca_private_key_path: str) -> None:
        """Sign the certificate in place under a CA.

        The CA subject becomes the issuer of this certificate.

        :param ca_certificate_path: Path to PEM CA certificate.
        :param ca_private_key_path: Path to PEM CA private key.
        :raises OTACertificateConstructionError: CA files can't be read or parsed, or signing failed.
        """
        try:
            ca_certificate = _load_certificate(load_binary(ca_certificate_path))
        except (OTAError, ValueError) as exc:
            raise OTACertificateConstructionError(
                f"Can't load CA certificate {ca_certificate_path}", diagnostic=str(exc)
            ) from exc
        try:
            ca_key = load_private_key(load_binary(ca_private_key_path))
        except OTAError as exc:
            raise OTACertificateConstructionError(
                f"Can't load CA private key {ca_private_key_path}", diagnostic=str(exc)
            ) from exc
        logger.debug(f"Signing certificate under CA {ca_certificate.subject.rfc4514_string()}")
        self._sign(ca_certificate.subject, ca_key)  # type: ignore[arg-type]

    def serialize(self) -> tuple[str, str]:
        """Serialize the embedded private key and the certificate.

        :raises OTACertificateConstructionError: The certificate has not been signed.
        :return: Tuple of private key PEM and certificate PEM.
        """
        if not isinstance(self.private_key, rsa.RSAPrivateKey):
            raise OTACertificateConstructionError("Certificate carries no RSA key")
        cert_pem = self.signed_certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")
        return rsa_private_key_to_pem(self.private_key), cert_pem

    def __repr__(self) -> str:
        return (
            f"Certificate({self.subject.rfc4514_string()}, serial={self.serial_number}, "
            f"signed={self.is_signed})"
        )


def generate_certificate(
    rsa_bits: int,
    days: int,
    common_name: str,
    country: str = "",
    state: str = "",
    organization: str = "",
    self_sign: bool = False,
) -> Certificate:
    """Generate X.509v3 certificate with a new embedded RSA key.

    :param rsa_bits: Size of the embedded RSA key.
    :param days: Validity of the certificate in days, starting now.
    :param common_name: Subject CN, mandatory.
    :param country: Subject C, omitted when empty.
    :param state: Subject ST, omitted when empty.
    :param organization: Subject O, omitted when empty.
    :param self_sign: Sign the certificate with its own key.
    :raises OTAValueError: Common name is empty.
    :raises OTACertificateConstructionError: Any step of the construction failed.
    :return: Generated certificate.
    """
    if not common_name:
        raise OTAValueError("Certificate common name must not be empty")
    attributes = [
        (NameOID.COUNTRY_NAME, country),
        (NameOID.STATE_OR_PROVINCE_NAME, state),
        (NameOID.ORGANIZATION_NAME, organization),
        (NameOID.COMMON_NAME, common_name),
    ]
    try:
        subject = x509.Name([x509.NameAttribute(oid, value) for oid, value in attributes if value])
    except ValueError as exc:
        raise OTACertificateConstructionError(
            "Invalid certificate subject", diagnostic=str(exc)
        ) from exc

    try:
        private_key = generate_rsa_private_key(rsa_bits)
    except (OTACryptoError, OTAValueError) as exc:
        raise OTACertificateConstructionError(
            "Can't generate certificate key", diagnostic=str(exc)
        ) from exc

    now = datetime.now(timezone.utc)
    certificate = Certificate(
        subject=subject,
        private_key=private_key,
        not_valid_before=now,
        not_valid_after=now + timedelta(days=days),
    )
    if self_sign:
        certificate.self_sign()
    return certificate


def sign_with_ca(
    certificate: Certificate, ca_certificate_path: str, ca_private_key_path: str
) -> None:
    """Sign the certificate in place under a CA.

    :param certificate: Certificate to sign.
    :param ca_certificate_path: Path to PEM CA certificate.
    :param ca_private_key_path: Path to PEM CA private key.
    :raises OTACertificateConstructionError: CA files can't be used or signing failed.
    """
    certificate.sign_with_ca(ca_certificate_path, ca_private_key_path)


def serialize_certificate(certificate: Certificate) -> tuple[str, str]:
    """Serialize the certificate and its embedded key.

    :param certificate: Signed certificate.
    :raises OTACertificateConstructionError: The certificate can't be serialized.
    :return: Tuple of private key PEM and certificate PEM.
    """
    return certificate.serialize()


def extract_subject_cn(certificate_pem: Union[str, bytes]) -> str:
    """Get common name of the certificate subject.

    :param certificate_pem: PEM certificate.
    :raises OTACertificateConstructionError: The certificate can't be parsed or has no CN.
    :return: Subject common name.
    """
    try:
        certificate = _load_certificate(certificate_pem)
    except ValueError as exc:
        raise OTACertificateConstructionError(
            "Can't parse certificate", diagnostic=str(exc)
        ) from exc
    names = certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not names:
        raise OTACertificateConstructionError("Certificate subject has no common name")
    value = names[0].value
    return value.decode("utf-8") if isinstance(value, bytes) else value


def verify_certificate_signature(
    certificate_pem: Union[str, bytes], issuer_pem: Union[str, bytes]
) -> bool:
    """Check that the certificate was directly issued by the issuer certificate.

    Both the issuer name and the signature are checked. Unparsable input doesn't verify.

    :param certificate_pem: PEM certificate to check.
    :param issuer_pem: PEM certificate of the issuer, the same certificate for self-signed.
    :return: True if the certificate is issued and signed by the issuer.
    """
    try:
        certificate = _load_certificate(certificate_pem)
        issuer = _load_certificate(issuer_pem)
        certificate.verify_directly_issued_by(issuer)
    except (ValueError, TypeError, InvalidSignature, UnsupportedAlgorithm) as exc:
        logger.debug(f"Certificate verification failed: {exc!r}")
        return False
    return True
