#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Cryptographic exceptions.

Only fatal conditions are modelled as exceptions. Rejected signatures, malformed
untrusted key descriptors or a wrong PKCS#12 password are ordinary results.
"""

from otacrypto.exceptions import OTAError, OTAUnsupportedOperation, OTAValueError


class OTACryptoError(OTAError):
    """General otacrypto Crypto Error."""


class OTAUnsupportedAlgorithm(OTACryptoError, OTAUnsupportedOperation):
    """Requested hash or key algorithm is outside of the supported set."""


class OTAInvalidState(OTACryptoError):
    """Object was used in a state that doesn't allow the operation.

    Raised e.g. when a finalized hasher is updated again.
    """


class OTAKeyLengthMismatch(OTACryptoError, OTAValueError):
    """RSA key length doesn't match the declared key type."""


class OTAInsufficientEntropy(OTACryptoError):
    """Random generator has not been sufficiently seeded."""


class OTACertificateConstructionError(OTACryptoError):
    """Certificate could not be generated, signed or serialized."""
