#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""External private key stores.

A key store resolves a key reference (label, slot, file name) to a private key object
usable for signing, so the raw key material doesn't have to be passed around. Hardware
security modules and crypto engines are plugged in as key store providers registered
under the ``otacrypto.key_store`` entry point group.
"""

import abc
import logging
import os
from typing import Optional

from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes

from otacrypto.crypto.signing import load_private_key
from otacrypto.exceptions import OTAError
from otacrypto.utils.misc import find_file, load_binary, load_secret
from otacrypto.utils.plugins import PluginType
from otacrypto.utils.service_provider import ServiceProvider

logger = logging.getLogger(__name__)


class KeyStore(ServiceProvider):
    """Key store interface."""

    plugin_identifier = PluginType.KEY_STORE.label

    @abc.abstractmethod
    def load_private_key(self, key_id: str) -> PrivateKeyTypes:
        """Resolve key reference into private key object.

        :param key_id: Reference of the key in the store.
        :raises OTAError: The key can't be loaded.
        :return: Private key.
        """


class FileKeyStore(KeyStore):
    """Key store backed by a directory with PEM private keys.

    Example of creation parameters: ``type=file;directory=/var/sota/keys``.
    """

    identifier = "file"
    extensions = ("", ".pem", ".key")

    def __init__(self, directory: str, password: Optional[str] = None) -> None:
        """Initialize the key store.

        :param directory: Directory with private keys.
        :param password: Password of encrypted keys, may be '$ENV_VAR' or file reference.
        """
        self.directory = os.path.abspath(os.path.expanduser(directory))
        self.password = load_secret(password) if password else None

    def info(self) -> str:
        return f"File key store ({self.directory})"

    def load_private_key(self, key_id: str) -> PrivateKeyTypes:
        """Load private key stored in file ``<directory>/<key_id>[.pem|.key]``.

        :param key_id: Name of the key file.
        :raises OTAError: The key file doesn't exist or can't be parsed.
        :return: Private key.
        """
        if os.path.isabs(key_id) or ".." in key_id.replace("\\", "/").split("/"):
            raise OTAError(f"Key reference must be relative to the key store: {key_id}")
        for extension in self.extensions:
            path = find_file(
                key_id + extension, use_cwd=False, search_paths=[self.directory], raise_exc=False
            )
            if path:
                logger.debug(f"Loading private key '{key_id}' from {path}")
                return load_private_key(load_binary(path), self.password)
        raise OTAError(f"Key '{key_id}' not found in {self.directory}")
