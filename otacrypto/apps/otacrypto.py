#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Command line tool for OTA trust primitives: keys, signatures, digests and certificates."""

import base64
import json
import logging
import os
import sys
from typing import Optional

import click

from otacrypto.apps.utils import ota_logger
from otacrypto.apps.utils.common_cli_options import (
    CommandsTreeGroup,
    ota_apps_common_options,
    ota_key_type_option,
    ota_output_option,
    ota_plugin_option,
)
from otacrypto.apps.utils.utils import OTAAppError, catch_ota_error, check_file_exists
from otacrypto.crypto.certificate import (
    extract_subject_cn,
    generate_certificate,
    verify_certificate_signature,
)
from otacrypto.crypto.crypto_types import KeyType, is_rsa_key_type
from otacrypto.crypto.hash import Hash, HashType
from otacrypto.crypto.key_store import KeyStore
from otacrypto.crypto.keys import PublicKey
from otacrypto.crypto.keys_management import generate_key_pair, save_key_pair
from otacrypto.crypto.pkcs12 import import_pkcs12
from otacrypto.crypto.provider import initialize_crypto_provider
from otacrypto.crypto.signing import sign
from otacrypto.exceptions import OTAIOError
from otacrypto.utils.misc import load_binary, load_secret, load_text, write_file

logger = logging.getLogger(__name__)

PRIVATE_KEY_FILE = "pkey.pem"
CERTIFICATE_FILE = "client.pem"
CA_CHAIN_FILE = "root.crt"


def _load_public_key(path: str, key_type: Optional[KeyType]) -> PublicKey:
    if key_type is None:
        return PublicKey.load(path)
    value = load_text(path)
    if not is_rsa_key_type(key_type):
        value = value.strip()
    return PublicKey(value, key_type)


@click.group(name="otacrypto", no_args_is_help=True, cls=CommandsTreeGroup)
@ota_apps_common_options
def main(log_level: int) -> None:
    """OTA trust primitives tool."""
    ota_logger.install(level=log_level)
    initialize_crypto_provider()


@main.group(name="key", no_args_is_help=True)
def key_group() -> None:
    """Group of commands for working with keys."""


@key_group.command(name="generate", no_args_is_help=True)
@ota_key_type_option(default=KeyType.RSA2048.label, help="Type of the generated key pair.")
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Force overwriting of an existing file.",
)
@click.argument("path", type=click.Path(file_okay=True, resolve_path=True))
def key_generate(key_type: KeyType, force: bool, path: str) -> None:
    """Generate key pair.

    \b
    PATH    - output file path of the private key, the public key is stored
              beside it with '.pub' extension.
    """
    pub_key_path = os.path.splitext(path)[0] + ".pub"
    check_file_exists(path, force)
    check_file_exists(pub_key_path, force)

    logger.info(f"Generating {key_type.description} key pair...")
    public_key, private_key = generate_key_pair(key_type)
    save_key_pair(public_key, private_key, pub_key_path, path)
    click.echo(f"The key pair has been created: {pub_key_path}, {path}")


@key_group.command(name="id", no_args_is_help=True)
@ota_key_type_option(required=False, help="Type of the key, detected for RSA if omitted.")
@click.argument("key", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
def key_id(key_type: Optional[KeyType], key: str) -> None:
    """Print identifier of a public key."""
    click.echo(_load_public_key(key, key_type).key_id())


@key_group.command(name="descriptor", no_args_is_help=True)
@ota_key_type_option(required=False, help="Type of the key, detected for RSA if omitted.")
@click.argument("key", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
def key_descriptor(key_type: Optional[KeyType], key: str) -> None:
    """Print trust metadata descriptor of a public key."""
    public_key = _load_public_key(key, key_type)
    click.echo(json.dumps(public_key.to_trust_descriptor(), indent=2))


@main.command(name="sign", no_args_is_help=True)
@ota_key_type_option()
@click.option(
    "-k",
    "--key",
    required=True,
    help="Path to the private key, or key reference when a key store is used.",
)
@click.option(
    "--key-store",
    help="Key store parameters, e.g. 'type=file;directory=/var/sota/keys'.",
)
@ota_plugin_option
@click.option(
    "-i",
    "--input-file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to the data to sign.",
)
@ota_output_option(required=False, help="Path to a file, where to store base64 signature.")
def sign_command(
    key_type: KeyType,
    key: str,
    key_store: Optional[str],
    plugins: tuple[str, ...],  # pylint: disable=unused-argument
    input_file: str,
    output: Optional[str],
) -> None:
    """Sign data, the base64 encoded signature is printed or stored."""
    store = None
    private_key = key
    if key_store:
        store = KeyStore.create(key_store)
        if store is None:
            raise OTAAppError(f"Key store '{key_store}' is not available")
    else:
        private_key = load_text(key)
        if not is_rsa_key_type(key_type):
            private_key = private_key.strip()

    signature = sign(key_type, private_key, load_binary(input_file), key_store=store)
    if not signature:
        raise OTAAppError("Signing failed, the private key can't be used")
    signature_b64 = base64.b64encode(signature).decode("ascii")
    if output:
        write_file(signature_b64, output)
        click.echo(f"Signature has been stored into {output}")
    else:
        click.echo(signature_b64)


@main.command(name="verify", no_args_is_help=True)
@ota_key_type_option(required=False, help="Type of the key, detected for RSA if omitted.")
@click.option(
    "-k",
    "--key",
    required=True,
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to the public key.",
)
@click.option(
    "-i",
    "--input-file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to the signed data.",
)
@click.option(
    "-s",
    "--signature",
    required=True,
    help="Base64 signature or path to a file containing it.",
)
def verify_command(key_type: Optional[KeyType], key: str, input_file: str, signature: str) -> None:
    """Verify base64 encoded signature of data."""
    public_key = _load_public_key(key, key_type)
    if os.path.isfile(signature):
        signature = load_text(signature).strip()
    if not public_key.verify_signature(signature, load_binary(input_file)):
        raise OTAAppError("Signature is NOT valid", error_code=1)
    click.echo("Signature is valid")


@main.command(name="digest", no_args_is_help=True)
@click.option(
    "-a",
    "--algorithm",
    type=click.Choice([HashType.SHA256.label, HashType.SHA512.label], case_sensitive=False),
    default=HashType.SHA256.label,
    help="Digest algorithm.",
)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
def digest_command(algorithm: str, path: str) -> None:
    """Compute digest of a file."""
    try:
        with open(path, "rb") as stream:
            file_hash, size = Hash.generate_from_stream(HashType.from_label(algorithm), stream)
    except OSError as exc:
        raise OTAIOError(f"Can't open {path}", diagnostic=str(exc)) from exc
    click.echo(f"{file_hash.digest.lower()}  {path}  ({size} bytes)")


@main.group(name="cert", no_args_is_help=True)
def cert_group() -> None:
    """Group of commands for working with X.509 certificates."""


@cert_group.command(name="generate", no_args_is_help=True)
@click.option("--cn", "common_name", required=True, help="Subject common name.")
@click.option("--country", default="", help="Subject country (two letters).")
@click.option("--state", default="", help="Subject state or province.")
@click.option("--organization", default="", help="Subject organization.")
@click.option("--bits", default=2048, show_default=True, type=int, help="RSA key size.")
@click.option("--days", default=365, show_default=True, type=int, help="Validity in days.")
@click.option(
    "--ca-cert",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="CA certificate used to sign the certificate.",
)
@click.option(
    "--ca-key",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="CA private key used to sign the certificate.",
)
@click.option("--self-sign", is_flag=True, default=False, help="Self-sign the certificate.")
@ota_output_option(directory=True, force=True)
def cert_generate(
    common_name: str,
    country: str,
    state: str,
    organization: str,
    bits: int,
    days: int,
    ca_cert: Optional[str],
    ca_key: Optional[str],
    self_sign: bool,
    output: str,
) -> None:
    """Generate certificate with a new RSA key."""
    if bool(ca_cert) != bool(ca_key):
        raise OTAAppError("Both --ca-cert and --ca-key must be specified")
    if ca_cert and self_sign:
        raise OTAAppError("Use either --self-sign or CA signing, not both")
    if not ca_cert and not self_sign:
        raise OTAAppError("Either --self-sign or --ca-cert with --ca-key must be specified")

    certificate = generate_certificate(
        rsa_bits=bits,
        days=days,
        common_name=common_name,
        country=country,
        state=state,
        organization=organization,
        self_sign=self_sign,
    )
    if ca_cert and ca_key:
        certificate.sign_with_ca(ca_cert, ca_key)
    key_pem, cert_pem = certificate.serialize()
    write_file(key_pem, os.path.join(output, PRIVATE_KEY_FILE))
    write_file(cert_pem, os.path.join(output, CERTIFICATE_FILE))
    click.echo(f"Certificate has been generated into {output}")


@cert_group.command(name="cn", no_args_is_help=True)
@click.argument("certificate", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
def cert_cn(certificate: str) -> None:
    """Print common name of the certificate subject."""
    click.echo(extract_subject_cn(load_binary(certificate)))


@cert_group.command(name="verify", no_args_is_help=True)
@click.option(
    "--issuer",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Issuer certificate, the certificate itself if omitted.",
)
@click.argument("certificate", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
def cert_verify(issuer: Optional[str], certificate: str) -> None:
    """Verify that the certificate was issued by the issuer."""
    cert_pem = load_binary(certificate)
    issuer_pem = load_binary(issuer) if issuer else cert_pem
    if not verify_certificate_signature(cert_pem, issuer_pem):
        raise OTAAppError("Certificate is NOT issued by the issuer", error_code=1)
    click.echo("Certificate is valid")


@main.group(name="p12", no_args_is_help=True)
def p12_group() -> None:
    """Group of commands for working with PKCS#12 bundles."""


@p12_group.command(name="import", no_args_is_help=True)
@click.option(
    "-i",
    "--input-file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to the PKCS#12 bundle.",
)
@click.option(
    "-p",
    "--password",
    default="",
    help="Bundle password, '$ENV_VAR' or path to a file with the password.",
)
@ota_output_option(directory=True, force=True)
def p12_import(input_file: str, password: str, output: str) -> None:
    """Extract private key, certificate and CA chain from PKCS#12 bundle."""
    bundle = import_pkcs12(load_binary(input_file), load_secret(password) if password else None)
    if bundle is None:
        raise OTAAppError("Can't open PKCS#12 bundle: wrong password or corrupted data")
    write_file(bundle.private_key_pem, os.path.join(output, PRIVATE_KEY_FILE))
    write_file(bundle.certificate_pem, os.path.join(output, CERTIFICATE_FILE))
    write_file(bundle.ca_chain_pem, os.path.join(output, CA_CHAIN_FILE))
    click.echo(f"PKCS#12 bundle has been extracted into {output}")


@catch_ota_error
def safe_main() -> None:
    """Call the main function."""
    sys.exit(main())  # pylint: disable=no-value-for-parameter


if __name__ == "__main__":
    safe_main()
