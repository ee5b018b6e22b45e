#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Miscellaneous utilities: file access, configuration loading and canonical JSON."""

import contextlib
import json
import logging
import os
import threading
from typing import Any, Iterator, Optional, Type, TypeVar, Union

import yaml

from otacrypto.exceptions import OTAError, OTAIOError

logger = logging.getLogger(__name__)


def _posix(path: str) -> str:
    return path.replace("\\", "/")


def get_abs_path(file_path: str, base_dir: Optional[str] = None) -> str:
    """Get absolute path with forward slashes.

    :param file_path: Absolute path, or path relative to ``base_dir``.
    :param base_dir: Base of relative paths, current working directory by default.
    :return: Absolute path.
    """
    if os.path.isabs(file_path):
        return _posix(file_path)
    return _posix(os.path.abspath(os.path.join(base_dir or os.getcwd(), file_path)))


def find_file(
    file_path: str,
    use_cwd: bool = True,
    search_paths: Optional[list[str]] = None,
    raise_exc: bool = True,
) -> str:
    """Find a file, the search paths are tried before the working directory.

    :param file_path: File name or relative or absolute path.
    :param use_cwd: Try the current working directory as the last location.
    :param search_paths: Directories to search in, empty items are skipped.
    :param raise_exc: Raise when the file isn't found, return '' otherwise.
    :raises OTAIOError: The file isn't found.
    :return: Absolute path to the file.
    """
    file_path = _posix(file_path)
    if os.path.isabs(file_path):
        bases: list[Optional[str]] = [None]
    else:
        bases = [_posix(directory) for directory in search_paths or [] if directory]
        if use_cwd:
            bases.append(os.getcwd())
    for base in bases:
        candidate = get_abs_path(file_path, base)
        if os.path.isfile(candidate):
            return candidate

    message = f"File '{file_path}' not found"
    if bases != [None]:
        message += f", searched in: {', '.join(str(base) for base in bases)}"
    if raise_exc:
        raise OTAIOError(message)
    logger.debug(message)
    return ""


def load_file(
    path: str, mode: str = "r", search_paths: Optional[list[str]] = None
) -> Union[str, bytes]:
    """Read whole file.

    :param path: Path to the file.
    :param mode: 'r' for UTF-8 text, 'rb' for bytes.
    :param search_paths: Directories to search in.
    :raises OTAIOError: The file can't be found, read or decoded.
    :return: File content.
    """
    path = find_file(path, search_paths=search_paths)
    binary = "b" in mode
    logger.debug(f"Reading {'binary' if binary else 'text'} file {path}")
    try:
        with open(path, mode, encoding=None if binary else "utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise OTAIOError(f"Can't read file {path}", diagnostic=str(exc)) from exc


def load_binary(path: str, search_paths: Optional[list[str]] = None) -> bytes:
    """Read binary file.

    :param path: Path to the file.
    :param search_paths: Directories to search in.
    :return: File content.
    """
    data = load_file(path, mode="rb", search_paths=search_paths)
    assert isinstance(data, bytes)
    return data


def load_text(path: str, search_paths: Optional[list[str]] = None) -> str:
    """Read UTF-8 text file.

    :param path: Path to the file.
    :param search_paths: Directories to search in.
    :return: File content.
    """
    text = load_file(path, mode="r", search_paths=search_paths)
    assert isinstance(text, str)
    return text


def write_file(
    data: Union[str, bytes],
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
) -> int:
    """Write data into a file, missing parent directories are created.

    :param data: Text or bytes to write.
    :param path: Target file.
    :param mode: 'w' for text, 'wb' for bytes.
    :param encoding: Encoding of text.
    :raises OTAIOError: The file can't be written.
    :return: Number of written characters or bytes.
    """
    path = _posix(path)
    binary = "b" in mode
    logger.debug(f"Writing {'binary' if binary else 'text'} file {path}")
    try:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, mode, encoding=None if binary else encoding) as f:
            return f.write(data)
    except OSError as exc:
        raise OTAIOError(f"Can't write file {path}", diagnostic=str(exc)) from exc


@contextlib.contextmanager
def use_working_directory(path: str) -> Iterator[None]:
    # pylint: disable=missing-yield-doc
    """Run the block with ``path`` as the working directory.

    :param path: Temporary working directory.
    """
    previous = os.getcwd()
    os.chdir(path)
    try:
        yield
    finally:
        os.chdir(previous)


def load_configuration(path: str, search_paths: Optional[list[str]] = None) -> dict:
    """Load a mapping from JSON or YAML file.

    :param path: Path to the file.
    :param search_paths: Directories to search in.
    :raises OTAError: The file can't be read, parsed, or isn't a non-empty mapping.
    :return: Configuration.
    """
    try:
        text = load_text(path, search_paths=search_paths)
    except OTAError as exc:
        raise OTAError(f"Can't load configuration file: {exc}") from exc

    try:
        config = json.loads(text)
    except json.JSONDecodeError:
        try:
            config = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise OTAError(f"Can't parse configuration file: {path}") from exc

    if not config or not isinstance(config, dict):
        raise OTAError(f"Configuration file {path} doesn't contain a mapping")
    return config


def load_secret(value: str, search_paths: Optional[list[str]] = None) -> str:
    """Resolve secret such as a key or PKCS#12 password.

    ``$VAR`` and ``~`` are expanded first. When the result names an existing file,
    the first line of that file is the secret, otherwise the result itself is.

    :param value: Secret, file reference or environment variable reference.
    :param search_paths: Directories to search the file in.
    :return: Secret.
    """
    value = os.path.expanduser(os.path.expandvars(value))
    secret_file = find_file(value, search_paths=search_paths, raise_exc=False)
    if not secret_file:
        return value
    lines = load_text(secret_file).splitlines()
    return lines[0].strip() if lines else ""


def json_to_canonical_str(value: Any) -> str:
    """Serialize JSON value into its canonical text.

    Keys are sorted and no insignificant whitespace is emitted, so equal values
    always give equal text.

    :param value: JSON compatible value.
    :return: Canonical JSON text.
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


TS = TypeVar("TS", bound="SingletonMeta")  # pylint: disable=invalid-name


class SingletonMeta(type):
    """Metaclass of classes with a single process-wide instance."""

    _instance = None
    _lock = threading.Lock()

    def __call__(cls: Type[TS], *args: Any, **kwargs: Any) -> TS:  # type: ignore
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__call__(*args, **kwargs)
        return cls._instance
