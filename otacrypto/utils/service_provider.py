#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Pluggable services selected by a parameter string.

A service is an abstract subclass of :class:`ServiceProvider`, its implementations are
concrete subclasses with a unique ``identifier``. An implementation is created from
``type=<identifier>;<name>=<value>;...`` or from the equivalent dictionary, remaining
pairs become keyword arguments of its constructor.
"""

import abc
import inspect
import logging
from typing import Iterator, Optional, Type, Union

from typing_extensions import Self

from otacrypto.exceptions import OTAError, OTAKeyError, OTAValueError
from otacrypto.utils.plugins import PluginsManager

logger = logging.getLogger(__name__)

PARAMS_SEPARATOR = ";"


class ServiceProvider(abc.ABC):
    """Base of pluggable services.

    :cvar identifier: Value of ``type`` selecting the implementation.
    :cvar plugin_identifier: Entry point group with external implementations.
    :cvar reserved_keys: Parameters consumed here and not passed to constructors.
    """

    identifier: str
    plugin_identifier: str
    reserved_keys = ["type"]

    def __init_subclass__(cls) -> None:
        if not inspect.isabstract(cls) and not hasattr(cls, "identifier"):
            raise OTAError(f"{cls.__name__} must define its identifier")
        super().__init_subclass__()

    def info(self) -> str:
        """Short description of the provider.

        :return: Provider class name.
        """
        return type(self).__name__

    @classmethod
    def _implementations(cls) -> Iterator[Type[Self]]:
        pending = list(cls.__subclasses__())
        while pending:
            subclass = pending.pop(0)
            pending.extend(subclass.__subclasses__())
            if not inspect.isabstract(subclass):
                yield subclass

    @classmethod
    def get_all_providers(cls) -> list[Type[Self]]:
        """Get concrete implementations of the service known so far.

        :return: Provider classes.
        """
        return list(cls._implementations())

    @classmethod
    def get_types(cls) -> list[str]:
        """Get identifiers of the known implementations.

        :return: Provider identifiers.
        """
        return [provider.identifier for provider in cls._implementations()]

    @classmethod
    def get_provider(cls, identifier: str) -> Type[Self]:
        """Get implementation by its identifier.

        :param identifier: Provider identifier.
        :raises OTAValueError: No implementation has the identifier.
        :return: Provider class.
        """
        for provider in cls._implementations():
            if provider.identifier == identifier:
                return provider
        raise OTAValueError(
            f"Unknown {cls.__name__} '{identifier}', available: {', '.join(cls.get_types())}"
        )

    @classmethod
    def filter_params(cls, params: dict[str, str]) -> dict[str, str]:
        """Drop reserved parameters.

        :param params: Creation parameters.
        :return: Constructor keyword arguments.
        """
        return {name: value for name, value in params.items() if name not in cls.reserved_keys}

    @staticmethod
    def convert_params(params: str) -> dict[str, str]:
        """Parse ``name=value`` pairs separated by semicolons.

        Only the first ``=`` of a pair separates the name, the value may contain more.

        :param params: Parameter string, e.g. ``type=file;directory=keys``.
        :raises OTAKeyError: A name is given twice.
        :raises OTAValueError: A pair has no ``=``.
        :return: Parsed parameters.
        """
        result: dict[str, str] = {}
        for pair in params.split(PARAMS_SEPARATOR):
            name, separator, value = pair.partition("=")
            if not separator:
                raise OTAValueError(
                    f"Invalid parameter '{pair}', expected format: type=file;directory=keys"
                )
            if name in result:
                raise OTAKeyError(f"Parameter '{name}' is given more than once")
            result[name] = value
        return result

    @classmethod
    def load_plugins(cls) -> None:
        """Import external implementations published for this service."""
        group = getattr(cls, "plugin_identifier", None)
        if group:
            PluginsManager().load_from_entrypoints(group)

    @classmethod
    def create(cls, params: Union[str, dict]) -> Optional[Self]:
        """Create an implementation of the service.

        :param params: Parameter string or dictionary, ``type`` is mandatory.
        :raises OTAValueError: The ``type`` parameter is missing.
        :return: Provider instance, None when no implementation has the type.
        """
        cls.load_plugins()
        if isinstance(params, str):
            params = cls.convert_params(params)
        if "type" not in params:
            raise OTAValueError(f"{cls.__name__} type is not defined in {params}")
        try:
            provider = cls.get_provider(params["type"])
        except OTAValueError as exc:
            logger.info(str(exc))
            return None
        return provider(**provider.filter_params(params))
