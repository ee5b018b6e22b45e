#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Loading of external key store implementations.

A key store plugin is a Python module defining a subclass of
:class:`otacrypto.crypto.key_store.KeyStore`. Defining the class is enough to make it
available, so loading a plugin means importing its module once. Modules come from
the ``otacrypto.key_store`` entry point group of installed distributions, from a
source file or from an importable module name.
"""

import logging
import os
import sys
from importlib.machinery import ModuleSpec
from importlib.util import find_spec, module_from_spec, spec_from_file_location
from types import ModuleType
from typing import Optional

import importlib_metadata

from otacrypto.exceptions import OTAError, OTATypeError
from otacrypto.utils.misc import SingletonMeta
from otacrypto.utils.ota_enum import OtaEnum

logger = logging.getLogger(__name__)


class PluginType(OtaEnum):
    """Kinds of plugins, the label is the name of the entry point group."""

    KEY_STORE = (0, "otacrypto.key_store", "Private key store (HSM, engine, files)")


class PluginsManager(metaclass=SingletonMeta):
    """Registry of imported plugin modules shared by the whole process.

    ``plugins`` maps the module name to the module, ``origins`` remembers where each
    of them was loaded from.
    """

    def __init__(self) -> None:
        self.plugins: dict[str, ModuleType] = {}
        self.origins: dict[str, str] = {}

    def load_from_entrypoints(self, group_name: Optional[str] = None) -> int:
        """Import modules published by installed distributions.

        A module that can't be imported is reported and skipped, so one broken
        distribution doesn't prevent the others from being used.

        :param group_name: Entry point group, all known groups when None.
        :raises OTATypeError: Group name is not a string.
        :return: Number of newly registered plugins.
        """
        if group_name is not None and not isinstance(group_name, str):
            raise OTATypeError("Group name must be of string type.")
        if group_name is None:
            groups = [PluginType.get_label(tag) for tag in PluginType.tags()]
        else:
            groups = [group_name]

        count = 0
        for group in groups:
            for entry_point in importlib_metadata.entry_points(group=group):
                try:
                    module = entry_point.load()
                except ImportError as exc:
                    logger.warning(f"Plugin {entry_point.name} from {group} is broken: {exc}")
                    continue
                if self.register(module, origin=f"entry point {group}:{entry_point.name}"):
                    count += 1
        return count

    def load_from_source_file(self, source_file: str, module_name: Optional[str] = None) -> None:
        """Import a plugin from a Python file.

        :param source_file: Path to the file, relative paths are resolved against cwd.
        :param module_name: Module name, file name without extension by default.
        :raises OTAError: File is missing or the module fails to execute.
        """
        if not os.path.isfile(source_file):
            raise OTAError(f"Plugin file '{source_file}' does not exist.")
        name = module_name or os.path.splitext(os.path.basename(source_file))[0]
        spec = spec_from_file_location(name=name, location=source_file)
        if spec is None:
            raise OTAError(f"Plugin file '{source_file}' is not a Python module.")
        self.register(self._execute(spec), origin=os.path.abspath(source_file))

    def load_from_module_name(self, module_name: str) -> None:
        """Import a plugin by its module name.

        :param module_name: Importable module name.
        :raises OTAError: Module can't be found or fails to execute.
        """
        if module_name in sys.modules:
            self.register(sys.modules[module_name], origin=f"module {module_name}")
            return
        spec = find_spec(name=module_name)
        if spec is None:
            raise OTAError(f"Plugin module '{module_name}' can't be found.")
        self.register(self._execute(spec), origin=f"module {module_name}")

    def load_plugin(self, reference: str) -> None:
        """Import a plugin given either as a file path or as a module name.

        :param reference: Path to a ``.py`` file or a module name.
        """
        if reference.endswith(".py") or os.path.sep in reference:
            self.load_from_source_file(reference)
        else:
            self.load_from_module_name(reference)

    @staticmethod
    def _execute(spec: ModuleSpec) -> ModuleType:
        module = module_from_spec(spec)
        sys.modules[spec.name] = module
        try:
            spec.loader.exec_module(module)  # type: ignore
        except Exception as exc:
            del sys.modules[spec.name]
            raise OTAError(f"Plugin {spec.name} failed to load: {exc}") from exc
        return module

    def register(self, plugin: ModuleType, origin: str = "") -> bool:
        """Add a module to the registry.

        :param plugin: Imported plugin module.
        :param origin: Where the module comes from, for diagnostics.
        :return: False when the module is already registered.
        """
        name = self.get_plugin_name(plugin)
        if name in self.plugins:
            return False
        self.plugins[name] = plugin
        self.origins[name] = origin or name
        logger.debug(f"Plugin {name} registered from {self.origins[name]}")
        return True

    def get_plugin(self, name: str) -> Optional[ModuleType]:
        """Get registered plugin module.

        :param name: Module name.
        :return: Module or None.
        """
        return self.plugins.get(name)

    @staticmethod
    def get_plugin_name(plugin: ModuleType) -> str:
        """Get name under which the plugin is registered.

        :param plugin: Plugin module.
        :raises OTAError: Object has no module name.
        :return: Module name.
        """
        name = getattr(plugin, "__name__", None)
        if not name:
            raise OTAError(f"Plugin {plugin!r} has no name.")
        return name
