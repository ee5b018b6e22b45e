#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Tests of the plugins manager."""

import sys
from pathlib import Path
from typing import Any

import pytest

from otacrypto.crypto.key_store import KeyStore
from otacrypto.exceptions import OTAError, OTATypeError
from otacrypto.utils.plugins import PluginsManager, PluginType

KEY_STORE_PLUGIN = '''
from otacrypto.crypto.key_store import KeyStore


class MemoryKeyStore(KeyStore):
    """Key store keeping keys in memory."""

    identifier = "memory-test"
    keys = {}

    def load_private_key(self, key_id):
        return self.keys[key_id]
'''


@pytest.fixture
def plugin_cleanup() -> None:
    """Forget all loaded plugins."""
    PluginsManager().plugins = {}
    PluginsManager().origins = {}


def test_plugins_manager_is_singleton(plugin_cleanup: Any) -> None:
    """Test that the manager is shared.

    :param plugin_cleanup: Plugin cleanup fixture.
    """
    assert PluginsManager() is PluginsManager()
    assert PluginsManager().plugins == {}


def test_plugin_from_source_file(tmp_path: Path, plugin_cleanup: Any) -> None:
    """Test loading of key store plugin from source file.

    :param tmp_path: Temporary directory.
    :param plugin_cleanup: Plugin cleanup fixture.
    """
    plugin_path = tmp_path / "memory_key_store.py"
    plugin_path.write_text(KEY_STORE_PLUGIN, encoding="utf-8")
    manager = PluginsManager()
    manager.load_from_source_file(str(plugin_path))
    assert list(manager.plugins.keys()) == ["memory_key_store"]
    assert manager.get_plugin("memory_key_store") is sys.modules["memory_key_store"]
    assert "memory-test" in KeyStore.get_types()
    # registering the same module again is a no-op
    assert not manager.register(sys.modules["memory_key_store"])


def test_plugin_from_source_file_missing(tmp_path: Path, plugin_cleanup: Any) -> None:
    """Test loading of non-existing source file.

    :param tmp_path: Temporary directory.
    :param plugin_cleanup: Plugin cleanup fixture.
    """
    with pytest.raises(OTAError):
        PluginsManager().load_from_source_file(str(tmp_path / "missing.py"))


def test_plugin_from_module_name(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, plugin_cleanup: Any
) -> None:
    """Test loading of plugin by module name.

    :param tmp_path: Temporary directory.
    :param monkeypatch: Pytest monkeypatch fixture.
    :param plugin_cleanup: Plugin cleanup fixture.
    """
    (tmp_path / "named_key_store.py").write_text(
        KEY_STORE_PLUGIN.replace("memory-test", "named-test"), encoding="utf-8"
    )
    monkeypatch.syspath_prepend(str(tmp_path))
    manager = PluginsManager()
    manager.load_from_module_name("named_key_store")
    assert manager.get_plugin("named_key_store") is not None
    assert "named-test" in KeyStore.get_types()
    with pytest.raises(OTAError):
        manager.load_from_module_name("otacrypto_nonexisting_plugin")


def test_load_from_entrypoints(plugin_cleanup: Any) -> None:
    """Test loading of entry points of all plugin groups.

    :param plugin_cleanup: Plugin cleanup fixture.
    """
    count = PluginsManager().load_from_entrypoints()
    assert count == len(PluginsManager().plugins)
    assert PluginsManager().load_from_entrypoints(PluginType.KEY_STORE.label) == 0
    with pytest.raises(OTATypeError):
        PluginsManager().load_from_entrypoints(1)  # type: ignore[arg-type]


def test_load_plugin_reference(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, plugin_cleanup: Any
) -> None:
    """Test that plugin reference is either a file or a module name.

    :param tmp_path: Temporary directory.
    :param monkeypatch: Pytest monkeypatch fixture.
    :param plugin_cleanup: Plugin cleanup fixture.
    """
    plugin_path = tmp_path / "ref_file_key_store.py"
    plugin_path.write_text(KEY_STORE_PLUGIN.replace("memory-test", "ref-file"), encoding="utf-8")
    (tmp_path / "ref_module_key_store.py").write_text(
        KEY_STORE_PLUGIN.replace("memory-test", "ref-module"), encoding="utf-8"
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    manager = PluginsManager()
    manager.load_plugin(str(plugin_path))
    manager.load_plugin("ref_module_key_store")
    assert manager.origins["ref_file_key_store"] == str(plugin_path)
    assert manager.origins["ref_module_key_store"] == "module ref_module_key_store"
    assert {"ref-file", "ref-module"} <= set(KeyStore.get_types())


def test_broken_plugin_file(tmp_path: Path, plugin_cleanup: Any) -> None:
    """Test that failing plugin is reported and not left imported.

    :param tmp_path: Temporary directory.
    :param plugin_cleanup: Plugin cleanup fixture.
    """
    plugin_path = tmp_path / "broken_key_store.py"
    plugin_path.write_text("raise RuntimeError('no hardware')\n", encoding="utf-8")
    with pytest.raises(OTAError, match="no hardware"):
        PluginsManager().load_from_source_file(str(plugin_path))
    assert "broken_key_store" not in sys.modules
    assert PluginsManager().get_plugin("broken_key_store") is None
