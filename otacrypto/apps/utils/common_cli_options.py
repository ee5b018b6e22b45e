#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Click options shared by otacrypto commands."""

import logging
import os
from gettext import gettext
from typing import Any, Callable, Iterator, Optional, TypeVar, Union

import click
from click_command_tree import _build_command_tree, _CommandWrapper

from otacrypto import __version__ as otacrypto_version
from otacrypto.crypto.crypto_types import KeyType
from otacrypto.utils.plugins import PluginsManager

FC = TypeVar("FC", bound=Union[Callable[..., Any], click.Command])

_LOG_LEVEL_FLAGS = (
    ("-v", "--verbose", logging.INFO, "Print more detailed information."),
    ("-vv", "--debug", logging.DEBUG, "Display more debugging information."),
)


def ota_apps_common_options(options: FC) -> FC:
    """Add --help, --version and verbosity flags.

    Provides: `log_level: int`, None when no verbosity flag is given.

    :return: click decorator
    """
    for short_name, long_name, level, help_text in _LOG_LEVEL_FLAGS:
        options = click.option(
            short_name, long_name, "log_level", flag_value=level, help=help_text
        )(options)
    options = click.version_option(otacrypto_version, "--version")(options)
    return click.help_option("--help")(options)


def ota_key_type_option(
    required: bool = True,
    default: Optional[str] = None,
    help: Optional[str] = None,  # pylint: disable=redefined-builtin
) -> Callable:
    """Click decorator for selection of the key type.

    Provides: `key_type: Optional[KeyType]`.

    :param required: Key type must be given
    :param default: Label of the default key type
    :param help: Customized help message
    :return: Click decorator.
    """
    labels = [label for label in KeyType.labels() if label != KeyType.UNKNOWN.label]

    def to_key_type(
        ctx: click.Context,  # pylint: disable=unused-argument
        param: click.Parameter,  # pylint: disable=unused-argument
        value: Optional[str],
    ) -> Optional[KeyType]:
        return KeyType.from_label(value) if value else None

    return click.option(
        "-t",
        "--key-type",
        type=click.Choice(labels, case_sensitive=False),
        required=required,
        default=default,
        callback=to_key_type,
        help=help or f"Type of the key: {', '.join(labels)}.",
    )


def ota_plugin_option(options: FC) -> FC:
    """Click decorator loading key store plugins before the command runs.

    Provides: `plugins: tuple[str, ...]` references of loaded plugins.

    :return: Click decorator.
    """

    def load_plugins(
        ctx: click.Context,
        param: click.Parameter,  # pylint: disable=unused-argument
        value: tuple[str, ...],
    ) -> tuple[str, ...]:
        if not ctx.resilient_parsing:
            for reference in value:
                PluginsManager().load_plugin(reference)
        return value

    return click.option(
        "--plugin",
        "plugins",
        multiple=True,
        callback=load_plugins,
        help="Python file or module name with a custom key store, may be repeated.",
    )(options)


def _ensure_output_free(path: str, is_directory: bool) -> None:
    if not os.path.exists(path):
        return
    if is_directory and not os.listdir(path):
        return
    kind = "Directory" if is_directory else "File"
    raise click.ClickException(f"{kind} {path} is not empty, use --force to overwrite it.")


def ota_output_option(
    required: bool = True,
    directory: bool = False,
    force: bool = False,
    help: Optional[str] = None,  # pylint: disable=redefined-builtin
) -> Callable:
    """Click decorator for the output file or directory.

    Provides: `output: str` an absolute path. A directory output is created when
    missing. With ``force`` a ``--force`` flag is added; it is consumed here and
    isn't passed to the command.

    :param required: Output must be given
    :param directory: Output is a directory
    :param force: Refuse existing output unless --force is given
    :param help: Customized help message
    :return: Click decorator
    """
    default_help = (
        "Path to a directory, where to store generated files."
        if directory
        else "Path to a file, where to store the output."
    )

    def prepare_output(
        ctx: click.Context,
        param: click.Parameter,  # pylint: disable=unused-argument
        value: Optional[str],
    ) -> Optional[str]:
        overwrite = ctx.params.pop("force", False)
        if ctx.resilient_parsing or not value:
            return value
        if force and not overwrite:
            _ensure_output_free(value, directory)
        if directory:
            os.makedirs(value, exist_ok=True)
        return value

    def decorator(func: FC) -> FC:
        func = click.option(
            "-o",
            "--output",
            type=click.Path(resolve_path=True, file_okay=not directory),
            required=required,
            callback=prepare_output,
            help=help or default_help,
        )(func)
        if force:
            func = click.option(
                "--force",
                is_flag=True,
                is_eager=True,
                help="Overwrite existing output.",
            )(func)
        return func

    return decorator


class CommandsTreeGroup(click.Group):
    """Click group listing the whole command tree in its help."""

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Write the command tree of the application.

        :param ctx: click Context
        :param formatter: click HelpFormatter
        """
        root = _build_command_tree(ctx.find_root().command)
        with formatter.section(gettext("Commands")):
            formatter.width = 160
            formatter.write_dl(list(_tree_rows(root)), col_max=80)


def _short_help(node: _CommandWrapper, limit: int = 78) -> str:
    doc = node.command.__doc__ or ""
    line = doc.strip().partition("\n")[0]
    return line if len(line) <= limit else line[:limit] + ".."


def _tree_rows(
    node: _CommandWrapper, prefix: str = "", connector: str = ""
) -> Iterator[tuple[str, str]]:
    """Yield (tree column, help column) rows of the command and its subcommands.

    :param node: Command tree node
    :param prefix: Indentation inherited from ancestors
    :param connector: Branch drawn in front of the command name
    """
    yield prefix + connector + node.name, _short_help(node)
    if connector:
        prefix += "    " if connector.startswith("└") else "│   "
    children = sorted(node.children, key=lambda child: child.name)
    for index, child in enumerate(children):
        last = index == len(children) - 1
        yield from _tree_rows(child, prefix, "└── " if last else "├── ")
