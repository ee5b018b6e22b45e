#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Click runner checking exit codes of otacrypto commands."""

import traceback
from typing import Any

from click.testing import CliRunner as _CliRunner
from click.testing import Result

ANY_ERROR = -1


class CliRunner(_CliRunner):
    """CLI test runner asserting the expected exit code."""

    def invoke(self, *args: Any, expected_code: int = 0, **kwargs: Any) -> Result:
        """Invoke CLI command and check its exit code.

        :param args: Arguments passed to click runner.
        :param expected_code: Expected exit code, ANY_ERROR accepts any non-zero code.
        :param kwargs: Keyword arguments passed to click runner.
        :return: Result of the command.
        """
        result = super().invoke(*args, **kwargs)
        if expected_code == ANY_ERROR:
            passed = result.exit_code != 0
        else:
            passed = result.exit_code == expected_code
        assert passed, self._describe_failure(result, expected_code)
        return result

    @staticmethod
    def _describe_failure(result: Result, expected_code: int) -> str:
        # output holds stderr too, unless a runner is created with mix_stderr=False
        lines = [f"Expected exit code {expected_code}, got {result.exit_code}", result.output]
        if result.exception:
            lines.append(repr(result.exception))
        if result.exc_info and result.exc_info[2]:
            lines.extend(traceback.format_tb(result.exc_info[2]))
        return "\n".join(lines)
