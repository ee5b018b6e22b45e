#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

"""Helpers shared by otacrypto applications: logging, click options and error handling."""
