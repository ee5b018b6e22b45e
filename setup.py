#!/usr/bin/env python
# -*- coding: UTF-8 -*-
#
# Copyright 2024-2025 otacrypto developers
#
# SPDX-License-Identifier: BSD-3-Clause

import itertools

from setuptools import find_packages, setup  # type: ignore

with open("requirements.txt") as req_file:
    requirements = req_file.read().splitlines()


with open("README.md", "r") as f:
    long_description = f.read()

extras_require = {
    "tests": ["pytest>=7.2"],
}
# specify all option that contains all extras
extras_require["all"] = list(itertools.chain.from_iterable(extras_require.values()))

setup(
    name="otacrypto",
    use_scm_version={
        "write_to": "otacrypto/__version__.py",
        "fallback_version": "0.1.0",
    },
    description="Cryptographic trust primitives for OTA update clients",
    author="otacrypto developers",
    license="BSD-3-Clause",
    long_description=long_description,
    long_description_content_type="text/markdown",
    platforms="Windows, Linux, Mac OSX",
    python_requires=">=3.9",
    setup_requires=["setuptools_scm>=7", "setuptools>=64", "wheel"],
    install_requires=requirements,
    include_package_data=True,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX :: Linux",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: MacOS :: MacOS X",
        "License :: OSI Approved :: BSD License",
        "Topic :: Security :: Cryptography",
        "Topic :: System :: Software Distribution",
        "Topic :: Utilities",
    ],
    packages=find_packages(exclude=["tests.*", "tests"]),
    entry_points={
        "console_scripts": [
            "otacrypto=otacrypto.apps.otacrypto:safe_main",
        ],
        "otacrypto.key_store": [
            "file=otacrypto.crypto.key_store",
        ],
    },
    extras_require=extras_require,
)
