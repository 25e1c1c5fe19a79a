#!/usr/bin/env python

# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Setuptools installer for bintail.
"""

import pathlib

import setuptools

setuptools.setup(
    name="bintail",
    version="1.0.0",
    description="Follow a growing file and relay its new bytes to stdout.",
    long_description=pathlib.Path("README.rst").read_text(encoding="utf8"),
    long_description_content_type="text/x-rst",
    license="MIT",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=setuptools.find_packages("src"),
    install_requires=[
        "Twisted >= 22.10.0",
        "zope.interface >= 5",
        "attrs >= 21.3.0",
        "constantly >= 15.1",
        "Automat >= 0.8.0",
        "incremental >= 22.10.0",
    ],
    entry_points={
        "console_scripts": ["bintail = bintail._cli:run"],
    },
    classifiers=[
        "Environment :: Console",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
    ],
)
