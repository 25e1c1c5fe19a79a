# -*- test-case-name: bintail -*-

# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
bintail: follow a growing file and relay the bytes appended to it.
"""

from bintail._version import __version__ as version

__version__ = version.short()
