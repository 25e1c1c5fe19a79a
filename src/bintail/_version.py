"""
Provides bintail version information.
"""

# This file is auto-generated! Do not edit!
# Use `python -m incremental.update bintail` to change this file.

from incremental import Version

__version__ = Version("bintail", 1, 0, 0)
__all__ = ["__version__"]
