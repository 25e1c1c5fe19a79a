# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

# Make the bintail package executable: python -m bintail <filename> [offset]
# This is not a docstring to avoid changing the string output of --help.


import sys

from bintail._cli import run

if __name__ == "__main__":
    sys.exit(run())
