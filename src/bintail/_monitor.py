# -*- test-case-name: bintail.test.test_monitor -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Sampling the size of the followed file.
"""

from typing import Optional

from twisted.logger import Logger

from bintail._errors import describe
from bintail.interfaces import IFollowedFile


class SizeMonitor:
    """
    Reports the size of a followed file, tolerating failures.

    A failed size query is not fatal: it is logged as a warning and the
    caller carries on polling, possibly missing growth until a later query
    succeeds.

    @ivar failures: The number of consecutive failed queries.
    """

    log = Logger()

    def __init__(self) -> None:
        self.failures = 0

    def check(self, handle: IFollowedFile) -> Optional[int]:
        """
        @return: The size of the file in bytes, or L{None} if it could not be
            determined.
        """
        try:
            size = handle.size()
        except OSError as e:
            self.failures += 1
            self.log.warn(
                "fstat() failed ({reason}), tailing may not work.",
                reason=describe(e),
                failures=self.failures,
            )
            return None
        self.failures = 0
        return size
