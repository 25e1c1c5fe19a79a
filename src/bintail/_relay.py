# -*- test-case-name: bintail.test.test_relay -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Moving bytes from the followed file to the output sink.
"""

import os
import select
from typing import Iterable, Optional, Set

from zope.interface import implementer

from bintail._errors import FailureKind, FollowError, describe
from bintail.interfaces import IFollowedFile, IOutputSink

BUFFER_SIZE = 1024


@implementer(IOutputSink)
class FileDescriptorSink:
    """
    An L{IOutputSink} writing to a file descriptor, standard output by
    default.

    A non-blocking descriptor that cannot take any more right now reports a
    zero-byte write instead of raising.
    """

    def __init__(self, fd: int = 1) -> None:
        self.fd = fd

    def write(self, data: bytes) -> int:
        try:
            return os.write(self.fd, data)
        except BlockingIOError:
            return 0


class Relay:
    """
    Copies a followed file to a sink one chunk at a time.

    A chunk is read only once everything read before it has been written, so
    bytes reach the sink exactly once and in file order.  Writing never waits:
    when the sink stops accepting bytes, L{flush} returns and the rest of the
    chunk stays pending until the next call.

    @ivar pending: The number of bytes read but not yet written.
    """

    def __init__(
        self, sink: IOutputSink, path: str, chunkSize: int = BUFFER_SIZE
    ) -> None:
        self.sink = sink
        self.path = path
        self.chunkSize = chunkSize
        self._pending = memoryview(b"")

    @property
    def pending(self) -> int:
        return len(self._pending)

    def read(self, handle: IFollowedFile) -> int:
        """
        Read up to C{chunkSize} bytes from C{handle}; they become pending.

        @return: The number of bytes read.  C{0} means no more data is
            available right now; the file may still grow.

        @raise FollowError: L{FailureKind.READ} if reading fails.
        """
        if self._pending:
            raise RuntimeError("previous chunk not written yet")
        try:
            data = handle.read(self.chunkSize)
        except OSError as e:
            raise FollowError(FailureKind.READ, self.path, describe(e))
        self._pending = memoryview(data)
        return len(data)

    def flush(self) -> bool:
        """
        Write as much of the pending chunk as the sink takes.

        @return: L{True} once nothing is pending, L{False} if the sink
            accepted nothing and bytes are still pending.

        @raise FollowError: L{FailureKind.WRITE} if writing fails.
        """
        while self._pending:
            try:
                written = self.sink.write(self._pending)
            except OSError as e:
                raise FollowError(FailureKind.WRITE, self.path, describe(e))
            if written <= 0:
                return False
            self._pending = self._pending[written:]
        return True


def waitReadable(fds: Iterable[int], timeout: Optional[float] = None) -> Set[int]:
    """
    Block until at least one of C{fds} is readable, or C{timeout} seconds
    pass.

    @return: The readable descriptors; empty if the wait timed out.

    @raise FollowError: L{FailureKind.METADATA} if the wait itself fails.
    """
    try:
        readable, _, _ = select.select(list(fds), [], [], timeout)
    except (OSError, ValueError) as e:
        reason = describe(e) if isinstance(e, OSError) else str(e)
        raise FollowError(FailureKind.METADATA, None, reason)
    return set(readable)


__all__ = [
    "BUFFER_SIZE",
    "FileDescriptorSink",
    "Relay",
    "waitReadable",
]
