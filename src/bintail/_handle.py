# -*- test-case-name: bintail.test.test_handle -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
File descriptor backed handles on the followed file, and the refresher that
swaps one handle for a fresh one on the same path.
"""

import os
from typing import Callable

import attr
from zope.interface import implementer

from twisted.logger import Logger

from bintail._errors import FailureKind, FollowError, describe, queryMetadata
from bintail.interfaces import IFollowedFile

log = Logger()


@attr.s
@implementer(IFollowedFile)
class FollowedFile:
    """
    An L{IFollowedFile} on a raw POSIX file descriptor.
    """

    path: str = attr.ib()
    fd: int = attr.ib()
    closed: bool = attr.ib(default=False, init=False)

    @classmethod
    def open(cls, path: str, flags: int = os.O_RDONLY) -> "FollowedFile":
        return cls(path, os.open(path, flags))

    def fileno(self) -> int:
        return self.fd

    def size(self) -> int:
        return os.fstat(self.fd).st_size

    def tell(self) -> int:
        return os.lseek(self.fd, 0, os.SEEK_CUR)

    def seek(self, offset: int) -> int:
        return os.lseek(self.fd, offset, os.SEEK_SET)

    def read(self, count: int) -> bytes:
        return os.read(self.fd, count)

    def close(self) -> None:
        # The descriptor number may be reused by the next open, so it must
        # never be closed twice.
        if self.closed:
            return
        self.closed = True
        os.close(self.fd)


Opener = Callable[[str, int], IFollowedFile]


def openFollowed(
    path: str, flags: int = os.O_RDONLY, opener: Opener = FollowedFile.open
) -> IFollowedFile:
    """
    Open C{path} for following.

    @raise FollowError: L{FailureKind.OPEN}, naming C{path} and the system
        error, if the file cannot be opened.
    """
    try:
        return opener(path, flags)
    except OSError as e:
        raise FollowError(FailureKind.OPEN, path, describe(e))


def reopen(
    handle: IFollowedFile,
    path: str,
    flags: int = os.O_RDONLY,
    opener: Opener = FollowedFile.open,
) -> IFollowedFile:
    """
    Replace C{handle} with a fresh handle on C{path}, positioned where
    C{handle} was.

    A file replaced on disk since C{handle} was opened is picked up by the new
    handle; the read position carries over unchanged.

    @return: The new handle.  C{handle} is closed.

    @raise FollowError: If the position of C{handle} cannot be determined, or
        if C{path} can no longer be opened.
    """
    position = queryMetadata(handle.tell)
    try:
        handle.close()
    except OSError as e:
        log.warn(
            "Closing the old handle on {path} failed: {reason}",
            path=path,
            reason=describe(e),
        )
    fresh = openFollowed(path, flags, opener)
    try:
        queryMetadata(fresh.seek, position, path=path)
    except FollowError:
        fresh.close()
        raise
    log.debug("Reopened {path} at offset {position}", path=path, position=position)
    return fresh


__all__ = ["FollowedFile", "openFollowed", "reopen"]
