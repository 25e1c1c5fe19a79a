# -*- test-case-name: bintail.test.test_seek -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Seeking within a followed file without running off either end of it.
"""

from bintail._errors import queryMetadata
from bintail.interfaces import IFollowedFile


def clip(offset: int, size: int) -> int:
    """
    Constrain C{offset} to the range C{[0, size]}.
    """
    return max(0, min(offset, size))


def absoluteSeek(handle: IFollowedFile, offset: int) -> int:
    """
    Seek C{handle} to C{offset}, clipped to the current bounds of the file.

    @return: The resulting absolute offset.

    @raise bintail._errors.FollowError: If the size of the file or the new
        position cannot be determined.
    """
    edge = queryMetadata(handle.size)
    return queryMetadata(handle.seek, clip(offset, edge))


def relativeSeek(handle: IFollowedFile, delta: int) -> int:
    """
    Seek C{handle} by C{delta} bytes from its current position, clipped to
    the current bounds of the file.

    @return: The resulting absolute offset.
    """
    now = queryMetadata(handle.tell)
    edge = queryMetadata(handle.size)
    return queryMetadata(handle.seek, clip(now + delta, edge))


__all__ = ["clip", "absoluteSeek", "relativeSeek"]
