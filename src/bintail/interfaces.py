# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Interfaces for the objects a follower reads from and writes to.
"""

from zope.interface import Attribute, Interface


class IFollowedFile(Interface):
    """
    An open, seekable handle on the file being followed.

    Every method reports failure by raising L{OSError}.
    """

    path = Attribute("The path the handle was opened from.")

    def fileno() -> int:
        """
        @return: The file descriptor to wait on for readability.
        """

    def size() -> int:
        """
        @return: The current size of the file, in bytes, as reported by the
            file system metadata of this handle.
        """

    def tell() -> int:
        """
        @return: The current absolute read position.
        """

    def seek(offset: int) -> int:
        """
        Move the read position to the absolute C{offset}.

        @return: The new read position.
        """

    def read(count: int) -> bytes:
        """
        Read at most C{count} bytes from the current position.

        @return: The bytes read; empty if nothing is available right now.
        """

    def close() -> None:
        """
        Release the handle.  Closing an already closed handle does nothing.
        """


class IOutputSink(Interface):
    """
    The destination of relayed bytes.
    """

    def write(data: bytes) -> int:
        """
        Write some prefix of C{data}.

        @return: The number of bytes accepted, which may be less than
            C{len(data)}.

        @raise OSError: If the sink can no longer be written to.
        """
