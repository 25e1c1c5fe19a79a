# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{bintail._handle}.
"""

import errno
import os

from zope.interface.verify import verifyObject

from twisted.python.filepath import FilePath
from twisted.trial.unittest import SynchronousTestCase

from bintail._errors import FailureKind, FollowError
from bintail._handle import FollowedFile, openFollowed, reopen
from bintail.interfaces import IFollowedFile


def deniedOpener(path: str, flags: int) -> FollowedFile:
    raise PermissionError(errno.EACCES, "Permission denied", path)


class FollowedFileTests(SynchronousTestCase):
    """
    Tests for L{FollowedFile}.
    """

    def setUp(self) -> None:
        self.path = FilePath(self.mktemp())
        self.path.setContent(b"0123456789")
        self.handle = FollowedFile.open(self.path.path)
        self.addCleanup(self.handle.close)

    def test_interface(self) -> None:
        self.assertTrue(verifyObject(IFollowedFile, self.handle))

    def test_size(self) -> None:
        """
        L{FollowedFile.size} follows the file as it grows.
        """
        self.assertEqual(self.handle.size(), 10)
        with self.path.open("a") as f:
            f.write(b"abc")
        self.assertEqual(self.handle.size(), 13)

    def test_seekAndRead(self) -> None:
        self.assertEqual(self.handle.seek(4), 4)
        self.assertEqual(self.handle.read(3), b"456")
        self.assertEqual(self.handle.tell(), 7)

    def test_readAtEnd(self) -> None:
        """
        Reading at the end of the file gives no bytes.
        """
        self.handle.seek(10)
        self.assertEqual(self.handle.read(1024), b"")

    def test_closeTwice(self) -> None:
        """
        Closing a handle twice leaves the descriptor alone the second time.
        """
        self.handle.close()
        self.handle.close()
        self.assertTrue(self.handle.closed)
        self.assertRaises(OSError, os.fstat, self.handle.fd)


class OpenFollowedTests(SynchronousTestCase):
    """
    Tests for L{openFollowed}.
    """

    def test_missing(self) -> None:
        """
        A missing file fails with L{FailureKind.OPEN}, naming the path.
        """
        path = self.mktemp()
        error = self.assertRaises(FollowError, openFollowed, path)
        self.assertIs(error.kind, FailureKind.OPEN)
        self.assertEqual(
            str(error),
            "could not open file '{}': No such file or directory".format(path),
        )

    def test_opener(self) -> None:
        error = self.assertRaises(
            FollowError, openFollowed, "secret.log", opener=deniedOpener
        )
        self.assertEqual(
            str(error), "could not open file 'secret.log': Permission denied"
        )

    def test_opens(self) -> None:
        path = FilePath(self.mktemp())
        path.setContent(b"data")
        handle = openFollowed(path.path)
        self.addCleanup(handle.close)
        self.assertEqual(handle.path, path.path)
        self.assertEqual(handle.read(10), b"data")


class ReopenTests(SynchronousTestCase):
    """
    Tests for L{reopen}.
    """

    def setUp(self) -> None:
        self.path = FilePath(self.mktemp())
        self.path.setContent(b"0123456789")
        self.handle = FollowedFile.open(self.path.path)
        self.addCleanup(self.handle.close)

    def test_preservesPosition(self) -> None:
        """
        The new handle reads on from where the old one stopped, and the old
        one is closed.
        """
        self.handle.seek(6)
        fresh = reopen(self.handle, self.path.path)
        self.addCleanup(fresh.close)
        self.assertTrue(self.handle.closed)
        self.assertEqual(fresh.tell(), 6)
        self.assertEqual(fresh.read(10), b"6789")

    def test_replacedFile(self) -> None:
        """
        A file replaced on disk is picked up, at the old position.
        """
        self.handle.seek(4)
        self.path.moveTo(self.path.siblingExtension(".1"))
        self.path.setContent(b"abcdefghij")
        fresh = reopen(self.handle, self.path.path)
        self.addCleanup(fresh.close)
        self.assertEqual(fresh.read(10), b"efghij")

    def test_openFailure(self) -> None:
        """
        If the path can no longer be opened, L{reopen} fails with
        L{FailureKind.OPEN}.
        """
        self.path.remove()
        error = self.assertRaises(FollowError, reopen, self.handle, self.path.path)
        self.assertIs(error.kind, FailureKind.OPEN)
        self.assertIn(repr(self.path.path), str(error))

    def test_opener(self) -> None:
        error = self.assertRaises(
            FollowError,
            reopen,
            self.handle,
            self.path.path,
            opener=deniedOpener,
        )
        self.assertEqual(error.reason, "Permission denied")
