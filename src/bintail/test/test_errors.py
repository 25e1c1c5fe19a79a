# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{bintail._errors}.
"""

import errno

from twisted.trial.unittest import SynchronousTestCase

from bintail._errors import FailureKind, FollowError, describe, queryMetadata


class FollowErrorTests(SynchronousTestCase):
    """
    Tests for the diagnostics rendered by L{FollowError}.
    """

    def test_openFailure(self) -> None:
        """
        An L{FailureKind.OPEN} failure names the path and the cause.
        """
        error = FollowError(FailureKind.OPEN, "/var/log/app.log", "Permission denied")
        self.assertEqual(
            str(error), "could not open file '/var/log/app.log': Permission denied"
        )

    def test_readFailure(self) -> None:
        """
        Read and write failures name the followed path.
        """
        for kind in (FailureKind.READ, FailureKind.WRITE):
            error = FollowError(kind, "app.log", "Broken pipe")
            self.assertEqual(
                str(error), "I/O error while tailing 'app.log': Broken pipe"
            )

    def test_failureWithoutPath(self) -> None:
        """
        A failure with no known path just gives the cause.
        """
        error = FollowError(FailureKind.METADATA, None, "Bad file descriptor")
        self.assertEqual(str(error), "I/O error: Bad file descriptor")

    def test_attributes(self) -> None:
        error = FollowError(FailureKind.READ, "x", "y")
        self.assertIs(error.kind, FailureKind.READ)
        self.assertEqual(error.path, "x")
        self.assertEqual(error.reason, "y")


class DescribeTests(SynchronousTestCase):
    def test_strerror(self) -> None:
        """
        L{describe} prefers the system error text.
        """
        error = OSError(errno.EBADF, "Bad file descriptor")
        self.assertEqual(describe(error), "Bad file descriptor")

    def test_noStrerror(self) -> None:
        """
        Without system error text, L{describe} falls back to the message.
        """
        self.assertEqual(describe(OSError("gone")), "gone")


class QueryMetadataTests(SynchronousTestCase):
    """
    Tests for L{queryMetadata}.
    """

    def test_result(self) -> None:
        self.assertEqual(queryMetadata(lambda a, b: a + b, 1, 2), 3)

    def test_failure(self) -> None:
        """
        An L{OSError} from the query becomes a L{FailureKind.METADATA} failure.
        """

        def query() -> int:
            raise OSError(errno.EIO, "Input/output error")

        error = self.assertRaises(FollowError, queryMetadata, query, path="f")
        self.assertIs(error.kind, FailureKind.METADATA)
        self.assertEqual(str(error), "I/O error while tailing 'f': Input/output error")
