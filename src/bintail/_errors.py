# -*- test-case-name: bintail.test.test_errors -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Fatal failures raised while following a file.

Low-level components never terminate the process themselves.  They raise
L{FollowError}, tagged with a L{FailureKind}, and leave it to the top-level
driver to decide what happens next, usually exiting with an
L{ExitStatus}.
"""

from typing import Callable, Optional, TypeVar

from constantly import NamedConstant, Names, ValueConstant, Values

__all__ = [
    "ExitStatus",
    "FailureKind",
    "FollowError",
    "describe",
    "queryMetadata",
]

_T = TypeVar("_T")


class FailureKind(Names):
    """
    The kinds of fatal failure a follower can run into.
    """

    OPEN = NamedConstant()
    METADATA = NamedConstant()
    READ = NamedConstant()
    WRITE = NamedConstant()


class ExitStatus(Values):
    """
    Exit status codes for bintail.
    """

    EX_OK = ValueConstant(0)
    EX_FAILURE = ValueConstant(1)


class FollowError(Exception):
    """
    A fatal I/O failure.

    @ivar kind: What was being attempted.
    @type kind: L{FailureKind}

    @ivar path: The path of the followed file, if one is known.
    @type path: L{str} or L{None}

    @ivar reason: The underlying system error text.
    @type reason: L{str}
    """

    def __init__(self, kind: NamedConstant, path: Optional[str], reason: str) -> None:
        Exception.__init__(self, kind, path, reason)
        self.kind = kind
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        if self.kind is FailureKind.OPEN:
            return "could not open file '{}': {}".format(self.path, self.reason)
        if self.path is None:
            return "I/O error: {}".format(self.reason)
        return "I/O error while tailing '{}': {}".format(self.path, self.reason)


def describe(error: OSError) -> str:
    """
    Render the system error text of C{error}.
    """
    return error.strerror or str(error)


def queryMetadata(
    query: Callable[..., _T], *args: object, path: Optional[str] = None
) -> _T:
    """
    Call C{query}, translating any L{OSError} into a
    L{FailureKind.METADATA} failure.
    """
    try:
        return query(*args)
    except OSError as e:
        raise FollowError(FailureKind.METADATA, path, describe(e))
