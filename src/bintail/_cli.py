# -*- test-case-name: bintail.test.test_cli -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Command line entry point for bintail.
"""

import fcntl
import os
import sys
from typing import IO, Any, Dict, NoReturn, Optional, Sequence

from constantly import ValueConstant

from twisted.internet import fdesc
from twisted.internet.defer import Deferred, fail
from twisted.internet.task import react
from twisted.logger import (
    FileLogObserver,
    FilteringLogObserver,
    InvalidLogLevelError,
    LogLevel,
    LogLevelFilterPredicate,
    formatEvent,
    globalLogBeginner,
)
from twisted.python import usage
from twisted.python.failure import Failure

from bintail import __version__
from bintail._errors import ExitStatus, FollowError
from bintail._follow import DEFAULT_INTERVAL, FollowLoop, FollowState
from bintail._handle import openFollowed
from bintail._relay import BUFFER_SIZE, FileDescriptorSink
from bintail._seek import absoluteSeek


def _exit(status: ValueConstant, message: str) -> NoReturn:
    """
    Write C{message} and exit with C{status}.  The message goes to standard
    output for a successful status and to standard error otherwise.
    """
    out = sys.stdout if status is ExitStatus.EX_OK else sys.stderr
    out.write(message + "\n")
    sys.exit(status.value)

def _positive(kind):
    def coerce(value):
        value = kind(value)
        if value <= 0:
            raise ValueError("must be positive, not {}".format(value))
        return value

    coerce.coerceDoc = "Must be a positive number."  # type: ignore[attr-defined]
    return coerce


class BintailOptions(usage.Options):
    """
    Command line options for bintail.
    """

    synopsis = "[options] <filename> [start-offset]"
    longdesc = (
        "Follow a growing file, copying every byte appended to it to standard "
        "output.  Output starts at start-offset (default 0), clipped to the "
        "bounds of the file."
    )

    optFlags = [
        ["no-wakeup", None, "Do not watch standard input while draining."],
    ]

    optParameters = [
        [
            "interval",
            "i",
            DEFAULT_INTERVAL,
            "Seconds between checks of the file size.",
            _positive(float),
        ],
        [
            "chunk-size",
            "c",
            BUFFER_SIZE,
            "Bytes copied per read.",
            _positive(int),
        ],
    ]

    def __init__(self) -> None:
        usage.Options.__init__(self)
        self["logLevel"] = LogLevel.warn

    def opt_version(self) -> None:
        """
        Print version and exit.
        """
        _exit(ExitStatus.EX_OK, "bintail {}".format(__version__))

    def opt_log_level(self, levelName: str) -> None:
        """
        Minimum level of diagnostics written to standard error.
        (options: {options}; default: "{default}")
        """
        try:
            self["logLevel"] = LogLevel.levelWithName(levelName)
        except InvalidLogLevelError:
            raise usage.UsageError("Invalid log level: {}".format(levelName))

    opt_log_level.__doc__ = opt_log_level.__doc__.format(  # type: ignore[union-attr]
        options=", ".join(
            '"{}"'.format(constant.name) for constant in LogLevel.iterconstants()
        ),
        default=LogLevel.warn.name,
    )

    opt_l = opt_log_level

    def parseArgs(self, filename: str, offset: Optional[str] = None) -> None:
        self["filename"] = filename
        if offset is None:
            self["offset"] = 0
            return
        try:
            self["offset"] = int(offset)
        except ValueError:
            raise usage.UsageError(
                "start-offset must be an integer, not {!r}".format(offset)
            )


def _formatDiagnostic(event: Dict[str, Any]) -> Optional[str]:
    text = formatEvent(event)
    if not text:
        return None
    failure = event.get("log_failure")
    if failure is not None:
        text = "{}\n{}".format(text, failure.getTraceback())
    return "bintail: {}\n".format(text)


def startLogging(level: LogLevel, stream: Optional[IO[str]] = None) -> None:
    """
    Send log events at C{level} and above to C{stream}, standard error by
    default.
    """
    if stream is None:
        stream = sys.stderr
    observer = FilteringLogObserver(
        FileLogObserver(stream, _formatDiagnostic),
        [LogLevelFilterPredicate(defaultLogLevel=level)],
    )
    globalLogBeginner.beginLoggingTo([observer], redirectStandardIO=False)


def _setNonBlocking(fd: int) -> bool:
    """
    Make C{fd} non-blocking.

    @return: L{True} if it was blocking before.
    """
    if fcntl.fcntl(fd, fcntl.F_GETFL) & os.O_NONBLOCK:
        return False
    fdesc.setNonBlocking(fd)
    return True


def _restoreBlocking(result: Any, fd: int) -> Any:
    fdesc.setBlocking(fd)
    return result


def _reportFailure(reason: Failure) -> None:
    reason.trap(FollowError)
    _exit(ExitStatus.EX_FAILURE, "bintail: {}".format(reason.value))


def main(
    reactor: Any,
    options: BintailOptions,
    stdout: Optional[IO[Any]] = None,
    stdin: Optional[IO[Any]] = None,
) -> Deferred:
    """
    Follow the file named by C{options} until the reactor shuts down.

    @return: A L{Deferred} that fires with L{None} when following stops, or
        fails with L{SystemExit} after a fatal error.
    """
    if stdout is None:
        stdout = sys.stdout
    if stdin is None:
        stdin = sys.stdin

    startLogging(options["logLevel"])

    path = options["filename"]
    wakeupFD = None
    if not options["no-wakeup"] and stdin.isatty():
        wakeupFD = stdin.fileno()

    try:
        handle = openFollowed(path)
    except FollowError:
        return fail().addErrback(_reportFailure)

    stdout.flush()
    stdoutFD = stdout.fileno()
    follower = FollowLoop(
        FollowState(path, handle),
        FileDescriptorSink(stdoutFD),
        interval=options["interval"],
        chunkSize=options["chunk-size"],
        wakeupFD=wakeupFD,
        clock=reactor,
    )
    d = follower.whenDone()
    # Standard output is only non-blocking while following.
    if _setNonBlocking(stdoutFD):
        d.addBoth(_restoreBlocking, stdoutFD)
    d.addErrback(_reportFailure)
    try:
        absoluteSeek(handle, options["offset"])
    except FollowError:
        follower.fail(Failure())
        return d
    reactor.addSystemEventTrigger("before", "shutdown", follower.stop)
    follower.start()
    return d


def run(argv: Optional[Sequence[str]] = None) -> None:
    """
    Run bintail with the given command line arguments, C{sys.argv[1:]} by
    default.  Never returns.
    """
    if argv is None:
        argv = sys.argv[1:]
    options = BintailOptions()
    try:
        options.parseOptions(argv)
    except usage.UsageError as e:
        _exit(ExitStatus.EX_FAILURE, "bintail: {}\n\n{}".format(e, options))
    react(main, (options,))
