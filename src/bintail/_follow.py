# -*- test-case-name: bintail.test.test_follow -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
The follow loop: poll the size of a file, and whenever it changes, reopen the
file and relay everything that can be read from it.
"""

from typing import Callable, Iterable, List, Optional, Set

import attr
from automat import MethodicalMachine

from twisted.internet import defer
from twisted.internet.interfaces import IDelayedCall, IReactorTime
from twisted.internet.task import LoopingCall
from twisted.logger import Logger
from twisted.python.failure import Failure

from bintail._errors import FollowError, describe
from bintail._handle import FollowedFile, Opener, reopen
from bintail._monitor import SizeMonitor
from bintail._relay import BUFFER_SIZE, Relay, waitReadable
from bintail.interfaces import IFollowedFile, IOutputSink

DEFAULT_INTERVAL = 0.5
CHUNKS_PER_TURN = 64
STALL_DELAY = 0.05


@attr.s
class FollowState:
    """
    Everything the follow loop knows about the followed file.

    @ivar path: The path being followed.
    @ivar handle: The current handle on C{path}.  It is replaced whenever the
        file grows.
    @ivar lastSize: The size recorded at the last growth, C{0} to begin with.
    @ivar relayed: The total number of bytes read and handed to the sink.
    """

    path: str = attr.ib()
    handle: IFollowedFile = attr.ib()
    lastSize: int = attr.ib(default=0)
    relayed: int = attr.ib(default=0)


class FollowLoop:
    """
    Follow a growing file, copying each newly written byte to a sink.

    Call L{start} to begin polling and L{stop} to end it.  L{whenDone} tells
    you how it ended: with L{None} after L{stop}, or with a L{FollowError}
    failure after a fatal error.
    """

    _machine = MethodicalMachine()
    log = Logger()

    def __init__(
        self,
        state: FollowState,
        sink: IOutputSink,
        interval: float = DEFAULT_INTERVAL,
        chunkSize: int = BUFFER_SIZE,
        wakeupFD: Optional[int] = None,
        chunksPerTurn: int = CHUNKS_PER_TURN,
        stallDelay: float = STALL_DELAY,
        clock: Optional[IReactorTime] = None,
        monitor: Optional[SizeMonitor] = None,
        opener: Opener = FollowedFile.open,
        wait: Callable[[Iterable[int], Optional[float]], Set[int]] = waitReadable,
    ) -> None:
        """
        @param interval: Seconds between size checks.  Also bounds each wait
            for readability while draining.
        @param chunkSize: The most bytes relayed per read.
        @param wakeupFD: A secondary descriptor included in the readiness
            wait.  It is never read from.
        @param chunksPerTurn: The most chunks relayed before the reactor gets
            a turn.
        @param stallDelay: Seconds to wait before writing again to a sink
            that accepted nothing.
        @param clock: The provider of time; the global reactor by default.
        """
        if clock is None:
            from twisted.internet import reactor as clock  # type: ignore[assignment]
        if monitor is None:
            monitor = SizeMonitor()
        self.state = state
        self._interval = interval
        self._chunksPerTurn = chunksPerTurn
        self._stallDelay = stallDelay
        self._clock = clock
        self._relay = Relay(sink, state.path, chunkSize)
        self._drainCall: Optional[IDelayedCall] = None
        self._wakeupFD = wakeupFD
        self._monitor = monitor
        self._opener = opener
        self._wait = wait
        self._call = LoopingCall(self.poll)
        self._call.clock = clock
        self._finished = False
        self._outcome: Optional[Failure] = None
        self._waiters: List[defer.Deferred] = []

    def start(self) -> None:
        """
        Check the file right away, then every C{interval} seconds.
        """
        self._call.start(self._interval).addErrback(self._loopFailed)

    def whenDone(self) -> defer.Deferred:
        """
        @return: A L{Deferred} that fires with L{None} once the loop is
            stopped, or fails with a L{FollowError} if it hits a fatal error.
        """
        if not self._finished:
            d: defer.Deferred = defer.Deferred()
            self._waiters.append(d)
            return d
        if self._outcome is not None:
            return defer.fail(self._outcome)
        return defer.succeed(None)

    def poll(self) -> None:
        """
        Check the size of the file once; drain it if it changed.
        Nothing happens while an earlier drain is still under way.
        """
        if self._drainCall is not None:
            return
        try:
            self._pollOnce()
        except FollowError:
            self.fail(Failure())

    def _pollOnce(self) -> None:
        state = self.state
        size = self._monitor.check(state.handle)
        if size is None or size == state.lastSize:
            self.sizeUnchanged()
            return
        self.sizeChanged(size)
        state.handle = reopen(state.handle, state.path, opener=self._opener)
        self.refreshed()
        self._drain()

    def _drain(self) -> None:
        """
        Relay at most C{chunksPerTurn} chunks, then give the reactor a turn
        before carrying on.  A sink that accepts nothing is retried after
        C{stallDelay} seconds.
        """
        self._drainCall = None
        handle = self.state.handle
        fileno = handle.fileno()
        fds = [fileno]
        if self._wakeupFD is not None:
            fds.append(self._wakeupFD)
        for _ in range(self._chunksPerTurn):
            if not self._relay.flush():
                self._drainCall = self._clock.callLater(
                    self._stallDelay, self._continueDraining
                )
                return
            ready = self._wait(fds, self._interval)
            if not ready:
                break
            if fileno not in ready:
                continue
            count = self._relay.read(handle)
            if not count:
                break
            self.chunkRelayed(count)
        else:
            self._drainCall = self._clock.callLater(0, self._continueDraining)
            return
        self.drained()

    def _continueDraining(self) -> None:
        try:
            self._drain()
        except Exception:
            self.fail(Failure())

    def _loopFailed(self, reason: Failure) -> None:
        self.fail(reason)

    def _finish(self, result: Optional[Failure]) -> None:
        self._finished = True
        self._outcome = result
        waiters, self._waiters = self._waiters, []
        for d in waiters:
            if result is None:
                d.callback(None)
            else:
                d.errback(result)

    @_machine.state(initial=True)
    def _idle(self) -> None:
        """
        Waiting for the next size check.
        """

    @_machine.state()
    def _growing(self) -> None:
        """
        The size changed; the handle is about to be refreshed.
        """

    @_machine.state()
    def _draining(self) -> None:
        """
        Relaying whatever can be read from the refreshed handle, possibly
        over several reactor turns.
        """

    @_machine.state()
    def _failed(self) -> None:
        """
        A fatal error ended the loop.
        """

    @_machine.state()
    def _stopped(self) -> None:
        """
        The loop was asked to stop.
        """

    @_machine.input()
    def sizeUnchanged(self) -> None:
        """
        The size check found nothing new, or could not be made.
        """

    @_machine.input()
    def sizeChanged(self, size: int) -> None:
        """
        The size check found a new size.
        """

    @_machine.input()
    def refreshed(self) -> None:
        """
        The handle was reopened at the preserved position.
        """

    @_machine.input()
    def chunkRelayed(self, count: int) -> None:
        """
        C{count} bytes were read and handed to the sink.
        """

    @_machine.input()
    def drained(self) -> None:
        """
        Nothing more can be read right now.
        """

    @_machine.input()
    def fail(self, reason: Failure) -> None:
        """
        A fatal error happened.
        """

    @_machine.input()
    def stop(self) -> None:
        """
        Stop following, closing the handle.
        """

    @_machine.output()
    def _recordSize(self, size: int) -> None:
        previous = self.state.lastSize
        if size < previous:
            self.log.warn(
                "{path} shrank from {previous} to {size} bytes",
                path=self.state.path,
                previous=previous,
                size=size,
            )
        else:
            self.log.debug(
                "{path} grew from {previous} to {size} bytes",
                path=self.state.path,
                previous=previous,
                size=size,
            )
        self.state.lastSize = size

    @_machine.output()
    def _countRelayed(self, count: int) -> None:
        self.state.relayed += count

    @_machine.output()
    def _logDrained(self) -> None:
        self.log.debug(
            "Drained {path}, {relayed} bytes relayed in total",
            path=self.state.path,
            relayed=self.state.relayed,
        )

    @_machine.output()
    def _shutDown(self) -> None:
        if self._drainCall is not None:
            self._drainCall.cancel()
            self._drainCall = None
        if self._call.running:
            self._call.stop()
        try:
            self.state.handle.close()
        except OSError as e:
            self.log.warn(
                "Closing {path} failed: {reason}",
                path=self.state.path,
                reason=describe(e),
            )

    @_machine.output()
    def _reportFailure(self, reason: Failure) -> None:
        self._finish(reason)

    @_machine.output()
    def _reportStopped(self) -> None:
        self._finish(None)

    _idle.upon(sizeUnchanged, enter=_idle, outputs=[])
    _idle.upon(sizeChanged, enter=_growing, outputs=[_recordSize])
    _growing.upon(refreshed, enter=_draining, outputs=[])
    _draining.upon(chunkRelayed, enter=_draining, outputs=[_countRelayed])
    _draining.upon(drained, enter=_idle, outputs=[_logDrained])

    _idle.upon(fail, enter=_failed, outputs=[_shutDown, _reportFailure])
    _growing.upon(fail, enter=_failed, outputs=[_shutDown, _reportFailure])
    _draining.upon(fail, enter=_failed, outputs=[_shutDown, _reportFailure])
    _failed.upon(fail, enter=_failed, outputs=[])
    _stopped.upon(fail, enter=_stopped, outputs=[])

    _idle.upon(stop, enter=_stopped, outputs=[_shutDown, _reportStopped])
    _growing.upon(stop, enter=_stopped, outputs=[_shutDown, _reportStopped])
    _draining.upon(stop, enter=_stopped, outputs=[_shutDown, _reportStopped])
    _failed.upon(stop, enter=_failed, outputs=[])
    _stopped.upon(stop, enter=_stopped, outputs=[])


__all__ = [
    "CHUNKS_PER_TURN",
    "DEFAULT_INTERVAL",
    "STALL_DELAY",
    "FollowState",
    "FollowLoop",
]
