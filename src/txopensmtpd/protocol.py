# -*- test-case-name: txopensmtpd.test.test_protocol -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
The filter side of the mail agent's filter protocol.

Example usage::

    from zope.interface import implementer

    from twisted.internet.task import react

    from txopensmtpd.interfaces import IMailFromFilter
    from txopensmtpd.protocol import serveStandardIO

    @implementer(IMailFromFilter)
    class NoNullSender:
        def mailFrom(self, event, sessions):
            if event.parameters == ("<>",):
                event.responder().hardReject("Null sender not accepted")
            else:
                event.responder().proceed()

    react(lambda reactor: serveStandardIO(NoNullSender(), reactor))
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Optional

from zope.interface import implementer

from twisted.internet import error, stdio
from twisted.internet.defer import Deferred
from twisted.internet.interfaces import IHalfCloseableProtocol
from twisted.internet.protocol import connectionDone
from twisted.logger import Logger
from twisted.protocols import basic
from twisted.python.failure import Failure

from txopensmtpd import _wire
from txopensmtpd.config import FilterConfiguration
from txopensmtpd.error import FramingError
from txopensmtpd.event import FilterEvent
from txopensmtpd.interfaces import IConfigReceiver, ISessionTrackingFilter
from txopensmtpd.registry import Capabilities
from txopensmtpd.writer import OutputWriter

log = Logger()


class State(Enum):
    INIT = auto()
    HANDSHAKE = auto()
    REGISTERED = auto()
    DISPATCHING = auto()
    CLOSED = auto()


@implementer(IHalfCloseableProtocol)
class FilterProtocol(basic.LineOnlyReceiver):
    """
    Speak the filter protocol on behalf of C{filter}.

    The agent first sends its configuration, ending with C{config|ready};
    the protocol then registers every event C{filter} handles and dispatches
    the events that follow, one at a time, in the order they arrive.

    Any protocol violation is fatal: the transport is dropped, buffered input
    is ignored and L{finished} fails with the violation.

    @ivar filter: The filter receiving events.
    @ivar capabilities: The events C{filter} handles.
    @type capabilities: L{Capabilities}
    @ivar configuration: The configuration received during the handshake.
    @type configuration: L{FilterConfiguration}
    @ivar finished: Fires with L{None} when the agent closes the stream, or
        fails with the violation that ended the conversation.
    @type finished: L{Deferred}
    """

    delimiter = b"\n"
    MAX_LENGTH = 65536

    writer: Optional[OutputWriter] = None

    def __init__(self, filter: object, reactor=None) -> None:
        self.filter = filter
        self.capabilities = Capabilities.fromFilter(filter)
        self.configuration = FilterConfiguration()
        self.finished: Deferred[None] = Deferred()
        self.state = State.INIT
        self._reactor = reactor
        self._violation: Optional[Failure] = None
        self._outputLost = False

    @property
    def sessions(self):
        """
        The filter's session tracker, or L{None} if it does not track
        sessions.
        """
        if ISessionTrackingFilter.providedBy(self.filter):
            return self.filter.sessions
        return None

    def connectionMade(self) -> None:
        self.writer = OutputWriter(self.transport, self._reactor)
        self.state = State.HANDSHAKE

    def lineReceived(self, line: bytes) -> None:
        if self.state is State.CLOSED:
            return
        text = _wire.decode(line)
        log.debug("<<< {line}", line=text)
        try:
            if self.state is State.HANDSHAKE:
                self.configurationReceived(text)
            else:
                self.eventReceived(text)
        except Exception:
            self._abort(Failure())

    def configurationReceived(self, line: str) -> None:
        """
        Handle one record of the configuration handshake; the final one
        triggers registration.
        """
        fields = line.split(_wire.SEPARATOR)
        self.configuration.receive(fields)
        if IConfigReceiver.providedBy(self.filter):
            self.filter.config(fields)
        if line == _wire.CONFIG_READY:
            self.register()

    def register(self) -> None:
        """
        Advertise the events the filter handles.
        """
        for record in self.capabilities.registrationRecords():
            self.writer.emit(record)
        self.state = State.REGISTERED
        log.info(
            "Registered {reports} report and {filters} filter events",
            reports=len(self.capabilities.verbs(_wire.REPORT)),
            filters=len(self.capabilities.verbs(_wire.FILTER)),
        )

    def eventReceived(self, line: str) -> None:
        """
        Dispatch one event to its handler.

        @raise txopensmtpd.error.ProtocolViolation: if the record is
            malformed or nothing handles it.
        """
        event = FilterEvent.fromLine(line, self.writer)
        handler = self.capabilities.lookup(event.kind, event.verb)
        self.state = State.DISPATCHING
        handler(event, self.sessions)

    def readConnectionLost(self) -> None:
        """
        The agent closed our input.  Finish writing what has been emitted,
        then end the conversation.
        """
        self._close()

    def writeConnectionLost(self) -> None:
        """
        The agent stopped reading our output; whatever is emitted from now
        on is discarded.
        """
        log.info("Agent closed the filter's output")
        self._outputLost = True

    def _close(self) -> None:
        # Once the output is gone the transport has nothing left to flush
        # and will not report the loss itself.
        if self._outputLost:
            self.connectionLost(connectionDone)
        else:
            self.transport.loseConnection()

    def lineLengthExceeded(self, line: bytes) -> None:
        self._abort(
            Failure(FramingError(f"record longer than {self.MAX_LENGTH} bytes"))
        )

    def _abort(self, reason: Failure) -> None:
        log.error(
            "Ending filter conversation: {violation}",
            violation=reason.getErrorMessage(),
        )
        self.state = State.CLOSED
        self._violation = reason
        self._close()

    def connectionLost(self, reason: Failure = connectionDone) -> None:
        self.state = State.CLOSED
        if self.finished.called:
            return
        if self._violation is not None:
            self.finished.errback(self._violation)
        elif reason.check(error.ConnectionDone, error.ConnectionLost):
            self.finished.callback(None)
        else:
            self.finished.errback(reason)


def serveStandardIO(filter: object, reactor=None) -> Deferred[None]:
    """
    Run C{filter} over standard input and output.

    @return: L{FilterProtocol.finished}; pass it to
        L{twisted.internet.task.react} to exit with status 0 when the agent
        closes the stream, and 1 after a protocol violation.
    """
    protocol = FilterProtocol(filter, reactor)
    stdio.StandardIO(protocol, reactor=reactor)
    return protocol.finished
