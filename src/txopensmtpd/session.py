# -*- test-case-name: txopensmtpd.test.test_session -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Per-session SMTP state, maintained from the events the agent reports.

Filters that want this bookkeeping compose a L{SessionTracker} and provide
L{ISessionTrackingFilter}::

    @implementer(ISessionTrackingFilter, IMessageCompleteReceiver)
    class Filter:
        def __init__(self):
            self.sessions = SessionTracker(self)

        def messageComplete(self, event, session):
            event.responder().flushMessage(session)
"""

from __future__ import annotations

from typing import Dict, List, Optional, Union

from zope.interface import implementer

import attr

from twisted.internet.address import IPv4Address, IPv6Address, UNIXAddress
from twisted.logger import Logger

from txopensmtpd import _wire
from txopensmtpd.error import MissingSessionError, ParameterCountError
from txopensmtpd.event import FilterEvent
from txopensmtpd.interfaces import (
    ICommitFilter,
    IDataLineFilter,
    ILinkAuthReceiver,
    ILinkConnectReceiver,
    ILinkDisconnectReceiver,
    ILinkGreetingReceiver,
    ILinkIdentifyReceiver,
    IMessageCompleteReceiver,
    ITxBeginReceiver,
    ITxMailReceiver,
    ITxRcptReceiver,
    ITxResetReceiver,
)

log = Logger()

_LOCAL_PREFIX = "unix:"


def parseSourceAddress(address: str):
    """
    Split a source address as reported by the agent into host and port.

    @param address: C{"192.0.2.1:2525"}, C{"[2001:db8::1]:2525"} (possibly
        with an C{"IPv6:"} prefix inside the brackets) or C{"unix:/path"}.

    @return: A 2-tuple of the host and the port, or C{(None, None)} for a
        local socket or an address without a port.
    @rtype: L{tuple} of (L{str} or L{None}, L{int} or L{None})
    """
    if address.startswith(_LOCAL_PREFIX):
        return None, None
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep:
            return None, None
        if host.startswith("IPv6:"):
            host = host[len("IPv6:") :]
        port = rest[1:] if rest.startswith(":") else ""
    else:
        host, sep, port = address.rpartition(":")
        if not sep:
            return None, None
    if not port.isdigit():
        return host, None
    return host, int(port)


@attr.s
class Session:
    """
    The state of one SMTP session.

    Link attributes are set once, as the session progresses; transaction
    attributes are cleared together by L{resetTransaction}.
    """

    id: str = attr.ib()

    reverseDNS: str = attr.ib(default="")
    sourceAddress: str = attr.ib(default="")
    sourceIP: Optional[str] = attr.ib(default=None)
    sourcePort: Optional[int] = attr.ib(default=None)
    heloName: str = attr.ib(default="")
    mtaName: str = attr.ib(default="")
    authenticatedUser: str = attr.ib(default="")

    transactionId: str = attr.ib(default="")
    envelopeSender: str = attr.ib(default="")
    recipients: List[str] = attr.ib(factory=list)
    bodyLines: List[str] = attr.ib(factory=list)

    def resetTransaction(self) -> None:
        """
        Forget the current transaction.
        """
        self.transactionId, self.envelopeSender, self.recipients, self.bodyLines = (
            "",
            "",
            [],
            [],
        )

    def peer(self) -> Union[IPv4Address, IPv6Address, UNIXAddress, None]:
        """
        The client's address as a Twisted address object, or L{None} if it
        could not be determined.
        """
        if self.sourceAddress.startswith(_LOCAL_PREFIX):
            return UNIXAddress(self.sourceAddress[len(_LOCAL_PREFIX) :])
        if self.sourceIP is None or self.sourcePort is None:
            return None
        if ":" in self.sourceIP:
            return IPv6Address("TCP", self.sourceIP, self.sourcePort)
        return IPv4Address("TCP", self.sourceIP, self.sourcePort)


def _checkArguments(event: FilterEvent, count: int, exact: bool = True) -> None:
    received = len(event.arguments)
    if exact and received != count:
        raise ParameterCountError(event.verb, str(count), received)
    if not exact and received < count:
        raise ParameterCountError(event.verb, f"at least {count}", received)


@implementer(
    ILinkConnectReceiver,
    ILinkDisconnectReceiver,
    ILinkGreetingReceiver,
    ILinkIdentifyReceiver,
    ILinkAuthReceiver,
    ITxResetReceiver,
    ITxBeginReceiver,
    ITxMailReceiver,
    ITxRcptReceiver,
    IDataLineFilter,
    ICommitFilter,
)
class SessionTracker:
    """
    Keep a L{Session} for every connected client.

    @ivar receiver: The filter notified when a message is complete, if it
        provides L{IMessageCompleteReceiver}.
    """

    def __init__(self, receiver: object = None) -> None:
        self.receiver = receiver
        self._sessions: Dict[str, Session] = {}

    def __contains__(self, sessionId: str) -> bool:
        return sessionId in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, sessionId: str) -> Session:
        """
        @raise MissingSessionError: if there is no such session.
        """
        try:
            return self._sessions[sessionId]
        except KeyError:
            raise MissingSessionError(sessionId)

    def set(self, session: Session) -> None:
        self._sessions[session.id] = session

    def delete(self, sessionId: str) -> None:
        """
        @raise MissingSessionError: if there is no such session.
        """
        try:
            del self._sessions[sessionId]
        except KeyError:
            raise MissingSessionError(sessionId)

    def linkConnect(self, event, sessions):
        _checkArguments(event, 4)
        reverseDNS, _, sourceAddress, _ = event.arguments
        sourceIP, sourcePort = parseSourceAddress(sourceAddress)
        self.set(
            Session(
                id=event.sessionId,
                reverseDNS=reverseDNS,
                sourceAddress=sourceAddress,
                sourceIP=sourceIP,
                sourcePort=sourcePort,
            )
        )
        log.debug(
            "Session {sessionId} opened from {source}",
            sessionId=event.sessionId,
            source=sourceAddress,
        )

    def linkDisconnect(self, event, sessions):
        _checkArguments(event, 0)
        self.delete(event.sessionId)
        log.debug("Session {sessionId} closed", sessionId=event.sessionId)

    def linkGreeting(self, event, sessions):
        _checkArguments(event, 1)
        self.get(event.sessionId).mtaName = event.arguments[0]

    def linkIdentify(self, event, sessions):
        _checkArguments(event, 2)
        self.get(event.sessionId).heloName = event.arguments[1]

    def linkAuth(self, event, sessions):
        _checkArguments(event, 2)
        user, result = event.arguments
        session = self.get(event.sessionId)
        if result == "pass":
            session.authenticatedUser = user

    def txReset(self, event, sessions):
        _checkArguments(event, 1)
        self.get(event.sessionId).resetTransaction()

    def txBegin(self, event, sessions):
        _checkArguments(event, 1)
        self.get(event.sessionId).transactionId = event.arguments[0]

    def txMail(self, event, sessions):
        _checkArguments(event, 3)
        _, sender, result = event.arguments
        session = self.get(event.sessionId)
        if result == "ok":
            session.envelopeSender = sender

    def txRcpt(self, event, sessions):
        _checkArguments(event, 3)
        _, recipient, result = event.arguments
        session = self.get(event.sessionId)
        if result == "ok":
            session.recipients.append(recipient)

    def dataLine(self, event, sessions):
        """
        Collect one body line; on the end-of-message marker hand the message
        to the receiver or relay it back unchanged.
        """
        _checkArguments(event, 2, exact=False)
        line = "".join(event.arguments[1:])
        session = self.get(event.sessionId)
        if line == _wire.END_OF_MESSAGE:
            if IMessageCompleteReceiver.providedBy(self.receiver):
                self.receiver.messageComplete(event, session)
            else:
                event.responder().flushMessage(session)
            return
        session.bodyLines.append(_wire.unstuff(line))

    def commit(self, event, sessions):
        """
        Check the request refers to a known session.  No response is
        written: a filter handling C{commit} itself gives the verdict.
        """
        _checkArguments(event, 2)
        self.get(event.sessionId)
