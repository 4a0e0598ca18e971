# -*- test-case-name: txopensmtpd.test.test_registry -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Discovery of the events a filter handles.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from zope.interface.interface import InterfaceClass
from zope.interface.verify import verifyObject

from txopensmtpd import _wire, interfaces
from txopensmtpd.error import AlreadyRegistered, UnregisteredVerbError
from txopensmtpd.event import FilterEvent
from txopensmtpd.session import SessionTracker

Handler = Callable[[FilterEvent, Optional[SessionTracker]], object]

# (verb, interface, method name), in registration order.
REPORT_EVENTS: Sequence[Tuple[str, InterfaceClass, str]] = (
    ("link-connect", interfaces.ILinkConnectReceiver, "linkConnect"),
    ("link-disconnect", interfaces.ILinkDisconnectReceiver, "linkDisconnect"),
    ("link-greeting", interfaces.ILinkGreetingReceiver, "linkGreeting"),
    ("link-identify", interfaces.ILinkIdentifyReceiver, "linkIdentify"),
    ("link-tls", interfaces.ILinkTLSReceiver, "linkTLS"),
    ("link-auth", interfaces.ILinkAuthReceiver, "linkAuth"),
    ("tx-reset", interfaces.ITxResetReceiver, "txReset"),
    ("tx-begin", interfaces.ITxBeginReceiver, "txBegin"),
    ("tx-mail", interfaces.ITxMailReceiver, "txMail"),
    ("tx-rcpt", interfaces.ITxRcptReceiver, "txRcpt"),
    ("tx-envelope", interfaces.ITxEnvelopeReceiver, "txEnvelope"),
    ("tx-data", interfaces.ITxDataReceiver, "txData"),
    ("tx-commit", interfaces.ITxCommitReceiver, "txCommit"),
    ("tx-rollback", interfaces.ITxRollbackReceiver, "txRollback"),
    ("protocol-client", interfaces.IProtocolClientReceiver, "protocolClient"),
    ("protocol-server", interfaces.IProtocolServerReceiver, "protocolServer"),
    ("filter-report", interfaces.IFilterReportReceiver, "filterReport"),
    ("filter-response", interfaces.IFilterResponseReceiver, "filterResponse"),
    ("timeout", interfaces.ITimeoutReceiver, "timeout"),
)

FILTER_EVENTS: Sequence[Tuple[str, InterfaceClass, str]] = (
    ("connect", interfaces.IConnectFilter, "connect"),
    ("helo", interfaces.IHeloFilter, "helo"),
    ("ehlo", interfaces.IEhloFilter, "ehlo"),
    ("starttls", interfaces.IStartTLSFilter, "startTLS"),
    ("auth", interfaces.IAuthFilter, "auth"),
    ("mail-from", interfaces.IMailFromFilter, "mailFrom"),
    ("rcpt-to", interfaces.IRcptToFilter, "rcptTo"),
    ("data", interfaces.IDataFilter, "data"),
    ("data-line", interfaces.IDataLineFilter, "dataLine"),
    ("rset", interfaces.IRsetFilter, "rset"),
    ("quit", interfaces.IQuitFilter, "quit"),
    ("noop", interfaces.INoopFilter, "noop"),
    ("help", interfaces.IHelpFilter, "help"),
    ("wiz", interfaces.IWizFilter, "wiz"),
    ("commit", interfaces.ICommitFilter, "commit"),
)

# Filter events the tracker checks but leaves unanswered; when the filter
# does not handle them itself they are answered with proceed.
_ANSWERED_FOR_TRACKER = frozenset(["commit"])


def _provided(obj: object, iface: InterfaceClass, methodName: str) -> Optional[Handler]:
    """
    Get the handler C{obj} provides through C{iface}, if any.

    @raise zope.interface.Invalid: if C{obj} claims to provide C{iface} but
        does not implement it.
    """
    if obj is None or not iface.providedBy(obj):
        return None
    verifyObject(iface, obj)
    return getattr(obj, methodName)


def _chain(handlers: List[Handler]) -> Handler:
    if len(handlers) == 1:
        return handlers[0]

    def chained(event, sessions):
        for handler in handlers:
            handler(event, sessions)

    return chained


def _proceed(event, sessions):
    event.responder().proceed()


class Capabilities:
    """
    The handlers for every event a filter registered, by kind and verb.
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, Dict[str, Handler]] = {
            _wire.REPORT: {},
            _wire.FILTER: {},
        }

    @classmethod
    def fromFilter(cls, filter: object) -> Capabilities:
        """
        Build the table for C{filter} from the interfaces it provides.

        If C{filter} provides L{interfaces.ISessionTrackingFilter} its
        tracker's transitions are included too: ahead of the filter's own
        handler for report events, and in place of a missing filter handler
        for filter events.  A C{commit} left to the tracker is answered with
        C{proceed}.
        """
        tracker = None
        if interfaces.ISessionTrackingFilter.providedBy(filter):
            verifyObject(interfaces.ISessionTrackingFilter, filter)
            tracker = filter.sessions

        capabilities = cls()
        for verb, iface, methodName in REPORT_EVENTS:
            handlers = [
                handler
                for handler in (
                    _provided(tracker, iface, methodName),
                    _provided(filter, iface, methodName),
                )
                if handler is not None
            ]
            if handlers:
                capabilities.register(_wire.REPORT, verb, _chain(handlers))
        for verb, iface, methodName in FILTER_EVENTS:
            handler = _provided(filter, iface, methodName)
            if handler is None:
                handler = _provided(tracker, iface, methodName)
                if handler is not None and verb in _ANSWERED_FOR_TRACKER:
                    handler = _chain([handler, _proceed])
            if handler is not None:
                capabilities.register(_wire.FILTER, verb, handler)
        return capabilities

    def register(self, kind: str, verb: str, handler: Handler) -> None:
        """
        @raise AlreadyRegistered: if C{verb} already has a handler.
        """
        table = self._handlers[kind]
        if verb in table:
            raise AlreadyRegistered(f"{kind} event {verb!r} registered twice")
        table[verb] = handler

    def lookup(self, kind: str, verb: str) -> Handler:
        """
        @raise UnregisteredVerbError: if nothing handles the event.
        """
        try:
            return self._handlers[kind][verb]
        except KeyError:
            raise UnregisteredVerbError(kind, verb)

    def verbs(self, kind: str) -> List[str]:
        return list(self._handlers[kind])

    def registrationRecords(self) -> List[str]:
        """
        The records advertising every registered event, followed by
        C{register|ready}.
        """
        records = [
            _wire.formatRecord(["register", kind, _wire.SUBSYSTEM_SMTP_IN, verb])
            for kind in _wire.KINDS
            for verb in self._handlers[kind]
        ]
        records.append(_wire.REGISTER_READY)
        return records
