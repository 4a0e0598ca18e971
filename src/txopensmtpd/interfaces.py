# -*- test-case-name: txopensmtpd.test.test_registry -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Interfaces for L{txopensmtpd}.

A filter declares which events it wants by providing the matching
interfaces; only those events are registered with the mail agent.  Every
event handler is called with the L{txopensmtpd.event.FilterEvent} and the
filter's L{txopensmtpd.session.SessionTracker}, or L{None} if the filter does
not track sessions.
"""

from zope.interface import Attribute, Interface


class IConfigReceiver(Interface):
    def config(fields):
        """
        Receive one record of the configuration handshake.

        @param fields: The record split on C{"|"}, for example
            C{["config", "smtpd-version", "7.4.0"]}.  The last call receives
            C{["config", "ready"]}.
        @type fields: L{list} of L{str}
        """


class IMessageCompleteReceiver(Interface):
    def messageComplete(event, session):
        """
        The end-of-message marker of a message was received.

        The implementation is solely responsible for relaying the message back
        to the agent, usually with
        C{event.responder().flushMessage(session)}; if it does not, the
        message is lost.

        @param event: The C{data-line} event carrying the final C{"."}.
        @type event: L{txopensmtpd.event.FilterEvent}

        @param session: The session the message belongs to.
        @type session: L{txopensmtpd.session.Session}
        """


class ISessionTrackingFilter(Interface):
    """
    A filter that keeps per-session state with a session tracker.

    The tracker's transitions are registered alongside the filter's own
    handlers.  For report events the tracker is updated first; for filter
    events a handler provided by the filter replaces the tracker's.
    """

    sessions = Attribute(
        "The L{txopensmtpd.session.SessionTracker} holding this filter's "
        "sessions."
    )


# Report events.


class ILinkConnectReceiver(Interface):
    def linkConnect(event, sessions):
        """
        A client connected.
        """


class ILinkDisconnectReceiver(Interface):
    def linkDisconnect(event, sessions):
        """
        A client disconnected.
        """


class ILinkGreetingReceiver(Interface):
    def linkGreeting(event, sessions):
        """
        The agent greeted the client.
        """


class ILinkIdentifyReceiver(Interface):
    def linkIdentify(event, sessions):
        """
        The client identified itself with HELO or EHLO.
        """


class ILinkTLSReceiver(Interface):
    def linkTLS(event, sessions):
        """
        The session switched to TLS.
        """


class ILinkAuthReceiver(Interface):
    def linkAuth(event, sessions):
        """
        The client attempted to authenticate.
        """


class ITxResetReceiver(Interface):
    def txReset(event, sessions):
        """
        The current transaction was reset.
        """


class ITxBeginReceiver(Interface):
    def txBegin(event, sessions):
        """
        A transaction began.
        """


class ITxMailReceiver(Interface):
    def txMail(event, sessions):
        """
        The client gave the envelope sender.
        """


class ITxRcptReceiver(Interface):
    def txRcpt(event, sessions):
        """
        The client gave an envelope recipient.
        """


class ITxEnvelopeReceiver(Interface):
    def txEnvelope(event, sessions):
        """
        An envelope was created for a recipient.
        """


class ITxDataReceiver(Interface):
    def txData(event, sessions):
        """
        The client asked to send the message body.
        """


class ITxCommitReceiver(Interface):
    def txCommit(event, sessions):
        """
        The transaction was committed.
        """


class ITxRollbackReceiver(Interface):
    def txRollback(event, sessions):
        """
        The transaction was rolled back.
        """


class IProtocolClientReceiver(Interface):
    def protocolClient(event, sessions):
        """
        The client sent an SMTP command.
        """


class IProtocolServerReceiver(Interface):
    def protocolServer(event, sessions):
        """
        The agent sent an SMTP reply.
        """


class IFilterReportReceiver(Interface):
    def filterReport(event, sessions):
        """
        Another filter produced a report.
        """


class IFilterResponseReceiver(Interface):
    def filterResponse(event, sessions):
        """
        A filter answered a filter request.
        """


class ITimeoutReceiver(Interface):
    def timeout(event, sessions):
        """
        The session timed out.
        """


# Filter events.  Each of these expects a response, see
# L{txopensmtpd.responder.EventResponder}.


class IConnectFilter(Interface):
    def connect(event, sessions):
        """
        Decide on a new connection.
        """


class IHeloFilter(Interface):
    def helo(event, sessions):
        """
        Decide on a HELO command.
        """


class IEhloFilter(Interface):
    def ehlo(event, sessions):
        """
        Decide on an EHLO command.
        """


class IStartTLSFilter(Interface):
    def startTLS(event, sessions):
        """
        Decide on a STARTTLS command.
        """


class IAuthFilter(Interface):
    def auth(event, sessions):
        """
        Decide on an AUTH command.
        """


class IMailFromFilter(Interface):
    def mailFrom(event, sessions):
        """
        Decide on a MAIL FROM command.
        """


class IRcptToFilter(Interface):
    def rcptTo(event, sessions):
        """
        Decide on a RCPT TO command.
        """


class IDataFilter(Interface):
    def data(event, sessions):
        """
        Decide on a DATA command.
        """


class IDataLineFilter(Interface):
    def dataLine(event, sessions):
        """
        Receive one line of the message body.  Every line, and finally the
        end-of-message marker, must be relayed back with
        C{filter-dataline} records or the message is lost.
        """


class IRsetFilter(Interface):
    def rset(event, sessions):
        """
        Decide on a RSET command.
        """


class IQuitFilter(Interface):
    def quit(event, sessions):
        """
        Decide on a QUIT command.
        """


class INoopFilter(Interface):
    def noop(event, sessions):
        """
        Decide on a NOOP command.
        """


class IHelpFilter(Interface):
    def help(event, sessions):
        """
        Decide on a HELP command.
        """


class IWizFilter(Interface):
    def wiz(event, sessions):
        """
        Decide on a WIZ command.
        """


class ICommitFilter(Interface):
    def commit(event, sessions):
        """
        Decide whether to accept the message once it has been received in
        full.

        A session tracking filter may call its tracker's C{commit} first;
        that only validates the request and writes no response.
        """


__all__ = [
    "IConfigReceiver",
    "IMessageCompleteReceiver",
    "ISessionTrackingFilter",
    "ILinkConnectReceiver",
    "ILinkDisconnectReceiver",
    "ILinkGreetingReceiver",
    "ILinkIdentifyReceiver",
    "ILinkTLSReceiver",
    "ILinkAuthReceiver",
    "ITxResetReceiver",
    "ITxBeginReceiver",
    "ITxMailReceiver",
    "ITxRcptReceiver",
    "ITxEnvelopeReceiver",
    "ITxDataReceiver",
    "ITxCommitReceiver",
    "ITxRollbackReceiver",
    "IProtocolClientReceiver",
    "IProtocolServerReceiver",
    "IFilterReportReceiver",
    "IFilterResponseReceiver",
    "ITimeoutReceiver",
    "IConnectFilter",
    "IHeloFilter",
    "IEhloFilter",
    "IStartTLSFilter",
    "IAuthFilter",
    "IMailFromFilter",
    "IRcptToFilter",
    "IDataFilter",
    "IDataLineFilter",
    "IRsetFilter",
    "IQuitFilter",
    "INoopFilter",
    "IHelpFilter",
    "IWizFilter",
    "ICommitFilter",
]
