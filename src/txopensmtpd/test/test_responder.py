# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{txopensmtpd.responder}.
"""

from twisted.internet.testing import StringTransport
from twisted.trial.unittest import SynchronousTestCase

from txopensmtpd.event import FilterEvent
from txopensmtpd.session import Session
from txopensmtpd.writer import OutputWriter


def responderFor(version, verb="data-line"):
    transport = StringTransport()
    event = FilterEvent.fromLine(
        f"filter|{version}|1.0|smtp-in|{verb}|S1|TOK|x", OutputWriter(transport)
    )
    return event.responder(), transport


class DecisionTests(SynchronousTestCase):
    """
    Tests for the C{filter-result} responses.
    """

    def test_proceed(self):
        responder, transport = responderFor("0.5", "helo")
        responder.proceed()
        self.assertEqual(transport.value(), b"filter-result|TOK|S1|proceed\n")

    def test_hardReject(self):
        responder, transport = responderFor("0.5", "helo")
        responder.hardReject("go away")
        self.assertEqual(transport.value(), b"filter-result|TOK|S1|reject|550 go away\n")

    def test_softReject(self):
        responder, transport = responderFor("0.5", "helo")
        responder.softReject("try later")
        self.assertEqual(
            transport.value(), b"filter-result|TOK|S1|reject|451 try later\n"
        )

    def test_greylist(self):
        responder, transport = responderFor("0.5", "helo")
        responder.greylist("greylisted")
        self.assertEqual(
            transport.value(), b"filter-result|TOK|S1|reject|421 greylisted\n"
        )

    def test_otherResults(self):
        responder, transport = responderFor("0.7", "helo")
        responder.disconnect("bye")
        responder.junk()
        responder.rewrite("<b@example.com>")
        self.assertEqual(
            transport.value(),
            b"filter-result|S1|TOK|disconnect|421 bye\n"
            b"filter-result|S1|TOK|junk\n"
            b"filter-result|S1|TOK|rewrite|<b@example.com>\n",
        )

    def test_sessionFirstInNewerVersions(self):
        """
        After protocol version 0.5 the session id precedes the token.
        """
        for version in ["0.6", "0.7", "0.10"]:
            responder, transport = responderFor(version, "helo")
            responder.proceed()
            self.assertEqual(transport.value(), b"filter-result|S1|TOK|proceed\n")


class DataLineTests(SynchronousTestCase):
    """
    Tests for the C{filter-dataline} responses.
    """

    def test_dataLine(self):
        responder, transport = responderFor("0.5")
        responder.dataLine("Subject: Hi")
        responder.dataLineEnd()
        self.assertEqual(
            transport.value(),
            b"filter-dataline|TOK|S1|Subject: Hi\nfilter-dataline|TOK|S1|.\n",
        )

    def test_dataLineStuffed(self):
        """
        A line starting with a dot gets one more.
        """
        responder, transport = responderFor("0.5")
        responder.dataLine(".foo")
        responder.dataLine(".")
        self.assertEqual(
            transport.value(),
            b"filter-dataline|TOK|S1|..foo\nfilter-dataline|TOK|S1|..\n",
        )

    def test_multilineHeader(self):
        """
        Every physical line of a folded header value is its own record; the
        first carries the header name.
        """
        responder, transport = responderFor("0.7")
        responder.writeMultilineHeader(
            "DKIM-Signature", "v=1; a=rsa-sha256;\n\td=example.com;\n\tb=abc"
        )
        self.assertEqual(
            transport.value(),
            b"filter-dataline|S1|TOK|DKIM-Signature: v=1; a=rsa-sha256;\n"
            b"filter-dataline|S1|TOK|\td=example.com;\n"
            b"filter-dataline|S1|TOK|\tb=abc\n",
        )

    def test_flushMessage(self):
        responder, transport = responderFor("0.5")
        session = Session("S1", bodyLines=["Subject: Hi", "", ".dot"])
        responder.flushMessage(session)
        self.assertEqual(
            transport.value(),
            b"filter-dataline|TOK|S1|Subject: Hi\n"
            b"filter-dataline|TOK|S1|\n"
            b"filter-dataline|TOK|S1|..dot\n"
            b"filter-dataline|TOK|S1|.\n",
        )

    def test_flushEmptyMessage(self):
        responder, transport = responderFor("0.5")
        responder.flushMessage(Session("S1"))
        self.assertEqual(transport.value(), b"filter-dataline|TOK|S1|.\n")
