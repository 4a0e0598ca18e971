# -*- test-case-name: txopensmtpd.test.test_responder -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Encoding of filter responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from txopensmtpd import _wire

if TYPE_CHECKING:
    from txopensmtpd.event import FilterEvent
    from txopensmtpd.session import Session
    from txopensmtpd.writer import OutputWriter

FILTER_RESULT = "filter-result"
FILTER_DATALINE = "filter-dataline"

# Reply codes used by the reject shortcuts.
PERMANENT_FAILURE = 550
TEMPORARY_FAILURE = 451
SERVICE_UNAVAILABLE = 421


class EventResponder:
    """
    Answer one filter event.

    Every response names the session and the token of the request it answers;
    protocol versions up to 0.5 expect the token first, later versions the
    session id first.
    """

    def __init__(self, event: FilterEvent, writer: OutputWriter) -> None:
        self.event = event
        self.writer = writer

    def respond(self, resultType: str, payload: str) -> None:
        """
        Write a response record.

        @param resultType: C{"filter-result"} or C{"filter-dataline"}.
        @param payload: Everything following the session id and the token.
        """
        sessionId = self.event.sessionId
        token = self.event.token
        if _wire.sessionFirst(self.event.protocolVersion):
            first, second = sessionId, token
        else:
            first, second = token, sessionId
        self.writer.emit(_wire.formatRecord([resultType, first, second, payload]))

    def proceed(self) -> None:
        """
        Let the session continue.
        """
        self.respond(FILTER_RESULT, "proceed")

    def reject(self, code: int, text: str) -> None:
        """
        Refuse the request with an SMTP reply.

        @param code: The three digit reply code.
        @param text: The human readable reply text.
        """
        self.respond(FILTER_RESULT, f"reject|{code} {text}")

    def hardReject(self, text: str) -> None:
        self.reject(PERMANENT_FAILURE, text)

    def softReject(self, text: str) -> None:
        self.reject(TEMPORARY_FAILURE, text)

    def greylist(self, text: str) -> None:
        self.reject(SERVICE_UNAVAILABLE, text)

    def disconnect(self, text: str) -> None:
        """
        Refuse the request and close the session.
        """
        self.respond(FILTER_RESULT, f"disconnect|{SERVICE_UNAVAILABLE} {text}")

    def junk(self) -> None:
        """
        Let the session continue but mark the message as junk.
        """
        self.respond(FILTER_RESULT, "junk")

    def rewrite(self, parameter: str) -> None:
        """
        Let the session continue with a rewritten command parameter.
        """
        self.respond(FILTER_RESULT, f"rewrite|{parameter}")

    def dataLine(self, line: str) -> None:
        """
        Relay one line of the message body, dot-stuffed.
        """
        self.respond(FILTER_DATALINE, _wire.stuff(line))

    def dataLineEnd(self) -> None:
        """
        Mark the end of the relayed message.
        """
        self.respond(FILTER_DATALINE, _wire.END_OF_MESSAGE)

    def writeMultilineHeader(self, header: str, value: str) -> None:
        """
        Relay a header whose value may span several lines.  Continuation
        lines are written as they are, so they must already start with
        whitespace.
        """
        for index, line in enumerate(value.split("\n")):
            if index == 0:
                self.respond(FILTER_DATALINE, f"{header}: {line}")
            else:
                self.respond(FILTER_DATALINE, line)

    def flushMessage(self, session: Session) -> None:
        """
        Relay the body collected for C{session}, then the end marker.
        """
        for line in session.bodyLines:
            self.dataLine(line)
        self.dataLineEnd()
