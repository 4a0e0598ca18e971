# -*- test-case-name: txopensmtpd.test.test_protocol -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Exceptions in L{txopensmtpd}.

Every L{ProtocolViolation} is fatal: the filter protocol is a stateful stream
shared with the mail agent, so once the position in that stream can no longer
be trusted the only safe thing left to do is to exit.
"""


class ProtocolViolation(Exception):
    """
    The mail agent and the filter no longer agree about the state of the
    conversation.
    """


class FramingError(ProtocolViolation):
    """
    A record could not be split into the atoms the protocol requires.
    """


class UnregisteredVerbError(ProtocolViolation):
    """
    The agent sent an event the filter never registered for.

    @ivar kind: The record kind, C{"report"} or C{"filter"}.
    @ivar verb: The verb that has no handler.
    """

    def __init__(self, kind, verb):
        ProtocolViolation.__init__(self, kind, verb)
        self.kind = kind
        self.verb = verb

    def __str__(self) -> str:
        return f"no handler registered for {self.kind} event {self.verb!r}"


class ParameterCountError(ProtocolViolation):
    """
    An event carried a different number of parameters than its verb defines.

    @ivar verb: The verb of the offending event.
    @ivar expected: A description of the allowed count, like C{"4"} or
        C{"at least 2"}.
    @ivar received: The number of parameters actually received.
    """

    def __init__(self, verb, expected, received):
        ProtocolViolation.__init__(self, verb, expected, received)
        self.verb = verb
        self.expected = expected
        self.received = received

    def __str__(self) -> str:
        return (
            f"{self.verb} takes {self.expected} parameters, "
            f"got {self.received}"
        )


class MissingSessionError(ProtocolViolation):
    """
    An event referred to a session id that is not being tracked.
    """

    def __init__(self, sessionId):
        ProtocolViolation.__init__(self, sessionId)
        self.sessionId = sessionId

    def __str__(self) -> str:
        return f"unknown session {self.sessionId!r}"


class AlreadyRegistered(Exception):
    """
    A verb was advertised to the agent more than once.
    """


__all__ = [
    "ProtocolViolation",
    "FramingError",
    "UnregisteredVerbError",
    "ParameterCountError",
    "MissingSessionError",
    "AlreadyRegistered",
]
