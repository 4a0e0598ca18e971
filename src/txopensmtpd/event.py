# -*- test-case-name: txopensmtpd.test.test_event -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Events received from the mail agent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Tuple

import attr

from txopensmtpd import _wire
from txopensmtpd.error import FramingError
from txopensmtpd.responder import EventResponder

if TYPE_CHECKING:
    from txopensmtpd.writer import OutputWriter


@attr.s(frozen=True)
class FilterEvent:
    """
    One report or filter record, as a read-only view over its atoms.

    A report record looks like::

        report|0.7|1576146008.006099|smtp-in|link-connect|7641df9771b4ed00|...

    and a filter record carries a token after the session id::

        filter|0.7|1576146008.006099|smtp-in|helo|7641df9771b4ed00|1ef1c203cc576e5d|...

    @ivar atoms: The fields of the record.
    @type atoms: L{tuple} of L{str}
    """

    atoms: Tuple[str, ...] = attr.ib(converter=tuple)
    _writer: Optional[OutputWriter] = attr.ib(default=None, eq=False, repr=False)

    @atoms.validator
    def _checkAtoms(self, attribute, value):
        if len(value) < _wire.MINIMUM_ATOMS:
            raise FramingError(
                f"event has {len(value)} atoms, at least "
                f"{_wire.MINIMUM_ATOMS} required"
            )
        if value[_wire.KIND] not in _wire.KINDS:
            raise FramingError(f"unknown record kind {value[_wire.KIND]!r}")

    @classmethod
    def fromLine(cls, line: str, writer: Optional[OutputWriter] = None) -> FilterEvent:
        """
        Parse a received record.

        @raise FramingError: if the record is malformed.
        """
        return cls(_wire.splitRecord(line), writer)

    @property
    def kind(self) -> str:
        """
        C{"report"} or C{"filter"}.
        """
        return self.atoms[_wire.KIND]

    @property
    def protocolVersion(self) -> str:
        return self.atoms[_wire.VERSION]

    @property
    def timestamp(self) -> str:
        return self.atoms[_wire.TIMESTAMP]

    @property
    def subsystem(self) -> str:
        return self.atoms[_wire.SUBSYSTEM]

    @property
    def verb(self) -> str:
        return self.atoms[_wire.VERB]

    @property
    def sessionId(self) -> str:
        return self.atoms[_wire.SESSION]

    @property
    def token(self) -> Optional[str]:
        """
        The token tying a response to this request, or L{None} for reports.
        """
        if self.kind != _wire.FILTER or len(self.atoms) <= _wire.TOKEN:
            return None
        return self.atoms[_wire.TOKEN]

    @property
    def arguments(self) -> Tuple[str, ...]:
        """
        Every atom after the session id, including the token of a filter
        event.
        """
        return self.atoms[_wire.SESSION + 1 :]

    @property
    def parameters(self) -> Tuple[str, ...]:
        """
        The verb's parameters: the atoms after the session id for a report,
        after the token for a filter request.
        """
        if self.kind == _wire.FILTER:
            return self.atoms[_wire.TOKEN + 1 :]
        return self.arguments

    def responder(self) -> EventResponder:
        """
        Create an L{EventResponder} that answers this event.

        @raise RuntimeError: if the event is a report, which takes no
            response, or was not received on a connection.
        """
        if self.kind != _wire.FILTER:
            raise RuntimeError(f"{self.kind} event {self.verb!r} takes no response")
        if self._writer is None:
            raise RuntimeError(f"{self!r} was not received on a connection")
        return EventResponder(self, self._writer)
