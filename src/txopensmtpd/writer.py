# -*- test-case-name: txopensmtpd.test.test_writer -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
The single point through which records reach the mail agent.
"""

from __future__ import annotations

import threading
from typing import List, Optional

from twisted.internet.interfaces import IReactorThreads, ITransport
from twisted.logger import Logger

from txopensmtpd import _wire

log = Logger()


class OutputWriter:
    """
    Write complete records to a transport, one at a time.

    Records emitted while another record is being written, either by the
    same thread re-entrantly or by another thread, are queued and written in
    order once the current write completes, so records never interleave.

    Transports are not thread-safe; code running outside the reactor thread
    should use L{emitFromThread}.

    @ivar _pending: Records waiting to be written by the thread that
        currently holds C{_lock}.
    """

    def __init__(
        self, transport: ITransport, reactor: Optional[IReactorThreads] = None
    ) -> None:
        self._transport = transport
        self._reactor = reactor
        self._lock = threading.Lock()
        self._local = threading.local()
        self._pending: List[str] = []

    def emit(self, record: str) -> None:
        """
        Write C{record} followed by a newline.

        @param record: A record without its terminator.
        """
        if getattr(self._local, "writing", False):
            self._pending.append(record)
            return
        with self._lock:
            self._local.writing = True
            try:
                self._pending.append(record)
                while self._pending:
                    pending = self._pending.pop(0)
                    log.debug(">>> {record}", record=pending)
                    self._transport.write(_wire.encode(pending))
            finally:
                self._local.writing = False

    def emitFromThread(self, record: str) -> None:
        """
        Write C{record} from a thread other than the reactor thread.
        """
        reactor = self._reactor
        if reactor is None:
            from twisted.internet import reactor  # type: ignore[no-redef]
        reactor.callFromThread(self.emit, record)
