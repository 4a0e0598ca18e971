# -*- test-case-name: txopensmtpd -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
txopensmtpd: write OpenSMTPD filters with Twisted.
"""

from txopensmtpd.event import FilterEvent
from txopensmtpd.protocol import FilterProtocol, serveStandardIO
from txopensmtpd.responder import EventResponder
from txopensmtpd.session import Session, SessionTracker

__version__ = "0.3.0"

__all__ = [
    "FilterEvent",
    "FilterProtocol",
    "serveStandardIO",
    "EventResponder",
    "Session",
    "SessionTracker",
    "__version__",
]
