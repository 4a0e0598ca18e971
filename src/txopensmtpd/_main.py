# -*- test-case-name: txopensmtpd.test.test_main -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Command line entry point: run a filter class over standard input and output.
"""

import sys

from twisted.logger import (
    FilteringLogObserver,
    LogLevel,
    LogLevelFilterPredicate,
    globalLogBeginner,
    textFileLogObserver,
)
from twisted.python import reflect, usage

from txopensmtpd.protocol import serveStandardIO


class Options(usage.Options):
    synopsis = "[options] <filter>"
    longdesc = (
        "Run a mail filter over standard input and output.  <filter> is the "
        "fully qualified name of a callable returning the filter, usually "
        "its class."
    )
    optFlags = [
        ["debug", "d", "Log every record exchanged with the agent."],
    ]

    def parseArgs(self, filterName):
        self["filterName"] = filterName

    def postOptions(self):
        try:
            factory = reflect.namedAny(self["filterName"])
        except (reflect.InvalidName, AttributeError) as e:
            raise usage.UsageError(f"Cannot load {self['filterName']!r}: {e}")
        if not callable(factory):
            raise usage.UsageError(f"{self['filterName']!r} is not callable")
        self["factory"] = factory


def startLogging(debug, stream=None, beginner=globalLogBeginner):
    """
    Send log events to standard error; standard output carries the protocol.

    @param debug: Whether to include debug events.
    """
    if stream is None:
        stream = sys.stderr
    level = LogLevel.debug if debug else LogLevel.info
    observer = FilteringLogObserver(
        textFileLogObserver(stream),
        [LogLevelFilterPredicate(defaultLogLevel=level)],
    )
    beginner.beginLoggingTo([observer], redirectStandardIO=False)


def main(reactor, *argv):
    options = Options()
    try:
        options.parseOptions(argv)
    except usage.UsageError as e:
        raise SystemExit(f"{options}\nError: {e}")
    startLogging(options["debug"])
    return serveStandardIO(options["factory"](), reactor)
