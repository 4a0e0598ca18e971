# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Tests for L{txopensmtpd.registry}.
"""

from zope.interface import implementer
from zope.interface.exceptions import Invalid

from twisted.trial.unittest import SynchronousTestCase

from txopensmtpd import interfaces
from txopensmtpd.error import AlreadyRegistered, UnregisteredVerbError
from txopensmtpd.event import FilterEvent
from txopensmtpd.registry import FILTER_EVENTS, REPORT_EVENTS, Capabilities
from txopensmtpd.session import SessionTracker


@implementer(interfaces.ILinkConnectReceiver, interfaces.IMailFromFilter)
class SomeEvents:
    def __init__(self):
        self.calls = []

    def linkConnect(self, event, sessions):
        self.calls.append(("linkConnect", event, sessions))

    def mailFrom(self, event, sessions):
        self.calls.append(("mailFrom", event, sessions))


@implementer(interfaces.ISessionTrackingFilter, interfaces.ILinkConnectReceiver)
class Tracking:
    def __init__(self):
        self.sessions = SessionTracker(self)
        self.calls = []

    def linkConnect(self, event, sessions):
        self.calls.append("linkConnect")


@implementer(interfaces.ISessionTrackingFilter, interfaces.IDataLineFilter)
class OwnDataLine(Tracking):
    def dataLine(self, event, sessions):
        self.calls.append("dataLine")


@implementer(interfaces.ITimeoutReceiver)
class Broken:
    """
    Claims to handle timeouts but does not.
    """


class CapabilitiesTests(SynchronousTestCase):
    """
    Tests for L{Capabilities}.
    """

    def test_onlyProvidedVerbs(self):
        """
        Only the events whose interfaces the filter provides are registered.
        """
        filter = SomeEvents()
        capabilities = Capabilities.fromFilter(filter)
        self.assertEqual(capabilities.verbs("report"), ["link-connect"])
        self.assertEqual(capabilities.verbs("filter"), ["mail-from"])
        self.assertEqual(capabilities.lookup("report", "link-connect"), filter.linkConnect)
        self.assertEqual(capabilities.lookup("filter", "mail-from"), filter.mailFrom)

    def test_nothingProvided(self):
        capabilities = Capabilities.fromFilter(object())
        self.assertEqual(capabilities.verbs("report"), [])
        self.assertEqual(capabilities.verbs("filter"), [])
        self.assertEqual(capabilities.registrationRecords(), ["register|ready"])

    def test_everyVerb(self):
        """
        A filter providing every interface registers every verb, in the
        enumerated order.
        """

        class Everything:
            pass

        ifaces = [iface for _, iface, _ in REPORT_EVENTS + FILTER_EVENTS]
        Everything = implementer(*ifaces)(Everything)
        for _, _, methodName in REPORT_EVENTS + FILTER_EVENTS:
            setattr(Everything, methodName, lambda self, event, sessions: None)

        capabilities = Capabilities.fromFilter(Everything())
        self.assertEqual(capabilities.verbs("report"), [v for v, _, _ in REPORT_EVENTS])
        self.assertEqual(capabilities.verbs("filter"), [v for v, _, _ in FILTER_EVENTS])
        records = capabilities.registrationRecords()
        self.assertEqual(len(records), 19 + 15 + 1)
        self.assertEqual(records[0], "register|report|smtp-in|link-connect")
        self.assertEqual(records[-2], "register|filter|smtp-in|commit")
        self.assertEqual(records[-1], "register|ready")

    def test_registrationRecords(self):
        capabilities = Capabilities.fromFilter(SomeEvents())
        self.assertEqual(
            capabilities.registrationRecords(),
            [
                "register|report|smtp-in|link-connect",
                "register|filter|smtp-in|mail-from",
                "register|ready",
            ],
        )

    def test_brokenImplementation(self):
        """
        A filter declaring an interface it does not implement is refused.
        """
        self.assertRaises(Invalid, Capabilities.fromFilter, Broken())

    def test_registerTwice(self):
        capabilities = Capabilities()
        capabilities.register("report", "timeout", lambda event, sessions: None)
        self.assertRaises(
            AlreadyRegistered,
            capabilities.register,
            "report",
            "timeout",
            lambda event, sessions: None,
        )

    def test_lookupUnregistered(self):
        capabilities = Capabilities.fromFilter(SomeEvents())
        exc = self.assertRaises(
            UnregisteredVerbError, capabilities.lookup, "report", "tx-begin"
        )
        self.assertEqual((exc.kind, exc.verb), ("report", "tx-begin"))
        self.assertRaises(UnregisteredVerbError, capabilities.lookup, "filter", "link-connect")


class SessionTrackingCapabilitiesTests(SynchronousTestCase):
    """
    Tests for the registration of a filter's session tracker.
    """

    def test_trackerVerbs(self):
        """
        The tracker's transitions are registered for a tracking filter.
        """
        capabilities = Capabilities.fromFilter(Tracking())
        self.assertEqual(
            capabilities.verbs("report"),
            [
                "link-connect",
                "link-disconnect",
                "link-greeting",
                "link-identify",
                "link-auth",
                "tx-reset",
                "tx-begin",
                "tx-mail",
                "tx-rcpt",
            ],
        )
        self.assertEqual(capabilities.verbs("filter"), ["data-line", "commit"])

    def test_trackerFirstForReports(self):
        """
        For a report both the tracker and the filter are called, the tracker
        first.
        """
        filter = Tracking()
        handler = Capabilities.fromFilter(filter).lookup("report", "link-connect")
        event = FilterEvent(
            ["report", "0.5", "1.0", "smtp-in", "link-connect", "S1", "rdns", "pass",
             "1.2.3.4:5000", "5.6.7.8:25"]
        )
        handler(event, filter.sessions)
        self.assertIn("S1", filter.sessions)
        self.assertEqual(filter.calls, ["linkConnect"])

    def test_filterOverridesTracker(self):
        """
        For a filter request the filter's own handler replaces the tracker's.
        """
        filter = OwnDataLine()
        handler = Capabilities.fromFilter(filter).lookup("filter", "data-line")
        self.assertEqual(handler, filter.dataLine)
