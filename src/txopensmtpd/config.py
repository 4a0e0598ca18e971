# -*- test-case-name: txopensmtpd.test.test_config -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
The configuration the agent hands to a filter before registration.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from twisted.logger import Logger

from txopensmtpd import _wire

log = Logger()


class FilterConfiguration:
    """
    The C{config|<key>|<value>} records received during the handshake.

    @ivar values: Every configuration value received so far, by key.
    @type values: L{dict} of L{str} to L{str}

    @ivar ready: Whether the final C{config|ready} record was received.
    """

    def __init__(self) -> None:
        self.values: Dict[str, str] = {}
        self.ready = False

    def receive(self, fields: List[str]) -> None:
        """
        Record one handshake record.

        @param fields: The record split on C{"|"}.
        """
        if not fields or fields[0] != "config":
            log.warn("Unexpected handshake record {fields!r}", fields=fields)
            return
        if fields == ["config", "ready"]:
            self.ready = True
            return
        if len(fields) < 3:
            log.warn("Configuration record without a value: {fields!r}", fields=fields)
            return
        self.values[fields[1]] = _wire.SEPARATOR.join(fields[2:])

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.values.get(key, default)

    @property
    def subsystem(self) -> Optional[str]:
        return self.get("subsystem")

    @property
    def protocolVersion(self) -> Optional[str]:
        return self.get("protocol")

    @property
    def smtpdVersion(self) -> Optional[str]:
        return self.get("smtpd-version")

    @property
    def sessionTimeout(self) -> Optional[int]:
        """
        The agent's SMTP session timeout in seconds, if it announced one.
        """
        value = self.get("smtp-session-timeout")
        if value is None or not value.isdigit():
            return None
        return int(value)
