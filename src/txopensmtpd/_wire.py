# -*- test-case-name: txopensmtpd.test.test_wire -*-
# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

"""
Framing for the line-oriented filter protocol.

Records are UTF-8 text terminated by C{"\\n"} and divided into atoms by
C{"|"}.  Undecodable bytes round-trip through C{surrogateescape} so message
bodies in legacy 8-bit charsets are relayed untouched.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from txopensmtpd.error import FramingError

SEPARATOR = "|"
ENCODING = "utf-8"
ERRORS = "surrogateescape"

# Index of each atom in an incoming event record.
KIND, VERSION, TIMESTAMP, SUBSYSTEM, VERB, SESSION, TOKEN = range(7)
MINIMUM_ATOMS = 6

REPORT = "report"
FILTER = "filter"
KINDS = (REPORT, FILTER)

SUBSYSTEM_SMTP_IN = "smtp-in"
CONFIG_READY = "config|ready"
REGISTER_READY = "register|ready"
END_OF_MESSAGE = "."

# Protocol versions above this one put the session id before the token in
# responses; this one and everything older puts the token first.
SESSION_FIRST_AFTER = (0, 5)


def decode(line: bytes) -> str:
    """
    Decode one received line.
    """
    return line.decode(ENCODING, ERRORS)


def encode(record: str) -> bytes:
    """
    Encode one outgoing record, including its terminator.
    """
    return record.encode(ENCODING, ERRORS) + b"\n"


def splitRecord(line: str) -> List[str]:
    """
    Split an event record into atoms.

    The payload of a C{data-line} filter event is kept as a single atom since
    a message line may itself contain the separator.

    @raise FramingError: if the record has fewer than L{MINIMUM_ATOMS} atoms.
    """
    atoms = line.split(SEPARATOR)
    if len(atoms) < MINIMUM_ATOMS:
        raise FramingError(
            f"record has {len(atoms)} atoms, at least {MINIMUM_ATOMS} "
            f"required: {line!r}"
        )
    if atoms[KIND] == FILTER and atoms[VERB] == "data-line":
        atoms = line.split(SEPARATOR, TOKEN + 1)
    return atoms


def stuff(line: str) -> str:
    """
    Escape a message line for output by doubling a leading dot.
    """
    if line.startswith("."):
        return "." + line
    return line


def unstuff(line: str) -> str:
    """
    Undo L{stuff}: remove one leading dot, if there is one.
    """
    if line.startswith("."):
        return line[1:]
    return line


def versionKey(version: str) -> Tuple[int, ...]:
    """
    Convert a dotted protocol version into a tuple that sorts numerically, so
    that C{"0.10"} is newer than C{"0.5"}.

    @raise FramingError: if a component is not a number.
    """
    try:
        return tuple(int(part) for part in version.split("."))
    except ValueError:
        raise FramingError(f"malformed protocol version {version!r}")


def sessionFirst(version: str) -> bool:
    """
    Does a response for the given protocol version put the session id before
    the token?
    """
    return versionKey(version) > SESSION_FIRST_AFTER


def formatRecord(fields: Sequence[str]) -> str:
    """
    Join atoms into one outgoing record, without its terminator.
    """
    return SEPARATOR.join(fields)
