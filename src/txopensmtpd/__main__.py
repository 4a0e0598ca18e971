# Copyright (c) Twisted Matrix Laboratories.
# See LICENSE for details.

import sys

from twisted.internet.task import react

from txopensmtpd._main import main

if __name__ == "__main__":
    react(main, sys.argv[1:])
