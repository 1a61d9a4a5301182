#!/usr/bin/env python3
"""Main entry point for IPVerify."""

import sys

from ipverify.__main__ import main


if __name__ == "__main__":
    sys.exit(main())
