#!/usr/bin/env python3
"""Start the interactive trade execution CLI."""

import asyncio
import sys

from trade_cli.main import main

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
