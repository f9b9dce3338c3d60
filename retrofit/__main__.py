#!/usr/bin/env python3
"""
Entry point for Retrofit

Usage: python -m retrofit
"""

import sys

from retrofit.frontends.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
