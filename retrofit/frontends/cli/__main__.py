#!/usr/bin/env python3
"""
Entry point for the Retrofit CLI frontend

Usage: python -m retrofit.frontends.cli
"""

import sys

from .main import main

if __name__ == "__main__":
    sys.exit(main())
