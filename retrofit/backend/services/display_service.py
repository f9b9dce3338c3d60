#!/usr/bin/env python3
"""
Display Service

Queries the primary display's current resolution.
"""

import re
import sys
import shutil
import logging
import subprocess

from ..models.configuration import Resolution
from ..models.errors import DisplayQueryError

logger = logging.getLogger(__name__)

SM_CXSCREEN = 0
SM_CYSCREEN = 1


class DisplayService:
    """
    Service for detecting the current display resolution
    """

    def query(self) -> Resolution:
        """
        Return the primary display resolution.

        Raises:
            DisplayQueryError: the resolution could not be determined
        """
        logger.debug("Querying display resolution...")
        if sys.platform == "win32":
            resolution = self._query_windows()
        else:
            resolution = self._query_xrandr()
        logger.info(f"Detected display resolution: {resolution}")
        return resolution

    def _query_windows(self) -> Resolution:
        import ctypes

        try:
            user32 = ctypes.WinDLL("user32", use_last_error=True)
            # Without this, scaled displays report the virtualized resolution
            user32.SetProcessDPIAware()
            width = user32.GetSystemMetrics(SM_CXSCREEN)
            height = user32.GetSystemMetrics(SM_CYSCREEN)
        except (OSError, AttributeError) as e:
            raise DisplayQueryError(f"Windows display query failed: {e}") from e
        return Resolution(width, height)

    def _query_xrandr(self) -> Resolution:
        if not shutil.which('xrandr'):
            raise DisplayQueryError("Cannot detect resolution: xrandr not found")
        try:
            result = subprocess.run(
                ['xrandr', '--current'],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                timeout=5
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise DisplayQueryError(f"xrandr failed: {e}") from e

        if result.returncode != 0:
            raise DisplayQueryError(f"xrandr exited with status {result.returncode}")
        return self.parse_xrandr(result.stdout)

    @staticmethod
    def parse_xrandr(output: str) -> Resolution:
        """Read the 'current W x H' figure from xrandr's Screen line."""
        match = re.search(r'current\s+(\d+)\s*x\s*(\d+)', output)
        if not match:
            raise DisplayQueryError("Could not find current resolution in xrandr output")
        return Resolution(int(match.group(1)), int(match.group(2)))
