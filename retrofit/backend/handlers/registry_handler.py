#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Registry Handler Module
Reads and writes string values in the Windows registry
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..models.errors import RegistryWriteError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryLocation:
    """Address of a single registry value."""
    hive: str  # e.g. "HKEY_LOCAL_MACHINE"
    key: str
    value_name: str

    def __str__(self) -> str:
        return f"{self.hive}\\{self.key}\\{self.value_name}"


class WindowsRegistry:
    """
    String value store backed by winreg.

    read() raises OSError when the value is absent, access is denied, or
    there is no registry on this OS. Callers treat all of those as "absent".
    """

    def _winreg(self):
        try:
            import winreg
        except ImportError as e:
            raise OSError("Registry is not available on this platform") from e
        return winreg

    def read(self, location: RegistryLocation) -> str:
        winreg = self._winreg()
        hive = getattr(winreg, location.hive)
        with winreg.OpenKey(hive, location.key, 0, winreg.KEY_READ) as key:
            value, _value_type = winreg.QueryValueEx(key, location.value_name)
        logger.debug(f"Read registry value {location}: {value}")
        return str(value)

    def write(self, location: RegistryLocation, value: str) -> None:
        try:
            winreg = self._winreg()
            hive = getattr(winreg, location.hive)
            with winreg.CreateKeyEx(hive, location.key, 0, winreg.KEY_WRITE) as key:
                winreg.SetValueEx(key, location.value_name, 0, winreg.REG_SZ, value)
        except PermissionError as e:
            raise RegistryWriteError("Access denied writing registry value", location) from e
        except OSError as e:
            raise RegistryWriteError(f"Failed to write registry value ({e})", location) from e
        logger.debug(f"Wrote registry value {location}: {value}")


class MemoryRegistry:
    """
    Dict-backed registry used for dry runs and on systems without winreg.

    With a fallback store, reads of values not written in memory go to the
    fallback, and writes never reach it.
    """

    def __init__(self, values: Optional[Dict[RegistryLocation, str]] = None, fallback=None):
        self.fallback = fallback
        self.values: Dict[Tuple[str, str, str], str] = {}
        for location, value in (values or {}).items():
            self.values[self._key(location)] = value

    @staticmethod
    def _key(location: RegistryLocation) -> Tuple[str, str, str]:
        # Registry key and value names are case-insensitive
        return (location.hive.upper(), location.key.lower(), location.value_name.lower())

    def read(self, location: RegistryLocation) -> str:
        key = self._key(location)
        if key in self.values:
            return self.values[key]
        if self.fallback is not None:
            return self.fallback.read(location)
        raise FileNotFoundError(f"Registry value not found: {location}")

    def write(self, location: RegistryLocation, value: str) -> None:
        logger.debug(f"[dry run] registry {location} = {value}")
        self.values[self._key(location)] = value
