#!/usr/bin/env python3
"""
Compatibility Service

Sets Windows per-executable compatibility flags (the "Compatibility" tab of
an exe's properties dialog) via the AppCompatFlags\\Layers registry key.
"""

import logging
from pathlib import Path
from typing import List, Sequence

from ..handlers.registry_handler import RegistryLocation

logger = logging.getLogger(__name__)

COMPAT_LAYERS_KEY = r"Software\Microsoft\Windows NT\CurrentVersion\AppCompatFlags\Layers"


class CompatibilityService:
    """Writes compatibility layer flags for a game executable."""

    def __init__(self, registry, flags: Sequence[str]):
        self.registry = registry
        self.flags = [flag.upper() for flag in flags]

    @staticmethod
    def location_for(executable_path: Path) -> RegistryLocation:
        return RegistryLocation("HKEY_CURRENT_USER", COMPAT_LAYERS_KEY, str(executable_path))

    def current_flags(self, executable_path: Path) -> List[str]:
        """Flags already set for the executable, without the leading '~' marker."""
        try:
            value = self.registry.read(self.location_for(executable_path))
        except OSError:
            return []
        return [flag for flag in value.split() if flag != "~"]

    def apply(self, executable_path: Path) -> str:
        """
        Add the configured flags to the executable's compatibility layers.

        Existing flags are kept. Returns the value written.

        Raises:
            RegistryWriteError: the registry value could not be written
        """
        merged = self.current_flags(executable_path)
        for flag in self.flags:
            if flag not in merged:
                merged.append(flag)

        value = " ".join(["~"] + merged)
        logger.info(f"Setting compatibility flags for {executable_path}: {value}")
        self.registry.write(self.location_for(executable_path), value)
        return value
