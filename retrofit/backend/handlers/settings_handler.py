#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Settings Handler Module
Reads and merges the game's flat key=value settings file
"""

import os
import re
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from ..models.errors import SettingsWriteError

logger = logging.getLogger(__name__)

SETTING_LINE = re.compile(r'^\s*([^=]+?)\s*=\s*(.*?)\s*$')

# Bytes that are not UTF-8 (old games often write cp1252) survive a
# read/write cycle unchanged through surrogateescape.
FILE_ENCODING = 'utf-8'
FILE_ERRORS = 'surrogateescape'


class SettingsHandler:
    """
    Read-merge-overwrite access to a flat settings file.

    Comments, blank lines, and anything else not shaped like key=value are
    dropped on rewrite; output is sorted by key.
    """

    @staticmethod
    def parse_settings(content: str) -> Dict[str, str]:
        settings = {}
        for line in content.split('\n'):
            match = SETTING_LINE.match(line)
            if match:
                settings[match.group(1)] = match.group(2)
        return settings

    @staticmethod
    def serialize_settings(settings: Mapping[str, str]) -> str:
        return "".join(f"{key}={settings[key]}\n" for key in sorted(settings))

    @staticmethod
    def read_settings(path: Union[str, Path]) -> Dict[str, str]:
        """Load a settings file; a missing file is an empty document."""
        path = Path(path)
        if not path.exists():
            logger.debug(f"No existing settings file at {path}")
            return {}
        with open(path, 'r', encoding=FILE_ENCODING, errors=FILE_ERRORS) as f:
            return SettingsHandler.parse_settings(f.read())

    @staticmethod
    def entry_problem(key: str, value: str) -> Optional[str]:
        """
        Why key=value would not read back as the same single pair, or None if it would.
        """
        if not key or key != key.strip():
            return "key is empty or has surrounding whitespace"
        if '=' in key:
            return "key contains '='"
        if any(c in key or c in value for c in '\r\n'):
            return "line breaks are not allowed"
        if value != value.strip():
            return "value has surrounding whitespace"
        return None

    @staticmethod
    def merge_and_write(path: Union[str, Path], new_entries: Mapping[str, str]) -> Dict[str, str]:
        """
        Merge new_entries into the settings file at path and write it back.

        Existing keys not in new_entries keep their values, byte for byte.

        Returns:
            The merged settings as written.

        Raises:
            SettingsWriteError: an entry can't be stored as one key=value line,
                or reading/writing the file failed
        """
        path = Path(path)
        entries = {str(key): str(value) for key, value in new_entries.items()}
        for key, value in entries.items():
            problem = SettingsHandler.entry_problem(key, value)
            if problem:
                raise SettingsWriteError(f"Invalid setting {key!r} ({problem})", path)

        try:
            settings = SettingsHandler.read_settings(path)
        except OSError as e:
            raise SettingsWriteError(f"Failed to read existing settings ({e})", path) from e

        settings.update(entries)

        try:
            os.makedirs(path.parent, exist_ok=True)
            with open(path, 'w', encoding=FILE_ENCODING, errors=FILE_ERRORS) as f:
                f.write(SettingsHandler.serialize_settings(settings))
        except (OSError, UnicodeError) as e:
            logger.error(f"Failed to write settings file {path}: {e}")
            raise SettingsWriteError(f"Failed to write settings ({e})", path) from e

        logger.info(f"Wrote {len(entries)} setting(s) to {path} ({len(settings)} total)")
        return settings
