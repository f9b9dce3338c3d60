#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Path Handler Module
Locates the Steam installation, its library folders, and installed games
"""

import re
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import vdf

from ..models.configuration import AppDescriptor
from ..models.errors import NotFoundError, ManifestParseError
from ..models.results import SearchOutcome
from .registry_handler import RegistryLocation

# Initialize logger
logger = logging.getLogger(__name__)

# Registry locations holding the Steam install path, in probe order
STEAM_REGISTRY_LOCATIONS = [
    RegistryLocation("HKEY_LOCAL_MACHINE", r"SOFTWARE\WOW6432Node\Valve\Steam", "InstallPath"),
    RegistryLocation("HKEY_LOCAL_MACHINE", r"SOFTWARE\Valve\Steam", "InstallPath"),
]

LIBRARY_FOLDERS_VDF = "libraryfolders.vdf"


class PathHandler:
    """
    Handles Steam path discovery: install root, library folders, game installs
    """

    @staticmethod
    def extract_vdf_values(content: str, key: str) -> List[str]:
        """
        Pull every quoted value following a quoted key out of VDF/ACF text.

        The nested brace structure is not parsed; matches are returned in
        document order. Escaped backslashes and quotes are unescaped.
        """
        pattern = re.compile(r'"' + re.escape(key) + r'"\s*"((?:[^"\\]|\\.)*)"')
        return [re.sub(r'\\(["\\])', r'\1', m.group(1)) for m in pattern.finditer(content)]

    @staticmethod
    def _read_text(path: Path) -> str:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    @staticmethod
    def find_steam_root(registry) -> Path:
        """
        Find the Steam install directory from the registry.

        Tries the 64-bit location first, then the legacy 32-bit one. A value
        only counts if it can be read and points at an existing directory.

        Raises:
            NotFoundError: neither location yields an existing directory
        """
        logger.debug("Searching registry for Steam install path...")
        for location in STEAM_REGISTRY_LOCATIONS:
            try:
                value = registry.read(location)
            except OSError as e:
                logger.debug(f"Registry value {location} unavailable: {e}")
                continue

            if not value:
                logger.debug(f"Registry value {location} is empty")
                continue

            steam_root = Path(value)
            if steam_root.is_dir():
                logger.info(f"Found Steam installation at: {steam_root}")
                return steam_root
            logger.warning(f"Registry value {location} points at missing directory: {steam_root}")

        raise NotFoundError("Steam installation not found in registry", STEAM_REGISTRY_LOCATIONS)

    @staticmethod
    def get_all_steam_library_paths(steam_root: Union[str, Path]) -> List[str]:
        """
        Read every library folder listed in <steam_root>/steamapps/libraryfolders.vdf.

        Returns paths in the order the manifest lists them.

        Raises:
            ManifestParseError: the file is missing, unreadable, or lists no paths
        """
        vdf_path = Path(steam_root) / "steamapps" / LIBRARY_FOLDERS_VDF
        logger.info(f"Parsing libraryfolders.vdf: {vdf_path}")
        if not vdf_path.is_file():
            raise ManifestParseError("libraryfolders.vdf not found", vdf_path)

        try:
            content = PathHandler._read_text(vdf_path)
        except OSError as e:
            logger.error(f"Failed to read {vdf_path}: {e}")
            raise ManifestParseError("libraryfolders.vdf could not be read", vdf_path) from e

        library_paths = [p for p in PathHandler.extract_vdf_values(content, "path") if p]
        if not library_paths:
            raise ManifestParseError("No library paths found in libraryfolders.vdf", vdf_path)

        logger.info(f"Detected Steam libraries: {library_paths}")
        return library_paths

    @staticmethod
    def read_install_dir(manifest_path: Path) -> Optional[str]:
        """Return the installdir field of an appmanifest, or None if it can't be read."""
        try:
            content = PathHandler._read_text(manifest_path)
        except OSError as e:
            logger.warning(f"Error reading appmanifest {manifest_path}: {e}")
            return None

        values = [v for v in PathHandler.extract_vdf_values(content, "installdir") if v]
        if not values:
            logger.warning(f"No installdir entry in {manifest_path}")
            return None
        return values[0]

    @staticmethod
    def search_app_install(library_paths: Sequence[Union[str, Path]], app: AppDescriptor) -> SearchOutcome:
        """
        Probe each library, in order, for an installed copy of app.

        A library matches when its appmanifest names an install directory that
        exists under steamapps/common and contains the app's executable. Every
        other condition just moves on to the next library.
        """
        probed = []
        for library in library_paths:
            steamapps = Path(library) / "steamapps"
            probed.append(steamapps)

            manifest_path = steamapps / app.manifest_name
            logger.debug(f"Checking for {manifest_path}")
            if not manifest_path.is_file():
                continue

            install_dir_name = PathHandler.read_install_dir(manifest_path)
            if not install_dir_name:
                continue

            install_path = steamapps / "common" / install_dir_name
            if not install_path.is_dir():
                logger.info(f"{app.display_name} manifest found but install directory is missing: {install_path}")
                continue

            if not (install_path / app.executable).is_file():
                logger.info(f"{app.executable} not found in {install_path}")
                continue

            logger.info(f"Found {app.display_name} at {install_path}")
            return SearchOutcome(install_path=install_path, probed=tuple(probed))

        logger.warning(f"{app.display_name} (AppID {app.app_id}) not found in {len(probed)} Steam libraries")
        return SearchOutcome(install_path=None, probed=tuple(probed))

    @staticmethod
    def find_game_install_path(library_paths: Sequence[Union[str, Path]], app: AppDescriptor) -> Path:
        """Like search_app_install, but raises NotFoundError when nothing matches."""
        return PathHandler.search_app_install(library_paths, app).require(app.display_name)

    @staticmethod
    def describe_libraries(steam_root: Union[str, Path]) -> List[Tuple[str, List[str]]]:
        """
        Load libraryfolders.vdf as a tree and list the AppIDs Steam records per library.

        Only used for diagnostics output; the setup pipeline relies on
        get_all_steam_library_paths.
        """
        vdf_path = Path(steam_root) / "steamapps" / LIBRARY_FOLDERS_VDF
        try:
            with open(vdf_path, 'r', encoding='utf-8', errors='replace') as f:
                data = vdf.load(f)
        except (OSError, SyntaxError) as e:
            raise ManifestParseError(f"libraryfolders.vdf could not be loaded ({e})", vdf_path) from e

        # Older Steam clients wrote "LibraryFolders", newer ones "libraryfolders"
        folders = next((v for k, v in data.items() if k.lower() == "libraryfolders"), {})
        libraries = []
        for entry in folders.values():
            if not isinstance(entry, dict):
                # Pre-2021 format: "1" "D:\\SteamLibrary"
                if entry and not str(entry).isdigit():
                    libraries.append((str(entry), []))
                continue
            path = entry.get("path")
            if not path:
                continue
            apps = entry.get("apps", {})
            libraries.append((path, list(apps.keys()) if isinstance(apps, dict) else []))
        return libraries
