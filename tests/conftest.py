from __future__ import annotations

import logging
from pathlib import Path

import pytest

from retrofit.backend.handlers.config_handler import ConfigHandler
from retrofit.backend.handlers.path_handler import STEAM_REGISTRY_LOCATIONS
from retrofit.backend.handlers.registry_handler import MemoryRegistry
from retrofit.backend.models.configuration import AppDescriptor


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep config, logs and downloads inside tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("RETROFIT_DATA_DIR", str(home / "Retrofit"))
    monkeypatch.setattr(ConfigHandler, "_instance", None)
    monkeypatch.setattr(ConfigHandler, "_initialized", False)
    yield home
    # The CLI attaches handlers bound to this test's streams and log dir
    app_logger = logging.getLogger("retrofit")
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def app():
    return AppDescriptor(
        app_id="299220",
        executable="ArmyMen2.exe",
        display_name="Army Men II",
        settings_file="ArmyMen2.ini",
    )


def write_library_folders(steam_root: Path, libraries) -> Path:
    steamapps = steam_root / "steamapps"
    steamapps.mkdir(parents=True, exist_ok=True)
    lines = ['"libraryfolders"', '{']
    for index, library in enumerate(libraries):
        escaped = str(library).replace("\\", "\\\\")
        lines += [
            f'\t"{index}"',
            '\t{',
            f'\t\t"path"\t\t"{escaped}"',
            '\t\t"label"\t\t""',
            '\t\t"apps"',
            '\t\t{',
            '\t\t}',
            '\t}',
        ]
    lines.append('}')
    vdf_path = steamapps / "libraryfolders.vdf"
    vdf_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return vdf_path


def write_app_manifest(library: Path, app: AppDescriptor, install_dir: str) -> Path:
    steamapps = library / "steamapps"
    steamapps.mkdir(parents=True, exist_ok=True)
    manifest = steamapps / app.manifest_name
    manifest.write_text(
        '"AppState"\n'
        '{\n'
        f'\t"appid"\t\t"{app.app_id}"\n'
        f'\t"name"\t\t"{app.display_name}"\n'
        f'\t"installdir"\t\t"{install_dir}"\n'
        '}\n',
        encoding="utf-8",
    )
    return manifest


def install_game(library: Path, app: AppDescriptor, install_dir: str = "Army Men II",
                 with_manifest: bool = True, with_dir: bool = True, with_exe: bool = True) -> Path:
    """Lay out a game install under library; each part can be left out."""
    game_path = library / "steamapps" / "common" / install_dir
    if with_manifest:
        write_app_manifest(library, app, install_dir)
    if with_dir:
        game_path.mkdir(parents=True, exist_ok=True)
        if with_exe:
            (game_path / app.executable).write_bytes(b"MZ")
    return game_path


@pytest.fixture
def steam_install(tmp_path, app):
    """A Steam root registered in the primary registry location, with the game installed in it."""
    steam_root = tmp_path / "Steam"
    write_library_folders(steam_root, [steam_root])
    game_path = install_game(steam_root, app)
    registry = MemoryRegistry({STEAM_REGISTRY_LOCATIONS[0]: str(steam_root)})
    return steam_root, game_path, registry
