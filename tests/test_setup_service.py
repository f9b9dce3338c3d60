from __future__ import annotations

import zipfile

import pytest

from conftest import write_library_folders
from retrofit.backend.handlers.path_handler import STEAM_REGISTRY_LOCATIONS
from retrofit.backend.handlers.registry_handler import MemoryRegistry
from retrofit.backend.models.configuration import Resolution, SetupContext
from retrofit.backend.models.errors import DisplayQueryError, RegistryWriteError
from retrofit.backend.models.results import ErrorKind, StageStatus
from retrofit.backend.services.compatibility_service import CompatibilityService
from retrofit.backend.services.setup_service import SetupService, STAGES
from retrofit.backend.services.wrapper_service import WrapperService


class StubDisplay:
    def __init__(self, resolution=None, error=None):
        self.resolution = resolution or Resolution(1920, 1080)
        self.error = error
        self.calls = 0

    def query(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.resolution


class ReadOnlyRegistry(MemoryRegistry):
    def write(self, location, value):
        raise RegistryWriteError("Access denied writing registry value", location)


@pytest.fixture
def wrapper_archive(tmp_path):
    archive = tmp_path / "dgVoodoo2.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("MS/x86/DDraw.dll", b"ddraw")
        zf.writestr("MS/x86/D3DImm.dll", b"d3dimm")
    return archive


def make_service(registry, display=None, lines=None):
    def reporter(message, level):
        if lines is not None:
            lines.append((level, message))

    return SetupService(
        registry=registry,
        display_service=display or StubDisplay(),
        compatibility_service=CompatibilityService(registry, ["WINXPSP3"]),
        wrapper_service=WrapperService(None, ["MS/x86/DDraw.dll", "MS/x86/D3DImm.dll"], "dgVoodoo.conf"),
        reporter=reporter,
    )


def test_full_setup_succeeds(steam_install, app, wrapper_archive):
    steam_root, game_path, registry = steam_install
    (game_path / app.settings_file).write_text("Volume=50\n")

    report = make_service(registry).run(SetupContext(app=app, wrapper_archive=wrapper_archive))

    assert report.success
    assert report.errors == []
    assert [s.name for s in report.stages] == [name for name, _ in STAGES]
    assert report.game_path == game_path
    assert (game_path / app.settings_file).read_text().splitlines() == [
        "Height=1080", "Volume=50", "Width=1920",
    ]
    assert (game_path / "DDraw.dll").read_bytes() == b"ddraw"
    assert "h:1920, v:1080" in (game_path / "dgVoodoo.conf").read_text()
    location = CompatibilityService.location_for(game_path / app.executable)
    assert registry.read(location) == "~ WINXPSP3"


def test_detected_resolution_is_written_unchanged(steam_install, app):
    _, game_path, registry = steam_install
    display = StubDisplay(Resolution(3440, 1440))

    report = make_service(registry, display).run(SetupContext(app=app, skip_wrapper=True))

    assert report.success
    assert report.stage("resolution").value == Resolution(3440, 1440)
    settings = (game_path / app.settings_file).read_text()
    assert "Width=3440" in settings and "Height=1440" in settings


def test_requested_resolution_skips_display_query(steam_install, app):
    _, game_path, registry = steam_install
    display = StubDisplay()

    report = make_service(registry, display).run(
        SetupContext(app=app, resolution="1600x1200", skip_wrapper=True))

    assert report.success
    assert display.calls == 0
    assert "Width=1600" in (game_path / app.settings_file).read_text()


def test_missing_steam_is_fatal(app):
    lines = []
    report = make_service(MemoryRegistry(), lines=lines).run(SetupContext(app=app))

    assert not report.success
    assert report.fatal_stage == "steam_root"
    steam = report.stage("steam_root")
    assert steam.status == StageStatus.FAILED
    assert steam.error_kind == ErrorKind.EXPECTED
    for name in ("libraries", "game", "compatibility", "settings", "wrapper"):
        assert report.stage(name).status == StageStatus.SKIPPED
    # one progress line and one outcome line per attempted stage
    assert [level for level, _ in lines] == ["progress", "success", "progress", "error"]


def test_empty_library_manifest_is_fatal(tmp_path, app):
    steam_root = tmp_path / "Steam"
    (steam_root / "steamapps").mkdir(parents=True)
    (steam_root / "steamapps" / "libraryfolders.vdf").write_text('"libraryfolders"\n{\n}\n')
    registry = MemoryRegistry({STEAM_REGISTRY_LOCATIONS[0]: str(steam_root)})

    report = make_service(registry).run(SetupContext(app=app))

    assert report.fatal_stage == "libraries"
    assert report.stage("game").status == StageStatus.SKIPPED


def test_game_not_found_is_fatal(tmp_path, app):
    steam_root = tmp_path / "Steam"
    write_library_folders(steam_root, [steam_root, tmp_path / "Other"])
    registry = MemoryRegistry({STEAM_REGISTRY_LOCATIONS[0]: str(steam_root)})

    report = make_service(registry).run(SetupContext(app=app))

    assert report.fatal_stage == "game"
    message = report.stage("game").message
    assert str(steam_root / "steamapps") in message
    assert str(tmp_path / "Other" / "steamapps") in message


def test_display_failure_is_fatal(steam_install, app):
    _, _, registry = steam_install
    display = StubDisplay(error=DisplayQueryError("no display"))

    report = make_service(registry, display).run(SetupContext(app=app))

    assert report.fatal_stage == "resolution"
    assert report.stage("steam_root").status == StageStatus.SKIPPED


def test_soft_failures_do_not_stop_later_stages(steam_install, app):
    steam_root, game_path, _ = steam_install
    registry = ReadOnlyRegistry({STEAM_REGISTRY_LOCATIONS[0]: str(steam_root)})

    # no wrapper_url and no archive: wrapper stage fails too
    report = make_service(registry).run(SetupContext(app=app))

    assert not report.success
    assert report.fatal_stage is None
    assert report.stage("compatibility").status == StageStatus.FAILED
    assert report.stage("settings").ok
    assert report.stage("wrapper").status == StageStatus.FAILED
    assert len(report.errors) == 2
    assert (game_path / app.settings_file).exists()
    assert "2 error(s)" in report.summary()


def test_unexpected_exception_is_reported_as_fault(steam_install, app):
    _, _, registry = steam_install
    service = make_service(registry)

    def explode(executable_path):
        raise RuntimeError("boom")

    service.compatibility_service.apply = explode

    report = service.run(SetupContext(app=app, skip_wrapper=True))

    compat = report.stage("compatibility")
    assert compat.error_kind == ErrorKind.FAULT
    assert "boom" in compat.message
    assert report.stage("settings").ok


def test_skip_wrapper_is_not_a_failure(steam_install, app):
    _, game_path, registry = steam_install

    report = make_service(registry).run(SetupContext(app=app, skip_wrapper=True))

    assert report.success
    assert report.stage("wrapper").status == StageStatus.SKIPPED
    assert not (game_path / "dgVoodoo.conf").exists()


def test_extra_settings_are_merged(steam_install, app):
    _, game_path, registry = steam_install
    context = SetupContext(app=app, skip_wrapper=True, extra_settings={"Windowed": "0", "Width": "1"})

    make_service(registry).run(context)

    assert (game_path / app.settings_file).read_text().splitlines() == [
        "Height=1080", "Width=1920", "Windowed=0",
    ]


def test_locate_game(steam_install, app):
    _, game_path, registry = steam_install

    assert make_service(registry).locate_game(app) == game_path
