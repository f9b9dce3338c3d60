#!/usr/bin/env python3
"""
Setup Service

Runs the full game setup pipeline: resolution detection, Steam/game
discovery, compatibility flags, game settings and the rendering wrapper.

Discovery stages are fatal: without a verified game directory nothing else
can run. The three stages after it are independent, so a failure in one is
recorded and the next still runs.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..handlers.path_handler import PathHandler
from ..handlers.settings_handler import SettingsHandler
from ..models.configuration import AppDescriptor, Resolution, SetupContext
from ..models.errors import RetrofitError
from ..models.results import ErrorKind, SetupReport, StageResult

logger = logging.getLogger(__name__)

STAGES = [
    ("resolution", "Detecting display resolution"),
    ("steam_root", "Locating Steam installation"),
    ("libraries", "Reading Steam library folders"),
    ("game", "Searching Steam libraries for the game"),
    ("compatibility", "Setting compatibility flags"),
    ("settings", "Writing game settings"),
    ("wrapper", "Installing rendering wrapper"),
]
STAGE_DESCRIPTIONS = dict(STAGES)

# (message, level) where level is one of: progress, success, error, skipped
Reporter = Callable[[str, str], None]


def _log_reporter(message: str, level: str) -> None:
    logger.info(message)


class SetupService:
    """
    Orchestrates a setup run and folds stage results into a SetupReport.
    """

    def __init__(self, registry, display_service, compatibility_service,
                 wrapper_service=None, reporter: Optional[Reporter] = None):
        self.registry = registry
        self.display_service = display_service
        self.compatibility_service = compatibility_service
        self.wrapper_service = wrapper_service
        self.reporter = reporter or _log_reporter

    # --- discovery (also used on its own by the `locate` command) ---

    def locate_steam_root(self) -> Path:
        return PathHandler.find_steam_root(self.registry)

    def locate_game(self, app: AppDescriptor) -> Path:
        """Steam root, libraries, then the game install. Raises on the first failure."""
        steam_root = self.locate_steam_root()
        libraries = PathHandler.get_all_steam_library_paths(steam_root)
        return PathHandler.find_game_install_path(libraries, app)

    # --- pipeline ---

    def run(self, context: SetupContext) -> SetupReport:
        """Run every stage in order and return the per-stage report."""
        logger.info(f"Starting setup for {context.app.display_name} (AppID {context.app.app_id})")
        results: List[StageResult] = []

        def fatal(result: StageResult) -> bool:
            results.append(result)
            return not result.ok

        if fatal(self._run_stage("resolution", lambda: self._stage_resolution(context))):
            return self._abort(results)
        resolution = results[-1].value

        if fatal(self._run_stage("steam_root", self._stage_steam_root)):
            return self._abort(results)
        steam_root = results[-1].value

        if fatal(self._run_stage("libraries", lambda: self._stage_libraries(steam_root))):
            return self._abort(results)
        libraries = results[-1].value

        if fatal(self._run_stage("game", lambda: self._stage_game(libraries, context.app))):
            return self._abort(results)
        game_path = results[-1].value

        results.append(self._run_stage(
            "compatibility", lambda: self._stage_compatibility(game_path, context.app)))
        results.append(self._run_stage(
            "settings", lambda: self._stage_settings(game_path, context, resolution)))

        if context.skip_wrapper:
            results.append(self._skip("wrapper", "skipped by request"))
        else:
            results.append(self._run_stage(
                "wrapper", lambda: self._stage_wrapper(game_path, resolution, context.wrapper_archive)))

        report = SetupReport(stages=tuple(results))
        logger.info(f"Setup finished: success={report.success}")
        return report

    def _run_stage(self, name: str, func: Callable[[], Tuple[str, object]]) -> StageResult:
        """Run one stage, converting any exception into a failed StageResult."""
        self.reporter(f"{STAGE_DESCRIPTIONS[name]}...", "progress")
        try:
            message, value = func()
        except RetrofitError as e:
            logger.error(f"Stage '{name}' failed: {e}")
            result = StageResult.failure(name, str(e), ErrorKind.EXPECTED)
        except Exception as e:
            logger.error(f"Unexpected error in stage '{name}': {e}", exc_info=True)
            result = StageResult.failure(name, f"Unexpected error: {e}", ErrorKind.FAULT)
        else:
            result = StageResult.success(name, message, value)

        self.reporter(result.message, "success" if result.ok else "error")
        return result

    def _skip(self, name: str, reason: str) -> StageResult:
        self.reporter(f"{STAGE_DESCRIPTIONS[name]}: {reason}", "skipped")
        return StageResult.skipped(name, reason)

    def _abort(self, results: List[StageResult]) -> SetupReport:
        failed = results[-1].name
        done = {result.name for result in results}
        skipped = [StageResult.skipped(name, f"not run, '{failed}' failed")
                   for name, _ in STAGES if name not in done]
        logger.error(f"Setup aborted at stage '{failed}'")
        return SetupReport(stages=tuple(results + skipped), fatal_stage=failed)

    # --- stages; each returns (outcome message, value) ---

    def _stage_resolution(self, context: SetupContext):
        if context.resolution is not None:
            return f"Using requested resolution {context.resolution}", context.resolution
        resolution = self.display_service.query()
        return f"Detected resolution {resolution}", resolution

    def _stage_steam_root(self):
        steam_root = self.locate_steam_root()
        return f"Steam found at {steam_root}", steam_root

    def _stage_libraries(self, steam_root: Path):
        libraries = PathHandler.get_all_steam_library_paths(steam_root)
        return f"Found {len(libraries)} Steam library folder(s)", libraries

    def _stage_game(self, libraries, app: AppDescriptor):
        game_path = PathHandler.find_game_install_path(libraries, app)
        return f"{app.display_name} found at {game_path}", game_path

    def _stage_compatibility(self, game_path: Path, app: AppDescriptor):
        value = self.compatibility_service.apply(game_path / app.executable)
        return f"Compatibility flags set: {value}", value

    def _stage_settings(self, game_path: Path, context: SetupContext, resolution: Resolution):
        entries = dict(context.extra_settings)
        entries["Width"] = str(resolution.width)
        entries["Height"] = str(resolution.height)
        settings_path = game_path / context.app.settings_file
        merged = SettingsHandler.merge_and_write(settings_path, entries)
        return f"Settings written to {settings_path}", merged

    def _stage_wrapper(self, game_path: Path, resolution: Resolution, archive: Optional[Path]):
        if self.wrapper_service is None:
            raise RetrofitError("Rendering wrapper is not configured")
        written = self.wrapper_service.install(game_path, resolution, archive)
        return f"Staged {len(written)} wrapper file(s) into {game_path}", written
