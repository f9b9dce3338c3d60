#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Retrofit CLI Frontend - Main Entry Point

Command-line interface for Retrofit that uses the backend services.
"""

import sys
import argparse
import logging

from retrofit import __version__ as retrofit_version
from retrofit.backend.handlers.config_handler import ConfigHandler
from retrofit.backend.handlers.path_handler import PathHandler
from retrofit.backend.handlers.registry_handler import MemoryRegistry, WindowsRegistry
from retrofit.backend.models.configuration import Resolution, SetupContext
from retrofit.backend.models.errors import RetrofitError
from retrofit.backend.services.compatibility_service import CompatibilityService
from retrofit.backend.services.display_service import DisplayService
from retrofit.backend.services.setup_service import SetupService
from retrofit.backend.services.wrapper_service import WrapperService
from retrofit.shared.colors import (
    COLOR_INFO, COLOR_SUCCESS, COLOR_WARNING, COLOR_ERROR, COLOR_DISABLED, COLOR_RESET
)

logger = logging.getLogger(__name__)

LEVEL_COLORS = {
    "progress": COLOR_INFO,
    "success": COLOR_SUCCESS,
    "error": COLOR_ERROR,
    "skipped": COLOR_DISABLED,
}


def print_stage_line(message: str, level: str) -> None:
    """Reporter used by SetupService: one colored line per stage event."""
    color = LEVEL_COLORS.get(level, "")
    prefix = "" if level == "progress" else "  "
    print(f"{prefix}{color}{message}{COLOR_RESET}")


class RetrofitCLI:
    """Main application class for Retrofit CLI Frontend"""

    def __init__(self, argv=None):
        self.argv = argv
        self.args = None
        self._configure_logging_early()
        self.config_handler = ConfigHandler()

    def _configure_logging_early(self):
        """Configure logging to be quiet during initialization, will be adjusted after arg parsing"""
        logging.getLogger().setLevel(logging.WARNING)

        if not logging.getLogger().handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logging.getLogger().addHandler(handler)

    def _configure_logging_final(self):
        """Configure final logging level based on parsed arguments"""
        from retrofit.backend.handlers.logging_handler import LoggingHandler

        cli_logger = LoggingHandler().setup_logger('retrofit')

        if self.args.debug:
            cli_logger.setLevel(logging.DEBUG)
            self._set_console_level(cli_logger, logging.DEBUG)
            print("Debug logging enabled for console and file")
        elif self.args.verbose:
            cli_logger.setLevel(logging.INFO)
            self._set_console_level(cli_logger, logging.INFO)
            print("Verbose logging enabled for console and file")
        else:
            # File still gets INFO; the console handler stays at ERROR
            cli_logger.setLevel(logging.INFO)

    @staticmethod
    def _set_console_level(cli_logger, level):
        for handler in cli_logger.handlers:
            if type(handler) is logging.StreamHandler:
                handler.setLevel(level)

    def run(self) -> int:
        self.args = self._parse_args()
        self._configure_logging_final()
        logger.debug(f"Parsed args: {self.args}")

        if self.args.version:
            print(f"Retrofit version {retrofit_version}")
            return 0

        if not getattr(self.args, 'command', None):
            self.parser.print_help()
            return 1

        try:
            return self._run_command(self.args.command, self.args)
        except RetrofitError as e:
            print(f"{COLOR_ERROR}{e}{COLOR_RESET}")
            return 1
        except KeyboardInterrupt:
            print(f"\n{COLOR_INFO}Exiting Retrofit...{COLOR_RESET}")
            return 1

    def _parse_args(self):
        """Parse command-line arguments"""
        parser = argparse.ArgumentParser(
            prog="retrofit",
            description="Retrofit: set up a classic Steam game for modern Windows displays"
        )
        parser.add_argument("-V", "--version", action="store_true", help="Show Retrofit version and exit")
        parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging (implies verbose)")
        parser.add_argument("-v", "--verbose", action="store_true", help="Enable informational console output")

        subparsers = parser.add_subparsers(dest="command", help="Command to run")

        app_args = argparse.ArgumentParser(add_help=False)
        app_args.add_argument("--app-id", help="Steam AppID of the game")
        app_args.add_argument("--exe", dest="executable", help="Game executable name, e.g. ArmyMen2.exe")
        app_args.add_argument("--name", dest="display_name", help="Display name of the game")

        setup = subparsers.add_parser("setup", parents=[app_args], help="Run the full game setup")
        setup.add_argument("--settings-file", help="Settings file name, relative to the game directory")
        setup.add_argument("--resolution", help="Use WIDTHxHEIGHT instead of the detected resolution")
        setup.add_argument("--save-resolution", action="store_true",
                           help="Remember --resolution for future runs")
        setup.add_argument("--skip-wrapper", action="store_true", help="Do not install the rendering wrapper")
        setup.add_argument("--wrapper-archive", help="Use a local wrapper zip instead of downloading it")
        setup.add_argument("--dry-run", action="store_true",
                           help="Read the registry but do not write compatibility flags to it")

        subparsers.add_parser("locate", parents=[app_args], help="Print the game's install directory")
        subparsers.add_parser("libraries", help="List Steam library folders and their apps")
        subparsers.add_parser("resolution", help="Print the detected display resolution")

        self.parser = parser
        return parser.parse_args(self.argv)

    def _run_command(self, command, args) -> int:
        """Run a specific command"""
        if command == "setup":
            return self._handle_setup(args)
        elif command == "locate":
            return self._handle_locate(args)
        elif command == "libraries":
            return self._handle_libraries()
        elif command == "resolution":
            return self._handle_resolution()
        else:
            print(f"Unknown command: {command}")
            return 1

    def _app_descriptor(self, args):
        return self.config_handler.app_descriptor({
            'app_id': args.app_id,
            'executable': args.executable,
            'display_name': args.display_name,
            'settings_file': getattr(args, 'settings_file', None),
        })

    def _build_setup_service(self, dry_run: bool = False) -> SetupService:
        registry = WindowsRegistry()
        if dry_run:
            registry = MemoryRegistry(fallback=registry)
        config = self.config_handler
        wrapper_service = WrapperService(
            url=config.get("wrapper_url"),
            members=config.get("wrapper_members", []),
            config_name=config.get("wrapper_config_name", "dgVoodoo.conf"),
            timeout=config.get("download_timeout", 60),
        )
        return SetupService(
            registry=registry,
            display_service=DisplayService(),
            compatibility_service=CompatibilityService(registry, config.get("compat_flags", [])),
            wrapper_service=wrapper_service,
            reporter=print_stage_line,
        )

    def _handle_setup(self, args) -> int:
        app = self._app_descriptor(args)
        resolution = args.resolution or self.config_handler.get_saved_resolution()
        context = SetupContext(
            app=app,
            resolution=Resolution.parse(resolution).validate_user_choice() if resolution else None,
            extra_settings={str(k): str(v) for k, v in self.config_handler.get("extra_settings", {}).items()},
            skip_wrapper=args.skip_wrapper,
            wrapper_archive=args.wrapper_archive,
        )

        if args.save_resolution and args.resolution:
            self.config_handler.save_resolution(context.resolution)

        print(f"{COLOR_INFO}Setting up {app.display_name} (AppID {app.app_id}){COLOR_RESET}")
        if args.dry_run:
            print(f"{COLOR_WARNING}Dry run: registry changes will not be saved{COLOR_RESET}")

        report = self._build_setup_service(args.dry_run).run(context)

        print()
        color = COLOR_SUCCESS if report.success else COLOR_ERROR
        print(f"{color}Summary{COLOR_RESET}")
        print(report.summary())
        return 0 if report.success else 1

    def _handle_locate(self, args) -> int:
        app = self._app_descriptor(args)
        game_path = self._build_setup_service().locate_game(app)
        print(game_path)
        return 0

    def _handle_libraries(self) -> int:
        steam_root = self._build_setup_service().locate_steam_root()
        print(f"{COLOR_INFO}Steam: {steam_root}{COLOR_RESET}")
        for path, app_ids in PathHandler.describe_libraries(steam_root):
            apps = ", ".join(app_ids) if app_ids else "no apps"
            print(f"  {path}  ({apps})")
        return 0

    def _handle_resolution(self) -> int:
        print(DisplayService().query())
        return 0


def main(argv=None) -> int:
    return RetrofitCLI(argv).run()


if __name__ == "__main__":
    # This should not be called directly - use __main__.py instead
    print("Please use: python -m retrofit")
    sys.exit(1)
