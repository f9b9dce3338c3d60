#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration Handler Module
Handles application settings and configuration
"""

import os
import json
import logging
from typing import Optional, Dict, Any

from ..models.configuration import AppDescriptor
from ..models.errors import RetrofitError

# Initialize logger
logger = logging.getLogger(__name__)

CONFIG_VERSION = "0.3.0"


class ConfigHandler:
    """
    Handles application configuration and settings
    Singleton pattern ensures all code shares the same instance
    """
    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigHandler, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize configuration handler with default settings"""
        # Only initialize once (singleton pattern)
        if ConfigHandler._initialized:
            return
        ConfigHandler._initialized = True

        self.config_dir = os.path.expanduser("~/.config/retrofit")
        self.config_file = os.path.join(self.config_dir, "config.json")
        self.settings = {
            "version": CONFIG_VERSION,
            "app_id": None,  # Steam AppID of the game to set up
            "executable": "ArmyMen2.exe",  # Executable expected inside the install dir
            "display_name": "Army Men II",
            "settings_file": "ArmyMen2.ini",  # Flat key=value settings file, relative to the install dir
            "extra_settings": {},  # Written alongside Width/Height on every setup run
            "compat_flags": ["WINXPSP3", "DISABLEDXMAXIMIZEDWINDOWEDMODE", "HIGHDPIAWARE"],
            "wrapper_url": None,  # Download URL of the rendering wrapper archive (zip)
            "wrapper_members": ["MS/x86/DDraw.dll", "MS/x86/D3DImm.dll"],
            "wrapper_config_name": "dgVoodoo.conf",
            "download_timeout": 60,  # seconds
            "resolution": None,  # Saved user resolution, e.g. "1920x1080"
        }

        # Load configuration if exists
        self._load_config()

        # Perform version migrations
        self._migrate_config()

    def _load_config(self):
        """
        Load configuration from file and update in-memory cache.
        """
        try:
            if os.path.exists(self.config_file):
                with open(self.config_file, 'r') as f:
                    saved_config = json.load(f)
                    # Update settings with saved values while preserving defaults
                    self.settings.update(saved_config)
                    logger.debug("Loaded configuration from file")
            else:
                logger.debug("No configuration file found, using defaults")
        except Exception as e:
            logger.error(f"Error loading configuration: {e}")

    def _migrate_config(self):
        """
        Migrate configuration between versions
        Handles renamed keys and data format updates
        """
        current_version = self.settings.get("version", "0.0.0")

        if current_version == CONFIG_VERSION:
            return

        logger.info(f"Migrating config from {current_version} to {CONFIG_VERSION}")

        from packaging import version
        if version.parse(current_version) < version.parse("0.3.0"):
            # 0.2.x stored a single "compat_mode" string instead of a flag list
            compat_mode = self.settings.pop("compat_mode", None)
            if compat_mode:
                self.settings["compat_flags"] = [flag for flag in compat_mode.split() if flag != "~"]
                logger.info(f"Migrated compat_mode to compat_flags: {self.settings['compat_flags']}")

            # 0.2.x kept the wrapper URL under "dgvoodoo_url"
            legacy_url = self.settings.pop("dgvoodoo_url", None)
            if legacy_url and not self.settings.get("wrapper_url"):
                self.settings["wrapper_url"] = legacy_url

        self.settings["version"] = CONFIG_VERSION
        self.save_config()
        logger.info("Config migration completed")

    def _create_config_dir(self):
        """Create configuration directory if it doesn't exist"""
        try:
            os.makedirs(self.config_dir, exist_ok=True)
            logger.debug(f"Created configuration directory: {self.config_dir}")
        except Exception as e:
            logger.error(f"Error creating configuration directory: {e}")

    def save_config(self):
        """Save current configuration to file"""
        try:
            self._create_config_dir()
            with open(self.config_file, 'w') as f:
                json.dump(self.settings, f, indent=2)
            logger.debug("Saved configuration to file")
            return True
        except Exception as e:
            logger.error(f"Error saving configuration: {e}")
            return False

    def get(self, key, default=None):
        """Get a configuration value by key"""
        return self.settings.get(key, default)

    def save_resolution(self, resolution):
        """
        Save resolution setting to configuration

        Args:
            resolution (str): Resolution string (e.g., '1920x1080'), or None to clear

        Returns:
            bool: True if saved successfully, False otherwise
        """
        self.settings["resolution"] = str(resolution) if resolution else None
        logger.debug(f"Resolution saved: {self.settings['resolution']}")
        return self.save_config()

    def get_saved_resolution(self) -> Optional[str]:
        """Retrieve the saved resolution from configuration"""
        return self.settings.get("resolution")

    def app_descriptor(self, overrides: Optional[Dict[str, Any]] = None) -> AppDescriptor:
        """
        Build the descriptor of the game to set up from configuration.

        Args:
            overrides: values from the command line; None entries are ignored

        Raises:
            RetrofitError: if no Steam AppID is configured
        """
        values = {
            'app_id': self.settings.get("app_id"),
            'executable': self.settings.get("executable"),
            'display_name': self.settings.get("display_name"),
            'settings_file': self.settings.get("settings_file"),
        }
        for key, value in (overrides or {}).items():
            if value is not None:
                values[key] = value

        if not values['app_id']:
            raise RetrofitError(
                f"No Steam AppID configured. Pass --app-id or set \"app_id\" in {self.config_file}"
            )
        if not values['executable']:
            raise RetrofitError(f"No game executable configured in {self.config_file}")

        return AppDescriptor(
            app_id=str(values['app_id']),
            executable=values['executable'],
            display_name=values['display_name'] or values['executable'],
            settings_file=values['settings_file'] or "settings.ini",
        )
