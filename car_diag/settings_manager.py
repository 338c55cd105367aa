#!/usr/bin/env python3
"""
Car Diag Settings Manager - Configuration and Preferences Management
=====================================================================

License: GNU General Public License v3.0 (GPL-3.0)

Description:
    Settings management for the diagnostic tool. Handles user preferences,
    default values and persistent configuration storage using INI files.

Features:
    - Sectioned configuration (paths, logging, UI, export)
    - Default values used when the file or a key is missing
    - Persistent storage (settings.ini in the user's app directory)
    - Singleton pattern for global access

Classes:
    SettingsError(Exception) - Configuration errors
    SettingsManager - Main configuration manager

Functions:
    get_settings_manager(config_file: Optional[Path]) -> SettingsManager
    default_config_file() -> Path

Variables (Module-level):
    DEFAULT_SETTINGS: Dict - Default configuration values
    logger: logging.Logger - Module logger
    _settings_manager: SettingsManager - Singleton instance
"""

import configparser
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

logger: logging.Logger = logging.getLogger(__name__)

APP_NAME = 'car-diag'

# Default settings values
DEFAULT_SETTINGS: Dict[str, Dict[str, str]] = {
    'PATHS': {
        # Empty = dataset bundled with the package
        'database_file': ''
    },
    'LOGGING': {
        'log_level': 'WARNING'
    },
    'UI': {
        'enable_colors': 'true'
    },
    'EXPORT': {
        'escape_html': 'true'
    }
}


class SettingsError(Exception):
    """Raised when settings operation fails"""
    pass


def default_config_file() -> Path:
    return Path(click.get_app_dir(APP_NAME)) / 'settings.ini'


class SettingsManager:
    """Manages application settings and configuration."""

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_file: Path to settings.ini file. If None, uses the user's
                app directory. A missing file means defaults; nothing is
                written until save_settings() is called.
        """
        if config_file is None:
            config_file = default_config_file()

        self.config_file = Path(config_file)
        self.config: configparser.ConfigParser = configparser.ConfigParser()
        self._apply_defaults()

        if self.config_file.exists():
            self.load_settings()

    def _apply_defaults(self) -> None:
        for section, defaults in DEFAULT_SETTINGS.items():
            if section not in self.config:
                self.config[section] = {}
            for key, value in defaults.items():
                if key not in self.config[section]:
                    self.config[section][key] = value

    def load_settings(self) -> Dict[str, Dict[str, str]]:
        """
        Load settings from config file.

        Returns:
            Dictionary with all settings organized by section

        Raises:
            SettingsError: If config file cannot be read or parsed

        Example:
            >>> mgr = SettingsManager(Path('settings.ini'))
            >>> mgr.load_settings()['UI']['enable_colors']
            'true'
        """
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                self.config.read_file(f)
        except (OSError, configparser.Error) as e:
            logger.error(f"Error loading settings: {e}")
            raise SettingsError(f"Failed to load settings: {e}")

        self._apply_defaults()
        logger.debug(f"Settings loaded from {self.config_file}")
        return self.get_current_settings()

    def save_settings(self) -> bool:
        """
        Save the current settings to the config file.

        Returns:
            True if save succeeded

        Raises:
            SettingsError: If config file cannot be written
        """
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w', encoding='utf-8') as f:
                self.config.write(f)
        except OSError as e:
            logger.error(f"Error saving settings: {e}")
            raise SettingsError(f"Failed to save settings: {e}")

        logger.info(f"Settings saved to {self.config_file}")
        return True

    def get_current_settings(self) -> Dict[str, Dict[str, str]]:
        """Return all current settings as dictionary."""
        settings = {}
        for section in self.config.sections():
            settings[section] = dict(self.config[section])
        return settings

    def reset_to_defaults(self) -> bool:
        """
        Reset all settings to default values and save them.

        Returns:
            True if reset succeeded
        """
        self.config.clear()
        for section, values in DEFAULT_SETTINGS.items():
            self.config[section] = values

        self.save_settings()
        logger.info("Settings reset to defaults")
        return True

    def get_setting(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a specific setting value.

        Args:
            section: Configuration section name
            key: Setting key name
            default: Default value if setting doesn't exist

        Returns:
            Setting value or default

        Example:
            >>> mgr = SettingsManager()
            >>> level = mgr.get_setting('LOGGING', 'log_level', 'WARNING')
        """
        try:
            return self.config.get(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    def get_bool_setting(self, section: str, key: str, default: bool = False) -> bool:
        """
        Get a boolean setting value.

        Example:
            >>> mgr = SettingsManager()
            >>> colors = mgr.get_bool_setting('UI', 'enable_colors', True)
        """
        try:
            return self.config.getboolean(section, key)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return default

    def set_setting(self, section: str, key: str, value: str) -> bool:
        """
        Set a configuration value and save it.

        Args:
            section: Configuration section name (created if missing)
            key: Setting key
            value: Setting value (stored as string)

        Returns:
            True if saved successfully
        """
        if section not in self.config:
            self.config[section] = {}
        self.config[section][key] = str(value)
        self.save_settings()
        logger.info(f"Setting {section}.{key} = {value}")
        return True


_settings_manager: Optional[SettingsManager] = None


def get_settings_manager(config_file: Optional[Path] = None) -> SettingsManager:
    """
    Get the global settings manager instance (singleton pattern).

    Args:
        config_file: Settings file to use. A different file than the current
            instance's replaces the singleton.

    Returns:
        Global SettingsManager instance
    """
    global _settings_manager
    if _settings_manager is None or (
            config_file is not None and Path(config_file) != _settings_manager.config_file):
        _settings_manager = SettingsManager(config_file)
    return _settings_manager
