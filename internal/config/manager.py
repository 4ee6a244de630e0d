"""
Configuration management for fsstorage.
"""

import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

import lib.utils as utils

logger = logging.getLogger(__name__)


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholders with actual values.

    Args:
        match: A regex match object containing the environment variable name.

    Returns:
        str: The value of the environment variable or the original placeholder
             if the variable is not set.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute environment variable placeholders in configuration values.

    This function processes strings, dictionaries, and lists to replace placeholders
    in the format ${VAR_NAME} with their corresponding environment variable values.

    Args:
        value: The configuration value to process. Can be a string, dict, list, or other type.

    Returns:
        The processed value with environment variables substituted:
        - For strings: returns the string with placeholders replaced
        - For dictionaries: returns a new dict with substituted values
        - For lists: returns a new list with substituted items
        - For other types: returns the original value unchanged
    """
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Manages configuration loading and validation for fsstorage."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """Initialize ConfigManager with config file path and optional config directories."""
        self.configPath = configPath
        self.configDirs = configDirs or []
        utils.loadDotEnv(path=dotEnvFile)
        self.config = substituteEnvVars(self._loadConfig())

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory, dood!"""
        tomlFiles: List[Path] = []
        dirPath = Path(directory)

        if not dirPath.exists():
            logger.warning(f"Config directory {directory} does not exist, skipping, dood!")
            return tomlFiles

        if not dirPath.is_dir():
            logger.warning(f"Config path {directory} is not a directory, skipping, dood!")
            return tomlFiles

        for tomlFile in dirPath.rglob("*.toml"):
            if tomlFile.is_file():
                tomlFiles.append(tomlFile)
                logger.debug(f"Found config file: {tomlFile}")

        return sorted(tomlFiles)  # Sort for consistent ordering

    def _mergeConfigs(self, baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, dood!"""
        merged = baseConfig.copy()

        for key, value in newConfig.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadConfig(self) -> Dict[str, Any]:
        """
        Load configuration from TOML file and optional config directories.

        Files found in config directories are merged over the main file in sorted
        order. A storage root must be present in the merged configuration.

        Raises:
            SystemExit: If no configuration source exists, a file cannot be parsed
                or storage root is missing
        """
        configFile = Path(self.configPath)
        hasConfigFile = configFile.exists()
        if not hasConfigFile and not self.configDirs:
            logger.error(f"Configuration file {self.configPath} not found!")
            sys.exit(1)

        try:
            config: Dict[str, Any] = {}
            if hasConfigFile:
                with open(configFile, "rb") as f:
                    config = tomli.load(f)
                logger.info(f"Loaded main config from {self.configPath}")

            for configDir in self.configDirs:
                tomlFiles = self._findTomlFilesRecursive(configDir)
                logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

                for tomlFile in tomlFiles:
                    with open(tomlFile, "rb") as f:
                        dirConfig = tomli.load(f)
                    config = self._mergeConfigs(config, dirConfig)
                    logger.info(f"Merged config from {tomlFile}")

        except (OSError, tomli.TOMLDecodeError) as e:
            logger.error(f"Failed to load configuration: {e}")
            sys.exit(1)

        if not config.get("storage", {}).get("root"):
            logger.error("Storage root not found in configuration!")
            sys.exit(1)

        logger.info("Configuration loaded and merged successfully, dood!")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

    def getStorageConfig(self) -> Dict[str, Any]:
        """
        Get storage configuration.

        Returns:
            Dict[str, Any]: Storage configuration dictionary:
            - root: Storage root directory, every subdirectory is a container
            - create-root: Create the root directory on startup if missing (default: false)
            - chunk-size: Chunk size in bytes for stream copies (default: 65536)

        Example:
            {
                "root": "./storage",
                "create-root": true,
                "chunk-size": 65536
            }
        """
        return self.get("storage", {})
