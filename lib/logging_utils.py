"""
Logging utilities for fsstorage.

Configured from the [logging] config section:

    [logging]
    level = "INFO"
    console = true
    file = "logs/fsstorage.log"
    rotate = true

    [logging.logger."lib.fs_storage"]
    level = "DEBUG"
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def getLogLevelByStr(levelStr: str, default: Optional[int] = None) -> Optional[int]:
    """Get log level by string."""
    level = logging.getLevelName(levelStr.upper())
    if isinstance(level, int):
        return level
    logger.error(f"Invalid log level '{levelStr}'")
    return default


def _handlerLevel(config: Dict[str, Any], key: str, fallback: int) -> int:
    if key not in config:
        return fallback
    level = getLogLevelByStr(config[key], fallback)
    return fallback if level is None else level


def _makeFileHandler(config: Dict[str, Any]) -> logging.Handler:
    logFile = config["file"]
    Path(logFile).parent.mkdir(parents=True, exist_ok=True)

    if config.get("rotate", False):
        return TimedRotatingFileHandler(
            filename=logFile,
            when=config.get("rotate-when", "midnight"),
            interval=1,
            backupCount=int(config.get("backup-count", 7)),
            encoding="utf-8",
        )
    return logging.FileHandler(logFile, encoding="utf-8")


def configureLogger(localLogger: logging.Logger, config: Dict[str, Any]) -> None:
    """Configure individual logger from config file settings."""

    if "propagate" in config:
        localLogger.propagate = bool(config["propagate"])

    if "level" in config:
        logLevel = getLogLevelByStr(config["level"])
        if logLevel is not None:
            localLogger.setLevel(logLevel)

    logLevel = localLogger.getEffectiveLevel()
    formatter = logging.Formatter(config.get("format", DEFAULT_LOG_FORMAT))

    # Clear existing handlers to avoid duplicates
    for handler in localLogger.handlers[:]:
        localLogger.removeHandler(handler)

    if config.get("console", False):
        consoleHandler = logging.StreamHandler()
        consoleHandler.setLevel(_handlerLevel(config, "console-level", logLevel))
        consoleHandler.setFormatter(formatter)
        localLogger.addHandler(consoleHandler)
        logger.info(f"Logging {localLogger.name} to console, logLevel: {consoleHandler.level}")

    if "file" in config:
        try:
            fileHandler = _makeFileHandler(config)
        except OSError as e:
            logger.error(f"Failed to setup file logging for {localLogger.name}: {e}")
        else:
            fileHandler.setLevel(_handlerLevel(config, "file-level", logLevel))
            fileHandler.setFormatter(formatter)
            localLogger.addHandler(fileHandler)
            logger.info(f"Logging {localLogger.name} to file: {config['file']}, logLevel: {fileHandler.level}")


def initLogging(config: Dict[str, Any]) -> None:
    """Configure logging from config file settings."""
    rootLogger = logging.getLogger()
    rootLogger.setLevel(logging.INFO)

    configureLogger(rootLogger, config)
    logLevel = rootLogger.getEffectiveLevel()

    # asyncio reports slow callbacks at debug level, too noisy for file walks
    if logLevel < logging.INFO:
        logging.getLogger("asyncio").setLevel(logging.INFO)

    logConfigs = config.get("logger", {})
    for loggerName, loggerConfig in logConfigs.items():
        logger.debug(f"Configuring logger '{loggerName}' with config {loggerConfig}")
        configureLogger(logging.getLogger(loggerName), loggerConfig)

    logger.info(f"Logging configured: root level={logging.getLevelName(logLevel)}")
