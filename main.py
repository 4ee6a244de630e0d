"""
fsstorage - object storage on top of a local directory tree.

Command line front-end for the storage service.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Any, List, Optional

import aiofiles

from internal.config.manager import ConfigManager
from internal.services.storage import StorageService
from lib.fs_storage import FSStorageError
from lib.logging_utils import initLogging
from lib.utils import jsonDumps

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.WARNING)
logger = logging.getLogger(__name__)


def parseArguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="fsstorage - object storage on top of a local directory, dood!")
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times)",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("containers", help="List containers")

    for command, helpText in (
        ("create", "Create a container"),
        ("destroy", "Remove a container with all its contents"),
        ("ls", "List all files of a container recursively"),
    ):
        subparser = subparsers.add_parser(command, help=helpText)
        subparser.add_argument("container")

    for command, helpText in (
        ("stat", "Show object metadata"),
        ("rm", "Remove an object"),
        ("url", "Print local path of an object"),
    ):
        subparser = subparsers.add_parser(command, help=helpText)
        subparser.add_argument("container")
        subparser.add_argument("remote")

    putParser = subparsers.add_parser("put", help="Upload a local file")
    putParser.add_argument("container")
    putParser.add_argument("remote")
    putParser.add_argument("source", help="Local file to upload")

    getParser = subparsers.add_parser("get", help="Download an object")
    getParser.add_argument("container")
    getParser.add_argument("remote")
    getParser.add_argument("destination", nargs="?", help="Local file to write (default: stdout)")

    args = parser.parse_args(argv)
    args.config = os.path.abspath(args.config)
    if args.config_dir:
        args.config_dir = [os.path.abspath(dirPath) for dirPath in args.config_dir]

    if not args.print_config and args.command is None:
        parser.error("command is required")

    return args


async def readLocalFile(path: str, chunkSize: int):
    async with aiofiles.open(path, "rb") as f:
        while True:
            chunk = await f.read(chunkSize)
            if not chunk:
                break
            yield chunk


async def runCommand(storage: StorageService, args: argparse.Namespace) -> Any:
    """Run a single storage command, returns JSON-serializable result or None"""
    match args.command:
        case "containers":
            return [container.toDict() for container in await storage.getContainers()]
        case "create":
            return (await storage.createContainer(args.container)).toDict()
        case "destroy":
            await storage.destroyContainer(args.container)
            return None
        case "ls":
            return [storedFile.toDict() for storedFile in await storage.getFiles(args.container)]
        case "stat":
            return (await storage.getFile(args.container, args.remote)).toDict()
        case "rm":
            await storage.removeFile(args.container, args.remote)
            return None
        case "url":
            return storage.getUrl(args.container, args.remote)
        case "put":
            storedFile = await storage.uploadFromIterable(
                args.container, args.remote, readLocalFile(args.source, storage.getChunkSize())
            )
            return storedFile.toDict()
        case "get":
            if args.destination:
                async with storage.download(args.container, args.remote) as stream:
                    async with aiofiles.open(args.destination, "wb") as out:
                        async for chunk in stream:
                            await out.write(chunk)
                return None
            sys.stdout.buffer.write(await storage.downloadBytes(args.container, args.remote))
            sys.stdout.flush()
            return None
        case _:
            raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parseArguments(argv)

    configManager = ConfigManager(configPath=args.config, configDirs=args.config_dir)
    if args.print_config:
        print(jsonDumps(configManager.config, indent=2))
        return 0

    initLogging(configManager.getLoggingConfig())

    storage = StorageService.getInstance()
    try:
        storage.injectConfig(configManager)
        result = asyncio.run(runCommand(storage, args))
    except (FSStorageError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(jsonDumps({"error": type(e).__name__, "message": str(e)}), file=sys.stderr)
        return 1

    if result is not None:
        print(jsonDumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
