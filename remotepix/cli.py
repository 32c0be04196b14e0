"""Command line entry point."""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .clipboard import ClipboardService, create_clipboard_service
from .config import Config
from .exceptions import UnsupportedPlatformError
from .file_manager import FileManager
from .host import ConsoleHost, ConsoleNotifier
from .result import is_success
from .upload import CommandDependencies, Destination, handle_upload_command

logger = logging.getLogger(__name__)

# Command identifiers a host can bind to a keystroke
COMMANDS: Dict[str, Destination] = {
    "remotepix.uploadFromClipboard.editor": Destination.EDITOR,
    "remotepix.uploadFromClipboard.terminal": Destination.TERMINAL,
}

WARM_UP = "warm-up"


def resolve_destination(name: str) -> Optional[Destination]:
    """Map a command identifier or destination name to a Destination."""
    if name in COMMANDS:
        return COMMANDS[name]
    try:
        return Destination(name)
    except ValueError:
        return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remotepix",
        description="Save the clipboard image on the remote host and insert its path."
    )
    parser.add_argument(
        "command", nargs="?", default=Destination.EDITOR.value,
        help="editor, terminal, a command identifier, or warm-up (default: editor)"
    )
    parser.add_argument("--remote", help="Remote connection name (overrides REMOTEPIX_REMOTE_NAME)")
    parser.add_argument("--workspace", help="Workspace folder the remote home is derived from")
    parser.add_argument("--home", help="Remote home directory (overrides the derived one)")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    parser.add_argument("--show-config", action="store_true", help="Print the effective configuration")
    parser.add_argument("--list-commands", action="store_true", help="List command identifiers")
    return parser


def build_dependencies(config: Config, clipboard: ClipboardService) -> CommandDependencies:
    terminal_stream = sys.stdout if sys.stdout.isatty() else None
    return CommandDependencies(
        clipboard=clipboard,
        file_manager=FileManager(workspace=config.workspace, home_dir=config.home_dir),
        host=ConsoleHost(
            remote_name=config.remote_name,
            editor_stream=sys.stdout,
            terminal_stream=terminal_stream
        ),
        notifier=ConsoleNotifier(),
        config=config
    )


async def run(command: str, deps: CommandDependencies) -> int:
    if command == WARM_UP:
        await deps.clipboard.warm_up()
        logger.info(f"Clipboard ({deps.clipboard.name}) warmed up")
        return 0

    destination = resolve_destination(command)
    if destination is None:
        deps.notifier.show_error(f"Unknown command: {command}")
        return 2

    result = await handle_upload_command(destination, deps)
    return 0 if is_success(result) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )

    if args.list_commands:
        for command_id, destination in COMMANDS.items():
            print(f"{command_id}\t{destination.value}")
        return 0

    config = Config()
    if args.remote:
        config.remote_name = args.remote
    if args.workspace:
        config.workspace = Path(args.workspace).expanduser()
    if args.home:
        config.home_dir = Path(args.home).expanduser()

    if args.show_config:
        print(json.dumps(config.to_dict(), indent=2))
        return 0

    try:
        clipboard = create_clipboard_service(config.timeouts)
    except UnsupportedPlatformError as e:
        logger.error(str(e))
        return 1

    deps = build_dependencies(config, clipboard)
    try:
        return asyncio.run(run(args.command, deps))
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        return 130


if __name__ == "__main__":
    sys.exit(main())
