"""Upload a clipboard image and insert its path into the editor or terminal."""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .clipboard.base import ClipboardService, ImageData
from .config import Config
from .exceptions import ClipboardError, FileSystemError
from .file_manager import FileManager, ImageFile
from .host import ConsoleHost, ConsoleNotifier
from .result import PASSTHROUGH, Failure, Outcome, Success, failure, is_failure, success

logger = logging.getLogger(__name__)


class Destination(str, Enum):
    """Where the uploaded image path is inserted."""
    EDITOR = "editor"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class NoImage:
    """The clipboard holds no extractable image."""


@dataclass(frozen=True)
class ImageFound:
    """The clipboard holds an image."""
    data: ImageData


@dataclass(frozen=True)
class AccessFailed:
    """The clipboard could not be read."""
    error: ClipboardError


ClipboardCheckResult = Union[NoImage, ImageFound, AccessFailed]


@dataclass
class CommandDependencies:
    """Collaborators used by an upload command."""
    clipboard: ClipboardService
    file_manager: FileManager
    host: ConsoleHost
    notifier: ConsoleNotifier
    config: Config


class ImageUploadCommand:
    """
    Upload the clipboard image and insert its path.

    Steps run strictly in order and each failure ends the command:
    remote check, clipboard probe (with paste passthrough when there is no
    image), persisting the image, inserting the path. A final clipboard
    update is best effort and never changes the result.
    """

    def __init__(self, deps: CommandDependencies):
        self.deps = deps

    async def execute(self, destination: Union[Destination, str]) -> Outcome:
        destination = Destination(destination)

        remote_check = self._validate_remote_connection()
        if is_failure(remote_check):
            return remote_check

        check = await self._check_clipboard_with_passthrough()

        if isinstance(check, NoImage):
            if destination is Destination.TERMINAL:
                await self._paste_passthrough()
            return success(PASSTHROUGH)

        if isinstance(check, AccessFailed):
            self.deps.notifier.show_warning(check.error.message)
            return failure(check.error)

        return await self._upload_and_insert(check.data, destination)

    def _validate_remote_connection(self) -> Outcome:
        remote_name = self.deps.host.remote_name
        if not remote_name:
            return failure(ClipboardError(
                "No remote connection detected. Please connect to a server "
                "(set REMOTEPIX_REMOTE_NAME or pass --remote) to upload images.",
                {"remote_name": remote_name}
            ))
        return success(None)

    async def _check_clipboard_with_passthrough(self) -> ClipboardCheckResult:
        try:
            if not await self.deps.clipboard.has_image():
                return NoImage()

            image_data = await self.deps.clipboard.get_image()
            if image_data is None:
                return NoImage()

            return ImageFound(image_data)
        except Exception as e:
            logger.error(f"Clipboard access failed: {e}", exc_info=True)
            return AccessFailed(ClipboardError("Failed to access clipboard", {"original_error": e}))

    async def _paste_passthrough(self) -> None:
        try:
            await self.deps.host.terminal_paste()
        except Exception as e:
            logger.warning(f"Terminal paste passthrough failed: {e}")

    async def _upload_and_insert(self, image_data: ImageData,
                                 destination: Destination) -> Outcome:
        persisted = await self._persist_image(image_data, destination)
        if isinstance(persisted, Failure):
            return persisted
        image_file: ImageFile = persisted.value
        image_path = str(image_file.path)

        insert_result = self._insert_image_path(image_path, destination)
        if is_failure(insert_result):
            image_file.dispose()
            return insert_result

        # Offer the path as text while keeping the image pasteable
        try:
            await self.deps.clipboard.set_text_with_image(image_path, image_data.buffer)
        except Exception as e:
            logger.warning(f"Failed to update clipboard with path: {e}")

        self.deps.notifier.show_information(f"Image saved: {image_path}")
        return success(image_path)

    async def _persist_image(self, image_data: ImageData,
                             destination: Destination) -> Union[Success[ImageFile], Failure]:
        timeout = self.deps.config.timeouts.upload_seconds
        try:
            image_file = await asyncio.wait_for(
                self.deps.file_manager.create_image_file(image_data.buffer, image_data.format),
                timeout=timeout
            )
        except FileSystemError as e:
            logger.error(f"Failed to upload image: {e}")
            return failure(e)
        except asyncio.TimeoutError as e:
            logger.error(f"Image upload timed out after {timeout:g}s")
            return failure(FileSystemError(
                f"Image upload timed out after {timeout:g}s",
                {"destination": destination.value},
                original_error=e
            ))
        except Exception as e:
            logger.error(f"Failed to upload image: {e}", exc_info=True)
            return failure(FileSystemError(
                "Failed to upload image",
                {"destination": destination.value},
                original_error=e
            ))
        return success(image_file)

    def _insert_image_path(self, path: str, destination: Destination) -> Outcome:
        try:
            if destination is Destination.EDITOR:
                editor = self.deps.host.active_editor()
                if editor is None:
                    return failure(FileSystemError(
                        "No active editor available", {"destination": destination.value, "path": path}
                    ))
                editor.insert(path)
            else:
                terminal = self.deps.host.active_terminal()
                if terminal is None:
                    return failure(FileSystemError(
                        "No active terminal available", {"destination": destination.value, "path": path}
                    ))
                terminal.send_text(path, add_newline=False)
        except Exception as e:
            return failure(FileSystemError(
                f"Failed to insert image path into {destination.value}",
                {"destination": destination.value, "path": path},
                original_error=e
            ))
        return success(None)


def create_upload_image_command(deps: CommandDependencies) -> ImageUploadCommand:
    return ImageUploadCommand(deps)


async def handle_upload_command(destination: Union[Destination, str],
                                deps: CommandDependencies) -> Outcome:
    """Run an upload command and report a failure to the user."""
    command = create_upload_image_command(deps)
    result = await command.execute(destination)

    if isinstance(result, Failure):
        deps.notifier.show_error(f"Upload error: {result.message}")

    return result
