"""Shared clipboard contract, image types and process helpers."""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import pyperclip

from ..config import DEFAULT_CLIPBOARD_TIMEOUT_MS
from ..exceptions import ClipboardAccessError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = DEFAULT_CLIPBOARD_TIMEOUT_MS / 1000.0


class ImageFormat(str, Enum):
    """Image encodings the clipboard layer can return."""
    PNG = "png"
    TIFF = "tiff"
    JPEG = "jpeg"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"

    @classmethod
    def from_mime_type(cls, mime_type: str) -> Optional["ImageFormat"]:
        for fmt in cls:
            if fmt.mime_type == mime_type:
                return fmt
        return None


_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", ImageFormat.PNG),
    (b"\xff\xd8\xff", ImageFormat.JPEG),
    (b"II*\x00", ImageFormat.TIFF),
    (b"MM\x00*", ImageFormat.TIFF),
)


def detect_image_format(data: bytes) -> Optional[ImageFormat]:
    """Identify an image encoding from its magic bytes."""
    for signature, fmt in _SIGNATURES:
        if data.startswith(signature):
            return fmt
    return None


@dataclass(frozen=True)
class ImageData:
    """Image bytes extracted from the clipboard."""
    buffer: bytes
    format: ImageFormat

    def __post_init__(self):
        if not self.buffer:
            raise ValueError("ImageData buffer must not be empty")
        if not isinstance(self.format, ImageFormat):
            object.__setattr__(self, "format", ImageFormat(self.format))

    @classmethod
    def from_bytes(cls, buffer: bytes, fallback: ImageFormat) -> "ImageData":
        """Build ImageData, trusting the bytes over the format that was asked for."""
        return cls(buffer, detect_image_format(buffer) or fallback)


class ClipboardService(ABC):
    """Clipboard capabilities shared by every platform implementation."""

    name = "clipboard"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        """
        Args:
            timeout: Seconds allowed for image extraction and combined set operations
        """
        self.timeout = timeout

    @abstractmethod
    async def has_image(self) -> bool:
        """
        Check for image data without reading or changing the clipboard.

        Raises:
            ClipboardAccessError: If the probing tool cannot be invoked
        """

    @abstractmethod
    async def get_image(self) -> Optional[ImageData]:
        """
        Extract the clipboard image.

        Returns:
            ImageData, or None if no image could be extracted

        Raises:
            ClipboardAccessError: If the extraction tool fails
        """

    @abstractmethod
    async def clear(self) -> None:
        """Empty the clipboard (best effort)."""

    @abstractmethod
    async def warm_up(self) -> None:
        """Trigger one-time tool initialization so the first real call is fast."""

    @abstractmethod
    async def set_text_with_image(self, text: str, image_buffer: bytes) -> None:
        """Offer both text and image on the clipboard (best effort)."""


async def run_command(command: Sequence[str], timeout: float,
                      input_data: Optional[bytes] = None,
                      capture_output: bool = True) -> bytes:
    """
    Run an external tool and return its stdout.

    Args:
        command: Program and arguments (no shell)
        timeout: Seconds before the process is killed
        input_data: Bytes written to stdin, if any
        capture_output: Set to False for tools that fork to keep owning the
            selection; their output is discarded so the call does not wait
            on the forked child

    Returns:
        Captured stdout (empty when capture_output is False)

    Raises:
        ClipboardAccessError: If the tool cannot be started, times out or
            exits with a non-zero status
    """
    command = list(command)
    program = command[0]
    output = asyncio.subprocess.PIPE if capture_output else asyncio.subprocess.DEVNULL
    logger.debug(f"Running {program} (timeout {timeout:g}s)")

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE if input_data is not None else asyncio.subprocess.DEVNULL,
            stdout=output,
            stderr=output
        )
    except OSError as e:
        raise ClipboardAccessError(
            f"Could not start {program}: {e}", command=command, original_error=e
        ) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(input_data), timeout=timeout)
    except asyncio.TimeoutError as e:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
        raise ClipboardAccessError(
            f"{program} timed out after {timeout:g}s", command=command, original_error=e
        ) from e

    if process.returncode != 0:
        error_text = (stderr or b"").decode("utf-8", errors="replace").strip()
        raise ClipboardAccessError(
            f"{program} exited with code {process.returncode}",
            command=command,
            returncode=process.returncode,
            stderr=error_text
        )

    return stdout or b""


async def run_first_success(commands: Sequence[Sequence[str]], timeout: float,
                            input_data: Optional[bytes] = None,
                            capture_output: bool = True) -> bytes:
    """
    Run commands in order and return the stdout of the first one that succeeds.

    Raises:
        ClipboardAccessError: The last failure, if every command failed
    """
    last_error: Optional[ClipboardAccessError] = None
    for command in commands:
        try:
            return await run_command(command, timeout, input_data=input_data,
                                     capture_output=capture_output)
        except ClipboardAccessError as e:
            logger.debug(f"{command[0]} failed, trying next: {e}")
            last_error = e
    if last_error is None:
        raise ClipboardAccessError("No clipboard command to run")
    raise last_error


async def copy_text_fallback(text: str) -> bool:
    """
    Put plain text on the clipboard with pyperclip.

    Returns:
        True if successful, False otherwise
    """
    try:
        await asyncio.to_thread(pyperclip.copy, text)
        return True
    except Exception as e:
        logger.warning(f"Error writing text to clipboard: {e}")
        return False
