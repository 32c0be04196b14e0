"""macOS clipboard access through osascript, pbpaste and pbcopy."""
import asyncio
import logging
from typing import List, Optional

from .base import (
    ClipboardService,
    ImageData,
    ImageFormat,
    copy_text_fallback,
    detect_image_format,
    run_command,
)
from .temp_file import ManagedTempFile
from ..exceptions import ClipboardAccessError

logger = logging.getLogger(__name__)

CLEAR_TIMEOUT = 5.0

# pbpaste fallback order
PASTEBOARD_TYPES = (
    ("public.png", ImageFormat.PNG),
    ("public.tiff", ImageFormat.TIFF),
    ("public.jpeg", ImageFormat.JPEG),
)

# AppleScript class codes per image format
APPLESCRIPT_CLASSES = {
    ImageFormat.PNG: "«class PNGf»",
    ImageFormat.TIFF: "«class TIFF»",
    ImageFormat.JPEG: "«class JPEG»",
}

CLIPBOARD_INFO_MARKERS = ("image", "PNGf", "TIFF", "JPEG")

HAS_IMAGE_SCRIPT = [
    "set clipTypes to {}",
    "repeat with clipEntry in (clipboard info)",
    "set end of clipTypes to (item 1 of clipEntry)",
    "end repeat",
    "if clipTypes contains «class PNGf» or clipTypes contains «class TIFF» "
    "or clipTypes contains «class JPEG» then",
    'return "true"',
    "end if",
    'return "false"',
]


def quote_applescript(value: str) -> str:
    """Quote a value as an AppleScript string literal."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def osascript_command(lines: List[str]) -> List[str]:
    command = ["osascript"]
    for line in lines:
        command.extend(["-e", line])
    return command


def save_clipboard_script(posix_path: str) -> List[str]:
    """AppleScript writing the clipboard image as PNG to posix_path.

    Falls back to TIFF converted in place with sips. Returns "OK" or
    "ERROR:<message>".
    """
    return [
        f"set tempPath to {quote_applescript(posix_path)}",
        "set tempFile to POSIX file tempPath",
        "try",
        "set imageData to (the clipboard as «class PNGf»)",
        "set fileRef to open for access tempFile with write permission",
        "set eof fileRef to 0",
        "write imageData to fileRef",
        "close access fileRef",
        'return "OK"',
        "on error",
        "try",
        "close access tempFile",
        "end try",
        "try",
        "set imageData to (the clipboard as «class TIFF»)",
        "set fileRef to open for access tempFile with write permission",
        "set eof fileRef to 0",
        "write imageData to fileRef",
        "close access fileRef",
        'do shell script "sips -s format png " & quoted form of tempPath '
        '& " --out " & quoted form of tempPath',
        'return "OK"',
        "on error errMsg",
        "try",
        "close access tempFile",
        "end try",
        'return "ERROR:" & errMsg',
        "end try",
        "end try",
    ]


class MacOSClipboardService(ClipboardService):
    """Clipboard implementation using AppleScript with pbpaste as fallback."""

    name = "macos"

    async def get_image(self) -> Optional[ImageData]:
        try:
            buffer = await self._get_image_via_applescript()
            if buffer:
                return ImageData.from_bytes(buffer, ImageFormat.PNG)
        except ClipboardAccessError as e:
            logger.debug(f"AppleScript extraction failed, trying pbpaste: {e}")

        for uti, fmt in PASTEBOARD_TYPES:
            try:
                buffer = await run_command(["pbpaste", "-Prefer", uti], self.timeout)
            except ClipboardAccessError as e:
                logger.debug(f"pbpaste could not read {uti}: {e}")
                continue
            detected = detect_image_format(buffer)
            if detected is not None:
                return ImageData(buffer, detected)
            logger.debug(f"pbpaste returned no {fmt.value} image data for {uti}")

        return None

    async def has_image(self) -> bool:
        try:
            output = await run_command(osascript_command(HAS_IMAGE_SCRIPT), self.timeout)
            return output.decode("utf-8", errors="replace").strip() == "true"
        except ClipboardAccessError as e:
            logger.debug(f"AppleScript type check failed, using clipboard info: {e}")

        output = await run_command(["osascript", "-e", "clipboard info"], self.timeout)
        info = output.decode("utf-8", errors="replace")
        return any(marker in info for marker in CLIPBOARD_INFO_MARKERS)

    async def clear(self) -> None:
        try:
            await run_command(["pbcopy"], CLEAR_TIMEOUT, input_data=b"")
        except ClipboardAccessError as e:
            logger.debug(f"Clipboard clear failed: {e}")

    async def warm_up(self) -> None:
        try:
            await run_command(["osascript", "-e", "clipboard info"], self.timeout)
        except ClipboardAccessError as e:
            logger.debug(f"Clipboard warm-up failed: {e}")

    async def set_text_with_image(self, text: str, image_buffer: bytes) -> None:
        fmt = detect_image_format(image_buffer) or ImageFormat.PNG
        image_class = APPLESCRIPT_CLASSES[fmt]
        try:
            with ManagedTempFile.create(f".{fmt.extension}") as temp_file:
                await asyncio.to_thread(temp_file.write_bytes, image_buffer)
                script = [
                    f"set theFile to POSIX file {quote_applescript(str(temp_file.path))}",
                    f"set theText to {quote_applescript(text)}",
                    f"set imageData to read theFile as {image_class}",
                    f"set the clipboard to {{{image_class}:imageData, «class utf8»:theText, string:theText}}",
                ]
                await run_command(osascript_command(script), self.timeout)
        except (ClipboardAccessError, OSError) as e:
            logger.warning(f"Failed to set clipboard with both text and image on macOS: {e}")
            await copy_text_fallback(text)

    async def _get_image_via_applescript(self) -> bytes:
        """
        Extract the clipboard image through AppleScript into a temp file.

        Raises:
            ClipboardAccessError: If osascript fails or reports an error
        """
        with ManagedTempFile.create(".png") as temp_file:
            command = osascript_command(save_clipboard_script(str(temp_file.path)))
            output = await run_command(command, self.timeout)
            result = output.decode("utf-8", errors="replace").strip()

            if result.startswith("ERROR:"):
                raise ClipboardAccessError(result[len("ERROR:"):].strip(), command=command, returncode=0)
            if not temp_file.exists():
                raise ClipboardAccessError("AppleScript did not write the image file", command=command)

            return await asyncio.to_thread(temp_file.read_bytes)
