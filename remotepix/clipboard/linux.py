"""Linux clipboard access through xclip (X11) with wl-clipboard (Wayland) as fallback."""
import logging
from typing import List, Optional

from .base import (
    ClipboardService,
    ImageData,
    ImageFormat,
    detect_image_format,
    run_command,
    run_first_success,
)
from ..exceptions import ClipboardAccessError

logger = logging.getLogger(__name__)

# Extraction order; the first buffer recognised as an image wins
IMAGE_TYPES = (ImageFormat.PNG, ImageFormat.JPEG, ImageFormat.TIFF)

TARGETS_COMMANDS = (
    ["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"],
    ["wl-paste", "--list-types"],
)
CLEAR_COMMANDS = (
    ["xclip", "-selection", "clipboard", "-i", "/dev/null"],
    ["wl-copy", "--clear"],
)
VERSION_COMMANDS = (
    ["xclip", "-version"],
    ["wl-paste", "--version"],
)
SET_TEXT_COMMANDS = (
    ["xclip", "-selection", "clipboard", "-i"],
    ["wl-copy"],
)


def image_commands(mime_type: str) -> List[List[str]]:
    return [
        ["xclip", "-selection", "clipboard", "-t", mime_type, "-o"],
        ["wl-paste", "--no-newline", "--type", mime_type],
    ]


class LinuxClipboardService(ClipboardService):
    """
    Clipboard implementation for X11 and Wayland sessions.

    Each operation walks an ordered list of command-line tools and uses the
    first one that works. When none works the operation reports "nothing"
    (False / None) instead of raising.
    """

    name = "linux"

    async def has_image(self) -> bool:
        try:
            output = await run_first_success(TARGETS_COMMANDS, self.timeout)
        except ClipboardAccessError as e:
            logger.debug(f"No clipboard tool could list types: {e}")
            return False

        types = output.decode("utf-8", errors="replace").splitlines()
        return any(ImageFormat.from_mime_type(line.strip()) in IMAGE_TYPES for line in types)

    async def get_image(self) -> Optional[ImageData]:
        for fmt in IMAGE_TYPES:
            for command in image_commands(fmt.mime_type):
                try:
                    buffer = await run_command(command, self.timeout)
                except ClipboardAccessError as e:
                    logger.debug(f"{command[0]} could not read {fmt.mime_type}: {e}")
                    continue
                if not buffer:
                    continue
                # Tools may serve whatever the owner offers for the target
                detected = detect_image_format(buffer)
                if detected is None:
                    logger.debug(f"{command[0]} returned non-image data for {fmt.mime_type}")
                    continue
                return ImageData(buffer, detected)
        return None

    async def clear(self) -> None:
        try:
            await run_first_success(CLEAR_COMMANDS, self.timeout, capture_output=False)
        except ClipboardAccessError as e:
            logger.debug(f"Clipboard clear failed: {e}")

    async def warm_up(self) -> None:
        try:
            await run_first_success(VERSION_COMMANDS, self.timeout)
        except ClipboardAccessError as e:
            logger.debug(f"Clipboard warm-up failed: {e}")

    async def set_text_with_image(self, text: str, image_buffer: bytes) -> None:
        # Command-line tools here can only own one target at a time, so only
        # the text is set. The image is already persisted on disk.
        try:
            await run_first_success(
                SET_TEXT_COMMANDS,
                self.timeout,
                input_data=text.encode("utf-8"),
                capture_output=False
            )
        except ClipboardAccessError as e:
            logger.warning(f"Failed to set clipboard text on Linux: {e}")
