"""Windows clipboard access through PowerShell and System.Windows.Forms."""
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

PROBE_TIMEOUT = 5.0
WARM_UP_TIMEOUT = 15.0

LOAD_FORMS = "Add-Type -AssemblyName System.Windows.Forms"
LOAD_DRAWING = "Add-Type -AssemblyName System.Drawing"


def quote_ps(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string."""
    return "'" + value.replace("'", "''") + "'"


def powershell_command(*statements: str, bypass_policy: bool = False) -> List[str]:
    """Build a powershell argv running the statements in order."""
    command = ["powershell", "-NoProfile", "-NonInteractive"]
    if bypass_policy:
        command.extend(["-ExecutionPolicy", "Bypass"])
    command.extend(["-Command", "; ".join(statements)])
    return command


class WindowsClipboardService(ClipboardService):
    """Clipboard implementation driving the .NET clipboard API from PowerShell."""

    name = "windows"

    async def has_image(self) -> bool:
        command = powershell_command(
            LOAD_FORMS,
            "if ([System.Windows.Forms.Clipboard]::ContainsImage()) "
            "{ Write-Output 'true' } else { Write-Output 'false' }"
        )
        output = await run_command(command, PROBE_TIMEOUT)
        return output.decode("utf-8", errors="replace").strip() == "true"

    async def get_image(self) -> Optional[ImageData]:
        with ManagedTempFile.create(".png") as temp_file:
            saved = await self._save_clipboard_image(str(temp_file.path))
            if not saved or not temp_file.exists():
                return None

            buffer = await asyncio.to_thread(temp_file.read_bytes)
            if not buffer:
                return None
            return ImageData(buffer, ImageFormat.PNG)

    async def clear(self) -> None:
        command = powershell_command(
            LOAD_FORMS, "[System.Windows.Forms.Clipboard]::Clear()", bypass_policy=True
        )
        try:
            await run_command(command, PROBE_TIMEOUT)
        except ClipboardAccessError as e:
            logger.debug(f"Clipboard clear failed: {e}")

    async def warm_up(self) -> None:
        try:
            await run_command(powershell_command(LOAD_FORMS), WARM_UP_TIMEOUT)
            logger.debug("PowerShell clipboard assembly loaded")
        except ClipboardAccessError as e:
            logger.debug(f"Clipboard warm-up failed: {e}")

    async def set_text_with_image(self, text: str, image_buffer: bytes) -> None:
        fmt = detect_image_format(image_buffer) or ImageFormat.PNG
        try:
            with ManagedTempFile.create(f".{fmt.extension}") as temp_file:
                await asyncio.to_thread(temp_file.write_bytes, image_buffer)
                command = powershell_command(
                    LOAD_FORMS,
                    LOAD_DRAWING,
                    "$dataObject = New-Object System.Windows.Forms.DataObject",
                    f"$dataObject.SetText({quote_ps(text)})",
                    f"$image = [System.Drawing.Image]::FromFile({quote_ps(str(temp_file.path))})",
                    "$dataObject.SetImage($image)",
                    "[System.Windows.Forms.Clipboard]::SetDataObject($dataObject, $true)",
                    "$image.Dispose()",
                    "Write-Output 'success'",
                    bypass_policy=True
                )
                await run_command(command, self.timeout)
        except (ClipboardAccessError, OSError) as e:
            logger.warning(f"Failed to set clipboard with both text and image: {e}")
            await copy_text_fallback(text)

    async def _save_clipboard_image(self, file_path: str) -> bool:
        """
        Save the clipboard image as PNG to file_path.

        Returns:
            True if an image was written, False if the clipboard held no image

        Raises:
            ClipboardAccessError: If PowerShell fails or reports an error
        """
        command = powershell_command(
            LOAD_FORMS,
            LOAD_DRAWING,
            "try { if ([System.Windows.Forms.Clipboard]::ContainsImage()) { "
            "$image = [System.Windows.Forms.Clipboard]::GetImage(); "
            f"$image.Save({quote_ps(file_path)}, [System.Drawing.Imaging.ImageFormat]::Png); "
            "Write-Output 'success' } else { Write-Output 'no_image' } } "
            "catch { Write-Output ('error:' + $_.Exception.Message) }"
        )
        output = await run_command(command, self.timeout)
        result = output.decode("utf-8", errors="replace").strip()

        if result.startswith("success"):
            return True
        if result.startswith("no_image"):
            return False
        raise ClipboardAccessError(
            f"PowerShell could not save the clipboard image: {result or 'no output'}",
            command=command,
            returncode=0
        )
