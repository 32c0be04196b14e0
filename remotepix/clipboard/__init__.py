"""Platform-specific clipboard access."""
import sys
from typing import Optional

from .base import (
    ClipboardService,
    ImageData,
    ImageFormat,
    detect_image_format,
    run_command,
    run_first_success,
)
from .linux import LinuxClipboardService
from .macos import MacOSClipboardService
from .temp_file import ManagedTempFile
from .windows import WindowsClipboardService
from ..config import TimeoutConfig
from ..exceptions import UnsupportedPlatformError


def create_clipboard_service(timeouts: Optional[TimeoutConfig] = None,
                             platform: Optional[str] = None) -> ClipboardService:
    """
    Create the clipboard implementation for the running OS.

    Args:
        timeouts: Timeout configuration (defaults if None)
        platform: Platform identifier, defaults to sys.platform

    Raises:
        UnsupportedPlatformError: If the platform is not Windows, Linux or macOS
    """
    timeouts = timeouts or TimeoutConfig()
    platform = platform or sys.platform

    if platform == "win32":
        return WindowsClipboardService(timeouts.clipboard_seconds)
    if platform.startswith("linux"):
        return LinuxClipboardService(timeouts.clipboard_seconds)
    if platform == "darwin":
        return MacOSClipboardService(timeouts.clipboard_seconds)
    raise UnsupportedPlatformError(f"Unsupported platform: {platform}", {"platform": platform})


__all__ = [
    'ClipboardService',
    'ImageData',
    'ImageFormat',
    'ManagedTempFile',
    'WindowsClipboardService',
    'LinuxClipboardService',
    'MacOSClipboardService',
    'create_clipboard_service',
    'detect_image_format',
    'run_command',
    'run_first_success',
]
