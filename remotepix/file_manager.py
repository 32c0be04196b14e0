"""Writes clipboard images into the remote home directory."""
import asyncio
import logging
import re
import time
from pathlib import Path
from typing import Optional, Union

from .clipboard.base import ImageFormat
from .config import IMAGE_DIR_NAME
from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

_WINDOWS_DRIVE = re.compile(r"^/[a-zA-Z]:/")
_WINDOWS_USER_HOME = re.compile(r"^(/[a-zA-Z]:/Users/[^/]+)")


def resolve_home_directory(workspace_path: str) -> str:
    """
    Derive the remote home directory from a workspace path.

    /home/<user>/... and /Users/<user>/... map to the user directory,
    /root... maps to /root, /C:/Users/<user>/... maps to the Windows profile.
    Anything else uses the first two path segments, or the workspace itself
    when it is shallower than that.
    """
    if workspace_path.startswith("/home/") or workspace_path.startswith("/Users/"):
        parts = workspace_path.split("/")
        if len(parts) >= 3:
            return f"/{parts[1]}/{parts[2]}"
        return workspace_path

    if workspace_path.startswith("/root"):
        return "/root"

    if _WINDOWS_DRIVE.match(workspace_path):
        match = _WINDOWS_USER_HOME.match(workspace_path)
        return match.group(1) if match else workspace_path

    parts = [p for p in workspace_path.split("/") if p]
    if len(parts) >= 2:
        return f"/{parts[0]}/{parts[1]}"
    return workspace_path


def generate_file_name(image_format: Union[ImageFormat, str]) -> str:
    """Name an uploaded image image_<unix-millis>.<ext>."""
    timestamp = time.time_ns() // 1_000_000
    return f"image_{timestamp}.{ImageFormat(image_format).extension}"


class ImageFile:
    """Handle to an uploaded image."""

    def __init__(self, path: Path, should_cleanup: bool = False):
        self.path = path
        self.should_cleanup = should_cleanup
        self.disposed = False

    def exists(self) -> bool:
        return self.path.is_file()

    def dispose(self) -> None:
        """Release the handle, deleting the file only when cleanup was requested."""
        self.disposed = True
        if not self.should_cleanup:
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"Could not remove {self.path}: {e}")

    def __str__(self) -> str:
        return str(self.path)


class FileManager:
    """Materializes image bytes as files under <home>/remotepix."""

    def __init__(self, workspace: Optional[Path] = None, home_dir: Optional[Path] = None,
                 dir_name: str = IMAGE_DIR_NAME, cleanup_on_dispose: bool = False):
        """
        Initialize file manager.

        Args:
            workspace: Workspace folder the remote home is derived from
            home_dir: Explicit remote home, takes precedence over workspace
            dir_name: Directory created under the home for images
            cleanup_on_dispose: Delete image files when their handle is disposed
        """
        self.workspace = workspace
        self.home_dir = home_dir
        self.dir_name = dir_name
        self.cleanup_on_dispose = cleanup_on_dispose
        self._image_dir: Optional[Path] = None

    async def create_image_file(self, image_data: bytes,
                                image_format: Union[ImageFormat, str]) -> ImageFile:
        """
        Write image bytes to a new file.

        Returns:
            Handle to the written file

        Raises:
            FileSystemError: If the home cannot be resolved or the write fails

        If the caller is cancelled mid-write (upload timeout), the write
        thread is allowed to finish and the file is removed before the
        cancellation propagates, so no unreported image is left behind.
        """
        await self.ensure_directory_exists()

        image_path = self.get_image_dir_path() / generate_file_name(image_format)
        write = asyncio.ensure_future(asyncio.to_thread(image_path.write_bytes, image_data))
        try:
            await asyncio.shield(write)
        except asyncio.CancelledError:
            # A worker thread cannot be interrupted
            await asyncio.wait([write])
            self._discard(image_path)
            raise
        except OSError as e:
            raise FileSystemError(
                f"Failed to write image file: {image_path}",
                {"path": str(image_path)},
                original_error=e
            ) from e

        logger.info(f"Wrote {len(image_data)} bytes to {image_path}")
        return ImageFile(image_path, should_cleanup=self.cleanup_on_dispose)

    async def ensure_directory_exists(self) -> None:
        image_dir = self.get_image_dir_path()
        try:
            await asyncio.to_thread(image_dir.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise FileSystemError(
                f"Failed to create image directory: {image_dir}",
                {"path": str(image_dir)},
                original_error=e
            ) from e

    @staticmethod
    def _discard(image_path: Path) -> None:
        try:
            image_path.unlink()
            logger.info(f"Removed abandoned image file {image_path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove abandoned image file {image_path}: {e}")

    def get_image_dir_path(self) -> Path:
        """Directory images are written to (resolved once per manager)."""
        if self._image_dir is None:
            self._image_dir = self._get_home_directory() / self.dir_name
        return self._image_dir

    def _get_home_directory(self) -> Path:
        if self.home_dir is not None:
            return Path(self.home_dir)
        if self.workspace is None:
            raise FileSystemError(
                "No workspace folder available. Please open a folder or set REMOTEPIX_WORKSPACE."
            )
        return Path(resolve_home_directory(Path(self.workspace).as_posix()))
