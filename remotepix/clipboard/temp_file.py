"""Self-cleaning temporary files used to move bytes out of native clipboard tools."""
import logging
import secrets
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

TEMP_DIR_PREFIX = "remotepix-clipboard-"


class ManagedTempFile:
    """
    A uniquely named file inside its own temporary directory.

    The owner creates it right before a native tool writes into it and
    disposes it before returning, on every exit path:

        with ManagedTempFile.create(".png") as tmp:
            await run_tool(tmp.path)
            data = tmp.read_bytes()
    """

    def __init__(self, path: Path, dir_path: Path):
        self.path = path
        self.dir_path = dir_path

    @classmethod
    def create(cls, suffix: str = ".png", directory: Optional[str] = None) -> "ManagedTempFile":
        """
        Allocate a fresh temp directory and a file path inside it.

        Args:
            suffix: File extension including the dot
            directory: Parent directory (defaults to the OS temp root)
        """
        dir_path = Path(tempfile.mkdtemp(prefix=TEMP_DIR_PREFIX, dir=directory))
        name = f"clipboard-{secrets.token_hex(8)}{suffix}"
        return cls((dir_path / name).resolve(), dir_path)

    def exists(self) -> bool:
        return self.path.is_file()

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def write_bytes(self, data: bytes) -> None:
        self.path.write_bytes(data)

    def dispose(self) -> None:
        """Remove the file, then its directory. Never raises."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"Could not remove temp file {self.path}: {e}")

        try:
            self.dir_path.rmdir()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.debug(f"Could not remove temp directory {self.dir_path}: {e}")

    def __enter__(self) -> "ManagedTempFile":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"ManagedTempFile({str(self.path)!r})"
