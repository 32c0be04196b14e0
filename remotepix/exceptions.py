"""Custom exceptions for clipboard and file operations."""
from typing import Any, Dict, Optional, Sequence


class RemotepixError(Exception):
    """Base exception for remotepix errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})
        self.original_error = original_error
        if original_error is None and "original_error" in self.context:
            self.original_error = self.context["original_error"]


class ClipboardError(RemotepixError):
    """Exception raised when the clipboard cannot be probed, read or updated."""
    pass


class ClipboardAccessError(ClipboardError):
    """Exception raised when a clipboard tool invocation fails."""

    def __init__(self, message: str, command: Optional[Sequence[str]] = None,
                 returncode: Optional[int] = None, stderr: str = "",
                 original_error: Optional[BaseException] = None):
        self.command = list(command) if command else []
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            message,
            context={"command": self.command, "returncode": returncode, "stderr": stderr},
            original_error=original_error
        )


class FileSystemError(RemotepixError):
    """Exception raised when the image cannot be persisted or its path inserted."""
    pass


class UnsupportedPlatformError(RemotepixError):
    """Exception raised when no clipboard implementation exists for the OS."""
    pass
