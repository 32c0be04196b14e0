"""Tests for the shared clipboard types and the process helpers."""
import asyncio
import sys
from unittest.mock import patch

import pytest

from remotepix.clipboard import create_clipboard_service
from remotepix.clipboard.base import (
    ImageData,
    ImageFormat,
    copy_text_fallback,
    detect_image_format,
    run_command,
    run_first_success,
)
from remotepix.clipboard.linux import LinuxClipboardService
from remotepix.clipboard.macos import MacOSClipboardService
from remotepix.clipboard.windows import WindowsClipboardService
from remotepix.config import TimeoutConfig
from remotepix.exceptions import ClipboardAccessError, ClipboardError, UnsupportedPlatformError

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 32
TIFF_LE = b"II*\x00" + b"\x00" * 32
TIFF_BE = b"MM\x00*" + b"\x00" * 32


def test_detect_image_format():
    assert detect_image_format(PNG) is ImageFormat.PNG
    assert detect_image_format(JPEG) is ImageFormat.JPEG
    assert detect_image_format(TIFF_LE) is ImageFormat.TIFF
    assert detect_image_format(TIFF_BE) is ImageFormat.TIFF
    assert detect_image_format(b"hello world") is None
    assert detect_image_format(b"") is None


def test_image_data_rejects_empty_buffer():
    with pytest.raises(ValueError):
        ImageData(b"", ImageFormat.PNG)


def test_image_data_coerces_format_string():
    image = ImageData(PNG, "png")
    assert image.format is ImageFormat.PNG


def test_image_data_from_bytes_trusts_content():
    image = ImageData.from_bytes(JPEG, ImageFormat.PNG)
    assert image.format is ImageFormat.JPEG

    unknown = ImageData.from_bytes(b"raw", ImageFormat.TIFF)
    assert unknown.format is ImageFormat.TIFF


def test_image_format_mime_types():
    assert ImageFormat.PNG.mime_type == "image/png"
    assert ImageFormat.from_mime_type("image/jpeg") is ImageFormat.JPEG
    assert ImageFormat.from_mime_type("text/plain") is None
    assert ImageFormat.TIFF.extension == "tiff"


def test_run_command_returns_stdout():
    output = asyncio.run(run_command(
        [sys.executable, "-c", "import sys; sys.stdout.buffer.write(b'abc')"], timeout=10
    ))
    assert output == b"abc"


def test_run_command_feeds_stdin():
    script = "import sys; sys.stdout.buffer.write(sys.stdin.buffer.read()[::-1])"
    output = asyncio.run(run_command([sys.executable, "-c", script], timeout=10, input_data=b"123"))
    assert output == b"321"


def test_run_command_nonzero_exit_raises_with_context():
    script = "import sys; sys.stderr.write('boom'); sys.exit(3)"
    with pytest.raises(ClipboardAccessError) as excinfo:
        asyncio.run(run_command([sys.executable, "-c", script], timeout=10))

    error = excinfo.value
    assert isinstance(error, ClipboardError)
    assert error.returncode == 3
    assert error.stderr == "boom"
    assert error.command[0] == sys.executable
    assert error.context["returncode"] == 3


def test_run_command_timeout_raises():
    with pytest.raises(ClipboardAccessError) as excinfo:
        asyncio.run(run_command(
            [sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.3
        ))
    assert "timed out" in excinfo.value.message


def test_run_command_missing_program_raises():
    with pytest.raises(ClipboardAccessError) as excinfo:
        asyncio.run(run_command(["remotepix-no-such-tool-xyz"], timeout=5))
    assert excinfo.value.original_error is not None


def test_run_command_without_capture_returns_empty():
    output = asyncio.run(run_command(
        [sys.executable, "-c", "print('ignored')"], timeout=10, capture_output=False
    ))
    assert output == b""


def test_run_first_success_falls_through_to_next_command():
    commands = [
        ["remotepix-no-such-tool-xyz"],
        [sys.executable, "-c", "import sys; sys.stdout.write('second')"],
    ]
    output = asyncio.run(run_first_success(commands, timeout=10))
    assert output == b"second"


def test_run_first_success_raises_last_error():
    commands = [
        ["remotepix-no-such-tool-xyz"],
        [sys.executable, "-c", "import sys; sys.exit(7)"],
    ]
    with pytest.raises(ClipboardAccessError) as excinfo:
        asyncio.run(run_first_success(commands, timeout=10))
    assert excinfo.value.returncode == 7


def test_copy_text_fallback_uses_pyperclip():
    with patch("remotepix.clipboard.base.pyperclip.copy") as mock_copy:
        assert asyncio.run(copy_text_fallback("/home/u/remotepix/a.png")) is True
    mock_copy.assert_called_once_with("/home/u/remotepix/a.png")


def test_copy_text_fallback_swallows_errors():
    with patch("remotepix.clipboard.base.pyperclip.copy", side_effect=RuntimeError("no clipboard")):
        assert asyncio.run(copy_text_fallback("text")) is False


def test_factory_selects_platform_variant():
    timeouts = TimeoutConfig(clipboard_ms=2500)
    assert isinstance(create_clipboard_service(timeouts, "win32"), WindowsClipboardService)
    assert isinstance(create_clipboard_service(timeouts, "linux"), LinuxClipboardService)
    assert isinstance(create_clipboard_service(timeouts, "darwin"), MacOSClipboardService)
    assert create_clipboard_service(timeouts, "linux").timeout == 2.5


def test_factory_rejects_unknown_platform():
    with pytest.raises(UnsupportedPlatformError):
        create_clipboard_service(platform="sunos5")
