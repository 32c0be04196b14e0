"""Tests for the macOS clipboard (AppleScript with pbpaste fallback)."""
import asyncio
import re
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from clipboard_fakes import FakeCommands, failure, patched_commands
from remotepix.clipboard.base import ImageFormat
from remotepix.clipboard.macos import (
    HAS_IMAGE_SCRIPT,
    MacOSClipboardService,
    osascript_command,
    quote_applescript,
)
from remotepix.exceptions import ClipboardAccessError

MACOS = "remotepix.clipboard.macos"

PNG = b"\x89PNG\r\n\x1a\n" + b"\x07" * 128
TIFF = b"MM\x00*" + b"\x08" * 128
JPEG = b"\xff\xd8\xff\xe1" + b"\x09" * 128

TYPE_CHECK = tuple(osascript_command(HAS_IMAGE_SCRIPT))
CLIPBOARD_INFO = ("osascript", "-e", "clipboard info")
PBPASTE_PNG = ("pbpaste", "-Prefer", "public.png")
PBPASTE_TIFF = ("pbpaste", "-Prefer", "public.tiff")
PBPASTE_JPEG = ("pbpaste", "-Prefer", "public.jpeg")


def is_save_script(command):
    return command[0] == "osascript" and any("open for access" in part for part in command)


def is_set_clipboard(command):
    return command[0] == "osascript" and any("set the clipboard to" in part for part in command)


def script_path(command):
    return Path(re.search(r'set tempPath to "(.+)"', command[2]).group(1))


def run(coro):
    return asyncio.run(coro)


def test_quote_applescript_escapes():
    assert quote_applescript('a "b" \\c') == '"a \\"b\\" \\\\c"'


def test_osascript_command_passes_each_line():
    assert osascript_command(["one", "two"]) == ["osascript", "-e", "one", "-e", "two"]


def test_get_image_via_applescript():
    paths = []

    def save(command):
        path = script_path(command)
        path.write_bytes(PNG)
        paths.append(path)
        return b"OK\n"

    fake = FakeCommands({is_save_script: save})
    with patched_commands(fake, MACOS):
        image = run(MacOSClipboardService().get_image())

    assert image.buffer == PNG
    assert image.format is ImageFormat.PNG
    assert fake.programs() == ["osascript"]
    assert not paths[0].exists()
    assert not paths[0].parent.exists()


def test_get_image_script_error_falls_back_to_pbpaste():
    fake = FakeCommands({
        is_save_script: b"ERROR:Can't make some data into the expected type.\n",
        PBPASTE_PNG: b"",
        PBPASTE_TIFF: TIFF,
    })
    with patched_commands(fake, MACOS):
        image = run(MacOSClipboardService().get_image())

    assert image.format is ImageFormat.TIFF
    assert image.buffer == TIFF
    assert fake.programs() == ["osascript", "pbpaste", "pbpaste"]


def test_get_image_pbpaste_ignores_non_image_output():
    fake = FakeCommands({
        is_save_script: failure(["osascript"]),
        PBPASTE_PNG: b"plain text on the clipboard",
        PBPASTE_TIFF: b"plain text on the clipboard",
        PBPASTE_JPEG: JPEG,
    })
    with patched_commands(fake, MACOS):
        image = run(MacOSClipboardService().get_image())

    assert image.format is ImageFormat.JPEG


def test_get_image_none_when_every_strategy_fails():
    fake = FakeCommands({is_save_script: failure(["osascript"])})
    with patched_commands(fake, MACOS):
        assert run(MacOSClipboardService().get_image()) is None
    assert fake.programs() == ["osascript", "pbpaste", "pbpaste", "pbpaste"]


def test_get_image_missing_file_falls_back():
    fake = FakeCommands({is_save_script: b"OK\n", PBPASTE_PNG: PNG})
    with patched_commands(fake, MACOS):
        image = run(MacOSClipboardService().get_image())
    assert image.buffer == PNG


def test_has_image_type_check():
    fake = FakeCommands({TYPE_CHECK: b"true\n"})
    with patched_commands(fake, MACOS):
        assert run(MacOSClipboardService().has_image()) is True
    assert len(fake.calls) == 1


def test_has_image_falls_back_to_clipboard_info():
    fake = FakeCommands({
        TYPE_CHECK: failure(list(TYPE_CHECK)),
        CLIPBOARD_INFO: "«class PNGf», 45021, «class 8BPS», 91230".encode("utf-8"),
    })
    with patched_commands(fake, MACOS):
        assert run(MacOSClipboardService().has_image()) is True


def test_has_image_clipboard_info_without_image():
    fake = FakeCommands({
        TYPE_CHECK: failure(list(TYPE_CHECK)),
        CLIPBOARD_INFO: b"string, 12, Unicode text, 24",
    })
    with patched_commands(fake, MACOS):
        assert run(MacOSClipboardService().has_image()) is False


def test_has_image_raises_when_fallback_fails():
    fake = FakeCommands()
    with patched_commands(fake, MACOS):
        with pytest.raises(ClipboardAccessError):
            run(MacOSClipboardService().has_image())


def test_clear_feeds_empty_stdin_and_swallows_errors():
    fake = FakeCommands({("pbcopy",): failure(["pbcopy"])})
    with patched_commands(fake, MACOS):
        run(MacOSClipboardService().clear())
    assert fake.calls[0]["input_data"] == b""


def test_warm_up_swallows_errors():
    fake = FakeCommands()
    with patched_commands(fake, MACOS):
        run(MacOSClipboardService().warm_up())
    assert fake.calls[0]["command"] == list(CLIPBOARD_INFO)


def test_set_text_with_image_sets_text_and_image():
    seen = {}

    def set_clipboard(command):
        script = "\n".join(command[2::2])
        seen["script"] = script
        path = Path(re.search(r'POSIX file "(.+?)"', script).group(1))
        seen["bytes"] = path.read_bytes()
        seen["path"] = path
        return b""

    fake = FakeCommands({is_set_clipboard: set_clipboard})
    fallback = AsyncMock(return_value=True)
    with patched_commands(fake, MACOS), patch(f"{MACOS}.copy_text_fallback", fallback):
        run(MacOSClipboardService().set_text_with_image("/Users/u/remotepix/image_1.png", PNG))

    assert "«class PNGf»:imageData" in seen["script"]
    assert '"/Users/u/remotepix/image_1.png"' in seen["script"]
    assert seen["bytes"] == PNG
    assert not seen["path"].exists()
    fallback.assert_not_awaited()


def test_set_text_with_image_uses_tiff_class_for_tiff_bytes():
    seen = {}

    def set_clipboard(command):
        seen["script"] = "\n".join(command[2::2])
        return b""

    fake = FakeCommands({is_set_clipboard: set_clipboard})
    with patched_commands(fake, MACOS):
        run(MacOSClipboardService().set_text_with_image("p", TIFF))

    assert "read theFile as «class TIFF»" in seen["script"]


def test_set_text_with_image_falls_back_to_text_only():
    fake = FakeCommands({is_set_clipboard: failure(["osascript"])})
    fallback = AsyncMock(return_value=True)
    with patched_commands(fake, MACOS), patch(f"{MACOS}.copy_text_fallback", fallback):
        run(MacOSClipboardService().set_text_with_image("/tmp/x.png", PNG))

    fallback.assert_awaited_once_with("/tmp/x.png")
