"""Tests for image file materialization."""
import asyncio
import re

import pytest

from remotepix.clipboard.base import ImageFormat
from remotepix.exceptions import FileSystemError
from remotepix.file_manager import FileManager, ImageFile, generate_file_name, resolve_home_directory


@pytest.mark.parametrize("workspace, home", [
    ("/home/alice/projects/site", "/home/alice"),
    ("/Users/bob/code", "/Users/bob"),
    ("/root/work/repo", "/root"),
    ("/root", "/root"),
    ("/C:/Users/carol/src/app", "/C:/Users/carol"),
    ("/D:/builds/app", "/D:/builds/app"),
    ("/u/dave/work", "/u/dave"),
    ("/srv", "/srv"),
])
def test_resolve_home_directory(workspace, home):
    assert resolve_home_directory(workspace) == home


def test_generate_file_name():
    name = generate_file_name(ImageFormat.JPEG)
    assert re.fullmatch(r"image_\d{13}\.jpeg", name)
    assert generate_file_name("tiff").endswith(".tiff")


def test_create_image_file_writes_raw_bytes(tmp_path):
    data = b"\x89PNG\r\n\x1a\n" + b"\x05" * 34193
    manager = FileManager(home_dir=tmp_path)

    image_file = asyncio.run(manager.create_image_file(data, ImageFormat.PNG))

    assert image_file.path.parent == tmp_path / "remotepix"
    assert re.fullmatch(r"image_\d+\.png", image_file.path.name)
    assert image_file.path.read_bytes() == data
    assert image_file.exists()


def test_create_image_file_in_existing_directory(tmp_path):
    (tmp_path / "remotepix").mkdir()
    manager = FileManager(home_dir=tmp_path)

    image_file = asyncio.run(manager.create_image_file(b"II*\x00abc", "tiff"))

    assert image_file.path.suffix == ".tiff"


def test_home_derived_from_workspace():
    manager = FileManager(workspace="/home/u/projects/demo")
    assert str(manager.get_image_dir_path()) == "/home/u/remotepix"


def test_explicit_home_wins_over_workspace(tmp_path):
    manager = FileManager(workspace="/home/u/projects/demo", home_dir=tmp_path)
    assert manager.get_image_dir_path() == tmp_path / "remotepix"


def test_missing_workspace_raises_file_system_error():
    manager = FileManager()
    with pytest.raises(FileSystemError) as excinfo:
        asyncio.run(manager.create_image_file(b"\x89PNG\r\n\x1a\n", ImageFormat.PNG))
    assert "No workspace folder available" in excinfo.value.message


def test_write_failure_raises_file_system_error(tmp_path):
    blocker = tmp_path / "remotepix"
    blocker.write_text("not a directory")
    manager = FileManager(home_dir=tmp_path)

    with pytest.raises(FileSystemError):
        asyncio.run(manager.create_image_file(b"\x89PNG\r\n\x1a\n", ImageFormat.PNG))


def test_image_file_dispose_keeps_file_by_default(tmp_path):
    path = tmp_path / "image_1.png"
    path.write_bytes(b"x")
    image_file = ImageFile(path)

    image_file.dispose()

    assert image_file.disposed
    assert path.exists()


def test_image_file_dispose_with_cleanup(tmp_path):
    path = tmp_path / "image_2.png"
    path.write_bytes(b"x")
    image_file = ImageFile(path, should_cleanup=True)

    image_file.dispose()
    image_file.dispose()

    assert not path.exists()
