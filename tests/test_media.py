"""Tests for attachment storage helpers."""
from pathlib import Path

from core.media import discard_image, save_image


def test_save_image_uses_timestamp_name(tmp_path):
    path = Path(save_image(b"data", "holiday.PNG", upload_dir=tmp_path))
    assert path.parent == tmp_path.resolve()
    assert path.suffix == ".png"
    assert path.stem.isdigit()
    assert path.read_bytes() == b"data"


def test_save_image_never_overwrites(tmp_path):
    first = save_image(b"one", "a.jpg", upload_dir=tmp_path)
    second = save_image(b"two", "b.jpg", upload_dir=tmp_path)
    assert first != second
    assert Path(first).read_bytes() == b"one"
    assert Path(second).read_bytes() == b"two"


def test_save_image_without_extension(tmp_path):
    path = save_image(b"x", "blob", upload_dir=tmp_path)
    assert path.endswith(".jpg")


def test_discard_image(tmp_path):
    target = tmp_path / "a.png"
    target.write_bytes(b"x")
    discard_image(str(target))
    assert not target.exists()


def test_discard_missing_or_empty_is_quiet(tmp_path):
    discard_image(None)
    discard_image(str(tmp_path / "missing.png"))
