import random

import pytest
from PIL import Image

from squeezer.lossy import compress_jpeg


def _noisy_jpeg(path, mode="RGB", size=(64, 48)):
    rng = random.Random(1234)
    channels = 3 if mode == "RGB" else 1
    data = bytes(rng.randrange(256) for _ in range(size[0] * size[1] * channels))
    Image.frombytes(mode, size, data).save(path, format="JPEG", quality=95)
    return path


def test_output_is_jpeg_with_same_size(tmp_path):
    src = _noisy_jpeg(tmp_path / "in.jpeg")
    out = compress_jpeg(src, tmp_path / "out.jpeg", 50)
    assert out.read_bytes()[:3] == b"\xff\xd8\xff"
    with Image.open(out) as img:
        assert img.size == (64, 48)
        assert img.mode == "RGB"
        assert img.format == "JPEG"


def test_grayscale_stays_grayscale(tmp_path):
    src = _noisy_jpeg(tmp_path / "gray.jpeg", mode="L")
    out = compress_jpeg(src, tmp_path / "out.jpeg", 80)
    with Image.open(out) as img:
        assert img.mode == "L"


def test_lower_quality_gives_smaller_file(tmp_path):
    src = _noisy_jpeg(tmp_path / "in.jpeg")
    low = compress_jpeg(src, tmp_path / "low.jpeg", 10)
    high = compress_jpeg(src, tmp_path / "high.jpeg", 95)
    assert low.stat().st_size < high.stat().st_size


def test_quality_is_clamped(tmp_path):
    src = _noisy_jpeg(tmp_path / "in.jpeg")
    zero = compress_jpeg(src, tmp_path / "zero.jpeg", 0)
    one = compress_jpeg(src, tmp_path / "one.jpeg", 1)
    over = compress_jpeg(src, tmp_path / "over.jpeg", 150)
    full = compress_jpeg(src, tmp_path / "full.jpeg", 100)
    assert zero.read_bytes() == one.read_bytes()
    assert over.read_bytes() == full.read_bytes()


def test_missing_input_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        compress_jpeg(tmp_path / "absent.jpeg", tmp_path / "out.jpeg", 75)


def test_non_jpeg_image_raises(tmp_path):
    src = tmp_path / "in.png"
    Image.new("RGB", (8, 8), (10, 20, 30)).save(src, format="PNG")
    with pytest.raises(ValueError):
        compress_jpeg(src, tmp_path / "out.jpeg", 75)
    assert not (tmp_path / "out.jpeg").exists()


def test_garbage_input_raises(tmp_path):
    src = tmp_path / "junk.jpeg"
    src.write_bytes(b"plain text, not an image")
    with pytest.raises(ValueError):
        compress_jpeg(src, tmp_path / "out.jpeg", 75)