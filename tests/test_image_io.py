import numpy as np
import pytest
from PIL import Image

import image_io
from image_io import (
    iter_images,
    load_image,
    output_path,
    save_image,
    to_greyscale,
    write_spot_count,
)


def write_png(path, array):
    Image.fromarray(np.asarray(array, dtype=np.uint8)).save(path)
    return path


class TestGreyscale:
    def test_primary_colours(self):
        image = np.zeros((1, 3, 3), dtype=np.uint8)
        image[0, 0] = (255, 0, 0)
        image[0, 1] = (0, 255, 0)
        image[0, 2] = (0, 0, 255)
        assert to_greyscale(image).tolist() == [[76, 149, 29]]

    def test_weighted_sum_is_truncated(self):
        image = np.array([[[0, 0, 0], [100, 100, 100], [10, 20, 30]]], dtype=np.uint8)
        # 10 * 0.299 + 20 * 0.587 + 30 * 0.114 = 18.15
        assert to_greyscale(image).tolist()[0][0] == 0
        assert to_greyscale(image).tolist()[0][2] == 18

    def test_alpha_is_ignored(self):
        rgba = np.zeros((2, 2, 4), dtype=np.uint8)
        rgba[..., :3] = 200
        rgba[..., 3] = 10
        assert np.all(to_greyscale(rgba) == to_greyscale(rgba[..., :3]))

    def test_two_dimensional_input_is_copied(self):
        grey = np.arange(6, dtype=np.uint8).reshape(2, 3)
        out = to_greyscale(grey)
        assert np.array_equal(out, grey)
        assert out is not grey

    @pytest.mark.parametrize("shape", [(4,), (2, 2, 2), (2, 2, 3, 1)])
    def test_bad_shapes(self, shape):
        with pytest.raises(ValueError):
            to_greyscale(np.zeros(shape, dtype=np.uint8))


class TestLoadImage:
    @pytest.fixture(params=[True, False], ids=["opencv", "pil"])
    def backend(self, request, monkeypatch):
        if request.param and not image_io.OPENCV_AVAILABLE:
            pytest.skip("OpenCV not installed")
        monkeypatch.setattr(image_io, "USE_OPENCV", request.param)
        return request.param

    def test_loads_rgb(self, tmp_path, backend):
        pixels = np.zeros((3, 4, 3), dtype=np.uint8)
        pixels[1, 2] = (10, 20, 30)
        path = write_png(tmp_path / "a.png", pixels)
        loaded = load_image(path)
        assert loaded.shape == (3, 4, 3)
        assert tuple(loaded[1, 2]) == (10, 20, 30)

    def test_greyscale_file_becomes_rgb(self, tmp_path, backend):
        path = write_png(tmp_path / "g.png", np.full((2, 2), 90))
        loaded = load_image(path)
        assert loaded.shape == (2, 2, 3)
        assert np.all(loaded == 90)

    def test_missing_file(self, tmp_path, backend):
        with pytest.raises(FileNotFoundError):
            load_image(tmp_path / "missing.png")

    def test_undecodable_file(self, tmp_path, backend):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")
        with pytest.raises(ValueError):
            load_image(path)


def test_iter_images_filters_and_sorts(tmp_path):
    for name in ("b.PNG", "a.jpg", "c.txt", "d.bmp"):
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "sub.png").mkdir()
    assert [p.name for p in iter_images(tmp_path)] == ["a.jpg", "b.PNG", "d.bmp"]


def test_output_path_uses_stem_and_suffix(tmp_path):
    assert output_path("photos/cells.jpg", tmp_path, "_ED") == tmp_path / "cells_ED.png"
    assert output_path("cells.jpg", tmp_path, "", ext=".out") == tmp_path / "cells.out"


def test_save_image_writes_png(tmp_path):
    raster = np.zeros((4, 5), dtype=np.uint8)
    raster[1, 3] = 255
    raster.setflags(write=False)
    out_dir = tmp_path / "nested" / "out"

    saved = save_image(raster, tmp_path / "sample.jpg", out_dir, "_SD")

    assert saved == out_dir / "sample_SD.png"
    with Image.open(saved) as img:
        assert img.mode == "L"
        assert np.array_equal(np.array(img), raster)


def test_write_spot_count(tmp_path):
    saved = write_spot_count(tmp_path / "sample.png", tmp_path / "out", 7)
    assert saved.name == "sample.out"
    assert saved.read_text(encoding="utf-8") == "7"
