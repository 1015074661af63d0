from pathlib import Path

import pytest

pytest.importorskip("pyvips")
pytestmark = pytest.mark.imaging

from image_processor.cli import run
from image_processor.image_engine import codec
from image_processor.image_engine.raster import Raster


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    path = tmp_path / "in.png"
    path.write_bytes(codec.encode(Raster.filled(6, 4, (10, 20, 30, 255))))
    return path


def test_filter_writes_output(image_file: Path, tmp_path: Path):
    out = tmp_path / "out.png"
    assert run(["invert", str(image_file), "-o", str(out)]) == 0
    assert tuple(codec.decode(out.read_bytes()).pixels[0, 0]) == (245, 235, 225, 255)


def test_default_output_name(image_file: Path):
    assert run(["rotate90", str(image_file)]) == 0
    out = image_file.with_name("in.rotate90.png")
    assert codec.decode(out.read_bytes()).size == (4, 6)


def test_two_image_op(image_file: Path, tmp_path: Path):
    out = tmp_path / "combined.png"
    assert run(["combine_with_square_region", str(image_file), str(image_file), "0", "0", "4", "-o", str(out)]) == 0
    assert codec.decode(out.read_bytes()).size == (6, 4)


def test_queries_print(image_file: Path, capsys):
    assert run(["get_dimensions", str(image_file)]) == 0
    assert capsys.readouterr().out.strip() == "6 4"
    assert run(["is_square_ish", str(image_file)]) == 0
    assert capsys.readouterr().out.strip() == "false"


def test_engine_error_exit_code(image_file: Path, capsys):
    assert run(["crop_square", str(image_file), "0", "0", "5"]) == 1
    assert "invalid_parameter" in capsys.readouterr().err


def test_missing_input(tmp_path: Path):
    assert run(["grayscale", str(tmp_path / "nope.png")]) == 2
