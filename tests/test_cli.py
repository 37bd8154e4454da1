import numpy as np
import PIL.Image
import pytest

from mandelview import cli

SMALL = ["--width", "32", "--height", "24", "--max-iterations", "20"]


def test_parser_defaults():
    opt = cli.build_parser().parse_args([])
    assert (opt.width, opt.height, opt.downsample) == (800, 600, 2)
    assert (opt.max_iterations, opt.escape_radius, opt.power) == (100, 2.0, 2)
    assert (opt.xl, opt.xr, opt.yl, opt.yr) == (-2.5, 1.0, -1.0, 1.0)
    assert opt.frames == 1
    assert opt.zoom == 1.0


def test_main_writes_final_image(tmp_path):
    output = tmp_path / "out" / "final.png"
    assert cli.main([*SMALL, "--output", str(output)]) == 0
    with PIL.Image.open(output) as image:
        assert image.size == (32, 24)
        assert image.mode == "RGB"


def test_main_zoom_sequence_with_gif(tmp_path):
    output = tmp_path / "final.png"
    gif = tmp_path / "zoom.gif"
    args = [*SMALL, "--frames", "3", "--zoom", "1.5", "--pan-x", "2", "--colormap", "magma",
            "--output", str(output), "--gif", str(gif)]
    assert cli.main(args) == 0
    assert output.is_file()
    assert gif.is_file()
    with PIL.Image.open(gif) as image:
        assert image.n_frames >= 1


def test_main_honours_inside_color(tmp_path):
    output = tmp_path / "final.png"
    args = ["--width", "20", "--height", "20", "--downsample", "1", "--max-iterations", "20",
            "--xl", "-0.1", "--xr", "0.1", "--yl", "-0.1", "--yr", "0.1",
            "--inside-color", "#ff0000", "--output", str(output)]
    cli.main(args)
    with PIL.Image.open(output) as image:
        pixels = np.asarray(image)
    assert (pixels == np.array([255, 0, 0], dtype=np.uint8)).all()


@pytest.mark.parametrize("bad", [
    ["--inside-color", "red"],
    ["--colormap", "no-such-colormap"],
    ["--xl", "2", "--xr", "1"],
    ["--downsample", "0"],
    ["--zoom", "0"],
    ["--frames", "0"],
])
def test_main_rejects_bad_arguments(tmp_path, bad):
    with pytest.raises(SystemExit):
        cli.main([*SMALL, *bad, "--output", str(tmp_path / "x.png")])
