import os
import sys
import warnings
from argparse import ArgumentParser
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf
import numpy as np
import PIL.Image
import imageio

from .engine import EngineConfig, PlaneBounds
from .errors import InvalidViewportError
from .palette import Palette, parse_hex_color
from .viewer import Viewer


def quiet_tensorflow(verbose: bool) -> None:
    if verbose:
        return
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")


def select_device() -> str:
    """Prefer the first GPU, falling back to the CPU."""

    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        # Memory growth can only be set before the GPU is initialized.
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


def build_parser():
    parser = ArgumentParser(prog='mandelview', description='Render the Mandelbrot set through a sequence of pan/zoom commits.')

    parser.add_argument('--width', type=int, dest='width', metavar='WIDTH', default=800,
                        help='canvas width in screen pixels')
    parser.add_argument('--height', type=int, dest='height', metavar='HEIGHT', default=600,
                        help='canvas height in screen pixels')
    parser.add_argument('--downsample', type=int, dest='downsample', metavar='FACTOR', default=2,
                        help='compute one sample per FACTOR x FACTOR block of screen pixels')

    parser.add_argument('--max-iterations', type=int, dest='max_iterations', metavar='MAX_ITERATIONS', default=100,
                        help='maximum number of iterations before a point counts as inside the set')
    parser.add_argument('--escape-radius', type=float, dest='escape_radius', metavar='RADIUS', default=2.0,
                        help='orbit magnitude beyond which a point has escaped')
    parser.add_argument('--power', type=int, dest='power', metavar='POWER', default=2,
                        help='exponent of the iteration z -> z**POWER + c')
    parser.add_argument('--band-rows', type=int, dest='band_rows', metavar='ROWS', default=32,
                        help='rows computed per kernel launch')

    parser.add_argument('--xl', type=float, default=-2.5, help='left bound of the real axis')
    parser.add_argument('--xr', type=float, default=1.0, help='right bound of the real axis')
    parser.add_argument('--yl', type=float, default=-1.0, help='lower bound of the imaginary axis')
    parser.add_argument('--yr', type=float, default=1.0, help='upper bound of the imaginary axis')

    parser.add_argument('--pan-x', type=float, dest='pan_x', default=0.0,
                        help='screen pixels to pan horizontally before each commit')
    parser.add_argument('--pan-y', type=float, dest='pan_y', default=0.0,
                        help='screen pixels to pan vertically before each commit')
    parser.add_argument('--zoom', type=float, dest='zoom', default=1.0,
                        help='zoom factor applied before each commit. Choose > 1 to zoom in, < 1 to zoom out')
    parser.add_argument('--frames', type=int, dest='frames', metavar='FRAMES', default=1,
                        help='number of frames; every frame after the first is one commit')

    parser.add_argument('--colormap', type=str, dest='colormap', metavar='COLORMAP', default=None,
                        help='matplotlib colormap to sample the 16-entry palette from (default: classic gradient)')
    parser.add_argument('--invert', action='store_true', help='Invert the selected colormap.')
    parser.add_argument('--inside-color', type=str, default='#000000', help='Hex color for points inside the Mandelbrot set.')

    parser.add_argument('--output', type=str, dest='output', default='frame_final.png',
                        help='destination of the last frame')
    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default=None,
                        help='image format for --output; defaults to the output extension')
    parser.add_argument('--gif', type=str, dest='gif', default=None,
                        help='also write every frame to this GIF file')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def _pil_format_name(ext: str) -> str:
    upper = ext.upper()
    if upper == "JPG":
        return "JPEG"
    if upper == "TIF":
        return "TIFF"
    return upper


def build_palette(opt, parser: ArgumentParser) -> Palette:
    try:
        inside = parse_hex_color(opt.inside_color)
    except ValueError as exc:
        parser.error(f"--inside-color: {exc}")
    if opt.colormap is None:
        return Palette(interior=inside)
    try:
        return Palette.from_colormap(opt.colormap, invert=opt.invert, interior=inside)
    except KeyError:
        parser.error(f"Unknown colormap '{opt.colormap}'.")


def resolve_config(opt, parser: ArgumentParser, device: str) -> tuple[EngineConfig, PlaneBounds]:
    palette = build_palette(opt, parser)
    try:
        config = EngineConfig(
            max_iterations=opt.max_iterations,
            escape_radius=opt.escape_radius,
            power=opt.power,
            downsample=opt.downsample,
            band_rows=opt.band_rows,
            device=device,
            palette=palette,
        )
        bounds = PlaneBounds(opt.xl, opt.xr, opt.yl, opt.yr)
    except ValueError as exc:
        parser.error(str(exc))
    if opt.width < 1 or opt.height < 1:
        parser.error("--width and --height must be positive.")
    if opt.frames < 1:
        parser.error("--frames must be at least 1.")
    if opt.zoom <= 0:
        parser.error("--zoom must be positive.")
    return config, bounds


def main(argv=None) -> int:
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)
    quiet_tensorflow(VERBOSE)
    log("TensorFlow version: %s" % tf.__version__)

    config, bounds = resolve_config(opt, parser, select_device())

    output_path = Path(opt.output).expanduser().resolve()
    image_format = (opt.format or output_path.suffix.lstrip('.') or 'png').lower()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    viewer = Viewer.initialize(opt.width, opt.height, bounds.xl, bounds.xr, bounds.yl, bounds.yr, config=config)

    gif_writer = None
    if opt.gif is not None:
        gif_path = Path(opt.gif).expanduser().resolve()
        gif_path.parent.mkdir(parents=True, exist_ok=True)
        gif_writer = imageio.get_writer(str(gif_path), mode='I', duration=0.1, loop=0)

    frame = viewer.get_frame_buffer()
    try:
        for i in range(opt.frames):
            print("frame {0} out of {1}".format(i, opt.frames), end='\r')
            if i > 0:
                viewer.accumulate_zoom(opt.zoom)
                viewer.accumulate_pan(opt.pan_x, opt.pan_y)
                try:
                    viewer.request_commit()
                except InvalidViewportError as exc:
                    print(f"\nStopping at frame {i}: {exc}")
                    viewer.discard_pending()
                    break
                frame = viewer.get_frame_buffer()
            b = viewer.engine.bounds
            log("\nframe %d bounds x=[%.17g, %.17g] y=[%.17g, %.17g]" % (i, b.xl, b.xr, b.yl, b.yr))
            if gif_writer is not None:
                gif_writer.append_data(np.asarray(frame, dtype=np.uint8))
    finally:
        if gif_writer is not None:
            gif_writer.close()

    PIL.Image.fromarray(frame).save(str(output_path), format=_pil_format_name(image_format))
    print(f"\nWrote {output_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
