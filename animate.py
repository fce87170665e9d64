import os
import sys
import warnings
from dataclasses import dataclass
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

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

from argparse import ArgumentParser

from fractalzoom import DEFAULT_SCENE, ColormapPalette, Complex, SceneError, build_controller, colorize, load_scene
from fractalzoom.controller import BACKENDS, FrameId
from fractalzoom.scene import parse_complex
from fractalzoom.sinks import FrameDirectorySink, GifSink, SinkGroup


def select_device():
    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'


@dataclass
class OutputConfig:
    modes: tuple[str, ...]
    gif_path: Path | None
    frame_dir: Path | None
    image_format: str


def build_parser():
    parser = ArgumentParser(description='Render a fractal zoom sequence described by a scene file.')

    parser.add_argument('--scene', type=str, dest='scene', metavar='SCENE',
                        help='JSON scene file with the function, initial state, setup and sequence actions. '
                             'Defaults to a short zoom into the seahorse valley.')

    parser.add_argument('--backend', choices=BACKENDS, default='tensorflow',
                        help='"python" evaluates one pixel at a time, "tensorflow" evaluates whole frames at once.')

    parser.add_argument('--image-size', type=int, dest='image_size', metavar='IMAGE_SIZE',
                        help='override the initial side length of the rendered images, in pixels')

    parser.add_argument('--iterations', type=int, dest='iterations', metavar='ITERATIONS',
                        help='override the initial iteration limit')

    parser.add_argument('--depth', type=float, dest='depth', metavar='DEPTH',
                        help='override the initial width of the view in the complex plane')

    parser.add_argument('--x-center', type=float, dest='x_center', metavar='X_CENTER',
                        help='override the initial real coordinate of the view center')

    parser.add_argument('--y-center', type=float, dest='y_center', metavar='Y_CENTER',
                        help='override the initial imaginary coordinate of the view center')

    parser.add_argument('--mode', dest='modes', action='append', metavar='MODE',
                        help='Output modes to generate. May be repeated. Choices: gif, frames.')

    parser.add_argument('--output', dest='output', type=str,
                        help='Destination of the GIF file.')

    parser.add_argument('--frame-dir', dest='frame_dir', type=str,
                        help='Directory in which to store the numbered frames.')

    parser.add_argument('--format', type=str, dest='format', metavar='FORMAT', default='png',
                        help='file format of the stored frames. Can be any extension supported by Pillow. Default: "png".')

    parser.add_argument('--gif-frame-duration', type=float, dest='gif_frame_duration', default=0.1,
                        help='Seconds each frame is shown in the GIF.')

    parser.add_argument('--colormap', type=str, dest='colormap', metavar='COLORMAP',
                        help='matplotlib colormap to colorize the fractal instead of the hue wheel (e.g. "twilight_shifted")')

    parser.add_argument('--invert', action='store_true', help='Invert the selected colormap.')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and hardware diagnostics.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    valid_modes = {"gif", "frames"}
    normalized_modes: list[str] = []
    for mode in opt.modes or ["frames"]:
        if mode not in valid_modes:
            parser.error(f"Unknown output mode '{mode}'. Valid choices: {', '.join(sorted(valid_modes))}.")
        if mode not in normalized_modes:
            normalized_modes.append(mode)
    modes = tuple(normalized_modes)

    image_format = (opt.format or "png").lower().lstrip(".") or "png"

    frame_dir = None
    if "frames" in modes:
        frame_dir = Path(opt.frame_dir or "./frames").expanduser().resolve()
    elif opt.frame_dir is not None:
        parser.error("--frame-dir is only valid with the frames mode.")

    gif_path = None
    if "gif" in modes:
        output_path = Path(opt.output or "movie.gif").expanduser()
        if output_path.exists() and output_path.is_dir():
            parser.error("--output must point to a file, not a directory.")
        if output_path.suffix:
            if output_path.suffix.lower() != ".gif":
                parser.error("GIF outputs must end with .gif.")
        else:
            output_path = output_path.with_suffix(".gif")
        gif_path = output_path.resolve()
    elif opt.output is not None:
        parser.error("--output is only valid when the gif mode is requested.")

    return OutputConfig(modes=modes, gif_path=gif_path, frame_dir=frame_dir, image_format=image_format)


class ProgressSink:
    def __init__(self, sink):
        self.sink = sink

    def __call__(self, buffer, frame_id: FrameId):
        print("frame {0} (action {1})".format(frame_id.image, frame_id.action), end='\r')
        self.sink(buffer, frame_id)


def main():
    parser = build_parser()
    opt = parser.parse_args()

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    output_config = resolve_output_config(opt, parser)

    try:
        scene = load_scene(Path(opt.scene)) if opt.scene else DEFAULT_SCENE
    except (OSError, SceneError) as exc:
        parser.error(str(exc))

    sinks = []
    if output_config.frame_dir is not None:
        sinks.append(FrameDirectorySink(output_config.frame_dir, output_config.image_format))
    if output_config.gif_path is not None:
        sinks.append(GifSink(output_config.gif_path, duration=opt.gif_frame_duration))
    writers = SinkGroup(sinks)

    palette = ColormapPalette(opt.colormap, invert=opt.invert) if opt.colormap else colorize

    overrides = {
        "image_size": opt.image_size,
        "iterations": opt.iterations,
        "depth": opt.depth,
    }

    device = select_device() if opt.backend == "tensorflow" else None
    log("TensorFlow version: %s" % tf.__version__)

    try:
        if opt.x_center is not None or opt.y_center is not None:
            initial = scene.get("state") or {}
            start = Complex(0.0, 0.0)
            if isinstance(initial, dict) and "center" in initial:
                start = parse_complex(initial["center"], "state 'center'")
            overrides["center"] = [
                start.real if opt.x_center is None else opt.x_center,
                start.imaginary if opt.y_center is None else opt.y_center,
            ]
        controller = build_controller(
            scene,
            sink=ProgressSink(writers),
            backend=opt.backend,
            palette=palette,
            device=device,
            overrides=overrides,
        )
    except SceneError as exc:
        parser.error(str(exc))

    log("Function: %r, initial state: %r" % (controller.function, controller.state))

    try:
        rendered = controller.run()
    finally:
        writers.close()

    print()
    log("Rendered %d frames, final state: %r" % (rendered, controller.state))
    if output_config.frame_dir is not None:
        log("Frames written to %s" % output_config.frame_dir)
    if output_config.gif_path is not None:
        log("GIF written to %s" % output_config.gif_path)


if __name__ == '__main__':
    main()
