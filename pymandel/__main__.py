import argparse
import dataclasses
import logging
import os
import sys

from .config import load_config


logger = logging.getLogger("pymandel")


def _positive_int(text):
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {text}")
    return value


def _add_view_args(parser):
    parser.add_argument(
        "--size",
        type=_positive_int,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        default=None,
        help="The dimensions of the window or image, in pixels",
    )
    parser.add_argument(
        "--imax",
        type=int,
        default=None,
        help="the max iterations to perform",
    )
    parser.add_argument(
        "--escape-radius",
        type=float,
        default=None,
        help="modulus beyond which a point is considered escaped",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="number of threads evaluating row tiles",
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pymandel",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level (default from PYMANDEL_LOG_LEVEL, else INFO)",
    )
    sub = parser.add_subparsers(dest="command")

    view = sub.add_parser(
        "view",
        help="open the interactive viewer",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_view_args(view)
    view.add_argument(
        "--zoom-limit",
        type=float,
        default=None,
        help="largest visible range when zooming out (unclamped if omitted)",
    )

    render = sub.add_parser(
        "render",
        help="render a single frame to a PNG file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_view_args(render)
    render.add_argument(
        "-o",
        "--out-file",
        default=None,
        help="The output file to write to (mandelbrot.png in the served directory if omitted)",
    )
    render.add_argument(
        "--center",
        type=float,
        nargs=2,
        metavar=("RE", "IM"),
        default=None,
        help="The complex coordinate at the image center (origin if omitted)",
    )
    render.add_argument(
        "--range",
        type=float,
        default=None,
        help="width of the visible window in the complex plane",
    )

    serve = sub.add_parser(
        "serve",
        help="serve static assets over HTTP",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    serve.add_argument("--port", type=int, default=None, help="port to listen on (default 3000)")
    serve.add_argument("--directory", default=None, help="directory to serve (default ./public)")
    return parser


def apply_args(config, args):
    """Overlay CLI flags on the environment-derived config."""
    changes = {}
    if getattr(args, "size", None):
        changes["width"], changes["height"] = args.size
    if args.log_level:
        changes["log_level"] = args.log_level

    defaults = config.defaults
    if getattr(args, "imax", None) is not None:
        defaults = dataclasses.replace(defaults, max_iterations=args.imax)
    if getattr(args, "escape_radius", None) is not None:
        defaults = dataclasses.replace(defaults, escape_radius=args.escape_radius)
    if getattr(args, "range", None) is not None:
        defaults = dataclasses.replace(defaults, range=args.range)
    if getattr(args, "center", None) is not None:
        defaults = dataclasses.replace(defaults, center_re=args.center[0], center_im=args.center[1])
    changes["defaults"] = defaults

    if getattr(args, "zoom_limit", None) is not None:
        changes["limits"] = dataclasses.replace(config.limits, max_range=args.zoom_limit)
    if getattr(args, "workers", None) is not None:
        changes["render"] = dataclasses.replace(config.render, workers=max(1, args.workers))

    server = config.server
    if getattr(args, "port", None) is not None:
        server = dataclasses.replace(server, port=args.port)
    if getattr(args, "directory", None) is not None:
        server = dataclasses.replace(server, directory=args.directory)
    changes["server"] = server

    return dataclasses.replace(config, **changes)


def render_to_file(config, out_file=None):
    from .renderer import FractalRenderer, save_png
    from .server import ensure_static_dir
    from .view import ViewState

    if out_file is None:
        out_file = os.path.join(ensure_static_dir(config.server.directory), "mandelbrot.png")

    view = ViewState.from_defaults(
        config.defaults, config.limits, aspect_ratio=config.width / config.height
    )
    with FractalRenderer(config.render) as renderer:
        rgb = renderer.render(view, config.width, config.height)
        ms = renderer.stats.last_render_ms

    save_png(rgb, out_file)
    print(f"center: {view.center_re} {view.center_im}i")
    print(f"range: {view.range}")
    print(f"imax: {view.max_iterations}")
    print(f"escape radius: {view.escape_radius}")
    print(f"dims: {config.width}x{config.height}")
    print(f"render: {ms:.1f}ms -> {out_file}")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = apply_args(load_config(os.environ), args)
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    command = args.command or "view"
    if command == "render":
        render_to_file(config, args.out_file)
    elif command == "serve":
        from .server import serve
        serve(config.server)
    else:
        from .viewer import FractalViewer, SessionInitError
        try:
            FractalViewer(config).run()
        except SessionInitError as exc:
            logger.error("%s", exc)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
