from __future__ import annotations

import argparse
import logging
import math
from pathlib import Path
import random
import sys

from .compositor import MAX_SCALE
from .config import get_settings
from .errors import StrangewayError, UnsupportedLocator
from .logging import setup_logging
from .sinks import save_image
from .sources import is_url
from .state import get_pipeline

logger = logging.getLogger(__name__)


def scale_value(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not math.isfinite(number) or not 0 <= number <= MAX_SCALE:
        raise argparse.ArgumentTypeError(f"must be between 0 and {MAX_SCALE:g}: {value}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="strangeway",
        description="Cover every detected face in an image with a strangeway overlay.",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-p", "--path", help="Local image file.")
    source.add_argument("-u", "--url", help="Remote image URL (http/https).")
    source.add_argument("--web-server", action="store_true", help="Serve GET /?url=...&scale=... over HTTP.")
    parser.add_argument(
        "-s",
        "--scale",
        type=scale_value,
        default=settings.default_scale,
        help="How much larger than the face the overlay is drawn (default: %(default)s).",
    )
    parser.add_argument("--host", default=settings.host, help="Bind address in web-server mode.")
    parser.add_argument("--port", type=int, default=settings.port, help="Port in web-server mode (default: %(default)s).")
    parser.add_argument("-o", "--output-dir", type=Path, default=settings.output_dir, help="Where the result is written.")
    parser.add_argument("--seed", type=int, default=settings.seed, help="Seed for reproducible overlay choice.")
    parser.add_argument("--log-level", default=settings.log_level)
    return parser.parse_args(argv)


def run_server(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("strangeway.main:app", host=host, port=port, log_config=None)
    return 0


def run_file(locator: str, scale: float, output_dir: Path, seed: int | None, remote: bool = False) -> int:
    pipeline = get_pipeline()
    chooser = random.Random(seed) if seed is not None else None
    try:
        if remote and not is_url(locator):
            raise UnsupportedLocator(f"--url expects an http(s) URL, got: {locator}")
        result = pipeline.run(locator, scale, chooser)
        written = save_image(result.source.image, result.source.stem, result.source.extension, output_dir)
    except StrangewayError as exc:
        logger.error("Filter failed for %s: %s", locator, exc.message, extra={"locator": locator})
        print(f"error: {exc.message}", file=sys.stderr)
        return 2
    print(written)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)
    if args.web_server:
        return run_server(args.host, args.port)
    if args.url is not None:
        return run_file(args.url, args.scale, args.output_dir, args.seed, remote=True)
    return run_file(args.path, args.scale, args.output_dir, args.seed)


if __name__ == "__main__":
    raise SystemExit(main())
