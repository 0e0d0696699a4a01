"""sitemirror CLI. Invoked as `sitemirror` when installed with pip install -e ."""

import argparse
import sys
from pathlib import Path

from sitemirror import __version__
from sitemirror._deps import check_required
from sitemirror.hardware import clamp_workers, default_workers


def target_url(value: str):
    """argparse type: absolute http(s) URL, canonicalized."""
    import httpx

    from sitemirror.urls import canonicalize, is_absolute_http

    try:
        url = canonicalize(value.strip())
    except httpx.InvalidURL as e:
        raise argparse.ArgumentTypeError(f"invalid URL {value!r}: {e}") from e
    if not is_absolute_http(url):
        raise argparse.ArgumentTypeError(f"not an absolute http(s) URL: {value!r}")
    return url


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitemirror",
        description="Recursively download a website.",
    )
    parser.add_argument("targets", nargs="*", type=target_url, metavar="URL", help="Target URLs to start from")
    parser.add_argument("-o", "--output", type=Path, default=Path("."), help="Output path (default: .)")
    parser.add_argument(
        "-t",
        "--threads",
        type=int,
        default=None,
        metavar="N",
        help=f"How many threads to use (default: {default_workers()}, from CPU count)",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        metavar="N",
        help="Give up on a URL after N failed attempts (default: retry forever)",
    )
    parser.add_argument(
        "--chunk-timeout",
        type=float,
        default=None,
        metavar="SECS",
        help="Abort a download when no data arrives for SECS seconds (default: 3)",
    )
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars (e.g. for scripting)")
    parser.add_argument("--no-color", action="store_true", help="Plain status lines without colors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> None:
    check_required()

    from sitemirror.errors import MirrorError
    from sitemirror.pool import run_worker_pool
    from sitemirror.settings import Settings
    from sitemirror.status import StatusStyle

    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.targets:
        parser.error("no targets provided.")
    if args.max_retries is not None and args.max_retries < 0:
        parser.error("--max-retries must be >= 0")

    settings = Settings(output_path=args.output, targets=args.targets, max_retries=args.max_retries)
    if args.chunk_timeout is not None:
        settings.chunk_timeout = args.chunk_timeout

    try:
        stats = run_worker_pool(
            settings,
            clamp_workers(args.threads),
            style=StatusStyle.for_stderr(colour=not args.no_color),
            progress=not args.no_progress,
        )
    except MirrorError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    summary = f"\nDone. {stats.saved} saved, {stats.failed} failed attempts"
    if stats.abandoned:
        summary += f", {stats.abandoned} abandoned"
    print(summary + ".", file=sys.stderr)


if __name__ == "__main__":
    main()
