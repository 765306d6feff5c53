"""CLI entrypoint for the batch image converter.

Usage:
    python -m photoconv --to png --from jpg
    python -m photoconv --to webp --from jpg jpeg --input-dir ./photos
    python -m photoconv --to png --from tif --output-dir ./out --threads 4
    python -m photoconv --to jpg --from png --delete-original --depth 1-2
    python -m photoconv --to png --from bmp --fail-fast --no-progress
"""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
import sys
import time
from pathlib import Path

from .errors import ConfigError, TraversalError
from .formats import SUPPORTED_EXTENSIONS
from .utils import DEFAULT_WORKERS, LOG_FILE_NAME

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_SETUP_ERROR = 2
EXIT_INTERRUPTED = 130


def _setup_logging(
    *,
    verbose: bool,
    detailed_logging: bool,
    log_dir: Path | None,
    log_file: Path | None,
) -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    root_level = logging.DEBUG if verbose else logging.INFO
    root_logger.setLevel(root_level)

    console_fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    detailed_fmt = (
        "%(asctime)s | %(levelname)-8s | %(name)s | "
        "%(threadName)s | %(filename)s:%(lineno)d | %(message)s"
    )
    formatter = logging.Formatter(
        detailed_fmt if detailed_logging else console_fmt,
        "%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(root_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    resolved_log_file = log_file
    if resolved_log_file is None and detailed_logging and log_dir is not None:
        resolved_log_file = log_dir / LOG_FILE_NAME

    if resolved_log_file is not None:
        resolved_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            resolved_log_file,
            maxBytes=20 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(detailed_fmt, "%Y-%m-%d %H:%M:%S"))
        root_logger.addHandler(file_handler)

    logging.getLogger("PIL").setLevel(logging.WARNING)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="photoconv",
        description="Convert every image of the given formats under a directory tree",
    )
    parser.add_argument(
        "-t",
        "--to",
        dest="target",
        required=True,
        help="Target format / extension (e.g. png, jpg, webp)",
    )
    parser.add_argument(
        "-f",
        "--from",
        dest="sources",
        nargs="+",
        required=True,
        help=(
            "Source extensions to convert, space or comma separated; any of: "
            + ", ".join(sorted(SUPPORTED_EXTENSIONS))
        ),
    )
    parser.add_argument(
        "-i",
        "--input-dir",
        type=Path,
        default=None,
        help="Directory to scan (default: current directory)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=None,
        help="Where converted files go (default: beside each original)",
    )
    parser.add_argument(
        "-d",
        "--delete-original",
        action="store_true",
        help="Delete each original after its converted file is saved",
    )
    parser.add_argument(
        "-j",
        "--threads",
        default=str(DEFAULT_WORKERS),
        help=f"Number of worker threads (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--depth",
        default=None,
        metavar="MIN-MAX",
        help="Inclusive depth range; files directly in the input dir are depth 1 "
        "(default: unrestricted)",
    )
    parser.add_argument(
        "--parallel-walk",
        action="store_true",
        help="Scan top-level subdirectories concurrently",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop all workers after the first failed file",
    )
    parser.add_argument(
        "--skip-existing",
        action="store_true",
        help="Leave files alone when their converted counterpart already exists",
    )
    parser.add_argument(
        "--quality",
        default=None,
        help="Encoder quality 1-100 for JPEG/WEBP targets",
    )
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the per-worker progress bars",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--detailed-logging",
        action="store_true",
        help="Enable detailed logging (thread, file/line, rotating log file)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help=(
            "Optional log file path "
            f"(default: <output-dir>/{LOG_FILE_NAME} in detailed mode)"
        ),
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run one conversion batch and return the process exit code."""
    from .codec import PillowCodec
    from .config import build_run_config
    from .workers import log_summary, run_batch

    args = parse_args(argv)
    input_dir = args.input_dir if args.input_dir is not None else Path.cwd()
    # Never create the input directory just to hold the log file.
    log_dir = args.output_dir
    if log_dir is None and input_dir.is_dir():
        log_dir = input_dir
    try:
        _setup_logging(
            verbose=args.verbose,
            detailed_logging=args.detailed_logging,
            log_dir=log_dir,
            log_file=args.log_file,
        )
    except OSError as exc:
        log.error("Cannot open log file: %s", exc)
        return EXIT_SETUP_ERROR

    overall_t0 = time.perf_counter()
    try:
        config = build_run_config(
            target=args.target,
            sources=args.sources,
            input_dir=input_dir,
            output_dir=args.output_dir,
            delete_original=args.delete_original,
            workers=args.threads,
            depth=args.depth,
            parallel_walk=args.parallel_walk,
            fail_fast=args.fail_fast,
            skip_existing=args.skip_existing,
            quality=args.quality,
        )
        codec = PillowCodec(config.target_format)
    except ConfigError as exc:
        log.error("Invalid configuration: %s", exc)
        return EXIT_SETUP_ERROR

    log.info(
        "Converting %s -> %s in %s with %s workers (delete originals: %s)",
        ", ".join(sorted(config.source_extensions)),
        config.target_extension,
        config.input_dir,
        config.workers,
        config.delete_original,
    )

    try:
        summary = run_batch(
            config,
            codec=codec,
            show_progress=not args.no_progress and sys.stderr.isatty(),
        )
    except TraversalError as exc:
        log.error("%s", exc)
        return EXIT_SETUP_ERROR
    except KeyboardInterrupt:
        log.warning("Interrupted by user")
        return EXIT_INTERRUPTED

    log_summary(summary)
    log.info(f"  Total runtime:   {time.perf_counter() - overall_t0:.1f}s")
    if summary.cancelled_run:
        log.error("Run aborted before all files were processed")
    return summary.exit_code
