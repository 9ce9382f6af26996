import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import config
from .audit import SpaceAuditor, render_audit
from .core import PrunePlanner, check_directory
from .exceptions import ConfigError
from .organization.linker import HardlinkMirror
from .organization.removal import RemovalScriptWriter
from .reporting import ReportGenerator, format_size


class _ArgumentParser(argparse.ArgumentParser):
    """Reports bad invocations as ConfigError so every CLI exits with 1."""

    def error(self, message):
        raise ConfigError(message)


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to stderr and, optionally, a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers
    )


def _path_arg(value: str) -> Path:
    """Path argument that must not be empty (Path("") would mean the working directory)."""
    if not value.strip():
        raise argparse.ArgumentTypeError("path must not be empty")
    return Path(value)


def _usage_error(e: ConfigError) -> int:
    print(f"Error: {e}", file=sys.stderr)
    print("Use --help for usage information", file=sys.stderr)
    return 1


def parse_args(argv: Optional[Sequence[str]] = None):
    p = _ArgumentParser(
        prog="media-prune",
        description="Compare a download tree with a media library by file size and plan removal "
                    "of top-level folders that hold no matched video files.",
    )

    p.add_argument("--source-path", type=_path_arg, required=True, help="Source (download/transcode) directory")
    p.add_argument("--media-path", type=_path_arg, required=True, help="Media library directory")
    p.add_argument("--tolerance", type=int, default=config.DEFAULT_TOLERANCE_MB,
                   help=f"Size tolerance in MB (default: {config.DEFAULT_TOLERANCE_MB})")
    p.add_argument("-v", "--verbose", action="store_true", help="Show per-file scanning and matching output")
    p.add_argument("--delete", action="store_true",
                   help="Generate a removal script for unmatched folders (never deletes directly)")

    p.add_argument("--ext", action="append", default=None,
                   help="Recognized extension (repeatable, replaces the default video set)")
    p.add_argument("--script-path", type=Path, default=config.REMOVAL_SCRIPT_PATH,
                   help=f"Where --delete writes the script (default: {config.REMOVAL_SCRIPT_PATH})")
    p.add_argument("--report-csv", type=Path, default=None, help="Also write a per-file CSV report")
    p.add_argument("--log-file", type=Path, default=None, help="Also log to this file")

    return p.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        args = parse_args(argv)
    except ConfigError as e:
        return _usage_error(e)

    try:
        setup_logging(args.verbose, args.log_file)
    except OSError as e:
        print(f"Error: cannot open log file {args.log_file}: {e}", file=sys.stderr)
        return 1

    source_root = args.source_path.resolve()
    media_root = args.media_path.resolve()

    try:
        if args.tolerance < 0:
            raise ConfigError(f"--tolerance must not be negative: {args.tolerance}")
        tolerance_bytes = args.tolerance * config.BYTES_PER_MB

        logging.info(f"Comparing: {source_root} vs {media_root}")
        logging.info(f"Size tolerance: {args.tolerance}MB ({format_size(tolerance_bytes)})")

        planner = PrunePlanner(args.ext)
        plan = planner.plan(source_root, media_root, tolerance_bytes)
    except ConfigError as e:
        logging.error(str(e))
        return 1
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user. Nothing was modified.")
        return 1

    reporter = ReportGenerator(planner.scanner)
    sys.stdout.write(reporter.render(plan))

    try:
        if args.report_csv:
            reporter.write_csv(plan, args.report_csv)

        if args.delete:
            RemovalScriptWriter().write(plan, args.script_path)
        elif plan.deletions:
            logging.info("Use --delete to generate a removal script.")
    except OSError as e:
        logging.error(f"Failed to write output: {e}")
        return 1

    return 0


def hardlink_main(argv: Optional[Sequence[str]] = None) -> int:
    p = _ArgumentParser(
        prog="media-hardlink",
        description="Hardlink video files from a staging tree into a library tree. Dry-run by default.",
    )
    p.add_argument("src", type=_path_arg, help="Source tree (e.g. torrents/transcodes)")
    p.add_argument("dest", type=_path_arg, help="Destination tree (e.g. media/transcodes)")
    p.add_argument("--execute", action="store_true", help="Actually create hardlinks")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also log to this file")

    try:
        args = p.parse_args(argv)
    except ConfigError as e:
        return _usage_error(e)

    try:
        setup_logging(args.verbose, args.log_file)
    except OSError as e:
        print(f"Error: cannot open log file {args.log_file}: {e}", file=sys.stderr)
        return 1

    src_root = args.src.resolve()
    dest_root = args.dest.resolve()
    try:
        check_directory(src_root, "Source directory")
    except ConfigError as e:
        logging.error(str(e))
        return 1

    mode = "EXECUTE" if args.execute else "DRY-RUN"
    logging.info(f"=== Hardlink mirror ({mode}) ===")
    logging.info(f"Source: {src_root}")
    logging.info(f"Dest:   {dest_root}")

    try:
        summary = HardlinkMirror().execute(src_root, dest_root, dry_run=not args.execute)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1

    logging.info(f"Video files processed: {summary.processed}")
    logging.info(f"Already hardlinked: {summary.already_linked}")
    if summary.dry_run:
        logging.info(f"Would create hardlinks: {summary.created}")
        logging.info("Dry-run completed - use --execute to create the hardlinks")
    else:
        logging.info(f"New hardlinks created: {summary.created}")
    logging.info(f"Errors: {summary.errors}")

    return 1 if summary.errors else 0


def audit_main(argv: Optional[Sequence[str]] = None) -> int:
    p = _ArgumentParser(
        prog="media-audit",
        description="Report apparent vs hard-link-corrected space usage of directory trees.",
    )
    p.add_argument("roots", type=_path_arg, nargs="+", help="Directories to analyze (e.g. /mnt/disk1 /mnt/disk2)")
    p.add_argument("--progress", action="store_true", help="Show a progress bar while walking")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    try:
        args = p.parse_args(argv)
    except ConfigError as e:
        return _usage_error(e)

    setup_logging(args.verbose)

    try:
        report = SpaceAuditor().audit([r.resolve() for r in args.roots], progress=args.progress)
    except ConfigError as e:
        logging.error(str(e))
        return 1
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 1

    sys.stdout.write(render_audit(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
