import os
import logging
from pathlib import Path
from typing import Iterable, Optional

from tqdm import tqdm

from .. import config
from ..exceptions import FileOperationError
from ..models import LinkSummary
from ..scanning.filesystem import DiskScanner


class HardlinkMirror:
    """
    Mirrors video files from a staging tree into a library tree as hard
    links, keeping the relative layout. Dry-run unless told otherwise.
    """

    def __init__(self, extensions: Optional[Iterable[str]] = None):
        self.scanner = DiskScanner(extensions if extensions is not None else config.HARDLINK_VIDEO_EXTS)

    def execute(self, src_root: Path, dest_root: Path, dry_run: bool = True) -> LinkSummary:
        summary = LinkSummary(dry_run=dry_run)
        records = list(self.scanner.scan(src_root))
        summary.errors += len(self.scanner.skipped)

        if not records:
            logging.info("No video files found to link.")
            return summary

        logging.info(f"Processing {len(records)} files (DryRun={dry_run})...")

        for rec in tqdm(records, desc="Linking"):
            summary.processed += 1
            dest = dest_root / rec.path.relative_to(src_root)

            try:
                if self._already_linked(rec.path, dest):
                    logging.debug(f"Already hardlinked: {dest}")
                    summary.already_linked += 1
                    continue
                if dest.exists() or dest.is_symlink():
                    raise FileOperationError(f"Destination exists but is not a hardlink: {dest}")

                if dry_run:
                    logging.info(f"[DRY RUN] Would create hardlink: {rec.path} -> {dest}")
                else:
                    self._link(rec.path, dest)
                    logging.info(f"Created hardlink: {rec.path} -> {dest}")
                summary.created += 1
            except FileOperationError as e:
                logging.error(str(e))
                summary.errors += 1

        return summary

    def _already_linked(self, src: Path, dest: Path) -> bool:
        try:
            s, d = src.stat(), dest.lstat()
        except OSError:
            return False
        return (s.st_dev, s.st_ino) == (d.st_dev, d.st_ino)

    def _link(self, src: Path, dest: Path):
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(f"Failed to create directory {dest.parent}: {e}") from e
        try:
            os.link(src, dest)
        except OSError as e:
            raise FileOperationError(f"Failed to create hardlink {src} -> {dest}: {e}") from e
