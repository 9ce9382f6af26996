import os
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from .. import config
from ..exceptions import IOWarning
from ..models import FileRecord

class DiskScanner:
    def __init__(self, extensions: Optional[Iterable[str]] = None):
        exts = extensions if extensions is not None else config.VIDEO_EXTS
        self.extensions = {e.lower() for e in exts}
        # Paths that could not be inspected during the last scan
        self.skipped: List[Path] = []

    def scan(self, root: Path) -> Iterator[FileRecord]:
        """
        Generator that yields a FileRecord for every recognized file in root.

        Files that vanish or cannot be stat'ed are logged and left out; the
        scan itself never fails because of a single file.
        """
        self.skipped = []
        for path in self.iter_files(root):
            if not self.is_recognized(path):
                continue
            try:
                yield self._stat_record(path)
            except IOWarning as w:
                logging.warning(f"Skipping {w.path}: {w.reason}")
                self.skipped.append(path)

    def is_recognized(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def directory_size(self, root: Path) -> int:
        """
        Recursive apparent size in bytes (like `du -sb` without directory
        entries). Hard links are counted every time they appear.
        """
        total = 0
        for path in self.iter_files(root, include_symlinks=True):
            try:
                total += path.lstat().st_size
            except OSError as e:
                logging.warning(f"Cannot stat {path}: {e}")
        return total

    def list_entries(self, folder: Path, limit: int = config.CONTENT_LISTING_LIMIT) -> List[Tuple[str, int, bool]]:
        """First `limit` entries of folder as (name, size, is_dir), sorted by name."""
        try:
            with os.scandir(folder) as it:
                entries = sorted(it, key=lambda e: e.name.lower())
        except OSError as e:
            logging.warning(f"Cannot list {folder}: {e}")
            return []

        listing = []
        for e in entries[:limit]:
            try:
                st = e.stat(follow_symlinks=False)
                listing.append((e.name, st.st_size, e.is_dir(follow_symlinks=False)))
            except OSError:
                listing.append((e.name, 0, False))
        return listing

    def _stat_record(self, path: Path) -> FileRecord:
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            # Removed between listing and stat
            raise IOWarning(path, "file disappeared during scan")
        except OSError as e:
            raise IOWarning(path, e.strerror or str(e))
        return FileRecord(path=path, size=size)

    def iter_files(self, root: Path, include_symlinks: bool = False) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                logging.warning(f"Cannot read directory {current}: {e}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                try:
                    if e.is_dir(follow_symlinks=False):
                        dirs.append(Path(e.path))
                    elif e.is_file(follow_symlinks=False):
                        files.append(Path(e.path))
                    elif include_symlinks and e.is_symlink():
                        files.append(Path(e.path))
                except OSError as err:
                    logging.warning(f"Cannot inspect {e.path}: {err}")

            # Push dirs to stack (reversed so we process A before Z)
            for d in reversed(dirs):
                stack.append(d)

            for f in files:
                yield f
