import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from . import config
from .exceptions import ConfigError
from .matching import SizeIndex, SizeMatcher
from .models import (
    DeletionEntry, FolderVerdict, PrunePlan,
    KIND_FILE, KIND_FOLDER,
)
from .scanning.filesystem import DiskScanner


def check_directory(path: Path, label: str) -> Path:
    if path is None:
        raise ConfigError(f"{label} is required")
    if not path.exists():
        raise ConfigError(f"{label} not found: {path}")
    if not path.is_dir():
        raise ConfigError(f"{label} is not a directory: {path}")
    return path


def normalize_extensions(exts: Iterable[str]) -> Set[str]:
    """'MKV', 'mkv' and '.mkv' all become '.mkv'."""
    normalized = set()
    for ext in exts:
        ext = ext.strip().lower()
        if ext in ("", "."):
            raise ConfigError("Empty file extension")
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return normalized


class PrunePlanner:
    def __init__(self, extensions: Optional[Iterable[str]] = None):
        exts = normalize_extensions(extensions) if extensions is not None else config.VIDEO_EXTS
        self.scanner = DiskScanner(exts)

    def plan(self,
             source_root: Path,
             media_root: Path,
             tolerance_bytes: int = config.DEFAULT_TOLERANCE_MB * config.BYTES_PER_MB) -> PrunePlan:
        """
        Builds the deletion plan for source_root against media_root.
        1. Scan & Index the media library by size
        2. Scan the source tree
        3. Match each source file within tolerance
        4. Decide per top-level folder
        5. Collect deletion candidates

        Read-only: nothing on disk is modified. Two runs over unchanged trees
        produce equal plans.
        """
        check_directory(source_root, "Source path")
        check_directory(media_root, "Media path")
        if tolerance_bytes < 0:
            raise ConfigError(f"Tolerance must not be negative: {tolerance_bytes}")
        if source_root == media_root or media_root in source_root.parents or source_root in media_root.parents:
            logging.warning(f"Source and media trees overlap: {source_root} / {media_root}")

        skipped: List[Path] = []

        # --- Step 1: Media Index ---
        logging.info(f"Scanning media library {media_root}...")
        media_records = list(self.scanner.scan(media_root))
        skipped.extend(self.scanner.skipped)
        for rec in media_records:
            logging.debug(f"Media: {rec.size} bytes - {rec.path.name}")
        index = SizeIndex(media_records)

        # --- Step 2: Source Scan ---
        logging.info(f"Scanning source tree {source_root}...")
        source_records = sorted(self.scanner.scan(source_root), key=lambda r: (r.size, str(r.path)))
        skipped.extend(self.scanner.skipped)
        logging.info(f"Found {len(source_records)} video files in source, {len(media_records)} in media")

        # --- Step 3: Matching ---
        matcher = SizeMatcher(index, source_root, tolerance_bytes)
        results = [matcher.classify(rec) for rec in source_records]

        # Any match anywhere below a top-level folder preserves the whole folder
        matched_folders = {r.folder for r in results if r.media_record is not None and r.folder is not None}

        # --- Step 4: Folder Verdicts ---
        unmatched_by_folder: Dict[Path, List[Path]] = {}
        for r in results:
            if r.media_record is None and r.folder is not None:
                unmatched_by_folder.setdefault(r.folder, []).append(r.record.path)

        verdicts = []
        for folder in sorted(unmatched_by_folder):
            verdict = FolderVerdict(
                folder=folder,
                has_any_match=folder in matched_folders,
                exists=folder.is_dir(),
            )
            if verdict.is_deletion_candidate:
                logging.debug(f"Folder marked for deletion: {folder} (no matched files)")
            elif verdict.has_any_match:
                logging.debug(f"Folder preserved: {folder} (has matched files)")
            else:
                logging.debug(f"Folder already gone: {folder}")
            verdicts.append(verdict)

        # --- Step 5: Deletion Plan ---
        deletions = []
        for verdict in verdicts:
            if not verdict.is_deletion_candidate:
                continue
            deletions.append(DeletionEntry(
                target=verdict.folder,
                kind=KIND_FOLDER,
                size_bytes=self.scanner.directory_size(verdict.folder),
                unmatched_files=tuple(sorted(unmatched_by_folder[verdict.folder])),
            ))

        standalone = sorted(
            (r.record for r in results if r.media_record is None and r.folder is None),
            key=lambda rec: str(rec.path),
        )
        for rec in standalone:
            deletions.append(DeletionEntry(
                target=rec.path,
                kind=KIND_FILE,
                size_bytes=rec.size,
                unmatched_files=(rec.path,),
            ))

        logging.info(f"Planned {len(deletions)} deletions ({len(verdicts)} folders with unmatched files)")

        return PrunePlan(
            source_root=source_root,
            media_root=media_root,
            tolerance_bytes=tolerance_bytes,
            source_count=len(source_records),
            media_count=len(media_records),
            results=results,
            verdicts=verdicts,
            deletions=deletions,
            skipped=skipped,
        )
