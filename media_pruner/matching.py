import logging
from bisect import bisect_left
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .models import (
    FileRecord, MatchResult,
    MATCHED, UNMATCHED_IN_FOLDER, UNMATCHED_STANDALONE,
)
from .reporting import format_size


class SizeIndex:
    """
    Media library files keyed by exact byte size.

    Tolerance is applied when probing, not when building. Only one record is
    kept per size: records are inserted in (size, path) order and the last
    one wins.
    """

    def __init__(self, records: Iterable[FileRecord]):
        self._by_size: Dict[int, FileRecord] = {}
        for rec in sorted(records, key=lambda r: (r.size, str(r.path))):
            self._by_size[rec.size] = rec
        self._sizes: List[int] = sorted(self._by_size)

    def __len__(self) -> int:
        return len(self._sizes)

    def find(self, size: int, tolerance: int) -> Optional[FileRecord]:
        """
        First indexed record (ascending size) with |indexed - size| <= tolerance.
        Not necessarily the closest one.
        """
        i = bisect_left(self._sizes, size - tolerance)
        if i < len(self._sizes) and self._sizes[i] <= size + tolerance:
            return self._by_size[self._sizes[i]]
        return None


def top_level_folder(path: Path, root: Path) -> Optional[Path]:
    """
    Immediate child of root that contains path, or None when path lies
    directly in root.
    """
    rel = path.relative_to(root)
    if len(rel.parts) <= 1:
        return None
    return root / rel.parts[0]


class SizeMatcher:
    def __init__(self, index: SizeIndex, source_root: Path, tolerance_bytes: int):
        self.index = index
        self.source_root = source_root
        self.tolerance = tolerance_bytes

    def classify(self, record: FileRecord) -> MatchResult:
        folder = top_level_folder(record.path, self.source_root)
        media = self.index.find(record.size, self.tolerance)

        if media is not None:
            result = MatchResult(record, MATCHED, media_record=media, folder=folder)
            label = "MATCH (standalone)" if folder is None else "MATCH"
            logging.debug(f"{label}: {format_size(record.size)} {record.path} <-> {media.path}")
            if result.size_difference:
                logging.debug(f"  Size difference: {format_size(result.size_difference)}")
            return result

        if folder is None:
            logging.debug(f"UNMATCHED (standalone): {record.path}")
            return MatchResult(record, UNMATCHED_STANDALONE)

        logging.debug(f"UNMATCHED: {record.path} (folder {folder.name})")
        return MatchResult(record, UNMATCHED_IN_FOLDER, folder=folder)
