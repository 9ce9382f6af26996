from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

# MatchResult.status values
MATCHED = 'matched'
UNMATCHED_IN_FOLDER = 'unmatched_in_folder'
UNMATCHED_STANDALONE = 'unmatched_standalone'

# DeletionEntry.kind values
KIND_FOLDER = 'folder'
KIND_FILE = 'file'


@dataclass(frozen=True)
class FileRecord:
    """
    A recognized video file found during a scan.
    """
    path: Path
    size: int


@dataclass(frozen=True)
class MatchResult:
    record: FileRecord
    status: str                                 # matched/unmatched_in_folder/unmatched_standalone
    media_record: Optional[FileRecord] = None   # set only when matched
    folder: Optional[Path] = None               # top-level source folder, None for standalone files

    @property
    def size_difference(self) -> int:
        if self.media_record is None:
            return 0
        return abs(self.record.size - self.media_record.size)


@dataclass(frozen=True)
class FolderVerdict:
    folder: Path
    has_any_match: bool
    exists: bool

    @property
    def is_deletion_candidate(self) -> bool:
        return not self.has_any_match and self.exists


@dataclass(frozen=True)
class DeletionEntry:
    target: Path
    kind: str               # folder/file
    size_bytes: int
    # Unmatched video files that put the target in the plan
    unmatched_files: Tuple[Path, ...] = ()


@dataclass
class PrunePlan:
    """
    Result of one planning run. Rebuilt from the live trees every time.
    """
    source_root: Path
    media_root: Path
    tolerance_bytes: int
    source_count: int
    media_count: int
    results: List[MatchResult] = field(default_factory=list)
    verdicts: List[FolderVerdict] = field(default_factory=list)
    deletions: List[DeletionEntry] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)

    def _with_status(self, status: str) -> List[MatchResult]:
        return [r for r in self.results if r.status == status]

    @property
    def matched(self) -> List[MatchResult]:
        return self._with_status(MATCHED)

    @property
    def unmatched_in_folder(self) -> List[MatchResult]:
        return self._with_status(UNMATCHED_IN_FOLDER)

    @property
    def unmatched_standalone(self) -> List[MatchResult]:
        return self._with_status(UNMATCHED_STANDALONE)

    @property
    def preserved_folders(self) -> List[Path]:
        """Top-level folders holding at least one matched file."""
        return sorted({r.folder for r in self.matched if r.folder is not None})

    @property
    def folder_deletions(self) -> List[DeletionEntry]:
        return [d for d in self.deletions if d.kind == KIND_FOLDER]

    @property
    def file_deletions(self) -> List[DeletionEntry]:
        return [d for d in self.deletions if d.kind == KIND_FILE]

    @property
    def total_savings(self) -> int:
        return sum(d.size_bytes for d in self.deletions)

    def verdict_for(self, folder: Path) -> Optional[FolderVerdict]:
        for verdict in self.verdicts:
            if verdict.folder == folder:
                return verdict
        return None


@dataclass
class LinkSummary:
    dry_run: bool
    processed: int = 0
    already_linked: int = 0
    created: int = 0
    errors: int = 0


@dataclass
class RootUsage:
    root: Path
    file_count: int = 0
    apparent_bytes: int = 0     # every occurrence counted
    actual_bytes: int = 0       # each inode counted once
    multi_link_files: int = 0
    fs_total_bytes: Optional[int] = None
    fs_used_bytes: Optional[int] = None

    @property
    def hardlink_overcount(self) -> int:
        return self.apparent_bytes - self.actual_bytes


@dataclass
class AuditReport:
    roots: List[RootUsage] = field(default_factory=list)
    linked_apparent_bytes: int = 0
    linked_actual_bytes: int = 0
    # Each group lists every path of one inode that is reachable from more than one root
    cross_root_groups: List[List[Path]] = field(default_factory=list)

    @property
    def hardlink_savings(self) -> int:
        return self.linked_apparent_bytes - self.linked_actual_bytes
