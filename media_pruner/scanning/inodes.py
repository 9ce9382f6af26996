from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple

InodeKey = Tuple[int, int]  # (st_dev, st_ino)


@dataclass
class InodeEntry:
    size: int
    nlink: int
    paths: List[Path] = field(default_factory=list)


class InodeLedger:
    """
    Hard-link-aware byte accounting.

    Every file occurrence adds to the apparent total; each (device, inode)
    pair contributes to the actual total only once.
    """

    def __init__(self):
        self.entries: Dict[InodeKey, InodeEntry] = {}
        self.apparent_bytes = 0
        self.occurrences = 0

    def add(self, path: Path, st) -> bool:
        """Records one occurrence. Returns True the first time an inode is seen."""
        self.apparent_bytes += st.st_size
        self.occurrences += 1

        key = (st.st_dev, st.st_ino)
        entry = self.entries.get(key)
        if entry is None:
            self.entries[key] = InodeEntry(st.st_size, st.st_nlink, [path])
            return True
        entry.paths.append(path)
        return False

    @property
    def actual_bytes(self) -> int:
        return sum(e.size for e in self.entries.values())

    def multi_linked(self) -> List[InodeEntry]:
        return [e for e in self.entries.values() if e.nlink > 1]
