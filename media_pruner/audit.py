import logging
import shutil
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from tqdm import tqdm

from .core import check_directory
from .models import AuditReport, RootUsage
from .reporting import format_size
from .scanning.filesystem import DiskScanner
from .scanning.inodes import InodeLedger


def distinct_roots(roots: Sequence[Path]) -> List[Path]:
    """
    Drops repeated roots and roots nested inside another one, so no file is
    walked twice.
    """
    kept: List[Path] = []
    for root in roots:
        if any(root == k or k in root.parents for k in kept):
            logging.warning(f"Skipping {root}: already covered by another root")
            continue
        inner = [k for k in kept if root in k.parents]
        for k in inner:
            logging.warning(f"Skipping {k}: already covered by {root}")
            kept.remove(k)
        kept.append(root)
    return kept


class SpaceAuditor:
    """
    Hard-link-aware space usage for one or more directory trees.

    Apparent usage counts every path; actual usage counts every inode once.
    The difference is what tools like `du` on a user share overstate when
    the library is built from hard links.
    """

    def __init__(self):
        # Every regular file, not just video
        self.scanner = DiskScanner()

    def audit(self, roots: Sequence[Path], progress: bool = False) -> AuditReport:
        for root in roots:
            check_directory(root, "Audit root")
        roots = distinct_roots(roots)

        report = AuditReport()
        combined = InodeLedger()
        # inode -> roots it was reached from
        seen_from: Dict[Tuple[int, int], List[Path]] = {}

        for root in roots:
            logging.info(f"Analyzing {root}...")
            usage = RootUsage(root=root)
            ledger = InodeLedger()

            for path in tqdm(self.scanner.iter_files(root), desc=root.name or str(root), disable=not progress):
                try:
                    st = path.stat()
                except OSError as e:
                    logging.warning(f"Cannot stat {path}: {e}")
                    continue

                ledger.add(path, st)
                combined.add(path, st)
                if st.st_nlink > 1:
                    usage.multi_link_files += 1
                    owners = seen_from.setdefault((st.st_dev, st.st_ino), [])
                    if root not in owners:
                        owners.append(root)

            usage.file_count = ledger.occurrences
            usage.apparent_bytes = ledger.apparent_bytes
            usage.actual_bytes = ledger.actual_bytes
            try:
                disk = shutil.disk_usage(root)
                usage.fs_total_bytes, usage.fs_used_bytes = disk.total, disk.used
            except OSError as e:
                logging.warning(f"Cannot read filesystem usage for {root}: {e}")

            logging.debug(f"{root}: apparent {usage.apparent_bytes}, actual {usage.actual_bytes}")
            report.roots.append(usage)

        for key, entry in combined.entries.items():
            if entry.nlink <= 1:
                continue
            report.linked_apparent_bytes += entry.size * len(entry.paths)
            report.linked_actual_bytes += entry.size
            if len(seen_from.get(key, [])) > 1:
                report.cross_root_groups.append(sorted(entry.paths))

        report.cross_root_groups.sort()
        return report


def render_audit(report: AuditReport) -> str:
    lines = ["=== SPACE USAGE ANALYSIS (HARD LINK CORRECTED) ==="]
    for usage in report.roots:
        lines.append(f"{usage.root}:")
        lines.append(f"  Files: {usage.file_count} ({usage.multi_link_files} with multiple hard links)")
        lines.append(f"  Apparent: {format_size(usage.apparent_bytes)}")
        lines.append(f"  Actual (hard link corrected): {format_size(usage.actual_bytes)}")
        if usage.fs_total_bytes is not None:
            lines.append(
                f"  Filesystem: {format_size(usage.fs_used_bytes)} used / {format_size(usage.fs_total_bytes)} total"
            )

    lines.append("")
    lines.append("=== HARD LINK ANALYSIS ===")
    lines.append(f"  Apparent space of hard linked files: {format_size(report.linked_apparent_bytes)}")
    lines.append(f"  Actual space of hard linked files: {format_size(report.linked_actual_bytes)}")
    lines.append(f"  Space saved by hard linking: {format_size(report.hardlink_savings)}")

    lines.append("")
    if report.cross_root_groups:
        lines.append(f"Hard links shared between roots: {len(report.cross_root_groups)} groups")
        for group in report.cross_root_groups:
            for path in group:
                lines.append(f"    {path}")
    else:
        lines.append("No hard links shared between roots.")
    return "\n".join(lines) + "\n"
