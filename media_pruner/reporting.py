import csv
import logging
from pathlib import Path
from typing import List, Optional

from .models import PrunePlan, MatchResult, MATCHED
from .scanning.filesystem import DiskScanner


def format_size(size_bytes: int) -> str:
    """Formats bytes into a human-readable string (KB, MB, GB)."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


class ReportGenerator:
    def __init__(self, scanner: Optional[DiskScanner] = None):
        self.scanner = scanner or DiskScanner()

    def render(self, plan: PrunePlan) -> str:
        """Human-readable summary of a plan, one section per category."""
        lines: List[str] = []
        out = lines.append

        out("=== Movie Folder Size-Based Comparison ===")
        out(f"Comparing: {plan.source_root} vs {plan.media_root}")
        out(f"Size tolerance: {format_size(plan.tolerance_bytes)}")
        out("")

        out("=== SUMMARY ===")
        out(f"Matched files: {len(plan.matched)}")
        if plan.skipped:
            out(f"Files skipped (unreadable): {len(plan.skipped)}")
        out("")

        out("=== EXTRA SOURCE FILES (no size match in media) ===")
        if not plan.unmatched_in_folder:
            out("(none)")
        for r in plan.unmatched_in_folder:
            out(f"Size: {format_size(r.record.size)}")
            out(f"  File: {r.record.path.name}")
            out(f"  Path: {r.record.path}")
            verdict = plan.verdict_for(r.folder)
            if verdict is not None and verdict.is_deletion_candidate:
                out(f"  Parent folder WILL BE DELETED: {r.folder}")
            elif verdict is not None and not verdict.exists:
                out(f"  Parent folder no longer exists: {r.folder}")
            else:
                out(f"  Parent folder PRESERVED (has matched files): {r.folder}")
            out("")

        if plan.unmatched_standalone:
            out("=== STANDALONE FILES (no size match in media) ===")
            for r in plan.unmatched_standalone:
                out(f"Size: {format_size(r.record.size)}")
                out(f"  File: {r.record.path.name}")
                out(f"  Path: {r.record.path}")
                out("  Standalone file WILL BE DELETED")
                out("")

        out("=== FOLDERS TO BE DELETED ===")
        folders = plan.folder_deletions
        if not folders:
            out("No folders will be deleted! All folders contain at least one matched file.")
        for i, entry in enumerate(folders, start=1):
            out(f"[{i}] Folder: {entry.target}")
            out(f"  Size: {format_size(entry.size_bytes)}")
            out("  Contents:")
            for name, size, is_dir in self.scanner.list_entries(entry.target):
                suffix = "/" if is_dir else ""
                out(f"    {format_size(size):>10}  {name}{suffix}")
            out("  Unmatched video files in this folder:")
            for path in entry.unmatched_files:
                out(f"    - {path.name}")
            out("")

        files = plan.file_deletions
        if files:
            out("=== STANDALONE FILES TO BE DELETED ===")
            for i, entry in enumerate(files, start=1):
                out(f"[{i}] File: {entry.target.name}")
                out(f"  Size: {format_size(entry.size_bytes)}")
                out(f"  Path: {entry.target}")
                out("  Reason: No size match found in media library")
                out("")

        out("=== FINAL SUMMARY ===")
        out(f"Total source video files: {plan.source_count}")
        out(f"Total media video files: {plan.media_count}")
        out(f"Matched source files: {len(plan.matched)}")
        out(f"Extra source files in folders: {len(plan.unmatched_in_folder)}")
        out(f"Extra standalone files: {len(plan.unmatched_standalone)}")
        out(f"Folders with matched files (preserved): {len(plan.preserved_folders)}")
        out(f"Folders to delete: {len(folders)}")
        out(f"Standalone files to delete: {len(files)}")

        if plan.deletions:
            folder_bytes = sum(e.size_bytes for e in folders)
            file_bytes = sum(e.size_bytes for e in files)
            out("")
            out("Potential space savings:")
            if folders:
                out(f"  Folder deletions: {format_size(folder_bytes)} ({len(folders)} folders)")
            if files:
                out(f"  Standalone file deletions: {format_size(file_bytes)} ({len(files)} files)")
            out(f"  Total potential savings: {format_size(plan.total_savings)}")
        else:
            out("")
            out("No folders or files need to be deleted. All source content matches the media library.")

        return "\n".join(lines) + "\n"

    def write_csv(self, plan: PrunePlan, output_csv: Path):
        """
        One row per scanned source file with its classification and the
        fate of its top-level folder.
        """
        headers = [
            "Source Path",
            "Status",
            "Size Bytes",
            "Top-Level Folder",
            "Matched Media Path",
            "Folder Verdict",
        ]

        output_csv = Path(output_csv)
        output_csv.parent.mkdir(parents=True, exist_ok=True)
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(headers)
            for r in plan.results:
                writer.writerow(self._row(plan, r))

        logging.info(f"CSV report written: {output_csv} ({len(plan.results)} rows)")

    def _row(self, plan: PrunePlan, r: MatchResult) -> list:
        folder = str(r.folder) if r.folder is not None else ""
        media = str(r.media_record.path) if r.media_record is not None else ""

        if r.status == MATCHED:
            fate = "preserved" if r.folder is not None else ""
        elif r.folder is None:
            fate = "delete file"
        else:
            verdict = plan.verdict_for(r.folder)
            if verdict is not None and verdict.is_deletion_candidate:
                fate = "delete folder"
            elif verdict is not None and not verdict.exists:
                fate = "missing"
            else:
                fate = "preserved"

        return [str(r.record.path), r.status, r.record.size, folder, media, fate]
