import logging
import shlex
from pathlib import Path
from typing import List, Optional

from .. import config
from ..models import PrunePlan, DeletionEntry

# The confirmation gate is part of the script itself and has no bypass.
_PREAMBLE = r'''set -euo pipefail

RED='\033[0;31m'
GREEN='\033[0;32m'
YELLOW='\033[1;33m'
NC='\033[0m'

echo -e "${RED}WARNING: This will permanently delete ENTIRE FOLDERS and standalone files!${NC}"
echo -e "${RED}This includes all files: videos, subtitles, NFOs, samples, etc.${NC}"
echo -e "${GREEN}Only folders with NO matched files and standalone files with no matches will be deleted.${NC}"
echo -e "${YELLOW}Are you absolutely sure you want to continue? (y/N)${NC}"
read -r confirmation || confirmation=""
if [[ "$confirmation" != "y" && "$confirmation" != "Y" ]]; then
    echo "Aborted."
    exit 0
fi

echo -e "${RED}Type 'DELETE' to confirm deletion:${NC}"
read -r final_confirmation || final_confirmation=""
if [[ "$final_confirmation" != "DELETE" ]]; then
    echo "Aborted."
    exit 0
fi

echo -e "${RED}Removing content...${NC}"
total_size=0
folder_count=0
file_count=0

get_folder_size() {
    local size
    size=$(du -sb "$1" 2>/dev/null | cut -f1) || size=0
    echo "${size:-0}"
}

get_file_size() {
    local size
    size=$(stat -c "%s" "$1" 2>/dev/null) || size=0
    echo "${size:-0}"
}
'''

_FOLDER_BLOCK = '''target={target}
if [[ -d "$target" ]]; then
    size=$(get_folder_size "$target")
    echo "Removing folder: $(basename "$target") ($(numfmt --to=iec "$size"))"
    echo "  Full path: $target"
    echo "  Reason: No matched files in this folder"
    rm -rf -- "$target"
    total_size=$((total_size + size))
    folder_count=$((folder_count + 1))
    echo "  Deleted"
else
    echo "Folder not found (already deleted?): $target"
fi
echo
'''

_FILE_BLOCK = '''target={target}
if [[ -f "$target" ]]; then
    size=$(get_file_size "$target")
    echo "Removing file: $(basename "$target") ($(numfmt --to=iec "$size"))"
    echo "  Full path: $target"
    echo "  Reason: No size match found in media library"
    rm -f -- "$target"
    total_size=$((total_size + size))
    file_count=$((file_count + 1))
    echo "  Deleted"
else
    echo "File not found (already deleted?): $target"
fi
echo
'''

_EPILOGUE = '''echo -e "${GREEN}Completed!${NC}"
if [[ $folder_count -gt 0 ]]; then
    echo "Removed $folder_count folders"
fi
if [[ $file_count -gt 0 ]]; then
    echo "Removed $file_count standalone files"
fi
echo "Total space freed: $(numfmt --to=iec "$total_size")"
'''


class RemovalScriptWriter:
    """
    Turns a PrunePlan into a standalone bash script. Nothing is deleted
    here; the script does that when run and confirmed twice.
    """

    def render(self, plan: PrunePlan) -> str:
        lines: List[str] = [
            "#!/bin/bash",
            "# Auto-generated script to remove source content based on size comparison",
            f"# Source: {str(plan.source_root)!r}",
            f"# Media:  {str(plan.media_root)!r}",
            f"# Tolerance: {plan.tolerance_bytes} bytes",
            "# WARNING: This will delete ENTIRE FOLDERS and standalone files!",
            "# Review this script carefully before running!",
            "",
            _PREAMBLE,
        ]

        folders = plan.folder_deletions
        files = plan.file_deletions

        if folders:
            lines.append('echo -e "${YELLOW}Removing folders...${NC}"')
            lines.extend(self._block(_FOLDER_BLOCK, e) for e in folders)
        if files:
            lines.append('echo -e "${YELLOW}Removing standalone files...${NC}"')
            lines.extend(self._block(_FILE_BLOCK, e) for e in files)

        lines.append(_EPILOGUE)
        return "\n".join(lines)

    def write(self, plan: PrunePlan, script_path: Path = config.REMOVAL_SCRIPT_PATH) -> Optional[Path]:
        """Writes the script; returns None (and writes nothing) for an empty plan."""
        if not plan.deletions:
            logging.info("No deletion script needed - no folders or files to delete.")
            return None

        script_path = Path(script_path)
        script_path.parent.mkdir(parents=True, exist_ok=True)
        script_path.write_text(self.render(plan), encoding="utf-8")
        script_path.chmod(config.REMOVAL_SCRIPT_MODE)

        logging.info(f"Created {script_path} ({len(plan.deletions)} deletions)")
        logging.warning("Review the script before running it. It asks for y/N and then 'DELETE'.")
        return script_path

    def _block(self, template: str, entry: DeletionEntry) -> str:
        return template.format(target=shlex.quote(str(entry.target)))
