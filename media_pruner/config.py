"""
Configuration constants for the media pruner.
"""
from pathlib import Path

# --- File Type Definitions ---
# Containers considered when comparing the download tree with the library
VIDEO_EXTS = {'.mkv', '.mp4', '.avi', '.m4v'}

# The hardlink mirror accepts a wider set of containers
HARDLINK_VIDEO_EXTS = {
    '.mp4', '.mkv', '.avi', '.mov', '.wmv', '.flv', '.webm', '.m4v', '.3gp',
    '.mpg', '.mpeg', '.ts', '.m2ts', '.vob', '.ogv', '.rm', '.rmvb', '.asf',
    '.divx', '.xvid',
}

# --- Size Matching ---
BYTES_PER_MB = 1024 * 1024
# Remuxed/re-encoded copies of the same release rarely differ by more than this
DEFAULT_TOLERANCE_MB = 1

# --- Reporting ---
# How many entries of a deletion candidate folder to list (like `ls -la | head`)
CONTENT_LISTING_LIMIT = 10

# --- Removal Script ---
REMOVAL_SCRIPT_PATH = Path("generated") / "remove_torrent_content.sh"
REMOVAL_SCRIPT_MODE = 0o755
