"""
Custom exception hierarchy for the media pruner.

This module defines specific exception types so the CLI can tell a bad
invocation apart from per-file trouble encountered while walking a tree.
"""


class MediaPrunerError(Exception):
    """Base exception for all media pruner errors."""
    pass


class ConfigError(MediaPrunerError):
    """Raised when the invocation is invalid (bad path, flag or value)."""
    pass


class IOWarning(MediaPrunerError):
    """Raised when a single file cannot be inspected during a scan.

    Never fatal: the scanner logs it and leaves the file out of the plan.
    """

    def __init__(self, path, reason):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class FileOperationError(MediaPrunerError):
    """Raised when a link or directory cannot be created."""
    pass
