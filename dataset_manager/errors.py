"""
Exceptions raised while compiling conditions and resolving trials.

Configuration and invariant errors stop a run. Duplicate sources are
collected by the resolver and reported; a caller can add the duplicate path
to an ignore list and run again.
"""

import os
from typing import Any, Dict


class DatasetError(Exception):
    """Base exception for dataset resolution problems."""
    pass


class ConfigurationError(DatasetError):
    """Raised when a condition or subset description cannot be compiled."""
    pass


class AmbiguousTrialError(DatasetError):
    """Raised when more than one existing trial matches a trial-defining file."""
    pass


class MissingSourceError(DatasetError):
    """Raised when a required source is absent and cannot be generated."""
    pass


class DuplicateSourceError(DatasetError):
    """
    Raised when a trial already has a different file bound to a source slot.

    Attributes:
        trial: The trial that owns the occupied slot
        subset: The DataSubset the new file was found in
        original: Path of the file already bound to the slot
        dup: Path of the file that would have replaced it
    """

    def __init__(self, trial: Any, subset: Any, original: str, dup: str):
        self.trial = trial
        self.subset = subset
        self.original = original
        self.dup = dup
        super().__init__(self._message())

    def _message(self) -> str:
        # Show only as many trailing path components as the subset pattern spans
        depth = 0
        patterns = getattr(self.subset, "patterns", ())
        if patterns:
            depth = max(p.count("/") + p.count("\\") for p in patterns)
        name = getattr(self.subset, "name", "?")
        return (
            f"Found {name!r} source file {_shorten(self.dup, depth)} for {self.trial!r} "
            f"which already has a {name!r} source at {_shorten(self.original, depth)!r}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "subject": getattr(self.trial, "subject", None),
            "trial": getattr(self.trial, "name", None),
            "subset": getattr(self.subset, "name", None),
            "original": self.original,
            "dup": self.dup,
        }


def _shorten(path: str, depth: int) -> str:
    parts = os.path.normpath(path).split(os.sep)
    tail = parts[-(depth + 1):]
    if len(tail) == len(parts):
        return path
    return os.path.join("…", *tail)
