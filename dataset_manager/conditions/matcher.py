"""
Path matcher: extracts subject and condition labels from a file path.

Matching is purely textual. Type coercion and default values are applied by
the trial registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from .grammar import TrialConditions


DEFAULT_SUBJECT_FORMAT = r"(?<=Subject )(?P<subject>\d+)"


@dataclass
class MatchRecord:
    """Subject and condition labels captured from one path."""
    subject: str
    conditions: Dict[str, str] = field(default_factory=dict)


class PathMatcher:
    """
    Applies compiled TrialConditions (prefixed by a subject pattern) to paths.

    Args:
        conditions: Compiled trial conditions
        subject_format: Regex with a "subject" capture group
    """

    def __init__(self, conditions: TrialConditions, subject_format=DEFAULT_SUBJECT_FORMAT):
        self.conditions = conditions
        self.subject_format = subject_format
        self.regex = conditions.pattern(subject_format)

    def match(self, path: str) -> Optional[MatchRecord]:
        """
        Match `path`, returning None when the path does not identify a trial.

        Optional conditions that did not capture are absent from the record.
        """
        conds = self.conditions
        m = self.regex.search(conds.normalize(path))
        if m is None or not m.group("subject"):
            return None

        captured: Dict[str, str] = {}
        for cond in conds.condnames:
            value = m.group(cond)
            if cond in conds.required:
                if value is None:
                    return None
                # An empty required capture is only usable with a default
                if value == "" and cond not in conds.defaults:
                    return None
            if value:
                captured[cond] = value

        return MatchRecord(subject=m.group("subject"), conditions=captured)


def match_path(
    path: str,
    conditions: TrialConditions,
    subject_format=DEFAULT_SUBJECT_FORMAT,
) -> Optional[MatchRecord]:
    """Convenience function matching a single path."""
    return PathMatcher(conditions, subject_format).match(path)
