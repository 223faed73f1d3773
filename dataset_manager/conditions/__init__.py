"""Condition grammar compilation and path matching."""

from .grammar import TrialConditions
from .labels import AlternateLabel, LiteralLabel, PatternLabel, Substitution
from .matcher import DEFAULT_SUBJECT_FORMAT, MatchRecord, PathMatcher, match_path

__all__ = [
    "TrialConditions",
    "AlternateLabel",
    "LiteralLabel",
    "PatternLabel",
    "Substitution",
    "DEFAULT_SUBJECT_FORMAT",
    "MatchRecord",
    "PathMatcher",
    "match_path",
]
