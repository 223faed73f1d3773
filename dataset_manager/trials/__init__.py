"""Trials, data subsets, and trial resolution."""

from .models import DataSubset, Trial
from .predicates import (
    Predicate,
    hascondition,
    hassource,
    hassubject,
    where_condition,
    where_source,
    where_subject,
)
from .registry import TrialRegistry, findtrials, normalize_path
from .summary import TrialSummary, summarize

__all__ = [
    "DataSubset",
    "Trial",
    "Predicate",
    "hascondition",
    "hassource",
    "hassubject",
    "where_condition",
    "where_source",
    "where_subject",
    "TrialRegistry",
    "findtrials",
    "normalize_path",
    "TrialSummary",
    "summarize",
]
