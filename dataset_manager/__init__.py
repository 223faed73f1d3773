"""
dataset_manager: find and consolidate the data files of experimental trials
using the subject and condition labels embedded in their paths.
"""

from .analysis import analyze_trials
from .conditions import MatchRecord, PathMatcher, TrialConditions, match_path
from .errors import (
    AmbiguousTrialError,
    ConfigurationError,
    DatasetError,
    DuplicateSourceError,
    MissingSourceError,
)
from .results import (
    Segment,
    SegmentResult,
    readsegment,
    resultsvariables,
    stack,
    unstack,
    write_results,
)
from .sources import AbstractSource, CSVSource, Source, TSVSource, requiresource
from .trials import (
    DataSubset,
    Trial,
    TrialRegistry,
    findtrials,
    hascondition,
    hassource,
    hassubject,
    summarize,
    where_condition,
    where_source,
    where_subject,
)

__version__ = "0.1.0"

__all__ = [
    "analyze_trials",
    "MatchRecord",
    "PathMatcher",
    "TrialConditions",
    "match_path",
    "AmbiguousTrialError",
    "ConfigurationError",
    "DatasetError",
    "DuplicateSourceError",
    "MissingSourceError",
    "Segment",
    "SegmentResult",
    "readsegment",
    "resultsvariables",
    "stack",
    "unstack",
    "write_results",
    "AbstractSource",
    "CSVSource",
    "Source",
    "TSVSource",
    "requiresource",
    "DataSubset",
    "Trial",
    "TrialRegistry",
    "findtrials",
    "hascondition",
    "hassource",
    "hassubject",
    "summarize",
    "where_condition",
    "where_source",
    "where_subject",
]
