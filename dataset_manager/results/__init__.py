"""Segments, segment results, and result tables."""

from .export import write_results
from .segment import Segment, SegmentResult, readsegment, resultsvariables
from .stack import stack, unstack

__all__ = [
    "Segment",
    "SegmentResult",
    "readsegment",
    "resultsvariables",
    "stack",
    "unstack",
    "write_results",
]
