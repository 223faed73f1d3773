"""Data source handles."""

from .base import AbstractSource, Source, requiresource
from .tabular import CSVSource, TSVSource

__all__ = [
    "AbstractSource",
    "Source",
    "requiresource",
    "CSVSource",
    "TSVSource",
]
