"""
Data models for trials and the file subsets they are found in.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..errors import ConfigurationError
from ..sources.base import AbstractSource


SourceFactory = Callable[[str], AbstractSource]


@dataclass
class DataSubset:
    """
    A named group of files, all read by the same source type.

    Files are found under `dir` with paths matching any of `patterns` (glob
    syntax, relative to `dir`). The subset name is the source slot name in
    each trial. A dependent subset only attaches to trials created by other
    subsets; its files are identified by a condition named like the subset.

    Args:
        name: Source slot name
        source: Source class, or callable building a source from a path
        dir: Root directory searched for files
        patterns: Glob pattern(s) relative to `dir`
        ext: Required file extension (default: the source's default_ext)
        dependent: Whether files only attach to existing trials
    """
    name: str
    source: SourceFactory
    dir: str
    patterns: Union[str, Sequence[str]] = "**/*"
    ext: Optional[str] = None
    dependent: bool = False

    def __post_init__(self):
        if not self.name:
            raise ConfigurationError("DataSubset name must not be empty")
        if isinstance(self.patterns, str):
            self.patterns = (self.patterns,)
        self.patterns = tuple(self.patterns)
        if not self.patterns:
            raise ConfigurationError(f"DataSubset {self.name!r} has no glob patterns")
        self.dir = os.fspath(self.dir)
        if self.ext is None:
            self.ext = getattr(self.source, "default_ext", "") or ""
        if self.ext and not self.ext.startswith("."):
            self.ext = "." + self.ext

    def build(self, path: str) -> AbstractSource:
        """Create the source handle for `path`."""
        return self.source(path)

    def accepts(self, path: str) -> bool:
        """Check the file extension of `path`."""
        return not self.ext or path.endswith(self.ext)

    def __repr__(self) -> str:
        source = getattr(self.source, "__name__", repr(self.source))
        return (
            f"DataSubset({self.name!r}, {source}, {self.dir!r}, {list(self.patterns)!r}"
            + (", dependent=True)" if self.dependent else ")")
        )


@dataclass(eq=False)
class Trial:
    """
    A single trial: one subject, one set of conditions, and its data sources.

    Two trials are the same trial when subject and conditions are equal.
    `sources` maps slot names to sources; each slot holds at most one source.
    """
    subject: Any
    name: str
    conditions: Dict[str, Any] = field(default_factory=dict)
    sources: Dict[str, AbstractSource] = field(default_factory=dict)

    def __post_init__(self):
        self.name = str(self.name)

    def same_trial(self, subject: Any, conditions: Dict[str, Any]) -> bool:
        """Check for equal subject and full condition set."""
        return self.subject == subject and self.conditions == conditions

    def hassource(self, src: Union[str, AbstractSource, type]) -> bool:
        """Check for a source by slot name, instance, or source class."""
        if isinstance(src, str):
            return src in self.sources
        if isinstance(src, type):
            return any(type(s) is src for s in self.sources.values())
        return src in self.sources.values()

    def getsource(self, src: Union[str, type]) -> AbstractSource:
        """
        Get a source by slot name or source class.

        Raises:
            KeyError: If no source matches, or a class matches several slots
        """
        if isinstance(src, str):
            if src not in self.sources:
                raise KeyError(f"source {src!r} not found in {self!r}")
            return self.sources[src]
        found = [s for s in self.sources.values() if type(s) is src]
        if len(found) != 1:
            raise KeyError(
                f"expected one {getattr(src, '__name__', src)} source in {self!r}, found {len(found)}"
            )
        return found[0]

    def readsource(self, src: Union[str, type], **kwargs) -> Any:
        """Read a source of this trial."""
        return self.getsource(src).read_source(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "subject": self.subject,
            "name": self.name,
            "conditions": dict(self.conditions),
            "sources": {k: v.path for k, v in self.sources.items()},
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Trial):
            return NotImplemented
        return (
            type(self.subject) is type(other.subject)
            and self.subject == other.subject
            and self.name == other.name
            and self.conditions == other.conditions
        )

    __hash__ = None

    def __repr__(self) -> str:
        conds = ", ".join(f"{k}={v!r}" for k, v in self.conditions.items())
        n = len(self.sources)
        return f"Trial({self.subject!r}, {self.name!r}, ({conds}), {n} source{'' if n == 1 else 's'})"

    def describe(self) -> str:
        """Multi-line description listing conditions and sources."""
        lines = [
            f"Trial{{{type(self.subject).__name__}}}",
            f"  Subject: {self.subject}",
            f"  Name: {self.name}",
            "  Conditions:",
        ]
        lines += [f"    {k!r} => {v!r}" for k, v in self.conditions.items()]
        lines.append("  Sources:")
        lines += [f"    {k!r} => {v!r}" for k, v in self.sources.items()]
        return "\n".join(lines)


def sources_of(trials: List[Trial]) -> Dict[str, type]:
    """Slot names and source types present across `trials`, in first-seen order."""
    found: Dict[str, type] = {}
    for trial in trials:
        for name, src in trial.sources.items():
            found.setdefault(name, type(src))
    return found
