"""
Source abstraction: a handle to one data file plus its type-specific
read/generate behaviour.

Subclasses of AbstractSource must accept the absolute path of the file as the
only required constructor argument. They may override:

- read_source()               read the whole file
- read_segment(start, finish) read a time window of the file
- generate(trial, deps)       create the file from other sources of `trial`
- dependencies()              the sources `generate` needs
- default_ext                 the usual file extension, including the period
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from abc import ABC
from typing import Any, ClassVar, Iterable, Optional, Set, Tuple, Type, Union

from ..errors import MissingSourceError

logger = logging.getLogger(__name__)

_warned_segment_types: Set[type] = set()


class AbstractSource(ABC):
    """Base class for data sources identified by a file path."""

    default_ext: ClassVar[str] = ""

    def __init__(self, path: Optional[Union[str, os.PathLike]] = None):
        if path is None:
            # Placeholder location for a source that will be generated
            path = os.path.join(tempfile.gettempdir(), uuid.uuid4().hex + self.default_ext)
        self._path = os.fspath(path)

    @property
    def path(self) -> str:
        """Absolute path to the source file."""
        return self._path

    def srcext(self) -> str:
        """Actual extension of this source's file, or the class default."""
        return os.path.splitext(self._path)[1] or self.default_ext

    @classmethod
    def default_name(cls) -> str:
        """Default slot name for this source type in Trial.sources."""
        return cls.__name__

    @classmethod
    def dependencies(cls) -> Optional[Tuple[Any, ...]]:
        """
        Sources needed by `generate`, or None when this type cannot be generated.

        Each dependency is a source class, a source instance, or a
        (slot name, source class/instance) pair.
        """
        return None

    def read_source(self, **kwargs) -> Any:
        """Read the source data from file."""
        raise NotImplementedError(
            f"read_source has not been implemented for {type(self).__name__}"
        )

    def read_segment(self, start: Optional[float], finish: Optional[float], **kwargs) -> Any:
        """
        Read the portion of the source from `start` to `finish`.

        Types without a windowed reader return the whole source; a warning is
        logged once per type.
        """
        cls = type(self)
        if cls not in _warned_segment_types:
            _warned_segment_types.add(cls)
            logger.warning(
                "read_segment has not been defined for %s; segment start and finish "
                "will be ignored",
                cls.__name__,
            )
        return self.read_source(**kwargs)

    def generate(self, trial, deps, **kwargs) -> "AbstractSource":
        """
        Generate this source for `trial` from the dependency sources `deps`.

        Returns a source of the same type, not necessarily at the same path.
        """
        raise NotImplementedError(
            f"generate has not been implemented for {type(self).__name__}"
        )

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.path == other.path

    def __hash__(self) -> int:
        return hash((type(self), self._path))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._path!r})"


class Source(AbstractSource):
    """A basic source carrying only a path."""
    pass


SourceSpec = Union[AbstractSource, Type[AbstractSource]]


def _as_instance(src: SourceSpec) -> AbstractSource:
    if isinstance(src, type):
        return src()
    return src


def _split_dependency(dep: Any) -> Tuple[str, SourceSpec]:
    if isinstance(dep, tuple) and len(dep) == 2 and isinstance(dep[0], str):
        return dep
    return dep.default_name(), dep


def _has_source_type(trial, cls: type) -> bool:
    return any(type(s) is cls for s in trial.sources.values())


def requiresource(
    trial,
    src: SourceSpec,
    name: Optional[str] = None,
    *,
    force: bool = False,
    deps: Optional[Iterable[Any]] = None,
    _parent: Optional[AbstractSource] = None,
    **kwargs,
) -> None:
    """
    Require source `src` in `trial`, generating it when it is not present.

    Args:
        trial: Trial to add the source to
        src: Source instance or class
        name: Slot name (default: src.default_name())
        force: Regenerate even if the source already exists
        deps: Dependencies to use instead of src.dependencies()
        **kwargs: Passed on to src.generate()

    Raises:
        MissingSourceError: If `src` is absent and cannot be generated
    """
    src = _as_instance(src)
    name = name or src.default_name()

    if not force:
        if _parent is not None and _has_source_type(trial, type(src)):
            return
        if name in trial.sources or src in trial.sources.values():
            return
        if os.path.isfile(src.path):
            trial.sources[name] = src
            return

    deps = src.dependencies() if deps is None else tuple(deps)
    if deps is None:
        raise MissingSourceError(f"unable to generate missing source {src!r} for {trial!r}")

    for dep in deps:
        dep_name, dep_src = _split_dependency(dep)
        requiresource(trial, dep_src, dep_name, force=False, _parent=src)

    logger.debug("Generating %s for %r", name, trial)
    try:
        new_src = src.generate(trial, deps, **kwargs)
    except NotImplementedError as e:
        raise MissingSourceError(f"unable to generate missing source {src!r} for {trial!r}") from e
    if new_src is None or not os.path.isfile(new_src.path):
        raise MissingSourceError(f"failed to generate source {name} => {new_src!r} for {trial!r}")

    trial.sources[name] = new_src
