"""
Segments of trial sources and the results of analysing them.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

from ..sources.base import AbstractSource
from ..trials.models import Trial


TimeBound = Optional[Union[float, Callable[[Trial], Optional[float]]]]


class Segment:
    """
    A portion of a source in `trial`, from `start` to `finish`.

    `source` may be a source instance, the slot name of a source in `trial`,
    or a source class with exactly one source in `trial`. Omitted bounds are
    open (beginning/end of the source). Bounds given as callables are
    evaluated with the trial.

    Segment conditions are merged with the trial's conditions; a segment
    condition may not contradict a trial condition.

    Raises:
        KeyError: If `source` names a source not present in `trial`
        ValueError: If `finish` is before `start`, or conditions collide
    """

    def __init__(
        self,
        trial: Trial,
        source: Union[AbstractSource, str, type, None],
        *,
        start: TimeBound = None,
        finish: TimeBound = None,
        conditions: Optional[Dict[str, Any]] = None,
    ):
        if isinstance(source, (str, type)):
            source = trial.getsource(source)
        if callable(start):
            start = start(trial)
        if callable(finish):
            finish = finish(trial)
        start = None if start is None else float(start)
        finish = None if finish is None else float(finish)
        if start is not None and finish is not None and finish < start:
            raise ValueError(f"finish time must be >= start time; got {finish} < {start}")

        merged = dict(trial.conditions)
        for cond, level in (conditions or {}).items():
            if cond in merged and merged[cond] != level:
                raise ValueError(
                    f"segment condition {cond}={level!r} conflicts with trial "
                    f"condition {cond}={merged[cond]!r}"
                )
            merged[cond] = level

        self.trial = trial
        self.source = source
        self.start = start
        self.finish = finish
        self.conditions = merged

    @property
    def subject(self) -> Any:
        return self.trial.subject

    def read(self, **kwargs) -> Any:
        """Read this segment's portion of its source."""
        return readsegment(self, **kwargs)

    def __repr__(self) -> str:
        start = "begin" if self.start is None else self.start
        finish = "end" if self.finish is None else self.finish
        source = type(self.source).__name__ if self.source is not None else None
        out = f"Segment({self.trial!r}, {source}(…), {start}:{finish}"
        if self.conditions != self.trial.conditions:
            extra = {k: v for k, v in self.conditions.items() if k not in self.trial.conditions}
            out += ", (" + ", ".join(f"{k}={v!r}" for k, v in extra.items()) + ")"
        return out + ")"


def readsegment(seg: Segment, **kwargs) -> Any:
    """Return the portion of `seg.source` from `seg.start` to `seg.finish`."""
    if seg.source is None:
        raise ValueError(f"{seg!r} has no source to read")
    return seg.source.read_segment(seg.start, seg.finish, **kwargs)


@dataclass
class SegmentResult:
    """The results of an analysis of a segment."""
    segment: Segment
    results: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def empty(cls, trial: Trial) -> "SegmentResult":
        """Placeholder result covering the whole of `trial`, with no results."""
        return cls(Segment(trial, None))

    @property
    def trial(self) -> Trial:
        return self.segment.trial

    @property
    def subject(self) -> Any:
        return self.segment.subject

    @property
    def source(self) -> Optional[AbstractSource]:
        return self.segment.source

    @property
    def conditions(self) -> Dict[str, Any]:
        return self.segment.conditions

    def resultsvariables(self) -> List[str]:
        return list(self.results)

    def __repr__(self) -> str:
        if not self.results:
            return f"SegmentResult({self.segment!r}, No results)"
        if len(self.results) > 4:
            return f"SegmentResult({self.segment!r}, {len(self.results)} results)"
        return f"SegmentResult({self.segment!r}, Results keys: {list(self.results)})"


def resultsvariables(results: List[SegmentResult]) -> List[str]:
    """Sorted union of result variable names across `results`."""
    names = set()
    for sr in results:
        names.update(sr.results)
    return sorted(names)
