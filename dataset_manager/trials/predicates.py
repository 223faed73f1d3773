"""
Predicates for filtering trials, segments, and segment results.

Each test exists in two forms: a direct check, and a factory returning a
Predicate that can be combined with `&` and `|`:

    hascondition(trial, stim="placebo")                 # -> bool
    filter(where_condition(stim="placebo"), trials)
    filter(where_subject(1) & where_source("events"), trials)

Condition values may be a single level, a collection of acceptable levels,
or a callable returning a bool.
"""

from typing import Any, Callable, Union

from ..sources.base import AbstractSource


def _conditions(obj) -> dict:
    return obj.conditions


def _sources(obj) -> dict:
    trial = getattr(obj, "trial", obj)
    return trial.sources


def _subject(obj) -> Any:
    return obj.subject


def _level_matches(value: Any, level: Any) -> bool:
    if callable(level):
        return bool(level(value))
    if isinstance(level, (list, tuple, set, frozenset)):
        return value in level
    return value == level


def hassubject(obj, sub: Any) -> bool:
    """Test if the subject of `obj` equals `sub`."""
    return _subject(obj) == sub


def hascondition(obj, *names: str, **levels: Any) -> bool:
    """
    Test if `obj` has every condition in `names`, and every condition in
    `levels` at a matching level.
    """
    conds = _conditions(obj)
    if any(name not in conds for name in names):
        return False
    return all(
        name in conds and _level_matches(conds[name], level)
        for name, level in levels.items()
    )


def hassource(obj, src: Union[str, AbstractSource, type, Any]) -> bool:
    """
    Test if `obj` has a source matching `src`: a slot name, a compiled regex
    searched in slot names, a source instance, or a source class.
    """
    sources = _sources(obj)
    if isinstance(src, str):
        return src in sources
    if isinstance(src, type):
        return any(type(s) is src for s in sources.values())
    if hasattr(src, "search"):
        return any(src.search(name) for name in sources)
    return src in sources.values()


class Predicate:
    """A named single-argument test, combinable with `&` and `|`."""

    def __init__(self, func: Callable[[Any], bool], description: str):
        self.func = func
        self.description = description

    def __call__(self, obj) -> bool:
        return self.func(obj)

    def __and__(self, other: "Predicate") -> "Predicate":
        return Predicate(
            lambda t: self(t) and other(t),
            f"({self.description} && {other.description})",
        )

    def __or__(self, other: "Predicate") -> "Predicate":
        return Predicate(
            lambda t: self(t) or other(t),
            f"({self.description} || {other.description})",
        )

    def __repr__(self) -> str:
        return f"t -> {self.description}"


def where_subject(sub: Any) -> Predicate:
    return Predicate(lambda t: hassubject(t, sub), f"hassubject(t, {sub!r})")


def where_condition(*names: str, **levels: Any) -> Predicate:
    args = [repr(n) for n in names] + [f"{k}={v!r}" for k, v in levels.items()]
    return Predicate(
        lambda t: hascondition(t, *names, **levels),
        f"hascondition(t, {', '.join(args)})",
    )


def where_source(src: Any) -> Predicate:
    return Predicate(lambda t: hassource(t, src), f"hassource(t, {src!r})")
