"""
Label grammar compiler.

Compiles an ordered list of condition names and their label vocabularies into
a single regex with one named group per condition, plus the normalization
rules that rewrite alternate spellings to canonical labels.

Public API
----------
TrialConditions(conditions, labels, *,
                required=None, types=None, defaults=None, sep="[_-]?")

Example
-------
>>> conds = TrialConditions(
...     ["session", "stim"],
...     {"session": r"\\d+", "stim": ["stim", "placebo"]},
...     types={"session": int},
... )
>>> conds.labels_rg.pattern
'(?P<session>\\\\d+)[_-]?(?P<stim>stim|placebo)'

Condition order fixes the expected left-to-right order of labels in a path.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..errors import ConfigurationError
from .labels import AlternateLabel, Label, PatternLabel, Substitution, as_label, pattern_text


DEFAULT_SEPARATOR = "[_-]?"
RESERVED_NAMES = frozenset({"subject"})


def _compile_group(cond: str, spec: Any) -> Tuple[str, List[Substitution]]:
    """Build the group body and substitution rules for one condition."""
    if isinstance(spec, (str, re.Pattern, PatternLabel)):
        if isinstance(spec, PatternLabel):
            spec = spec.pattern
        body = pattern_text(spec)
        if not body:
            raise ConfigurationError(f"Empty label pattern for condition {cond!r}")
        return body, []

    if isinstance(spec, Mapping):
        # A bare {"pattern": ...} mapping is a single pattern, anything else is one entry
        if set(spec) == {"pattern"}:
            return _compile_group(cond, PatternLabel(spec["pattern"]))
        spec = [spec]

    try:
        entries = list(spec)
    except TypeError as e:
        raise ConfigurationError(
            f"Labels for condition {cond!r} must be a pattern or a vocabulary list"
        ) from e
    if not entries:
        raise ConfigurationError(f"Empty vocabulary for condition {cond!r}")

    labels: List[Label] = []
    for entry in entries:
        try:
            labels.append(as_label(entry))
        except ConfigurationError as e:
            raise ConfigurationError(f"Condition {cond!r}: {e}") from e

    bodies: List[str] = []
    subst: List[Substitution] = []
    for label in labels:
        body = label.body()
        if body not in bodies:
            bodies.append(body)
        if isinstance(label, AlternateLabel):
            rule = label.substitution()
            if rule is not None:
                subst.append(rule)

    return "|".join(bodies), subst


class TrialConditions:
    """
    Compiled description of the experimental conditions found in file paths.

    Args:
        conditions: Ordered condition names (eg ["session", "stim"])
        labels: Mapping of condition name -> pattern or vocabulary list
        required: Conditions every trial must have (default: all)
        types: Mapping of condition name -> callable converting the matched text
            (default: str for every condition)
        defaults: Values used for conditions missing from a path
        sep: Regex separating adjacent condition labels

    Raises:
        ConfigurationError: If a condition has no labels, a vocabulary is
            empty, or an option names an unknown condition
    """

    def __init__(
        self,
        conditions: Sequence[str],
        labels: Mapping[str, Any],
        *,
        required: Optional[Iterable[str]] = None,
        types: Optional[Mapping[str, Callable[[str], Any]]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        sep: str = DEFAULT_SEPARATOR,
    ):
        condnames = [str(c) for c in conditions]
        if not condnames:
            raise ConfigurationError("At least one condition is required")
        if len(set(condnames)) != len(condnames):
            raise ConfigurationError(f"Duplicate condition names in {condnames}")
        for cond in condnames:
            if not cond.isidentifier() or cond in RESERVED_NAMES:
                raise ConfigurationError(f"Invalid condition name: {cond!r}")
            if cond not in labels:
                raise ConfigurationError(f"No labels given for condition {cond!r}")

        required = condnames if required is None else [str(c) for c in required]
        types = dict(types or {})
        defaults = dict(defaults or {})
        for option, names in (("required", required), ("types", types), ("defaults", defaults)):
            unknown = sorted(set(names) - set(condnames))
            if unknown:
                raise ConfigurationError(f"Unknown conditions in {option}: {unknown}")

        self.condnames: Tuple[str, ...] = tuple(condnames)
        # Keep declaration order for required conditions
        self.required: Tuple[str, ...] = tuple(c for c in condnames if c in set(required))
        self.types: Dict[str, Callable[[str], Any]] = {c: types.get(c, str) for c in condnames}
        self.defaults: Dict[str, Any] = defaults
        self.sep = sep

        pieces: List[str] = []
        subst: List[Substitution] = []
        for i, cond in enumerate(condnames):
            body, rules = _compile_group(cond, labels[cond])
            optchar = "" if cond in self.required else "?"
            piece = f"(?P<{cond}>{body}){optchar}"
            if i < len(condnames) - 1:
                piece += sep
            pieces.append(piece)
            subst.extend(rules)

        labels_rg = "".join(pieces)
        try:
            self.labels_rg = re.compile(labels_rg)
        except re.error as e:
            raise ConfigurationError(f"Invalid condition labels pattern {labels_rg!r}: {e}") from e
        self.subst: Tuple[Substitution, ...] = tuple(subst)

    @property
    def optional(self) -> Tuple[str, ...]:
        """Conditions which may be absent from a path."""
        return tuple(c for c in self.condnames if c not in self.required)

    def normalize(self, path: str) -> str:
        """Apply every substitution rule, in declaration order, to `path`."""
        for rule in self.subst:
            path = rule.apply(path)
        return path

    def coerce(self, cond: str, value: Any) -> Any:
        """Convert matched text for `cond` to its configured type."""
        convert = self.types.get(cond, str)
        if isinstance(value, str) and convert is not str:
            return convert(value)
        return value

    def pattern(self, subject_format) -> "re.Pattern[str]":
        """Combine the subject pattern, a lazy gap, and the condition groups."""
        subject = pattern_text(subject_format)
        combined = subject + ".*?" + self.labels_rg.pattern
        try:
            rg = re.compile(combined)
        except re.error as e:
            raise ConfigurationError(f"Invalid subject pattern {subject!r}: {e}") from e
        if "subject" not in rg.groupindex:
            raise ConfigurationError(
                f"Subject pattern {subject!r} has no 'subject' capture group"
            )
        return rg

    def matcher(self, subject_format):
        """Build a PathMatcher for these conditions."""
        from .matcher import PathMatcher

        return PathMatcher(self, subject_format)

    def __repr__(self) -> str:
        return (
            f"TrialConditions({list(self.condnames)!r}, required={list(self.required)!r}, "
            f"labels_rg={self.labels_rg.pattern!r})"
        )
