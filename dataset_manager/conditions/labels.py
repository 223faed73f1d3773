"""
Label specifications for condition vocabularies.

A condition's labels are described either by one pattern covering every
acceptable label, or by a vocabulary of entries. Each vocabulary entry is one
of three kinds:

- LiteralLabel:   the label already appears in paths in its canonical form
- PatternLabel:   a regex matched as-is
- AlternateLabel: alternate spellings rewritten to a canonical form before
                  matching, optionally through a transform function

`as_label` accepts the shorthand forms used in YAML/dict configurations:

    "placebo"                        -> LiteralLabel("placebo")
    re.compile(r"\\d+")              -> PatternLabel(...)
    ("NONE", "held")                 -> AlternateLabel(("NONE",), "held")
    (["NONE", "none"], "held")       -> AlternateLabel(("NONE", "none"), "held")
    {"from": "NONE", "to": "held"}   -> AlternateLabel(("NONE",), "held")
    {"pattern": r"\\d+"}             -> PatternLabel(r"\\d+")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from ..errors import ConfigurationError


Alternate = Union[str, "re.Pattern[str]"]
Transform = Callable[["re.Match[str]"], str]

# Leading global inline flags, e.g. "(?i)"
_INLINE_FLAGS = re.compile(r"^\(\?([aiLmsux]+)\)")
# PCRE/.NET style named groups "(?<name>" (but not lookbehinds "(?<=" / "(?<!")
_PCRE_GROUP = re.compile(r"\(\?<(?![=!])(\w+)>")

_SCOPED_FLAGS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)


@dataclass(frozen=True)
class LiteralLabel:
    """A canonical label matched literally."""
    text: str

    def body(self) -> str:
        return re.escape(self.text)


@dataclass(frozen=True)
class PatternLabel:
    """A regex matching one or more labels."""
    pattern: Union[str, "re.Pattern[str]"]

    def body(self) -> str:
        return pattern_text(self.pattern)


@dataclass(frozen=True)
class AlternateLabel:
    """
    Alternate spellings that are rewritten to a canonical label.

    `to` is the canonical text, or a transform called with the regex match of
    an alternate. A transform needs `pattern`, the regex matching everything
    the transform can produce.
    """
    alternates: Tuple[Alternate, ...]
    to: Union[str, Transform]
    pattern: Optional[str] = None

    def body(self) -> str:
        if self.pattern is not None:
            return pattern_text(self.pattern)
        return re.escape(self.to)

    def substitution(self) -> Optional["Substitution"]:
        """Build the rewrite rule for this entry, or None when nothing needs rewriting."""
        alts = [a for a in self.alternates if not (isinstance(a, str) and a == self.to)]
        if not alts:
            return None
        # Longest-first so specific spellings win over their prefixes
        parts = sorted(
            (pattern_text(a) if isinstance(a, re.Pattern) else re.escape(a) for a in alts),
            key=len,
            reverse=True,
        )
        if isinstance(self.to, str):
            # Canonical text first: an existing canonical label is consumed
            # (and rewritten to itself) before an overlapping alternate can match
            parts.insert(0, re.escape(self.to))
        regex = "(?:" + "|".join(parts) + ")"
        try:
            compiled = re.compile(regex)
        except re.error as e:
            raise ConfigurationError(f"Invalid alternate label pattern {regex!r}: {e}") from e
        return Substitution(compiled, self.to)


Label = Union[LiteralLabel, PatternLabel, AlternateLabel]


@dataclass(frozen=True)
class Substitution:
    """One find/replace normalization rule applied to a whole path."""
    pattern: "re.Pattern[str]"
    replacement: Union[str, Transform]

    def apply(self, text: str) -> str:
        if callable(self.replacement):
            return self.pattern.sub(self.replacement, text)
        repl = self.replacement
        return self.pattern.sub(lambda _m: repl, text)


def as_label(entry) -> Label:
    """Coerce one vocabulary entry (or shorthand) into a Label."""
    if isinstance(entry, (LiteralLabel, PatternLabel, AlternateLabel)):
        return entry
    if isinstance(entry, re.Pattern):
        return PatternLabel(entry)
    if isinstance(entry, str):
        if not entry:
            raise ConfigurationError("Empty label in vocabulary")
        return LiteralLabel(entry)
    if isinstance(entry, dict):
        if "pattern" in entry and "from" not in entry:
            return PatternLabel(entry["pattern"])
        if "to" not in entry:
            raise ConfigurationError(f"Vocabulary entry {entry!r} has no 'to' label")
        return _alternate(entry.get("from", ()), entry["to"], entry.get("pattern"))
    if isinstance(entry, (tuple, list)) and len(entry) in (2, 3):
        pattern = entry[2] if len(entry) == 3 else None
        return _alternate(entry[0], entry[1], pattern)
    raise ConfigurationError(f"Unrecognized vocabulary entry: {entry!r}")


def _alternate(alternates, to, pattern) -> AlternateLabel:
    if isinstance(alternates, (str, re.Pattern)):
        alternates = (alternates,)
    alternates = tuple(alternates)
    if callable(to) and pattern is None:
        raise ConfigurationError(
            "A label transform function needs an explicit canonical pattern"
        )
    if not callable(to) and not to:
        raise ConfigurationError(f"Empty canonical label for alternates {alternates!r}")
    if any(isinstance(a, str) and not a for a in alternates):
        raise ConfigurationError(f"Empty alternate label for {to!r}")
    return AlternateLabel(alternates, to, pattern)


def pattern_text(pattern: Union[str, "re.Pattern[str]"]) -> str:
    """
    Return regex source usable inside a larger pattern.

    Named groups written as "(?<name>...)" are translated to Python syntax.
    Flags carried by a compiled pattern or a leading "(?i)" become a scoped
    group "(?i:...)" so they apply to this piece only.
    """
    flags = ""
    if isinstance(pattern, re.Pattern):
        source = pattern.pattern
        flags = "".join(c for flag, c in _SCOPED_FLAGS if pattern.flags & flag)
    else:
        source = pattern

    source = _PCRE_GROUP.sub(r"(?P<\1>", source)
    m = _INLINE_FLAGS.match(source)
    if m:
        flags += "".join(c for c in m.group(1) if c in "imsx" and c not in flags)
        source = source[m.end():]

    if flags:
        return f"(?{flags}:{source})"
    return source
