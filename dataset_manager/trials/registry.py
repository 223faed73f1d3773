"""
Trial registry: groups matched files into trials.

Files are resolved one at a time, in subset order. The first trial-defining
subset to see a (subject, conditions) pair creates the trial; later files
attach to it. Dependent subsets never create trials.

Usage:
    registry = TrialRegistry(conditions, subject_format=r"ID(?P<subject>\\d+)")
    registry.find(subsets)
    registry.trials      # resolved trials
    registry.conflicts   # DuplicateSourceErrors that were skipped

    # Or in one call:
    trials = findtrials(subsets, conditions, subject_format=r"ID(?P<subject>\\d+)")
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..conditions.grammar import TrialConditions
from ..conditions.matcher import DEFAULT_SUBJECT_FORMAT, MatchRecord
from ..errors import AmbiguousTrialError, DuplicateSourceError
from .models import DataSubset, Trial

logger = logging.getLogger(__name__)

_MISSING = object()


def normalize_path(path) -> str:
    """Absolute, normalized form of `path` used for matching and ignore lists."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


class TrialRegistry:
    """
    Accumulates trials across one or more resolution runs.

    The registry is owned by the caller; passing an existing list as `trials`
    extends it in place.

    Args:
        conditions: Compiled trial conditions
        subject_format: Regex with a "subject" capture group
        subject_type: Callable converting the subject text (eg int)
        trials: Existing trials to extend
    """

    def __init__(
        self,
        conditions: TrialConditions,
        *,
        subject_format=DEFAULT_SUBJECT_FORMAT,
        subject_type: Callable[[str], Any] = str,
        trials: Optional[List[Trial]] = None,
    ):
        self.conditions = conditions
        self.matcher = conditions.matcher(subject_format)
        self.subject_type = subject_type
        self.trials: List[Trial] = [] if trials is None else trials
        self.conflicts: List[DuplicateSourceError] = []

    def __len__(self) -> int:
        return len(self.trials)

    def __iter__(self):
        return iter(self.trials)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def find(
        self,
        subsets: Sequence[DataSubset],
        *,
        ignorefiles: Optional[Iterable[str]] = None,
        strict: bool = False,
    ) -> List[Trial]:
        """
        Resolve every file of every subset, in order.

        Args:
            subsets: Subsets to search; order decides which subset creates trials
            ignorefiles: Absolute paths to skip
            strict: Raise on the first duplicate source instead of skipping it

        Returns:
            The registry's trial list

        Raises:
            DuplicateSourceError: In strict mode, for the first duplicate source
            AmbiguousTrialError: If several existing trials match a file
        """
        ignore = {normalize_path(p) for p in (ignorefiles or ())}

        for subset in subsets:
            files = self.glob(subset)
            n_trials = len(self.trials)
            n_matched = 0

            for path in files:
                if path in ignore or not subset.accepts(path):
                    continue
                record = self.matcher.match(path)
                if record is None:
                    logger.debug("No match for %s", path)
                    continue
                n_matched += 1
                try:
                    self.resolve(path, subset, record)
                except DuplicateSourceError as e:
                    if strict:
                        raise
                    logger.warning("%s", e)
                    self.conflicts.append(e)

            logger.info(
                "Subset %r: %d files, %d matched, %d new trials",
                subset.name, len(files), n_matched, len(self.trials) - n_trials,
            )

        return self.trials

    def glob(self, subset: DataSubset) -> List[str]:
        """Files under the subset's directory matching any of its patterns."""
        root = Path(subset.dir)
        found: Dict[str, None] = {}
        for pattern in subset.patterns:
            for p in sorted(root.glob(pattern)):
                if p.is_file():
                    found.setdefault(normalize_path(p), None)
        return list(found)

    def resolve(
        self,
        path: str,
        subset: DataSubset,
        record: Optional[MatchRecord] = None,
    ) -> List[Trial]:
        """
        Add the file at `path` to the trial it belongs to.

        Args:
            path: File path
            subset: Subset the file was found in
            record: Match for `path` (matched here if omitted)

        Returns:
            Trials the file was created in or attached to (empty if skipped)

        Raises:
            DuplicateSourceError: If a matching trial has a different file in the slot
            AmbiguousTrialError: If several trials match a trial-defining file
        """
        path = normalize_path(path)
        if record is None:
            record = self.matcher.match(path)
            if record is None:
                return []

        subject = self.subject_type(record.subject)
        conds = self.trial_conditions(record)

        if subset.dependent:
            return self._attach_dependent(path, subset, subject, record, conds)

        seen = [t for t in self.trials if t.same_trial(subject, conds)]
        if len(seen) > 1:
            raise AmbiguousTrialError(
                f"{len(seen)} trials match subject {subject!r} with conditions {conds!r} "
                f"for {path}: {seen!r}"
            )

        if not seen:
            name = os.path.splitext(os.path.basename(path))[0]
            trial = Trial(subject, name, conds, {subset.name: subset.build(path)})
            self.trials.append(trial)
            return [trial]

        trial = seen[0]
        self._bind(trial, subset.name, path, subset)
        return [trial]

    def trial_conditions(self, record: MatchRecord) -> Dict[str, Any]:
        """Typed conditions for a match, with defaults for missing conditions."""
        conds: Dict[str, Any] = {}
        for cond in self.conditions.condnames:
            value = record.conditions.get(cond)
            if value is None:
                value = self.conditions.defaults.get(cond)
                if value is None:
                    continue
            conds[cond] = self.conditions.coerce(cond, value)
        return conds

    def _attach_dependent(
        self,
        path: str,
        subset: DataSubset,
        subject: Any,
        record: MatchRecord,
        conds: Dict[str, Any],
    ) -> List[Trial]:
        slot = record.conditions.get(subset.name)
        if not slot:
            logger.debug("Dependent file %s has no %r label", path, subset.name)
            return []

        required = self.conditions.required
        seen = [
            t for t in self.trials
            if t.subject == subject
            and all(t.conditions.get(c, _MISSING) == conds.get(c) for c in required)
        ]
        if not seen:
            logger.debug("No trial to attach dependent file %s", path)
            return []

        errors = []
        for trial in seen:
            try:
                self._bind(trial, slot, path, subset)
            except DuplicateSourceError as e:
                errors.append(e)
        if errors:
            raise errors[0]
        return seen

    def _bind(self, trial: Trial, slot: str, path: str, subset: DataSubset) -> None:
        existing = trial.sources.get(slot)
        if existing is None:
            trial.sources[slot] = subset.build(path)
        elif normalize_path(existing.path) != path:
            raise DuplicateSourceError(trial, subset, existing.path, path)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def ignore_list(self) -> List[str]:
        """Duplicate file paths from collected conflicts, for use as `ignorefiles`."""
        return [e.dup for e in self.conflicts]


def findtrials(
    subsets: Sequence[DataSubset],
    conditions: TrialConditions,
    *,
    subject_format=DEFAULT_SUBJECT_FORMAT,
    subject_type: Callable[[str], Any] = str,
    ignorefiles: Optional[Iterable[str]] = None,
    strict: bool = False,
    trials: Optional[List[Trial]] = None,
) -> List[Trial]:
    """
    Find all the trials matching `conditions` in `subsets`.

    Args:
        subsets: Subsets to search, in order
        conditions: Compiled trial conditions
        subject_format: Regex with a "subject" capture group
        subject_type: Callable converting the subject text
        ignorefiles: Absolute paths to skip
        strict: Raise on duplicate sources instead of skipping them
        trials: Existing trials to extend in place

    Returns:
        List of trials
    """
    registry = TrialRegistry(
        conditions,
        subject_format=subject_format,
        subject_type=subject_type,
        trials=trials,
    )
    return registry.find(subsets, ignorefiles=ignorefiles, strict=strict)
