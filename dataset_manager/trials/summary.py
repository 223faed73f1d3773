"""
Dataset summary: subjects, trials per subject, observed condition levels and
sources across a list of trials.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from .models import Trial, sources_of


TRIALS_COL = "# trials"


@dataclass
class TrialSummary:
    """Summary statistics for a list of trials."""
    n_trials: int
    subjects: List[Any] = field(default_factory=list)
    trials_per_subject: Dict[int, int] = field(default_factory=dict)  # n trials -> n subjects
    observed_levels: Dict[str, List[Any]] = field(default_factory=dict)
    combinations: pd.DataFrame = field(default_factory=pd.DataFrame)
    sources: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def n_subjects(self) -> int:
        return len(self.subjects)

    @property
    def full_factorial(self) -> bool:
        """True when every combination of observed levels occurs."""
        if not self.observed_levels:
            return False
        expected = int(np.prod([len(v) for v in self.observed_levels.values()]))
        # Rows with a missing (optional) condition are not level combinations
        levels = self.combinations[list(self.observed_levels)]
        complete = int(levels.ne("").all(axis=1).sum())
        return complete == expected

    def to_text(self, verbosity: int = 5) -> str:
        """Render the summary as an indented text tree."""
        if self.n_trials == 0:
            return "0 trials present"

        lines = ["Subjects:"]
        lines.append(f" └ {self.n_subjects}: " + "  ".join(str(s) for s in self.subjects))

        lines += [
            "Trials:",
            f" ├ Number of trials: {self.n_trials}",
            " └ Number of trials per subject:",
        ]
        dist = sorted(self.trials_per_subject.items(), reverse=True)
        shown = dist[:verbosity]
        for j, (ntrials, nsubs) in enumerate(shown):
            sep = "└" if j == len(shown) - 1 else "├"
            if j == verbosity - 1 and len(dist) > verbosity:
                nsubs = sum(n for _, n in dist[j:])
                lines.append(f"   {sep} ≤{ntrials}: {nsubs}/{self.n_subjects} ({nsubs / self.n_subjects:.0%})")
            else:
                lines.append(f"   {sep} {ntrials}: {nsubs}/{self.n_subjects} ({nsubs / self.n_subjects:.0%})")

        lines += ["Conditions:", " ├ Observed levels:"]
        items = list(self.observed_levels.items())
        for i, (cond, levels) in enumerate(items):
            sep = "└" if i == len(items) - 1 else "├"
            lines.append(f" │ {sep} {cond} => {levels!r}")
        factorial = " (full factorial)" if self.full_factorial else ""
        lines.append(f" └ Unique level combinations observed: {len(self.combinations)}{factorial}")
        if not self.combinations.empty:
            table = self.combinations.head(verbosity).to_string(index=False)
            lines += ["    " + line for line in table.splitlines()]
            if len(self.combinations) > verbosity:
                lines.append("    ⋮")

        lines.append("Sources:")
        for i, (name, info) in enumerate(self.sources.items()):
            sep = "└" if i == len(self.sources) - 1 else "├"
            lines.append(
                f" {sep} {name!r} => {info['type']}, {info['trials']} trials "
                f"({info['trials'] / self.n_trials:.0%})"
            )

        return "\n".join(lines)


def _sort_key(value: Any):
    return (isinstance(value, str), value)


def summarize(trials: List[Trial]) -> TrialSummary:
    """
    Summarize a list of trials.

    Args:
        trials: Trials to summarize

    Returns:
        TrialSummary
    """
    if not trials:
        return TrialSummary(n_trials=0)

    subjects = sorted({t.subject for t in trials}, key=_sort_key)
    per_subject = pd.Series([t.subject for t in trials]).value_counts()
    trials_per_subject = {
        int(k): int(v) for k, v in per_subject.value_counts().sort_index().items()
    }

    observed: Dict[str, List[Any]] = {}
    for trial in trials:
        for cond, level in trial.conditions.items():
            levels = observed.setdefault(cond, [])
            if level not in levels:
                levels.append(level)
    for cond in observed:
        observed[cond] = sorted(observed[cond], key=_sort_key)

    conds_df = pd.DataFrame([t.conditions for t in trials], columns=list(observed))
    if observed:
        combinations = (
            conds_df.astype(object)
            .fillna("")
            .value_counts(sort=True)
            .rename(TRIALS_COL)
            .reset_index()
        )
    else:
        combinations = pd.DataFrame(columns=[TRIALS_COL])

    sources = {
        name: {
            "type": srctype.__name__,
            "trials": sum(1 for t in trials if name in t.sources),
        }
        for name, srctype in sources_of(trials).items()
    }

    return TrialSummary(
        n_trials=len(trials),
        subjects=subjects,
        trials_per_subject=trials_per_subject,
        observed_levels=observed,
        combinations=combinations,
        sources=sources,
    )
