"""
Tests for dataset summaries.
"""

import pytest

from dataset_manager.sources import CSVSource, Source
from dataset_manager.trials import Trial, summarize
from dataset_manager.trials.summary import TRIALS_COL


def make_trial(subject, session, stim, **sources):
    sources = sources or {"events": CSVSource(f"/data/ID{subject}_{session}_{stim}.csv")}
    return Trial(subject, f"ID{subject}_{session}_{stim}", {"session": session, "stim": stim}, sources)


@pytest.fixture
def trials():
    return [
        make_trial(1, 1, "stim"),
        make_trial(1, 2, "placebo"),
        make_trial(1, 3, "stim"),
        make_trial(2, 1, "stim", events=CSVSource("/data/ID2_1_stim.csv"), mvic=Source("/data/mvic.bin")),
        make_trial(3, 2, "placebo"),
    ]


class TestSummarize:
    """Tests for summarize()."""

    def test_counts(self, trials):
        summary = summarize(trials)
        assert summary.n_trials == 5
        assert summary.subjects == [1, 2, 3]
        assert summary.n_subjects == 3
        # 1 subject with 3 trials, 2 subjects with 1 trial
        assert summary.trials_per_subject == {1: 2, 3: 1}

    def test_observed_levels(self, trials):
        summary = summarize(trials)
        assert summary.observed_levels == {"session": [1, 2, 3], "stim": ["placebo", "stim"]}

    def test_combinations(self, trials):
        combos = summarize(trials).combinations
        assert list(combos.columns) == ["session", "stim", TRIALS_COL]
        assert combos[TRIALS_COL].sum() == 5
        assert len(combos) == 3

    def test_full_factorial(self, trials):
        assert not summarize(trials).full_factorial
        square = [make_trial(1, s, stim) for s in (1, 2) for stim in ("stim", "placebo")]
        assert summarize(square).full_factorial

    def test_full_factorial_ignores_incomplete_rows(self):
        """Trials missing an optional condition do not count as a level combination."""
        square = [make_trial(1, s, stim) for s in (1, 2) for stim in ("stim", "placebo")]
        square[0].conditions["arms"] = "held"
        square[1].conditions["arms"] = "held"
        square[2].conditions["arms"] = "norm"
        # 2 sessions x 2 stims x 2 arms = 8; 3 complete combinations observed
        summary = summarize(square)
        assert len(summary.combinations) == 4
        assert not summary.full_factorial

        partial = [make_trial(1, s, "stim") for s in (1, 2)] + [make_trial(2, 1, "stim")]
        partial[0].conditions["arms"] = "held"
        partial[1].conditions["arms"] = "held"
        # 2 sessions x 1 stim x 1 arms = 2 complete combinations, plus one row lacking arms
        summary = summarize(partial)
        assert len(summary.combinations) == 3
        assert summary.full_factorial

    def test_sources(self, trials):
        sources = summarize(trials).sources
        assert sources["events"] == {"type": "CSVSource", "trials": 5}
        assert sources["mvic"] == {"type": "Source", "trials": 1}

    def test_to_text(self, trials):
        text = summarize(trials).to_text()
        assert text.startswith("Subjects:")
        assert "Number of trials: 5" in text
        assert "Unique level combinations observed: 3" in text
        assert "'events' => CSVSource, 5 trials (100%)" in text

    def test_empty(self):
        summary = summarize([])
        assert summary.n_trials == 0
        assert summary.to_text() == "0 trials present"
