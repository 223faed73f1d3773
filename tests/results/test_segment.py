"""
Tests for segments and segment results.
"""

import pandas as pd
import pytest

from dataset_manager.results import Segment, SegmentResult, readsegment, resultsvariables
from dataset_manager.sources import CSVSource
from dataset_manager.trials import Trial


@pytest.fixture
def trial(tmp_path):
    path = tmp_path / "ID1_1_stim.csv"
    pd.DataFrame({"time": [0.0, 1.0, 2.0, 3.0], "force": [4, 3, 2, 1]}).to_csv(path, index=False)
    return Trial(
        "1",
        "ID1_1_stim",
        {"session": 1, "stim": "stim"},
        {"events": CSVSource(str(path))},
    )


class TestSegment:
    """Tests for Segment construction and reading."""

    def test_source_by_name(self, trial):
        seg = Segment(trial, "events")
        assert seg.source is trial.sources["events"]
        assert seg.start is None and seg.finish is None
        assert seg.subject == "1"

    def test_source_by_type(self, trial):
        assert Segment(trial, CSVSource).source is trial.sources["events"]

    def test_missing_source(self, trial):
        with pytest.raises(KeyError):
            Segment(trial, "emg")

    def test_bounds(self, trial):
        seg = Segment(trial, "events", start=1, finish=2)
        assert (seg.start, seg.finish) == (1.0, 2.0)
        assert readsegment(seg)["force"].tolist() == [3, 2]

    def test_callable_bounds(self, trial):
        seg = Segment(trial, "events", start=lambda t: t.conditions["session"] + 1)
        assert seg.start == 2.0
        assert seg.read()["time"].tolist() == [2.0, 3.0]

    def test_finish_before_start(self, trial):
        with pytest.raises(ValueError, match="finish"):
            Segment(trial, "events", start=2, finish=1)

    def test_conditions_merged(self, trial):
        seg = Segment(trial, "events", conditions={"arms": "held"})
        assert seg.conditions == {"session": 1, "stim": "stim", "arms": "held"}
        assert trial.conditions == {"session": 1, "stim": "stim"}

    def test_conflicting_condition(self, trial):
        with pytest.raises(ValueError, match="conflicts"):
            Segment(trial, "events", conditions={"stim": "placebo"})

    def test_repr(self, trial):
        assert repr(Segment(trial, "events", start=1)).endswith("CSVSource(…), 1.0:end)")


class TestSegmentResult:
    """Tests for SegmentResult."""

    def test_accessors(self, trial):
        sr = SegmentResult(Segment(trial, "events"), {"peak": 4})
        assert sr.trial is trial
        assert sr.subject == "1"
        assert sr.conditions["stim"] == "stim"
        assert sr.resultsvariables() == ["peak"]

    def test_empty(self, trial):
        sr = SegmentResult.empty(trial)
        assert sr.source is None
        assert sr.results == {}
        assert "No results" in repr(sr)
        with pytest.raises(ValueError):
            readsegment(sr.segment)

    def test_resultsvariables_union(self, trial):
        results = [
            SegmentResult(Segment(trial, "events"), {"peak": 4, "mean": 2.5}),
            SegmentResult(Segment(trial, "events"), {"area": 10}),
        ]
        assert resultsvariables(results) == ["area", "mean", "peak"]
