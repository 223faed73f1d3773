"""
Tests for extracting subject and conditions from paths.
"""

import re

import pytest

from dataset_manager.conditions import MatchRecord, PathMatcher, TrialConditions, match_path
from dataset_manager.conditions.matcher import DEFAULT_SUBJECT_FORMAT


ID_FORMAT = r"ID(?<subject>\d+)"


@pytest.fixture
def session_stim():
    return TrialConditions(
        ["session", "stim"],
        {"session": r"\d+", "stim": ["stim", "placebo"]},
    )


class TestPathMatcher:
    """Tests for PathMatcher.match."""

    def test_simple_match(self, session_stim):
        record = match_path("/data/ID1_2_placebo.csv", session_stim, ID_FORMAT)
        assert record == MatchRecord("1", {"session": "2", "stim": "placebo"})

    def test_multi_digit_subject(self, session_stim):
        record = match_path("/data/ID12_3_stim.csv", session_stim, ID_FORMAT)
        assert record.subject == "12"
        assert record.conditions == {"session": "3", "stim": "stim"}

    def test_no_subject(self, session_stim):
        assert match_path("/data/1_stim.csv", session_stim, ID_FORMAT) is None

    def test_required_condition_missing(self, session_stim):
        """A path lacking a required condition never matches."""
        assert match_path("/data/ID1_2_sham.csv", session_stim, ID_FORMAT) is None

    def test_optional_condition_absent(self):
        conds = TrialConditions(
            ["session", "stim"],
            {"session": r"\d+", "stim": ["stim", "placebo"]},
            required=["session"],
        )
        record = match_path("/data/ID1_2.csv", conds, ID_FORMAT)
        assert record == MatchRecord("1", {"session": "2"})
        assert "stim" not in record.conditions

    def test_required_empty_capture_without_default(self):
        conds = TrialConditions(
            ["session", "stim"],
            {"session": r"\d*", "stim": ["stim", "placebo"]},
        )
        assert match_path("/data/ID1_stim.csv", conds, ID_FORMAT) is None
        assert match_path("/data/ID1_2_stim.csv", conds, ID_FORMAT).conditions["session"] == "2"

    def test_required_empty_capture_with_default(self):
        """An empty required capture is accepted when a default will fill it."""
        conds = TrialConditions(
            ["session", "stim"],
            {"session": r"\d*", "stim": ["stim", "placebo"]},
            defaults={"session": 1},
        )
        record = match_path("/data/ID1_stim.csv", conds, ID_FORMAT)
        assert record == MatchRecord("1", {"stim": "stim"})

    def test_default_subject_format(self, session_stim):
        record = match_path("/data/Subject 7/run_1_stim.csv", session_stim)
        assert record.subject == "7"
        assert DEFAULT_SUBJECT_FORMAT.startswith("(?<=Subject )")

    def test_labels_are_normalized_before_matching(self):
        conds = TrialConditions(
            ["arms"],
            {"arms": [("NONE", "held"), ("NORM", "norm")]},
        )
        record = match_path("/data/Subject 3/park-NONE.csv", conds)
        assert record.subject == "3"
        assert record.conditions == {"arms": "held"}

    def test_case_insensitive_condition(self):
        conds = TrialConditions(
            ["session", "stim"],
            {"session": r"\d+", "stim": re.compile("stim|placebo", re.IGNORECASE)},
        )
        record = match_path("/data/ID1_2_STIM.csv", conds, ID_FORMAT)
        assert record.conditions["stim"] == "STIM"

    def test_matcher_reuses_compiled_regex(self, session_stim):
        matcher = PathMatcher(session_stim, ID_FORMAT)
        assert matcher.regex.pattern == (
            r"ID(?P<subject>\d+).*?(?P<session>\d+)[_-]?(?P<stim>stim|placebo)"
        )
        assert matcher.match("/data/ID2_1_stim.csv").subject == "2"
        assert session_stim.matcher(ID_FORMAT).regex.pattern == matcher.regex.pattern
