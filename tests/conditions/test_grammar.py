"""
Tests for the label grammar compiler.
"""

import re

import pytest

from dataset_manager.conditions import TrialConditions
from dataset_manager.conditions.labels import (
    AlternateLabel,
    LiteralLabel,
    PatternLabel,
    as_label,
    pattern_text,
)
from dataset_manager.errors import ConfigurationError


class TestCompile:
    """Tests for compiling condition groups into one regex."""

    def test_required_groups(self):
        """Every condition gets a named group, joined by the separator."""
        conds = TrialConditions(
            ["session", "stim"],
            {"session": r"\d+", "stim": ["stim", "placebo"]},
        )
        assert conds.labels_rg.pattern == r"(?P<session>\d+)[_-]?(?P<stim>stim|placebo)"
        assert conds.required == ("session", "stim")
        assert conds.optional == ()

    def test_optional_group(self):
        """Optional conditions are followed by '?'."""
        conds = TrialConditions(
            ["session", "stim"],
            {"session": r"\d+", "stim": ["stim", "placebo"]},
            required=["session"],
        )
        assert conds.labels_rg.pattern == r"(?P<session>\d+)[_-]?(?P<stim>stim|placebo)?"
        assert conds.optional == ("stim",)

    def test_required_keeps_declaration_order(self):
        conds = TrialConditions(
            ["a", "b", "c"],
            {"a": "x", "b": "y", "c": "z"},
            required=["c", "a"],
        )
        assert conds.required == ("a", "c")

    def test_custom_separator(self):
        conds = TrialConditions(["a", "b"], {"a": "x", "b": "y"}, sep=r"\.")
        assert conds.labels_rg.pattern == r"(?P<a>x)\.(?P<b>y)"

    def test_literal_labels_are_escaped(self):
        conds = TrialConditions(["trial"], {"trial": ["t.1", "t+2"]})
        assert conds.labels_rg.fullmatch("t.1")
        assert not conds.labels_rg.fullmatch("tx1")

    def test_canonical_labels_in_alternation(self):
        """Alternate spellings only contribute their canonical form to the regex."""
        conds = TrialConditions(
            ["arms"],
            {"arms": [("NONE", "held"), ("NORM", "norm")]},
        )
        assert conds.labels_rg.pattern == "(?P<arms>held|norm)"

    def test_duplicate_canonical_labels_collapse(self):
        conds = TrialConditions(
            ["stim"],
            {"stim": ["placebo", ("PLAC", "placebo"), ("plc", "placebo")]},
        )
        assert conds.labels_rg.pattern == "(?P<stim>placebo)"
        assert len(conds.subst) == 2

    def test_ignore_case_is_scoped(self):
        """A case-insensitive label pattern does not affect other conditions."""
        conds = TrialConditions(
            ["stim", "side"],
            {"stim": re.compile("stim|placebo", re.IGNORECASE), "side": ["left", "right"]},
        )
        assert conds.labels_rg.fullmatch("STIM_left")
        assert not conds.labels_rg.fullmatch("stim_LEFT")

    def test_pattern_mapping(self):
        conds = TrialConditions(["session"], {"session": {"pattern": r"\d+"}})
        assert conds.labels_rg.pattern == r"(?P<session>\d+)"


class TestConfigurationErrors:
    """Tests for rejected condition descriptions."""

    def test_missing_labels(self):
        with pytest.raises(ConfigurationError, match="stim"):
            TrialConditions(["session", "stim"], {"session": r"\d+"})

    def test_empty_vocabulary(self):
        with pytest.raises(ConfigurationError, match="Empty vocabulary"):
            TrialConditions(["stim"], {"stim": []})

    def test_empty_pattern(self):
        with pytest.raises(ConfigurationError):
            TrialConditions(["stim"], {"stim": ""})

    def test_no_conditions(self):
        with pytest.raises(ConfigurationError):
            TrialConditions([], {})

    def test_duplicate_names(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            TrialConditions(["stim", "stim"], {"stim": ["stim"]})

    def test_reserved_name(self):
        with pytest.raises(ConfigurationError, match="subject"):
            TrialConditions(["subject"], {"subject": r"\d+"})

    def test_unknown_required(self):
        with pytest.raises(ConfigurationError, match="required"):
            TrialConditions(["stim"], {"stim": ["stim"]}, required=["session"])

    def test_unknown_default(self):
        with pytest.raises(ConfigurationError, match="defaults"):
            TrialConditions(["stim"], {"stim": ["stim"]}, defaults={"arms": "held"})

    def test_invalid_regex(self):
        with pytest.raises(ConfigurationError):
            TrialConditions(["stim"], {"stim": "(unclosed"})

    def test_transform_without_pattern(self):
        with pytest.raises(ConfigurationError, match="canonical pattern"):
            TrialConditions(["session"], {"session": [("S1", lambda m: "s1")]})

    def test_subject_pattern_without_group(self):
        conds = TrialConditions(["stim"], {"stim": ["stim"]})
        with pytest.raises(ConfigurationError, match="subject"):
            conds.pattern(r"ID\d+")


class TestNormalize:
    """Tests for alternate label rewriting."""

    @pytest.fixture
    def arms(self):
        return TrialConditions(
            ["arms"],
            {"arms": [("NONE", "held"), ("NORM", "norm")]},
        )

    def test_rewrite_to_canonical(self, arms):
        assert arms.normalize("park-NONE.csv") == "park-held.csv"
        assert arms.normalize("park-NORM.csv") == "park-norm.csv"

    def test_normalize_is_idempotent(self, arms):
        once = arms.normalize("Subject 1/park-NONE_NORM.csv")
        assert arms.normalize(once) == once

    def test_canonical_containing_alternate(self):
        """A canonical label that starts with an alternate is not rewritten again."""
        conds = TrialConditions(["level"], {"level": [("norm", "normal")]})
        once = conds.normalize("ID1_norm.csv")
        assert once == "ID1_normal.csv"
        assert conds.normalize(once) == once

    def test_alternate_inside_canonical(self):
        """A canonical label containing an alternate past its start is left alone."""
        conds = TrialConditions(["stim"], {"stim": [("lace", "placebo")]})
        assert conds.normalize("/d/ID1_placebo.csv") == "/d/ID1_placebo.csv"
        once = conds.normalize("/d/ID1_lace.csv")
        assert once == "/d/ID1_placebo.csv"
        assert conds.normalize(once) == once

    def test_canonical_first_in_rule(self):
        rule = AlternateLabel(("PL", "PLAC"), "placebo").substitution()
        assert rule.pattern.pattern == "(?:placebo|PLAC|PL)"

    def test_longest_alternate_first(self):
        conds = TrialConditions(
            ["stim"],
            {"stim": [{"from": ["PL", "PLAC"], "to": "placebo"}]},
        )
        assert conds.normalize("ID1_PLAC.csv") == "ID1_placebo.csv"

    def test_rules_apply_in_declaration_order(self):
        conds = TrialConditions(
            ["a", "b"],
            {"a": [("x", "y")], "b": [("y", "z")]},
        )
        assert conds.normalize("x") == "z"

    def test_transform_function(self):
        conds = TrialConditions(
            ["session"],
            {"session": [(re.compile(r"Sess(\d+)"), lambda m: "s" + m.group(1), r"s\d+")]},
        )
        assert conds.normalize("ID1_Sess12.csv") == "ID1_s12.csv"
        assert conds.labels_rg.pattern == r"(?P<session>s\d+)"


class TestLabels:
    """Tests for vocabulary entry shorthand."""

    def test_as_label_forms(self):
        assert as_label("placebo") == LiteralLabel("placebo")
        assert as_label({"pattern": r"\d+"}) == PatternLabel(r"\d+")
        assert as_label(("NONE", "held")) == AlternateLabel(("NONE",), "held")
        assert as_label((["NONE", "none"], "held")) == AlternateLabel(("NONE", "none"), "held")
        assert as_label({"from": "NONE", "to": "held"}) == AlternateLabel(("NONE",), "held")

    def test_as_label_rejects_empty(self):
        with pytest.raises(ConfigurationError):
            as_label("")
        with pytest.raises(ConfigurationError):
            as_label(("", "held"))

    def test_alternate_equal_to_canonical_has_no_rule(self):
        assert AlternateLabel(("held",), "held").substitution() is None

    def test_pattern_text_translates_named_groups(self):
        assert pattern_text(r"ID(?<subject>\d+)") == r"ID(?P<subject>\d+)"

    def test_pattern_text_keeps_lookbehind(self):
        assert pattern_text(r"(?<=Subject )(?<subject>\d+)") == r"(?<=Subject )(?P<subject>\d+)"

    def test_pattern_text_scopes_flags(self):
        assert pattern_text(re.compile("abc", re.IGNORECASE)) == "(?i:abc)"
        assert pattern_text("(?i)abc") == "(?i:abc)"
