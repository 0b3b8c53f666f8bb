"""Tests for pathway identifier normalization."""

import pytest

from conftest import make_result
from pathconcord.reconcile.normalize import (
    DEFAULT_RULES,
    NormalizationRule,
    RuleTable,
    decorate,
    join_key,
    normalize,
    normalize_results,
)
from pathconcord.reconcile.types import MethodName, UnknownFormatError


class TestNormalize:
    """Tests for normalize() with the default Reactome rules."""

    def test_gsea_prefix_stripped(self):
        assert normalize("REACTOME_CELL_CYCLE", MethodName.GSEA) == "CELL_CYCLE"

    def test_fry_and_ssnappy_prefix_stripped(self):
        assert normalize("reactome.Cell Cycle", MethodName.FRY) == "Cell Cycle"
        assert normalize("reactome.Cell Cycle", MethodName.SSNAPPY) == "Cell Cycle"

    def test_spia_names_pass_through(self):
        assert normalize("Cell Cycle", MethodName.SPIA) == "Cell Cycle"

    def test_method_given_as_string(self):
        assert normalize("REACTOME_APOPTOSIS", "gsea") == "APOPTOSIS"
        assert normalize("REACTOME_APOPTOSIS", "GSEA") == "APOPTOSIS"

    def test_unmatched_identifier_raises(self):
        """A GSEA id without the REACTOME_ prefix cannot be normalized."""
        with pytest.raises(UnknownFormatError, match="KEGG_CELL_CYCLE"):
            normalize("KEGG_CELL_CYCLE", MethodName.GSEA)

    def test_bare_prefix_raises(self):
        """Prefix with nothing after it captures an empty id."""
        with pytest.raises(UnknownFormatError):
            normalize("reactome.", MethodName.SSNAPPY)

    def test_unregistered_method_raises(self):
        with pytest.raises(UnknownFormatError, match="not registered"):
            normalize("anything", "kegg_spia")

    def test_method_missing_from_table_raises(self):
        table = RuleTable([DEFAULT_RULES[MethodName.GSEA]])
        with pytest.raises(UnknownFormatError, match="no normalization rule"):
            normalize("Cell Cycle", MethodName.SPIA, rules=table)

    def test_deterministic(self):
        first = normalize("reactome.Signaling by WNT", MethodName.FRY)
        second = normalize("reactome.Signaling by WNT", MethodName.FRY)
        assert first == second == "Signaling by WNT"


class TestRoundTrip:
    """normalize(decorate(x)) recovers x exactly."""

    @pytest.mark.parametrize("method", list(MethodName))
    @pytest.mark.parametrize("raw", [
        "Cell Cycle", "TP53 Regulates Transcription", "A.B_C-(1)",
        " Cell Cycle", "Cell\nCycle",
    ])
    def test_round_trip(self, method, raw):
        assert normalize(decorate(raw, method), method) == raw

    def test_spia_leading_space_kept(self):
        assert normalize(" Cell Cycle", MethodName.SPIA) == " Cell Cycle"

    def test_configured_pattern_spans_newlines(self):
        rule = NormalizationRule(
            method=MethodName.GSEA, patterns=(r"KEGG_(?P<id>.+)",), template="KEGG_{id}",
        )
        assert rule.strip("KEGG_Cell\nCycle") == "Cell\nCycle"


class TestRuleTable:
    """Tests for the immutable rule registry."""

    def test_with_rule_leaves_original_untouched(self):
        kegg = NormalizationRule(
            method=MethodName.GSEA,
            patterns=(r"KEGG_(?P<id>.+)",),
            template="KEGG_{id}",
        )
        table = DEFAULT_RULES.with_rule(kegg)

        assert normalize("KEGG_APOPTOSIS", MethodName.GSEA, rules=table) == "APOPTOSIS"
        with pytest.raises(UnknownFormatError):
            normalize("KEGG_APOPTOSIS", MethodName.GSEA)

    def test_first_matching_pattern_wins(self):
        rule = NormalizationRule(
            method=MethodName.GSEA,
            patterns=(r"REACTOME_(?P<id>.+)", r"(?P<id>.+)_PATHWAY"),
        )
        assert rule.strip("REACTOME_X_PATHWAY") == "X_PATHWAY"
        assert rule.strip("Y_PATHWAY") == "Y"

    def test_pattern_without_id_group_rejected(self):
        with pytest.raises(ValueError, match="named group 'id'"):
            NormalizationRule(method=MethodName.FRY, patterns=(r"reactome\.(.+)",))

    def test_invalid_regex_rejected(self):
        with pytest.raises(ValueError, match="Invalid pattern"):
            NormalizationRule(method=MethodName.FRY, patterns=(r"(?P<id>[",))

    def test_template_without_id_rejected(self):
        with pytest.raises(ValueError, match="template"):
            NormalizationRule(method=MethodName.FRY, patterns=(r"(?P<id>.+)",), template="x")

    def test_from_config(self):
        table = RuleTable.from_config({
            "spia": {"patterns": r"path:(?P<id>.+)", "template": "path:{id}"},
        })
        assert normalize("path:Cell Cycle", "spia", rules=table) == "Cell Cycle"
        # Other methods keep their defaults
        assert normalize("REACTOME_X", "gsea", rules=table) == "X"

    def test_from_config_requires_patterns(self):
        with pytest.raises(ValueError, match="no patterns"):
            RuleTable.from_config({"spia": {"template": "{id}"}})


class TestJoinKey:
    """Tests for the case/punctuation fold."""

    def test_msigdb_and_display_names_join(self):
        assert join_key("CELL_CYCLE") == join_key("Cell Cycle") == "CELL_CYCLE"

    def test_punctuation_runs_collapse(self):
        assert join_key("Signaling by NOTCH1 (in cancer)") == "SIGNALING_BY_NOTCH1_IN_CANCER"

    def test_leading_trailing_trimmed(self):
        assert join_key("  -Apoptosis- ") == "APOPTOSIS"


class TestNormalizeResults:
    """Tests for normalize_results()."""

    def test_returns_new_records_with_raw_kept(self):
        original = [make_result("reactome.Cell Cycle", MethodName.FRY)]
        out = normalize_results(original)

        assert out[0].pathway_id == "Cell Cycle"
        assert out[0].raw_pathway_id == "reactome.Cell Cycle"
        assert original[0].pathway_id == "reactome.Cell Cycle"

    def test_fold(self):
        out = normalize_results(
            [make_result("REACTOME_CELL_CYCLE", MethodName.GSEA)], fold=True
        )
        assert out[0].pathway_id == "CELL_CYCLE"

    def test_collision_after_fold_raises(self):
        results = [
            make_result("reactome.Cell Cycle", MethodName.FRY),
            make_result("reactome.Cell-Cycle", MethodName.FRY),
        ]
        normalize_results(results)  # distinct without folding
        with pytest.raises(ValueError, match="both normalize"):
            normalize_results(results, fold=True)

    def test_empty(self):
        assert normalize_results([]) == []

    def test_mixed_methods_rejected(self):
        results = [
            make_result("reactome.A", MethodName.FRY),
            make_result("reactome.B", MethodName.SSNAPPY),
        ]
        with pytest.raises(ValueError, match="mix"):
            normalize_results(results)

    def test_unknown_format_propagates(self):
        with pytest.raises(UnknownFormatError):
            normalize_results([make_result("Cell Cycle", MethodName.FRY)])
