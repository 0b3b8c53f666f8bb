"""Tests for result-table loaders and report writers."""

import json
import math

import numpy as np
import pandas as pd
import pytest

from conftest import make_result
from pathconcord.io.formats import PRESETS, ResultFormat, sniff_delimiter
from pathconcord.io.loaders import load_de_table, load_method_results, results_from_frame
from pathconcord.io.writers import write_flagged_table, write_report, write_run_summary
from pathconcord.reconcile import ReconcileConfig, reconcile
from pathconcord.reconcile.types import Direction, MethodName


class TestLoadMethodResults:
    """Engine presets load the native column layouts."""

    def test_fgsea(self, engine_tables):
        results = load_method_results(engine_tables["gsea"], "fgsea")
        by_id = {r.pathway_id: r for r in results}

        assert len(results) == 6
        cc = by_id["REACTOME_CELL_CYCLE"]
        assert cc.method is MethodName.GSEA
        assert cc.primary_statistic == pytest.approx(2.1)
        assert cc.significance_value == pytest.approx(0.001)
        assert cc.direction is Direction.ACTIVATED
        assert by_id["REACTOME_INTERFERON_SIGNALING"].direction is Direction.INHIBITED

    def test_fry_row_names_and_direction_labels(self, engine_tables):
        results = load_method_results(engine_tables["fry"], PRESETS["fry"])
        by_id = {r.pathway_id: r for r in results}

        assert "reactome.Cell Cycle" in by_id
        assert math.isnan(by_id["reactome.Cell Cycle"].primary_statistic)
        assert by_id["reactome.Cell Cycle"].direction is Direction.ACTIVATED
        assert by_id["reactome.Mitotic Prophase"].direction is Direction.INHIBITED

    def test_fry_write_table_row_names(self, tmp_path):
        """write.table omits the row-name header, so pandas reads it as the index."""
        path = tmp_path / "fry.tsv"
        path.write_text(
            "NGenes\tDirection\tPValue\tFDR\n"
            "reactome.Cell Cycle\t40\tUp\t0.001\t0.002\n"
            "reactome.Apoptosis\t12\tDown\t0.3\t0.6\n"
        )
        results = load_method_results(path, "fry")
        assert [r.pathway_id for r in results] == ["reactome.Cell Cycle", "reactome.Apoptosis"]
        assert results[1].direction is Direction.INHIBITED

    def test_spia_status(self, engine_tables):
        results = load_method_results(engine_tables["spia"], "spia")
        by_id = {r.pathway_id: r for r in results}

        assert len(results) == 5
        assert "Interferon Signaling" not in by_id
        assert by_id["DNA Repair"].direction is Direction.INHIBITED
        assert by_id["DNA Repair"].primary_statistic == pytest.approx(-0.9)

    def test_ssnappy(self, engine_tables):
        results = load_method_results(engine_tables["ssnappy"], "ssnappy")
        by_id = {r.pathway_id: r for r in results}
        assert by_id["reactome.Apoptosis"].significance_value == pytest.approx(0.001)
        assert by_id["reactome.Apoptosis"].direction is Direction.INHIBITED

    def test_missing_significance_dropped(self, tmp_path):
        path = tmp_path / "fgsea.csv"
        pd.DataFrame({
            "pathway": ["REACTOME_A", "REACTOME_B", "REACTOME_C"],
            "NES": [1.2, -0.4, 0.8],
            "padj": [0.01, np.nan, 0.3],
        }).to_csv(path, index=False)

        results = load_method_results(path, "fgsea")
        assert [r.pathway_id for r in results] == ["REACTOME_A", "REACTOME_C"]

    def test_non_numeric_significance_raises(self, tmp_path):
        """A censored value such as "<1e-5" is not a missing value."""
        path = tmp_path / "fgsea.tsv"
        path.write_text(
            "pathway\tNES\tpadj\n"
            "REACTOME_A\t1.2\t0.01\n"
            "REACTOME_B\t2.4\t<1e-5\n"
            "REACTOME_C\t0.8\tNA\n"
        )
        with pytest.raises(ValueError, match="non-numeric padj") as excinfo:
            load_method_results(path, "fgsea")
        assert "REACTOME_B='<1e-5'" in str(excinfo.value)

    def test_only_missing_significance_dropped(self):
        df = pd.DataFrame({
            "pathway": ["REACTOME_A", "REACTOME_B", "REACTOME_C"],
            "NES": [1.2, -0.4, 0.8],
            "padj": ["0.01", None, "1e-06"],
        })
        results = results_from_frame(df, PRESETS["fgsea"])
        assert [r.pathway_id for r in results] == ["REACTOME_A", "REACTOME_C"]
        assert results[1].significance_value == pytest.approx(1e-6)

    def test_non_numeric_statistic_raises(self):
        df = pd.DataFrame({"pathway": ["REACTOME_A"], "NES": ["high"], "padj": [0.01]})
        with pytest.raises(ValueError, match="non-numeric NES"):
            results_from_frame(df, PRESETS["fgsea"])

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "spia.tsv"
        pd.DataFrame({"Name": ["A"], "tA": [1.0]}).to_csv(path, sep="\t", index=False)
        with pytest.raises(ValueError, match="pGFdr"):
            load_method_results(path, "spia")

    def test_duplicate_ids(self, tmp_path):
        path = tmp_path / "fgsea.tsv"
        pd.DataFrame({
            "pathway": ["REACTOME_A", "REACTOME_A"],
            "NES": [1.0, 2.0],
            "padj": [0.01, 0.02],
        }).to_csv(path, sep="\t", index=False)
        with pytest.raises(ValueError, match="duplicate"):
            load_method_results(path, "fgsea")

    def test_out_of_range_significance(self):
        df = pd.DataFrame({"pathway": ["REACTOME_A"], "NES": [1.0], "padj": [1.5]})
        with pytest.raises(ValueError, match=r"\[0, 1\]"):
            results_from_frame(df, PRESETS["fgsea"])

    def test_unknown_preset(self, engine_tables):
        with pytest.raises(ValueError, match="Unknown result format"):
            load_method_results(engine_tables["gsea"], "gage")

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_method_results(tmp_path / "missing.tsv", "fgsea")

    def test_empty_table(self, tmp_path):
        path = tmp_path / "empty.tsv"
        path.write_text("pathway\tNES\tpadj\n")
        with pytest.raises(ValueError, match="no rows"):
            load_method_results(path, "fgsea")

    def test_overrides(self, tmp_path):
        path = tmp_path / "gsea.csv"
        pd.DataFrame({
            "term": ["REACTOME_A"], "NES": [-1.0], "FDR": [0.02],
        }).to_csv(path, index=False)
        fmt = PRESETS["fgsea"].with_overrides(id_col="term", significance_col="FDR")
        results = load_method_results(path, fmt)
        assert results[0].pathway_id == "REACTOME_A"
        assert results[0].direction is Direction.INHIBITED

    def test_unknown_override_field(self):
        with pytest.raises(ValueError, match="Unknown ResultFormat field"):
            PRESETS["fgsea"].with_overrides(method=MethodName.FRY)


class TestSniffDelimiter:
    def test_tab_and_comma(self, engine_tables):
        assert sniff_delimiter(engine_tables["gsea"]) == "\t"
        assert sniff_delimiter(engine_tables["de"]) == ","


class TestLoadDETable:
    def test_columns_and_flags(self, engine_tables):
        de = load_de_table(engine_tables["de"])
        assert list(de.columns) == ["gene_id", "logFC", "PValue", "FDR", "DE"]
        assert de["DE"].dtype == bool
        assert int(de["DE"].sum()) == 3

    def test_string_flags(self, tmp_path):
        path = tmp_path / "de.tsv"
        pd.DataFrame({
            "gene": ["g1", "g2", "g3"],
            "logFC": [1.0, -1.0, 0.1],
            "PValue": [0.001, 0.002, 0.5],
            "FDR": [0.01, 0.02, 0.9],
            "DE": ["TRUE", "TRUE", "FALSE"],
        }).to_csv(path, sep="\t", index=False)
        de = load_de_table(path, columns={"gene_col": "gene"})
        assert de["DE"].tolist() == [True, True, False]
        assert de["gene_id"].tolist() == ["g1", "g2", "g3"]

    def test_missing_column(self, engine_tables):
        with pytest.raises(ValueError, match="missing DE column"):
            load_de_table(engine_tables["de"], columns={"de_col": "is_de"})

    def test_unknown_key(self, engine_tables):
        with pytest.raises(ValueError, match="Unknown DE column key"):
            load_de_table(engine_tables["de"], columns={"symbol": "gene"})


@pytest.fixture
def loaded_report(engine_tables):
    results = {
        MethodName.GSEA: load_method_results(engine_tables["gsea"], "fgsea"),
        MethodName.FRY: load_method_results(engine_tables["fry"], "fry"),
        MethodName.SPIA: load_method_results(engine_tables["spia"], "spia"),
        MethodName.SSNAPPY: load_method_results(engine_tables["ssnappy"], "ssnappy"),
    }
    return reconcile(results, ReconcileConfig(fold_identifiers=True))


class TestWriters:
    """Report artifacts written to disk."""

    def test_write_report_files(self, loaded_report, tmp_path):
        out = tmp_path / "out"
        written = write_report(loaded_report, out, extra={"inputs": {"gsea": "gsea.tsv"}})

        names = sorted(p.name for p in written)
        assert names == sorted([
            "gsea_vs_ssnappy.tsv", "fry_vs_ssnappy.tsv", "spia_vs_ssnappy.tsv",
            "overlap.tsv", "concordance.tsv", "pathways_wide.tsv", "summary.json",
        ])
        assert all(p.exists() for p in written)
        assert not list(out.glob("*.tmp"))

    def test_flagged_table_contents(self, loaded_report, tmp_path):
        path = write_flagged_table(loaded_report, MethodName.SPIA, tmp_path / "spia.tsv")
        df = pd.read_csv(path, sep="\t")
        assert list(df.columns) == ["pathway", "adj_p_value", "sig_in_ssnappy"]
        assert df["pathway"].tolist() == ["CELL_CYCLE", "DNA_REPAIR", "MITOTIC_PROPHASE"]
        assert df["sig_in_ssnappy"].tolist() == [True, True, False]

    def test_overlap_table(self, loaded_report, tmp_path):
        write_report(loaded_report, tmp_path)
        df = pd.read_csv(tmp_path / "overlap.tsv", sep="\t")
        assert df["n_pathways"].sum() == 6
        assert "gsea&fry&spia&ssnappy" in set(df["combination"])

    def test_summary_json(self, loaded_report, tmp_path):
        path = write_run_summary(loaded_report, tmp_path / "summary.json", extra={"note": "x"})
        payload = json.loads(path.read_text())
        assert payload["robust_hits"] == ["CELL_CYCLE"]
        assert payload["note"] == "x"
        assert payload["config"]["reference_method"] == "ssnappy"

    def test_nan_serialized_as_null(self, tmp_path):
        """Disjoint significant sets leave the agreement rate undefined."""
        results = {
            MethodName.GSEA: [make_result("REACTOME_A", MethodName.GSEA)],
            MethodName.SPIA: [make_result("B", MethodName.SPIA)],
        }
        report = reconcile(results, ReconcileConfig(concordance_denominator="comparable"))
        payload = json.loads(write_run_summary(report, tmp_path / "s.json").read_text())
        assert payload["concordance"][0]["agreement_rate"] is None

    def test_missing_reference_skips_flagged(self, engine_tables, tmp_path):
        results = {
            MethodName.GSEA: load_method_results(engine_tables["gsea"], "fgsea"),
            MethodName.SPIA: load_method_results(engine_tables["spia"], "spia"),
        }
        report = reconcile(results, ReconcileConfig(fold_identifiers=True))
        written = write_report(report, tmp_path / "out")
        assert not any("_vs_" in p.name for p in written)
        assert (tmp_path / "out" / "summary.json").exists()
