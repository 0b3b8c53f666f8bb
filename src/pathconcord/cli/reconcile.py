"""
CLI for cross-method pathway result reconciliation.

Loads pathway-level result tables from the external engines, thresholds
them at one FDR cutoff, and writes overlap and directional-concordance
reports:

- GSEA:    fgsea output (pathway, NES, padj)
- fry:     limma::fry output (row names, Direction, FDR)
- SPIA:    SPIA output (Name, tA, pGFdr, Status)
- sSNAPPY: group-level test of perturbation scores (gs_name, logFC, adj.P.Val)

Usage:
    pathconcord reconcile \
        --gsea results/fgsea.tsv \
        --fry results/fry.tsv \
        --spia results/spia.tsv \
        --ssnappy results/ssnappy_group.tsv \
        --de results/de_genes.tsv \
        --output results/reconciliation \
        --fdr 0.05 --plots
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

from pathconcord.cli.config import (
    build_formats,
    build_reconcile_config,
    load_config,
    merge_config_with_args,
)
from pathconcord.io.loaders import load_de_table, load_method_results
from pathconcord.io.writers import write_report
from pathconcord.reconcile.pipeline import CONCORDANCE_DENOMINATORS, reconcile
from pathconcord.reconcile.types import MethodName, ReconciliationError

logger = logging.getLogger(__name__)


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Add the reconcile subcommand to the parser."""
    parser = subparsers.add_parser(
        "reconcile",
        help="Threshold, overlap and compare pathway results across methods",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Input tables
    for method in MethodName:
        parser.add_argument(
            f"--{method.value}",
            type=Path,
            default=None,
            help=f"{method.name} pathway result table (CSV or TSV)",
        )
    parser.add_argument(
        "--de",
        type=Path,
        default=None,
        help="Gene-level DE table (gene_id, logFC, PValue, FDR, DE); summarized only",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output directory for reports",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="YAML/JSON config file (explicit CLI arguments take precedence)",
    )

    # Reconciliation parameters
    parser.add_argument(
        "--fdr",
        type=float,
        default=0.05,
        help="Strict FDR cutoff applied to every method (default: 0.05)",
    )
    parser.add_argument(
        "--reference",
        type=str,
        choices=[m.value for m in MethodName],
        default=MethodName.SSNAPPY.value,
        help="Method used to flag the per-method tables (default: ssnappy)",
    )
    parser.add_argument(
        "--fold-identifiers",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Join pathways case/punctuation-insensitively "
             "(REACTOME_CELL_CYCLE matches 'reactome.Cell Cycle'). "
             "--no-fold-identifiers compares normalized ids verbatim",
    )
    parser.add_argument(
        "--concordance-denominator",
        type=str,
        choices=list(CONCORDANCE_DENOMINATORS),
        default=None,
        help="Report a direction agreement rate over comparable pathways or "
             "all shared pathways (default: counts only)",
    )
    parser.add_argument(
        "--plots",
        action="store_true",
        help="Also write UpSet and Jaccard heatmap figures (PDF)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging",
    )

    parser.set_defaults(func=run_reconcile)


def run_reconcile(args: argparse.Namespace) -> int:
    """Execute the reconciliation."""
    logging.basicConfig(
        level=logging.DEBUG if getattr(args, "verbose", False) else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    config: dict = {}
    if args.config is not None:
        try:
            config = load_config(args.config)
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Config error: {e}")
            return 1
        args = merge_config_with_args(config, args, getattr(args, "_raw_args", None))

    print("=" * 70)
    print("  Cross-Method Pathway Reconciliation")
    print("=" * 70)
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print()

    if args.output is None:
        logger.error("--output is required (on the command line or in the config)")
        return 1

    inputs = {
        method: getattr(args, method.value)
        for method in MethodName
        if getattr(args, method.value, None) is not None
    }
    if len(inputs) < 2:
        logger.error(
            f"At least two method tables are required, got {len(inputs)}: "
            f"{[m.value for m in inputs]}"
        )
        return 1

    try:
        formats = build_formats(config)
        run_config = build_reconcile_config(args, config)

        results_by_method = {}
        for method, path in inputs.items():
            print(f"Loading {method.name}: {path}")
            results_by_method[method] = load_method_results(path, formats[method])
            print(f"  {len(results_by_method[method])} pathways")

        extra: dict = {"inputs": {m.value: str(p) for m, p in inputs.items()}}
        if args.de is not None:
            print(f"Loading DE table: {args.de}")
            de = load_de_table(args.de)
            n_de = int(de["DE"].sum())
            print(f"  {n_de}/{len(de)} genes flagged DE")
            extra["de_genes"] = {"n_genes": len(de), "n_de": n_de}
            extra["inputs"]["de"] = str(args.de)

        print(f"\nSettings:")
        print(f"  FDR cutoff: {run_config.fdr_cutoff}")
        print(f"  Reference: {run_config.reference_method.value}")
        print(f"  Fold identifiers: {run_config.fold_identifiers}")
        print(f"  Concordance denominator: {run_config.concordance_denominator or 'counts only'}")
        print()

        report = reconcile(results_by_method, run_config)
    except (ReconciliationError, ValueError, FileNotFoundError) as e:
        logger.error(f"Reconciliation failed: {e}")
        return 1

    print(report.summary())
    print()

    try:
        written = write_report(report, args.output, extra=extra)

        if args.plots:
            from pathconcord.viz.overlap import plot_jaccard_heatmap, plot_upset, save_figure
            from pathconcord.viz.styles import configure_style

            palette = configure_style("paper")
            written.append(save_figure(
                plot_upset(report.overlap_report, palette=palette),
                args.output / "upset.pdf",
            ))
            written.append(save_figure(
                plot_jaccard_heatmap(report.significant_sets, palette=palette),
                args.output / "jaccard.pdf",
            ))
    except OSError as e:
        logger.error(f"Failed to write outputs to {args.output}: {e}")
        return 1

    print("Outputs:")
    for path in written:
        print(f"  {path}")
    print(f"\nFinished: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    return 0
