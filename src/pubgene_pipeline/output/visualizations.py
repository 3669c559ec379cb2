"""Frequency bar charts and enrichment dot plot."""

import logging
from pathlib import Path

import matplotlib
import polars as pl

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402

from pubgene_pipeline.aggregation.transform import COUNT_COLUMN, top_n  # noqa: E402
from pubgene_pipeline.mapping.models import RECORD_ID_COLUMN, SYMBOL_COLUMN  # noqa: E402

logger = logging.getLogger(__name__)


def _save(fig, output_path: Path, dpi: int) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=dpi, bbox_inches="tight")
    # Close figure to prevent memory leak across runs
    plt.close(fig)
    return output_path


def _draw_placeholder(ax, message: str) -> None:
    ax.text(0.5, 0.5, message, ha="center", va="center", transform=ax.transAxes)
    ax.set_xticks([])
    ax.set_yticks([])


def _plot_top_counts(
    counts: pl.DataFrame,
    key: str,
    n: int,
    output_path: Path,
    title: str,
    ylabel: str,
    palette: str,
    dpi: int,
) -> Path:
    ranked = top_n(counts, key, n) if counts.height else counts

    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(8, 0.5 * max(ranked.height, 4) + 1))

    if ranked.height == 0:
        _draw_placeholder(ax, "No matching records")
    else:
        # Largest count on top: seaborn draws the first category at the top
        labels = ranked[key].reverse().to_list()
        values = ranked[COUNT_COLUMN].reverse().to_list()
        sns.barplot(
            x=values,
            y=labels,
            hue=labels,
            palette=palette,
            orient="h",
            ax=ax,
            legend=False,
        )
        ax.set_xlabel("Count")

    ax.set_ylabel(ylabel)
    ax.set_title(title)

    return _save(fig, output_path, dpi)


def plot_symbol_counts(
    symbol_counts: pl.DataFrame,
    output_path: Path,
    n: int = 9,
    dpi: int = 300,
) -> Path:
    """
    Bar chart of the n most frequently mentioned gene symbols.

    Args:
        symbol_counts: DataFrame with symbol and count columns
        output_path: Path where PNG will be saved
        n: Number of symbols shown
        dpi: Figure resolution

    Returns:
        Path to the saved PNG file
    """
    path = _plot_top_counts(
        symbol_counts,
        SYMBOL_COLUMN,
        n,
        output_path,
        title=f"Top {n} Genes by Article Count",
        ylabel="Gene",
        palette="viridis",
        dpi=dpi,
    )
    logger.info(f"Saved gene frequency plot to {path}")
    return path


def plot_record_counts(
    record_counts: pl.DataFrame,
    output_path: Path,
    n: int = 9,
    dpi: int = 300,
) -> Path:
    """
    Bar chart of the n articles mentioning the most genes.

    Args:
        record_counts: DataFrame with record_id and count columns
        output_path: Path where PNG will be saved
        n: Number of articles shown
        dpi: Figure resolution

    Returns:
        Path to the saved PNG file
    """
    path = _plot_top_counts(
        record_counts,
        RECORD_ID_COLUMN,
        n,
        output_path,
        title=f"Top {n} Articles by Gene Count",
        ylabel="PubMed ID",
        palette="mako",
        dpi=dpi,
    )
    logger.info(f"Saved article frequency plot to {path}")
    return path


def plot_enrichment_dotplot(
    enrichment: pl.DataFrame,
    output_path: Path,
    show: int = 10,
    dpi: int = 300,
) -> Path:
    """
    Dot plot of the most significant enriched terms.

    Args:
        enrichment: DataFrame in ENRICHMENT_SCHEMA
        output_path: Path where PNG will be saved
        show: Number of terms drawn
        dpi: Figure resolution

    Returns:
        Path to the saved PNG file

    Notes:
        - x = gene ratio, y = term, size = gene count, colour = adjusted p-value
        - Terms sorted so the highest gene ratio is on top
    """
    terms = enrichment.sort("p_value").head(show).sort("gene_ratio")

    sns.set_theme(style="whitegrid", context="paper")
    fig, ax = plt.subplots(figsize=(9, 0.45 * max(terms.height, 4) + 1.5))

    if terms.height == 0:
        _draw_placeholder(ax, "No enriched terms")
    else:
        labels = terms["term_name"].to_list()
        sizes = [40 + 25 * c for c in terms["gene_count"].to_list()]
        points = ax.scatter(
            terms["gene_ratio"].to_list(),
            range(terms.height),
            s=sizes,
            c=terms["p_value"].to_list(),
            cmap="RdBu",
            edgecolors="black",
            linewidths=0.5,
        )
        ax.set_yticks(range(terms.height))
        ax.set_yticklabels(labels)
        ax.set_xlabel("Gene Ratio")

        colorbar = fig.colorbar(points, ax=ax)
        colorbar.set_label("Adjusted p-value")

        handles, size_labels = points.legend_elements(
            prop="sizes",
            func=lambda s: (s - 40) / 25,
        )
        ax.legend(
            handles,
            size_labels,
            title="Count",
            loc="upper left",
            bbox_to_anchor=(1.25, 1.0),
            frameon=False,
        )

    ax.set_title("Term Enrichment")

    path = _save(fig, output_path, dpi)
    logger.info(f"Saved enrichment dot plot to {path}")
    return path


def generate_all_plots(
    symbol_counts: pl.DataFrame,
    record_counts: pl.DataFrame,
    enrichment: pl.DataFrame | None,
    output_dir: Path,
    n: int = 9,
    show_categories: int = 10,
    dpi: int = 300,
) -> dict[str, Path]:
    """
    Generate all report plots.

    Args:
        symbol_counts: Per-symbol counts
        record_counts: Per-record counts
        enrichment: Enrichment result, or None when enrichment was skipped
        output_dir: Directory where plots will be saved
        n: Entries per frequency chart
        show_categories: Terms in the dot plot
        dpi: Figure resolution

    Returns:
        Dictionary mapping plot name to file path

    Notes:
        - Each plot is wrapped in try/except so one failure doesn't stop the rest
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    plots = {}

    try:
        plots["gene_counts"] = plot_symbol_counts(
            symbol_counts, output_dir / "gene_counts.png", n=n, dpi=dpi
        )
    except Exception as e:
        logger.warning(f"Failed to create gene frequency plot: {e}")

    try:
        plots["article_counts"] = plot_record_counts(
            record_counts, output_dir / "article_counts.png", n=n, dpi=dpi
        )
    except Exception as e:
        logger.warning(f"Failed to create article frequency plot: {e}")

    if enrichment is not None:
        try:
            plots["enrichment"] = plot_enrichment_dotplot(
                enrichment,
                output_dir / "enrichment_dotplot.png",
                show=show_categories,
                dpi=dpi,
            )
        except Exception as e:
            logger.warning(f"Failed to create enrichment dot plot: {e}")

    logger.info(f"Generated {len(plots)} plots in {output_dir}")
    return plots
