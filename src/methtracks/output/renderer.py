"""Multi-track genome browser figure rendering."""

import logging
from pathlib import Path

import matplotlib
import polars as pl

# Use Agg backend (non-interactive, safe for headless/CLI use)
matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.patches import Rectangle  # noqa: E402
from matplotlib.ticker import FuncFormatter, MaxNLocator  # noqa: E402

from methtracks.config.schema import DisplayConfig  # noqa: E402
from methtracks.measurements.mapper import summarize_by_probe  # noqa: E402
from methtracks.output.writers import output_basename  # noqa: E402
from methtracks.tracks.models import GenomicWindow, Track  # noqa: E402

logger = logging.getLogger(__name__)

# Giemsa stain colours for ideogram bands
STAIN_COLORS = {
    "gneg": "#ffffff",
    "gpos25": "#c8c8c8",
    "gpos33": "#b4b4b4",
    "gpos50": "#8c8c8c",
    "gpos66": "#6e6e6e",
    "gpos75": "#505050",
    "gpos100": "#000000",
    "gvar": "#dcdcdc",
    "stalk": "#708090",
    "acen": "#b22222",
}

UNSELECTED_PROBE_COLOR = "#bbbbbb"


def pack_rows(starts: list[int], ends: list[int], min_gap: float = 0.0) -> list[int]:
    """Assign intervals to rows so that no two in a row overlap.

    Greedy first-fit in order of start coordinate; ``min_gap`` keeps
    neighbouring features (and their labels) apart.

    Returns:
        Row index per interval, in input order
    """
    order = sorted(range(len(starts)), key=lambda i: (starts[i], ends[i]))
    row_ends: list[float] = []
    rows = [0] * len(starts)
    for i in order:
        for row, last_end in enumerate(row_ends):
            if starts[i] > last_end + min_gap:
                rows[i] = row
                row_ends[row] = ends[i]
                break
        else:
            rows[i] = len(row_ends)
            row_ends.append(ends[i])
    return rows


def _stack(features: pl.DataFrame, stacking: str, window: GenomicWindow) -> list[int]:
    if stacking == "dense" or features.height == 0:
        return [0] * features.height
    gap = window.width * (0.12 if stacking == "full" else 0.005)
    return pack_rows(features["start"].to_list(), features["end"].to_list(), gap)


def format_position(x: float, _pos=None) -> str:
    """Tick label for a genomic coordinate."""
    if abs(x) >= 1_000_000:
        return f"{x / 1_000_000:.3f} Mb"
    if abs(x) >= 1_000:
        return f"{x / 1_000:.1f} kb"
    return f"{x:.0f}"


def _empty(ax, message: str) -> None:
    ax.text(0.5, 0.5, message, transform=ax.transAxes, ha="center",
            va="center", fontsize=8, color="gray", style="italic")


def _draw_ideogram(ax, track: Track, window: GenomicWindow, display: DisplayConfig) -> None:
    bands = track.features
    if bands.height == 0:
        _empty(ax, f"no cytobands for {window.chromosome}")
        return

    chrom_end = int(bands["end"].max())
    for band in bands.iter_rows(named=True):
        color = STAIN_COLORS.get(band.get("stain") or "gneg", "#ffffff")
        ax.add_patch(Rectangle(
            (band["start"], 0.25), band["end"] - band["start"], 0.5,
            facecolor=color, edgecolor="none",
        ))
    ax.add_patch(Rectangle(
        (0, 0.25), chrom_end, 0.5, facecolor="none", edgecolor="black", linewidth=0.6,
    ))
    # Current window
    marker_width = max(window.width, chrom_end * 0.004)
    ax.add_patch(Rectangle(
        (window.start, 0.1), marker_width, 0.8,
        facecolor="none", edgecolor=track.style.fill, linewidth=1.5,
    ))
    ax.set_xlim(0, chrom_end)
    if display.reverse_strand:
        ax.invert_xaxis()


def _draw_axis(ax, track: Track, window: GenomicWindow, display: DisplayConfig) -> None:
    ax.axhline(0.5, color=track.style.fill, linewidth=1.0)
    ax.tick_params(axis="x", which="both", bottom=True, labelbottom=True,
                   labelsize=8, colors=track.style.fill)
    ax.xaxis.set_major_locator(MaxNLocator(nbins=6))
    ax.xaxis.set_major_formatter(FuncFormatter(format_position))
    ax.spines["bottom"].set_visible(False)


def _draw_gene_models(ax, track: Track, window: GenomicWindow, display: DisplayConfig) -> None:
    models = track.in_window(window)
    if models.height == 0:
        _empty(ax, "no transcripts in window")
        return

    rows = _stack(models, track.style.stacking, window)
    n_rows = max(rows) + 1
    fill = track.style.fill
    arrow_step = window.width / 25

    for row, model in zip(rows, models.iter_rows(named=True)):
        y = n_rows - row - 0.5
        tx_start, tx_end = model["tx_start"], model["tx_end"]
        cds_start, cds_end = model["cds_start"], model["cds_end"]

        ax.hlines(y, tx_start, tx_end, colors=fill, linewidth=0.8)

        # Strand chevrons along the intron line
        marker = ">" if model["strand"] == "+" else "<"
        if display.reverse_strand:
            marker = "<" if marker == ">" else ">"
        n_arrows = int((tx_end - tx_start) // arrow_step)
        if n_arrows > 0:
            xs = [tx_start + arrow_step * (i + 0.5) for i in range(n_arrows)]
            ax.plot(xs, [y] * len(xs), linestyle="none", marker=marker,
                    markersize=3, color=fill)

        for exon_start, exon_end in zip(model["exon_starts"], model["exon_ends"]):
            # UTR part thin, coding part thick
            ax.add_patch(Rectangle((exon_start, y - 0.15), exon_end - exon_start, 0.3,
                                   facecolor=fill, edgecolor=fill, linewidth=0.3))
            coding_start = max(exon_start, cds_start)
            coding_end = min(exon_end, cds_end)
            if coding_start < coding_end:
                ax.add_patch(Rectangle((coding_start, y - 0.3), coding_end - coding_start, 0.6,
                                       facecolor=fill, edgecolor=fill, linewidth=0.3))

        if track.style.stacking == "full":
            label_x = min(max(tx_start, window.start), window.end)
            ax.text(label_x, y + 0.45, f"{model['gene_symbol']} ({model['transcript']})",
                    fontsize=6, ha="left", va="bottom", clip_on=True)

    ax.set_ylim(0, n_rows + 0.2)


def _draw_intervals(ax, track: Track, window: GenomicWindow, display: DisplayConfig) -> None:
    features = track.in_window(window)
    if features.height == 0:
        _empty(ax, f"no {track.name.lower()} in window")
        return

    rows = _stack(features, track.style.stacking, window)
    n_rows = max(rows) + 1
    min_width = window.width * 0.002

    for row, feature in zip(rows, features.iter_rows(named=True)):
        y = n_rows - row - 0.5
        width = max(feature["end"] - feature["start"], min_width)
        ax.add_patch(Rectangle((feature["start"], y - 0.35), width, 0.7,
                               facecolor=track.style.fill, edgecolor="none"))
        if track.style.stacking == "full" and feature.get("name"):
            ax.text(feature["start"], y + 0.4, feature["name"], fontsize=6,
                    ha="left", va="bottom", clip_on=True)

    ax.set_ylim(0, n_rows)


def _draw_probes(ax, track: Track, window: GenomicWindow, display: DisplayConfig) -> None:
    probes = track.in_window(window)
    if probes.height == 0:
        _empty(ax, "no array probes in window")
        return

    if "selected" in probes.columns:
        colors = [track.style.fill if s else UNSELECTED_PROBE_COLOR
                  for s in probes["selected"].to_list()]
    else:
        colors = track.style.fill
    ax.vlines(probes["start"].to_list(), 0.15, 0.85, colors=colors, linewidth=1.0)


def _draw_methylation(ax, track: Track, window: GenomicWindow, display: DisplayConfig) -> None:
    ax.set_ylim(0, 1.05)
    ax.set_yticks([0.0, 0.5, 1.0])
    ax.tick_params(axis="y", labelsize=7, left=True, labelleft=True)

    values = track.in_window(window)
    if values.height == 0:
        _empty(ax, "no measurements in window")
        return

    means = summarize_by_probe(values)
    bar_width = max(window.width / 300, 1)
    ax.bar(means["position"].to_list(), means["mean_beta"].to_list(), width=bar_width,
           color=track.style.fill, alpha=0.7, align="center")
    ax.scatter(values["start"].to_list(), values["beta"].to_list(), s=5,
               color="#333333", alpha=0.5, linewidths=0, zorder=3)


DRAWERS = {
    "ideogram": _draw_ideogram,
    "axis": _draw_axis,
    "gene_model": _draw_gene_models,
    "cpg_islands": _draw_intervals,
    "snps": _draw_intervals,
    "probes": _draw_probes,
    "methylation": _draw_methylation,
}


def render_tracks(
    tracks: list[Track],
    window: GenomicWindow,
    output_path: Path,
    display: DisplayConfig | None = None,
    title: str | None = None,
) -> Path:
    """
    Draw tracks top to bottom over a shared genomic window and save a PNG.

    Args:
        tracks: Tracks in display order
        window: Genomic range shown by every track except the ideogram,
            which always spans its whole chromosome
        output_path: Where the figure is written
        display: Background colours, strand orientation, size and DPI
        title: Optional figure title

    Returns:
        Path to the saved figure

    Raises:
        ValueError: If tracks is empty
    """
    if not tracks:
        raise ValueError("No tracks to render")
    display = display or DisplayConfig()

    heights = [t.style.height for t in tracks]
    fig, axes = plt.subplots(
        len(tracks), 1,
        figsize=(display.width, 0.9 * sum(heights) + 0.8),
        gridspec_kw={"height_ratios": heights, "hspace": 0.12},
        squeeze=False,
    )

    try:
        for ax, track in zip(axes[:, 0], tracks):
            ax.set_facecolor(display.background_panel)
            for side in ("top", "right", "left"):
                ax.spines[side].set_visible(False)
            ax.set_yticks([])
            ax.tick_params(axis="x", bottom=False, labelbottom=False)
            ax.set_ylim(0, 1)

            if track.kind != "ideogram":
                if display.reverse_strand:
                    ax.set_xlim(window.end, window.start)
                else:
                    ax.set_xlim(window.start, window.end)

            DRAWERS[track.kind](ax, track, window, display)

            ax.text(-0.01, 0.5, track.name, transform=ax.transAxes, ha="right",
                    va="center", fontsize=8, color="white",
                    bbox={"facecolor": display.background_title, "edgecolor": "none",
                          "boxstyle": "round,pad=0.3"})

        if title:
            fig.suptitle(title, fontsize=10)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=display.dpi, bbox_inches="tight")
    finally:
        # Close figure to prevent memory leak, also on drawing errors
        plt.close(fig)

    logger.info(f"Saved {len(tracks)}-track figure for {window} to {output_path}")
    return output_path


def render_gene_views(
    result: "GeneViewResult",
    output_dir: Path,
    display: DisplayConfig | None = None,
) -> dict[str, Path]:
    """
    Render the full gene window and the promoter close-up.

    Args:
        result: Output of run_gene_view or load_snapshot
        output_dir: Directory for the PNG files
        display: Display options

    Returns:
        {"window": path, "promoter": path}
    """
    output_dir = Path(output_dir)
    base = output_basename(result.gene, result.genome)

    views = {
        "window": (result.window, f"{result.gene} ({result.genome}) {result.window}"),
        "promoter": (result.promoter, f"{result.gene} promoter ({result.genome}) {result.promoter}"),
    }
    paths = {}
    for name, (window, title) in views.items():
        paths[name] = render_tracks(
            result.tracks,
            window,
            output_dir / f"{base}_{name}.png",
            display=display,
            title=title,
        )
    return paths
