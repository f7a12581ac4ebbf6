"""PNG preview of a layout for visual QA."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .layout import LayoutResult

_REGION_FILL = "#dfe8f1"
_REGION_EDGE = "#ffffff"
_LABEL_COLOR = "#1f2d3d"


def render_preview_png(result: LayoutResult, output_path: Path, *, dpi: int = 100) -> Path:
    """Draw region fills and labels in canvas coordinates (y axis pointing down)."""
    plt = _require_matplotlib()
    width = result.canvas.width
    height = result.canvas.height
    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
    fig.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
    try:
        ax.set_xlim(0, width)
        ax.set_ylim(height, 0)
        ax.set_aspect("equal", adjustable="box")
        ax.axis("off")
        for region in result.regions:
            for polygon in region.polygons:
                for idx, ring in enumerate(polygon):
                    if len(ring) < 3:
                        continue
                    xs = [point[0] for point in ring]
                    ys = [point[1] for point in ring]
                    # Holes are painted with the background.
                    ax.fill(
                        xs,
                        ys,
                        facecolor=_REGION_FILL if idx == 0 else "white",
                        edgecolor=_REGION_EDGE,
                        linewidth=0.6,
                        zorder=2 if idx == 0 else 3,
                    )
        for label in result.labels:
            ax.text(
                label.x,
                label.y,
                label.text,
                color=_LABEL_COLOR,
                # Canvas units are pixels; matplotlib sizes are points.
                fontsize=label.font_size * 72.0 / dpi,
                ha="center",
                va="baseline",
                zorder=5,
            )
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, format="png")
        return output_path
    finally:
        plt.close(fig)


def _require_matplotlib() -> Any:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for PNG previews") from exc
    return plt
