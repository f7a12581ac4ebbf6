"""Map rendering pipeline: load geometry, lay out regions, write artifacts."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from .aggregate import aggregate_regions
from .config import AppConfig
from .contacts import load_contact_directory
from .export import write_layout_outputs
from .geometry import DegenerateGeometryError
from .io_geo import load_feature_collection
from .layout import build_layout
from .placement import LabelPlacer
from .util import format_code_list

_LOGGER = logging.getLogger("plzmap.render")


@dataclass(slots=True)
class RenderMapReport:
    output_dir: Path | None = None
    artifacts: dict[str, Path] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def run_render_map(cfg: AppConfig, *, preview_png: bool | None = None) -> RenderMapReport:
    """Build the region layout from the configured sources and write it out."""
    report = RenderMapReport(output_dir=cfg.paths.output_dir)
    t0 = time.perf_counter()

    try:
        features = load_feature_collection(
            cfg.paths.geojson_source,
            timeout_s=cfg.http.request_timeout_s,
            user_agent=cfg.http.user_agent,
        )
    except Exception as exc:
        report.add_error(f"Failed loading GeoJSON source '{cfg.paths.geojson_source}': {exc}")
        return report

    aggregation = aggregate_regions(features, cfg.aggregation)
    report.add_info(
        f"Aggregated {aggregation.features_total} features into {len(aggregation.regions)} regions"
    )
    if aggregation.skipped_total:
        report.add_warning(
            f"Skipped {aggregation.skipped_total} unmappable features "
            f"(identifier={aggregation.skipped_identifier}, geometry={aggregation.skipped_geometry})"
        )

    placer = LabelPlacer(cfg.canvas, tiers=cfg.labels.tiers, pattern=cfg.labels.radial)
    try:
        result = build_layout(aggregation.regions, cfg.canvas, placer)
    except DegenerateGeometryError as exc:
        report.add_error(f"Layout failed: {exc}")
        return report

    contacts = load_contact_directory(
        cfg.paths.contacts_json,
        required_roles=cfg.contacts.required_roles,
    )
    report.add_info(f"Contact directory entries: {len(contacts)}")

    write_png = cfg.output.write_png if preview_png is None else preview_png
    try:
        report.artifacts = write_layout_outputs(
            result,
            cfg.paths.output_dir,
            contacts=contacts,
            write_svg=cfg.output.write_svg,
            preview_png=write_png,
            png_dpi=cfg.output.png_dpi,
        )
    except (OSError, RuntimeError) as exc:
        report.add_error(f"Failed writing layout artifacts: {exc}")
        return report

    unplaced = list(result.unplaced_codes)
    tier_counts: dict[int, int] = {}
    for label in result.labels:
        tier_counts[label.tier_index] = tier_counts.get(label.tier_index, 0) + 1
    report.summary = {
        "features_total": aggregation.features_total,
        "features_skipped": aggregation.skipped_total,
        "regions": len(result.regions),
        "labels_placed": len(result.labels),
        "labels_unplaced": len(unplaced),
        **{f"labels_tier_{idx + 1}": count for idx, count in sorted(tier_counts.items())},
    }
    if unplaced:
        report.add_warning("Regions without label: " + format_code_list(unplaced))

    elapsed = time.perf_counter() - t0
    _LOGGER.info("[render] layout built in %.2fs", elapsed)
    report.add_info(
        "Render summary: "
        + ", ".join(f"{key}={value}" for key, value in report.summary.items())
    )
    for name, path in sorted(report.artifacts.items()):
        report.add_info(f"Wrote {name}: {path}")
    return report


def format_render_lines(report: RenderMapReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Map layout completed with no errors.")
    return lines
