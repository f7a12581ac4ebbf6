"""Validation layer for config and input datasets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from shapely.geometry import Polygon as ShapelyPolygon
from shapely.validation import explain_validity

from .aggregate import AggregationResult, aggregate_regions
from .config import AppConfig
from .contacts import ALL_CODES, ContactSourceError, read_contacts_csv
from .geometry import Polygon
from .io_geo import load_feature_collection
from .models import Region
from .projection import compute_bounds
from .util import format_code_list

_LOGGER = logging.getLogger("plzmap.validate")


@dataclass(slots=True)
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)


def polygon_problem(polygon: Polygon) -> str | None:
    """Describe why a polygon is not a valid simple area, or None if it is."""
    if not polygon:
        return "empty polygon"
    shell = polygon[0]
    if len(shell) < 3:
        return "outer ring has fewer than 3 points"
    holes = [ring for ring in polygon[1:] if len(ring) >= 3]
    if len(holes) != len(polygon) - 1:
        return "hole ring has fewer than 3 points"
    shape = ShapelyPolygon(shell, holes)
    if shape.is_valid:
        return None
    return explain_validity(shape)


def invalid_region_codes(regions: Sequence[Region]) -> list[str]:
    codes: list[str] = []
    for region in regions:
        for polygon in region.polygons:
            problem = polygon_problem(polygon)
            if problem is not None:
                _LOGGER.debug("Region %s has invalid polygon: %s", region.code, problem)
                codes.append(region.code)
                break
    return codes


class Validator:
    """Top-level input and schema validator."""

    def __init__(self, cfg: AppConfig) -> None:
        self.cfg = cfg

    def run(self) -> ValidationReport:
        report = ValidationReport()
        features = self._load_features(report)
        if features is not None:
            aggregation = self._validate_aggregation(report, features)
            if aggregation is not None:
                self._validate_geometry(report, aggregation.regions)
                self._validate_coverage(report, aggregation)
        self._validate_contacts(report)
        return report

    def _load_features(self, report: ValidationReport) -> list[Any] | None:
        source = self.cfg.paths.geojson_source
        local_path = self.cfg.paths.geojson_path
        if local_path is not None and not local_path.exists():
            report.add_error(f"Missing GeoJSON source: {local_path}")
            return None
        try:
            features = load_feature_collection(
                source,
                timeout_s=self.cfg.http.request_timeout_s,
                user_agent=self.cfg.http.user_agent,
            )
        except Exception as exc:
            report.add_error(f"Failed loading GeoJSON source '{source}': {exc}")
            return None
        report.add_info(f"Loaded {len(features)} features from {source}")
        return features

    def _validate_aggregation(
        self,
        report: ValidationReport,
        features: list[Any],
    ) -> AggregationResult | None:
        aggregation = aggregate_regions(features, self.cfg.aggregation)
        report.add_info(
            f"Aggregated {aggregation.features_total} features into {len(aggregation.regions)} regions"
        )
        if aggregation.skipped_identifier:
            report.add_warning(
                f"{aggregation.skipped_identifier} features skipped: identifier at "
                f"'{self.cfg.aggregation.identifier_property}' is not "
                f"{self.cfg.aggregation.identifier_digits} digits"
            )
        if aggregation.skipped_geometry:
            report.add_warning(
                f"{aggregation.skipped_geometry} features skipped: missing Polygon/MultiPolygon geometry"
            )
        if not aggregation.regions:
            report.add_error("No mappable regions found in GeoJSON source.")
            return None
        return aggregation

    def _validate_geometry(self, report: ValidationReport, regions: Sequence[Region]) -> None:
        try:
            compute_bounds(regions)
        except ValueError as exc:
            report.add_error(f"Geometry cannot be projected: {exc}")
            return
        invalid = invalid_region_codes(regions)
        if invalid:
            report.add_warning(
                "Regions with invalid polygons (labels may misplace): "
                + format_code_list(invalid)
            )
        without_hint = sorted(region.code for region in regions if region.center_count == 0)
        if without_hint:
            report.add_info(
                "Regions without centroid hints (ring mean used): " + format_code_list(without_hint)
            )

    def _validate_coverage(self, report: ValidationReport, aggregation: AggregationResult) -> None:
        if self.cfg.aggregation.code_length != 2:
            return
        missing = sorted(set(ALL_CODES) - set(aggregation.codes))
        if missing:
            report.add_info("Codes without geometry: " + format_code_list(missing))

    def _validate_contacts(self, report: ValidationReport) -> None:
        csv_path = self.cfg.paths.contacts_csv
        if not csv_path.exists():
            report.add_warning(
                f"Contact CSV not found: {csv_path}; placeholder contacts will be used."
            )
            return
        try:
            records = read_contacts_csv(csv_path, required_roles=self.cfg.contacts.required_roles)
        except ContactSourceError as exc:
            report.add_error(f"Contact CSV invalid: {exc}")
            return
        report.add_info(f"Loaded {len(records)} contact records from {csv_path}")


def format_report_lines(report: ValidationReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Validation completed with no errors.")
    return lines
