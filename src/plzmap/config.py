"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .models import DEFAULT_LABEL_TIERS, PlacementTier, RadialPattern


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _optional_mapping(value: Any, field_name: str) -> Mapping[str, Any] | None:
    if value is None:
        return None
    return _mapping(value, field_name)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _str_list(value: Any, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Expected list for '{field_name}'")
    out: list[str] = []
    for idx, item in enumerate(value):
        out.append(_str(item, f"{field_name}[{idx}]"))
    return tuple(out)


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


def is_remote_source(source: str) -> bool:
    return source.casefold().startswith(("http://", "https://"))


@dataclass(frozen=True, slots=True)
class PathsConfig:
    geojson_source: str
    contacts_csv: Path
    contacts_json: Path
    output_dir: Path
    logs_dir: Path

    @property
    def geojson_path(self) -> Path | None:
        if is_remote_source(self.geojson_source):
            return None
        return Path(self.geojson_source)

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_dir, self.logs_dir, self.contacts_json.parent)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        geojson_raw = _str(raw.get("geojson"), "paths.geojson")
        geojson_source = (
            geojson_raw
            if is_remote_source(geojson_raw)
            else str(_path_from_cfg(geojson_raw, "paths.geojson", root_dir))
        )
        return cls(
            geojson_source=geojson_source,
            contacts_csv=_path_from_cfg(raw.get("contacts_csv"), "paths.contacts_csv", root_dir),
            contacts_json=_path_from_cfg(raw.get("contacts_json"), "paths.contacts_json", root_dir),
            output_dir=_path_from_cfg(raw.get("output_dir"), "paths.output_dir", root_dir),
            logs_dir=_path_from_cfg(raw.get("logs_dir"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class CanvasConfig:
    width: float
    height: float
    padding: float

    @property
    def usable_width(self) -> float:
        return self.width - self.padding * 2

    @property
    def usable_height(self) -> float:
        return self.height - self.padding * 2

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2.0, self.height / 2.0)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> CanvasConfig:
        width = _float(raw.get("width"), "canvas.width")
        height = _float(raw.get("height"), "canvas.height")
        padding = _float(raw.get("padding"), "canvas.padding")
        if padding < 0:
            raise ValueError("canvas.padding must be >= 0")
        if width - padding * 2 <= 0 or height - padding * 2 <= 0:
            raise ValueError("canvas.padding leaves no drawable area")
        return cls(width=width, height=height, padding=padding)

    @classmethod
    def default(cls) -> CanvasConfig:
        return cls(width=860.0, height=900.0, padding=22.0)


@dataclass(frozen=True, slots=True)
class AggregationConfig:
    identifier_property: str
    center_lon_property: str
    center_lat_property: str
    identifier_digits: int
    code_length: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> AggregationConfig:
        digits = _int(raw.get("identifier_digits"), "aggregation.identifier_digits")
        code_length = _int(raw.get("code_length"), "aggregation.code_length")
        if digits < 1:
            raise ValueError("aggregation.identifier_digits must be >= 1")
        if code_length < 1 or code_length > digits:
            raise ValueError("aggregation.code_length must be between 1 and identifier_digits")
        return cls(
            identifier_property=_str(raw.get("identifier_property"), "aggregation.identifier_property"),
            center_lon_property=_str(raw.get("center_lon_property"), "aggregation.center_lon_property"),
            center_lat_property=_str(raw.get("center_lat_property"), "aggregation.center_lat_property"),
            identifier_digits=digits,
            code_length=code_length,
        )

    @classmethod
    def default(cls) -> AggregationConfig:
        return cls(
            identifier_property="destatis.zip",
            center_lon_property="destatis.center_lon",
            center_lat_property="destatis.center_lat",
            identifier_digits=5,
            code_length=2,
        )


@dataclass(frozen=True, slots=True)
class LabelsConfig:
    radial: RadialPattern
    tiers: tuple[PlacementTier, ...]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LabelsConfig:
        radial_raw = _optional_mapping(raw.get("radial"), "labels.radial")
        radial = (
            RadialPattern()
            if radial_raw is None
            else RadialPattern.from_mapping(radial_raw, "labels.radial")
        )
        tiers_raw = raw.get("tiers")
        if tiers_raw is None:
            return cls(radial=radial, tiers=DEFAULT_LABEL_TIERS)
        if not isinstance(tiers_raw, list) or not tiers_raw:
            raise ValueError("Expected non-empty list for 'labels.tiers'")
        tiers = tuple(
            PlacementTier.from_mapping(
                _mapping(item, f"labels.tiers[{idx}]"),
                f"labels.tiers[{idx}]",
            )
            for idx, item in enumerate(tiers_raw)
        )
        return cls(radial=radial, tiers=tiers)

    @classmethod
    def default(cls) -> LabelsConfig:
        return cls(radial=RadialPattern(), tiers=DEFAULT_LABEL_TIERS)


@dataclass(frozen=True, slots=True)
class ContactsConfig:
    required_roles: tuple[str, ...]

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ContactsConfig:
        roles = tuple(
            role.upper() for role in _str_list(raw.get("required_roles"), "contacts.required_roles")
        )
        if not roles:
            raise ValueError("contacts.required_roles must not be empty")
        if len(set(roles)) != len(roles):
            raise ValueError("contacts.required_roles contains duplicates")
        return cls(required_roles=roles)

    @classmethod
    def default(cls) -> ContactsConfig:
        return cls(required_roles=("VAD", "KAMLIGHT", "KAMHEAVY"))


@dataclass(frozen=True, slots=True)
class HttpConfig:
    request_timeout_s: float
    user_agent: str

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> HttpConfig:
        timeout = _float(raw.get("request_timeout_s", 30), "http.request_timeout_s")
        if timeout <= 0:
            raise ValueError("http.request_timeout_s must be > 0")
        return cls(
            request_timeout_s=timeout,
            user_agent=_str(raw.get("user_agent", "plzmap/0.1"), "http.user_agent"),
        )

    @classmethod
    def default(cls) -> HttpConfig:
        return cls(request_timeout_s=30.0, user_agent="plzmap/0.1")


@dataclass(frozen=True, slots=True)
class OutputConfig:
    write_svg: bool
    write_png: bool
    png_dpi: int

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> OutputConfig:
        dpi = _int(raw.get("png_dpi", 100), "output.png_dpi")
        if dpi < 1:
            raise ValueError("output.png_dpi must be >= 1")
        return cls(
            write_svg=_bool(raw.get("write_svg", True), "output.write_svg"),
            write_png=_bool(raw.get("write_png", False), "output.write_png"),
            png_dpi=dpi,
        )

    @classmethod
    def default(cls) -> OutputConfig:
        return cls(write_svg=True, write_png=False, png_dpi=100)


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    canvas: CanvasConfig
    aggregation: AggregationConfig
    labels: LabelsConfig
    contacts: ContactsConfig
    http: HttpConfig
    output: OutputConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()

        def section(name: str, parser: Any, default: Any) -> Any:
            value = _optional_mapping(raw.get(name), name)
            return default() if value is None else parser(value)

        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            canvas=section("canvas", CanvasConfig.from_mapping, CanvasConfig.default),
            aggregation=section(
                "aggregation", AggregationConfig.from_mapping, AggregationConfig.default
            ),
            labels=section("labels", LabelsConfig.from_mapping, LabelsConfig.default),
            contacts=section("contacts", ContactsConfig.from_mapping, ContactsConfig.default),
            http=section("http", HttpConfig.from_mapping, HttpConfig.default),
            output=section("output", OutputConfig.from_mapping, OutputConfig.default),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
