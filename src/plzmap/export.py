"""SVG and JSON artifacts for a computed layout."""

from __future__ import annotations

import logging
from html import escape
from pathlib import Path

from .contacts import ContactDirectory
from .layout import LayoutResult, RegionLayout
from .preview import render_preview_png
from .util import write_json

_LOGGER = logging.getLogger("plzmap.export")

SVG_NS = "http://www.w3.org/2000/svg"


def _fmt(value: float) -> str:
    return f"{value:g}"


def _region_title(region: RegionLayout, contacts: ContactDirectory | None) -> str:
    lines = [f"PLZ-Gebiet {region.code}"]
    if contacts is not None:
        for contact in contacts.contacts_for(region.code):
            lines.append(f"{contact.role}: {contact.name}, {contact.tel}, {contact.mail}")
    return "\n".join(lines)


def _contact_attributes(region: RegionLayout, contacts: ContactDirectory | None) -> str:
    """`tel:` and `mailto:` targets per role for the interaction layer."""
    if contacts is None:
        return ""
    attrs: list[str] = []
    for contact in contacts.contacts_for(region.code):
        role = escape(contact.role.lower())
        attrs.append(f" data-tel-{role}='tel:{escape(contact.dial_tel)}'")
        attrs.append(f" data-mail-{role}='mailto:{escape(contact.mail)}'")
    return "".join(attrs)


def layout_to_svg(result: LayoutResult, contacts: ContactDirectory | None = None) -> str:
    """Serialize region paths and placed labels into a standalone SVG document."""
    width = _fmt(result.canvas.width)
    height = _fmt(result.canvas.height)
    region_rows: list[str] = []
    for region in result.regions:
        region_rows.extend(
            [
                f"    <g class='plz-region' data-code='{escape(region.code)}' tabindex='0' "
                f"role='button' aria-label='PLZ-Gebiet {escape(region.code)}'"
                f"{_contact_attributes(region, contacts)}>",
                f"      <title>{escape(_region_title(region, contacts))}</title>",
                f"      <path class='plz-area' d='{region.path_data}'/>",
                "    </g>",
            ]
        )
    label_rows = [
        f"    <text class='plz-label' data-code='{escape(label.code)}' x='{label.x:.2f}' "
        f"y='{label.y:.2f}' style='font-size: {label.font_size:.1f}px'>{escape(label.text)}</text>"
        for label in result.labels
    ]
    return "\n".join(
        [
            f"<svg xmlns='{SVG_NS}' viewBox='0 0 {width} {height}' width='{width}' height='{height}'>",
            "  <style>",
            "    .plz-area { fill: #dfe8f1; stroke: #ffffff; stroke-width: 0.6; }",
            "    .plz-region:hover .plz-area { fill: #b9cde2; }",
            "    .plz-label { font-family: Arial, sans-serif; fill: #1f2d3d; "
            "text-anchor: middle; pointer-events: none; }",
            "  </style>",
            "  <g id='regions'>",
            *region_rows,
            "  </g>",
            "  <g id='labels'>",
            *label_rows,
            "  </g>",
            "</svg>",
            "",
        ]
    )


def write_layout_outputs(
    result: LayoutResult,
    output_dir: Path,
    *,
    contacts: ContactDirectory | None = None,
    write_svg: bool = True,
    preview_png: bool = False,
    png_dpi: int = 100,
) -> dict[str, Path]:
    """Write `layout.json` and optionally `map.svg` / `map.png`; returns the paths."""
    written: dict[str, Path] = {}
    layout_path = output_dir / "layout.json"
    write_json(layout_path, result.to_dict())
    written["layout"] = layout_path

    if write_svg:
        svg_path = output_dir / "map.svg"
        svg_path.parent.mkdir(parents=True, exist_ok=True)
        svg_path.write_text(layout_to_svg(result, contacts), encoding="utf-8")
        written["svg"] = svg_path

    if preview_png:
        png_path = render_preview_png(result, output_dir / "map.png", dpi=png_dpi)
        written["png"] = png_path

    for name, path in written.items():
        _LOGGER.debug("Wrote %s artifact to %s", name, path)
    return written
