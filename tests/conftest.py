from __future__ import annotations

from typing import Any, Callable

import pytest


def square_ring(min_x: float, min_y: float, size: float) -> list[list[float]]:
    return [
        [min_x, min_y],
        [min_x, min_y + size],
        [min_x + size, min_y + size],
        [min_x + size, min_y],
        [min_x, min_y],
    ]


@pytest.fixture
def make_feature() -> Callable[..., dict[str, Any]]:
    def _make(
        zip_code: Any,
        rings: list[list[list[float]]] | None = None,
        *,
        center_lon: Any = None,
        center_lat: Any = None,
        geometry: Any = "polygon",
    ) -> dict[str, Any]:
        destatis: dict[str, Any] = {"zip": zip_code}
        if center_lon is not None:
            destatis["center_lon"] = center_lon
        if center_lat is not None:
            destatis["center_lat"] = center_lat
        if geometry == "polygon":
            geometry = {"type": "Polygon", "coordinates": rings or [square_ring(0, 0, 1)]}
        return {
            "type": "Feature",
            "properties": {"destatis": destatis},
            "geometry": geometry,
        }

    return _make
