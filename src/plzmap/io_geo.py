"""GeoJSON feature collection loading from disk or HTTP."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import requests

from .config import is_remote_source

_LOGGER = logging.getLogger("plzmap.io_geo")


def _features_from_document(document: Any) -> list[Any]:
    if not isinstance(document, dict):
        raise ValueError("Expected GeoJSON object at root.")
    features = document.get("features")
    if not isinstance(features, list):
        return []
    return features


def fetch_geojson(url: str, *, timeout_s: float, user_agent: str) -> Any:
    with requests.Session() as session:
        session.headers.update({"User-Agent": user_agent})
        response = session.get(url, timeout=timeout_s)
        response.raise_for_status()
        return response.json()


def load_feature_collection(
    source: str | Path,
    *,
    timeout_s: float = 30.0,
    user_agent: str = "plzmap/0.1",
) -> list[Any]:
    """Return the raw feature list of a GeoJSON FeatureCollection.

    `source` is a local path or an http(s) URL. A document without a
    `features` list yields no features.
    """
    source_str = str(source)
    if is_remote_source(source_str):
        _LOGGER.info("Fetching geometry from %s", source_str)
        document = fetch_geojson(source_str, timeout_s=timeout_s, user_agent=user_agent)
    else:
        path = Path(source_str)
        if not path.exists():
            raise FileNotFoundError(f"GeoJSON source not found: {path}")
        with path.open("r", encoding="utf-8") as fh:
            document = json.load(fh)
    features = _features_from_document(document)
    _LOGGER.info("Loaded %d features from %s", len(features), source_str)
    return features
