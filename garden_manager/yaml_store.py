from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable

import yaml

from .catalog import Crop, Gardener, GardenPlot
from .garden_system import GardenSystem


class GardenStorageError(RuntimeError):
    pass


HERB_CROPS = ["basil", "mint", "rosemary", "thyme", "oregano", "parsley"]

DEFAULT_SEED: dict[str, list[dict[str, Any]]] = {
    "plots": [
        {"plot_id": "P001", "name": "Sunny Corner", "size_sq_meters": 25.0, "location": "North Section"},
        {"plot_id": "P002", "name": "Shady Grove", "size_sq_meters": 30.0, "location": "East Section"},
        {
            "plot_id": "P003",
            "name": "Herb Garden",
            "size_sq_meters": 15.0,
            "location": "South Section",
            "allowed_crops": HERB_CROPS,
        },
        {"plot_id": "P004", "name": "Vegetable Patch", "size_sq_meters": 40.0, "location": "West Section"},
        {"plot_id": "P005", "name": "Flower Bed", "size_sq_meters": 20.0, "location": "Central Area"},
    ],
    "crops": [
        {"name": "Tomatoes", "min_growing_days": 90, "best_seasons": ["spring", "summer"], "description": "Requires full sun and regular watering"},
        {"name": "Lettuce", "min_growing_days": 45, "best_seasons": ["spring", "fall"], "description": "Cool weather crop"},
        {"name": "Basil", "min_growing_days": 60, "best_seasons": ["summer"], "description": "Aromatic herb"},
        {"name": "Carrots", "min_growing_days": 70, "best_seasons": ["spring", "fall"], "description": "Root vegetable"},
        {"name": "Peppers", "min_growing_days": 80, "best_seasons": ["summer"], "description": "Needs warm weather"},
        {"name": "Mint", "min_growing_days": 50, "best_seasons": ["spring", "summer"], "description": "Fast-growing herb"},
        {"name": "Rosemary", "min_growing_days": 90, "best_seasons": ["spring", "summer", "fall"], "description": "Perennial herb"},
        {"name": "Cucumbers", "min_growing_days": 60, "best_seasons": ["summer"], "description": "Needs consistent watering"},
        {"name": "Spinach", "min_growing_days": 40, "best_seasons": ["spring", "fall"], "description": "Cool weather leafy green"},
        {"name": "Zucchini", "min_growing_days": 50, "best_seasons": ["summer"], "description": "Prolific producer"},
    ],
    "gardeners": [],
}


def load_catalog(path: str | Path) -> dict[str, list[dict[str, Any]]]:
    """Read a catalog seed file with top-level ``plots``, ``crops`` and ``gardeners`` lists."""
    seed_path = Path(path)
    try:
        payload = yaml.safe_load(seed_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as error:
        raise GardenStorageError(f"Failed to read catalog file: {seed_path}") from error

    if payload is None:
        return {"plots": [], "crops": [], "gardeners": []}
    if not isinstance(payload, dict):
        raise GardenStorageError(f"Catalog file must contain a mapping at the top level: {seed_path}")

    catalog: dict[str, list[dict[str, Any]]] = {}
    for section in ("plots", "crops", "gardeners"):
        rows = payload.get(section) or []
        if not isinstance(rows, list):
            raise GardenStorageError(f"Catalog section '{section}' must be a list: {seed_path}")
        catalog[section] = [row for row in rows if isinstance(row, dict)]
    return catalog


def plot_from_dict(data: dict[str, Any]) -> GardenPlot:
    return GardenPlot(
        plot_id=str(data["plot_id"]),
        name=(str(data["name"]) if data.get("name") is not None else None),
        size_sq_meters=float(data.get("size_sq_meters") or 0),
        location=(str(data["location"]) if data.get("location") is not None else None),
        allowed_crops=[str(value) for value in data.get("allowed_crops") or []],
    )


def crop_from_dict(data: dict[str, Any]) -> Crop:
    return Crop(
        name=str(data["name"]),
        min_growing_days=int(data.get("min_growing_days") or 0),
        best_seasons=frozenset(str(value).lower() for value in data.get("best_seasons") or []),
        description=str(data.get("description") or ""),
    )


def gardener_from_dict(data: dict[str, Any]) -> Gardener:
    return Gardener(
        gardener_id=str(data["gardener_id"]),
        name=(str(data["name"]) if data.get("name") is not None else None),
        email=data.get("email"),
        phone_number=data.get("phone_number"),
    )


def seed_system(system: GardenSystem, catalog: dict[str, list[dict[str, Any]]] | None = None) -> dict[str, int]:
    """Load plots, crops and gardeners into ``system``; duplicates are skipped."""
    source = catalog if catalog is not None else DEFAULT_SEED
    try:
        plots = [plot_from_dict(row) for row in source.get("plots", [])]
        crops = [crop_from_dict(row) for row in source.get("crops", [])]
        gardeners = [gardener_from_dict(row) for row in source.get("gardeners", [])]
    except (KeyError, TypeError, ValueError) as error:
        raise GardenStorageError(f"Invalid catalog entry: {error}") from error

    return {
        "plots": sum(1 for plot in plots if system.add_plot(plot)),
        "crops": sum(1 for crop in crops if system.add_crop(crop)),
        "gardeners": sum(1 for gardener in gardeners if system.register_gardener(gardener)),
    }


def write_event_log(events: Iterable[dict[str, Any]], path: str | Path) -> Path:
    """Dump the event log to YAML, replacing the file atomically."""
    log_path = Path(path)
    temp_path = log_path.with_suffix(log_path.suffix + ".tmp")
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path.write_text(yaml.safe_dump(list(events), allow_unicode=True, sort_keys=False), encoding="utf-8")
        temp_path.replace(log_path)
    except OSError as error:
        raise GardenStorageError(f"Failed to write YAML file: {log_path}") from error
    finally:
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)
    return log_path
