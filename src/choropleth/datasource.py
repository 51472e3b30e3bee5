"""
Data packages and column queries for choropleth styling.

A data package is a table with one row per spatial feature, keyed by an
identifier column. Column queries pull a single attribute out of it as
row-aligned values, identifiers, summary statistics and optional
precomputed class breaks.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import geopandas as gpd
import pandas as pd

from choropleth.config import config as default_config


def _default_id_column() -> str:
    return default_config.map.id_column


@dataclass
class DataPackage:
    """Tabular dataset whose rows correspond to spatial features.

    Attributes:
        data: DataFrame with one row per feature
        id_column: Column containing feature identifiers
        summaries: Precomputed per-attribute metadata, keyed by attribute id.
            Each entry may carry "stats" and "classBreaks".
        name: Human-readable name for the dataset
    """
    data: pd.DataFrame
    id_column: str = field(default_factory=_default_id_column)
    summaries: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    name: Optional[str] = None

    def __post_init__(self):
        if self.id_column not in self.data.columns:
            available = list(self.data.columns)
            raise ValueError(
                f"Missing id column '{self.id_column}'. "
                f"Available columns: {available}"
            )

    @classmethod
    def from_frame(
        cls,
        frame: Union[pd.DataFrame, gpd.GeoDataFrame],
        id_column: Optional[str] = None,
        summaries: Optional[Dict[str, Dict[str, Any]]] = None,
        name: Optional[str] = None
    ) -> "DataPackage":
        """Build a data package from a DataFrame or GeoDataFrame.

        Geometry is dropped; only attribute columns are kept. The id column
        defaults to the configured one.
        """
        if isinstance(frame, gpd.GeoDataFrame):
            frame = pd.DataFrame(frame.drop(columns=frame.geometry.name))
        return cls(
            data=frame.reset_index(drop=True),
            id_column=id_column or _default_id_column(),
            summaries=dict(summaries or {}),
            name=name
        )

    @classmethod
    def from_json(
        cls,
        payload: Mapping[str, Any],
        id_column: Optional[str] = None
    ) -> "DataPackage":
        """Build a data package from a JSON column-array payload.

        The payload has the form::

            {
                "idColumn": "id2",
                "columns": {"id2": ["A", "B"], "population": [10, 60]},
                "summaries": {"population": {"stats": {...}, "classBreaks": [...]}}
            }

        Args:
            payload: Decoded JSON object
            id_column: Overrides the payload's "idColumn"

        Returns:
            DataPackage

        Raises:
            ValueError: If columns are missing or have different lengths
        """
        columns = payload.get("columns")
        if not isinstance(columns, Mapping) or not columns:
            raise ValueError("Data package payload has no 'columns' object")

        lengths = {name: len(values) for name, values in columns.items()}
        if len(set(lengths.values())) > 1:
            raise ValueError(f"Column arrays differ in length: {lengths}")

        return cls(
            data=pd.DataFrame({name: list(values) for name, values in columns.items()}),
            id_column=id_column or payload.get("idColumn") or _default_id_column(),
            summaries=dict(payload.get("summaries") or {}),
            name=payload.get("name")
        )


def load_data_package(
    path: Union[str, Path],
    id_column: Optional[str] = None,
    layer: Optional[str] = None
) -> DataPackage:
    """Load a data package from file.

    ``.json`` files are read as column-array payloads; anything else
    (GeoJSON, Shapefile, GeoPackage, ...) is read with GeoPandas.

    Args:
        path: Path to the data file
        id_column: Identifier column (required for geospatial formats unless
            the default applies)
        layer: Layer name for multi-layer formats

    Returns:
        Loaded DataPackage

    Raises:
        FileNotFoundError: If the data file doesn't exist
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    if path.suffix.lower() == ".json":
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        package = DataPackage.from_json(payload, id_column=id_column)
    else:
        read_kwargs = {"layer": layer} if layer else {}
        gdf = gpd.read_file(str(path), **read_kwargs)
        package = DataPackage.from_frame(gdf, id_column=id_column)

    if package.name is None:
        package.name = path.stem
    return package


@dataclass(frozen=True)
class ColumnSummary:
    """Row-aligned view of one attribute column.

    Attributes:
        values: Attribute values, one per row
        ids: Feature identifiers, aligned positionally with values
        stats: Summary statistics; at least MIN, MAX and RANGE
        class_breaks: Ascending class thresholds, if precomputed
    """
    values: Tuple[float, ...]
    ids: Tuple[Any, ...]
    stats: Mapping[str, float]
    class_breaks: Optional[Tuple[float, ...]] = None


class ColumnQuery:
    """Queries attribute columns of a data package."""

    def __init__(self, package: DataPackage):
        self.package = package

    def get_id_column_name(self) -> str:
        return self.package.id_column

    def get_ids(self) -> List[Any]:
        return self.package.data[self.package.id_column].tolist()

    def get_columns(self) -> List[str]:
        """Attribute columns, excluding the id column."""
        return [c for c in self.package.data.columns if c != self.package.id_column]

    def get_column_summary(self, attribute_id: str) -> Optional[ColumnSummary]:
        """Summarize one attribute column.

        Rows with a null or non-numeric value are left out, so their
        features are not matched by the expression built from the summary.

        Args:
            attribute_id: Column to summarize

        Returns:
            ColumnSummary, or None if the column is absent or has no numeric
            values
        """
        frame = self.package.data
        if attribute_id not in self.get_columns():
            return None

        values = pd.to_numeric(frame[attribute_id], errors="coerce")
        present = values.notna()
        if not present.any():
            return None

        values = values[present].astype(float)
        ids = frame.loc[present, self.package.id_column]

        metadata = self.package.summaries.get(attribute_id, {})
        stats = _compute_stats(values)
        overrides = metadata.get("stats") or {}
        stats.update(overrides)
        if "RANGE" not in overrides and ("MIN" in overrides or "MAX" in overrides):
            stats["RANGE"] = float(stats["MAX"]) - float(stats["MIN"])

        class_breaks = metadata.get("classBreaks")
        if class_breaks is not None:
            class_breaks = tuple(float(b) for b in class_breaks)

        return ColumnSummary(
            values=tuple(values.tolist()),
            ids=tuple(ids.tolist()),
            stats=stats,
            class_breaks=class_breaks
        )


def _compute_stats(values: pd.Series) -> Dict[str, float]:
    minimum = float(values.min())
    maximum = float(values.max())
    return {
        "MIN": minimum,
        "MAX": maximum,
        "RANGE": maximum - minimum,
        "MEAN": float(values.mean()),
        "MEDIAN": float(values.median()),
        "STD": float(values.std(ddof=0)),
        "COUNT": int(values.count()),
    }

