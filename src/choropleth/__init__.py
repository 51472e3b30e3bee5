"""Choropleth styling for vector maps.

Compiles an attribute of a tabular dataset (one row per map feature)
into a Mapbox-style match expression that colors each feature by class:
- Data packages and column queries
- Equal-interval fallback class breaks
- Palettes sampled from Matplotlib colormaps
"""

__version__ = "0.1.0"

from choropleth.classification import (
    ClassBreakError,
    OutOfRangePolicy,
    assign_class,
    equal_interval_breaks,
    resolve_class_breaks,
)
from choropleth.config import (
    AppState,
    Config,
    MapConfig,
    foreign_key_name,
    load_state,
    save_state,
)
from choropleth.datasource import (
    ColumnQuery,
    ColumnSummary,
    DataPackage,
    load_data_package,
)
from choropleth.palette import ColorScale, generate_palette, list_palettes, register_palette
from choropleth.visualizer import (
    DEFAULT_COLOR,
    ChoroplethCompiler,
    ChoroplethExpression,
    ColorMode,
    SummaryMismatchError,
    build_fill_layer,
    get_base_map,
    get_choropleth_expression,
)

__all__ = [
    # Data
    "DataPackage",
    "ColumnQuery",
    "ColumnSummary",
    "load_data_package",
    # Classification
    "OutOfRangePolicy",
    "ClassBreakError",
    "assign_class",
    "equal_interval_breaks",
    "resolve_class_breaks",
    # Palettes
    "ColorScale",
    "generate_palette",
    "list_palettes",
    "register_palette",
    # Expressions
    "DEFAULT_COLOR",
    "ChoroplethCompiler",
    "ChoroplethExpression",
    "ColorMode",
    "SummaryMismatchError",
    "build_fill_layer",
    "foreign_key_name",
    "get_base_map",
    "get_choropleth_expression",
    # Configuration
    "AppState",
    "Config",
    "MapConfig",
    "load_state",
    "save_state",
]
