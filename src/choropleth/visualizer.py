"""
Choropleth styling for vector map renderers.

This module compiles an attribute of a data package into a Mapbox-style
"match" expression that colors each feature by its value, and provides
the base map and fill layer the expression is used with.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from choropleth.classification import (
    ClassBreakError,
    OutOfRangePolicy,
    assign_class,
    resolve_class_breaks,
)
from choropleth.config import MapConfig, config as default_config, foreign_key_name
from choropleth.datasource import ColumnQuery, ColumnSummary, DataPackage
from choropleth.palette import generate_palette

logger = logging.getLogger(__name__)

# Color for features the expression does not match
DEFAULT_COLOR = "rgba(0,0,0,255)"

PaletteGenerator = Callable[[str, int], Sequence[str]]


class SummaryMismatchError(ValueError):
    """Raised when a column summary's values and ids are not row-aligned."""


class ColorMode(Enum):
    """How feature colors are represented in an expression."""
    CLASSIFIED = "classified"    # "#rrggbb" strings
    CONTINUOUS = "continuous"    # intensity floats in [0, 255]


@dataclass(frozen=True)
class ChoroplethExpression:
    """Compiled match expression.

    Attributes:
        mode: Color representation used by the entries
        foreign_key: Feature property the renderer matches on
        entries: (feature id, color) pairs in row order
        class_breaks: Breaks used for classification (None when continuous)
        default_color: Color for unmatched features
    """
    mode: ColorMode
    foreign_key: str
    entries: Tuple[Tuple[Any, Union[str, float]], ...]
    class_breaks: Optional[Tuple[float, ...]] = None
    default_color: str = DEFAULT_COLOR

    @property
    def expression(self) -> List[Any]:
        """Flat expression list for the renderer's paint property."""
        expression: List[Any] = ["match", ["get", self.foreign_key]]
        for feature_id, color in self.entries:
            expression.extend((feature_id, color))
        expression.append(self.default_color)
        return expression

    def colors(self) -> Dict[Any, Union[str, float]]:
        """Mapping of feature id to color."""
        return dict(self.entries)

    def to_json(self) -> str:
        return json.dumps(self.expression)

class ChoroplethCompiler:
    """Compiles data package attributes into choropleth match expressions.

    The column query and palette generator are passed in, so the compiler
    keeps no state between calls.
    """

    def __init__(
        self,
        palette: Optional[PaletteGenerator] = None,
        query_factory: Callable[[DataPackage], ColumnQuery] = ColumnQuery,
        log: Optional[logging.Logger] = None,
        out_of_range: Union[str, OutOfRangePolicy] = OutOfRangePolicy.CLAMP
    ):
        """Initialize the compiler.

        Args:
            palette: Function of (palette name, class count) returning hex
                colors without "#" (defaults to generate_palette)
            query_factory: Builds the column query for a data package
            log: Logger receiving diagnostics (module logger if None)
            out_of_range: Policy for values above the last class break
        """
        self.palette = palette or generate_palette
        self.query_factory = query_factory
        self.log = log or logger
        if isinstance(out_of_range, str):
            out_of_range = out_of_range.strip().lower()
        self.out_of_range = OutOfRangePolicy(out_of_range)

    def compile(
        self,
        data_package: DataPackage,
        attribute_id: str,
        palette_name: str,
        classified: bool = True
    ) -> Optional[ChoroplethExpression]:
        """Compile one attribute into a match expression.

        Args:
            data_package: Dataset with one row per feature
            attribute_id: Column to color by
            palette_name: Palette understood by the palette generator
            classified: Bin values into classes (hex colors) if True,
                otherwise scale values linearly to an intensity

        Returns:
            ChoroplethExpression, or None if the attribute has no data

        Raises:
            SummaryMismatchError: If the column summary is not row-aligned
            ClassBreakError: With the STRICT policy, if a value is above
                the last class break
        """
        query = self.query_factory(data_package)
        summary = query.get_column_summary(attribute_id)
        if summary is None:
            return None

        self._validate_summary(attribute_id, summary)
        foreign_key = foreign_key_name(query.get_id_column_name())

        if not classified:
            return ChoroplethExpression(
                mode=ColorMode.CONTINUOUS,
                foreign_key=foreign_key,
                entries=self._continuous_entries(summary)
            )

        class_breaks = resolve_class_breaks(
            attribute_id, summary.stats, summary.class_breaks, log=self.log
        )
        colors = list(self.palette(palette_name, len(class_breaks)))
        if len(colors) < len(class_breaks):
            raise ValueError(
                f"Palette '{palette_name}' returned {len(colors)} colors "
                f"for {len(class_breaks)} classes"
            )

        entries = []
        for feature_id, value in zip(summary.ids, summary.values):
            entries.append((feature_id, self._class_color(value, class_breaks, colors)))

        return ChoroplethExpression(
            mode=ColorMode.CLASSIFIED,
            foreign_key=foreign_key,
            entries=tuple(entries),
            class_breaks=class_breaks
        )

    def _validate_summary(self, attribute_id: str, summary: ColumnSummary):
        if len(summary.values) != len(summary.ids):
            raise SummaryMismatchError(
                f"Column '{attribute_id}' has {len(summary.values)} values "
                f"for {len(summary.ids)} ids"
            )

    def _class_color(
        self,
        value: float,
        class_breaks: Tuple[float, ...],
        colors: List[str]
    ) -> str:
        index = assign_class(value, class_breaks)
        if index is not None:
            return "#" + colors[index]

        message = (
            f"Class breaks not representative of data. {value} is higher "
            f"than the max class break: {class_breaks[-1]}"
        )
        self.log.error(message)

        if self.out_of_range is OutOfRangePolicy.STRICT:
            raise ClassBreakError(message)
        if self.out_of_range is OutOfRangePolicy.NO_COLOR:
            return DEFAULT_COLOR
        return "#" + colors[len(class_breaks) - 1]

    def _continuous_entries(
        self,
        summary: ColumnSummary
    ) -> Tuple[Tuple[Any, float], ...]:
        maximum = float(summary.stats["MAX"])
        if maximum == 0:
            return tuple((feature_id, 0.0) for feature_id in summary.ids)
        return tuple(
            (feature_id, (value / maximum) * 255)
            for feature_id, value in zip(summary.ids, summary.values)
        )


def get_choropleth_expression(
    data_package: DataPackage,
    attribute_id: str,
    palette_name: Optional[str] = None,
    classified: bool = True,
    map_config: Optional[MapConfig] = None
) -> Optional[List[Any]]:
    """Convenience function returning the flat match expression.

    Args:
        data_package: Dataset with one row per feature
        attribute_id: Column to color by
        palette_name: Palette name (configured default if None)
        classified: Classify values (True) or scale them linearly
        map_config: Map configuration (global config if None)

    Returns:
        Expression list, or None if the attribute has no data

    Example:
        >>> package = load_data_package("data/districts.json")
        >>> fill_color = get_choropleth_expression(package, "population", "Blues")
    """
    map_config = map_config or default_config.map
    compiler = ChoroplethCompiler(out_of_range=map_config.out_of_range)
    result = compiler.compile(
        data_package,
        attribute_id,
        palette_name or map_config.default_palette,
        classified=classified
    )
    if result is None:
        return None
    return result.expression


def get_base_map(map_config: Optional[MapConfig] = None) -> Union[Dict[str, Any], str]:
    """Base map for the current environment.

    Development gets an inline style with a plain background layer; other
    environments get the configured Mapbox style URL.
    """
    map_config = map_config or default_config.map
    if map_config.is_development:
        return {
            "version": 8,
            "sources": {},
            "layers": [
                {
                    "id": "background",
                    "type": "background",
                    "paint": {"background-color": map_config.background_color}
                }
            ]
        }
    return map_config.mapbox_style_url


def build_fill_layer(
    expression: Union[ChoroplethExpression, List[Any]],
    source_id: str,
    layer_id: str = "choropleth",
    opacity: float = 0.8,
    source_layer: Optional[str] = None
) -> Dict[str, Any]:
    """Fill layer definition using the expression as its fill color.

    Args:
        expression: Compiled expression or flat expression list
        source_id: Map source holding the feature geometries
        layer_id: Id for the new layer
        opacity: Fill opacity (0-1)
        source_layer: Layer within a vector tile source

    Returns:
        Layer definition for the renderer's addLayer call
    """
    if not 0 <= opacity <= 1:
        raise ValueError(f"opacity must be between 0 and 1, got {opacity}")
    if isinstance(expression, ChoroplethExpression):
        expression = expression.expression

    layer: Dict[str, Any] = {
        "id": layer_id,
        "type": "fill",
        "source": source_id,
        "paint": {
            "fill-color": expression,
            "fill-opacity": opacity
        }
    }
    if source_layer:
        layer["source-layer"] = source_layer
    return layer
