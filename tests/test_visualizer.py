"""Unit tests for choropleth.visualizer module."""

from __future__ import annotations

import json
import logging

import pytest

from choropleth.classification import ClassBreakError, OutOfRangePolicy
from choropleth.config import MapConfig
from choropleth.datasource import ColumnQuery, ColumnSummary, DataPackage
from choropleth.visualizer import (
    DEFAULT_COLOR,
    ChoroplethCompiler,
    ColorMode,
    SummaryMismatchError,
    build_fill_layer,
    foreign_key_name,
    get_base_map,
    get_choropleth_expression,
)


class TestForeignKeyName:
    """Tests for foreign_key_name."""

    def test_plural_is_singularized(self) -> None:
        assert foreign_key_name("districts") == "district"

    def test_versioned_id_column(self) -> None:
        assert foreign_key_name("id2") == "id"


class TestCompileClassified:
    """Tests for classified expressions."""

    def test_expression_structure(self, abc_package, palette) -> None:
        """Test control tokens lead and the default color trails."""
        result = ChoroplethCompiler(palette=palette).compile(abc_package, "score", "any")
        expression = result.expression

        assert expression[0] == "match"
        assert expression[1] == ["get", "district"]
        assert expression[2::2][:-1] == ["A", "B", "C"]
        assert expression[-1] == DEFAULT_COLOR
        assert len(result.entries) == 3
        assert len(expression) == 2 * 3 + 3

    def test_fallback_breaks_and_colors(self, abc_package, palette) -> None:
        """Test the three-row scenario with synthesized breaks."""
        result = ChoroplethCompiler(palette=palette).compile(abc_package, "score", "any")
        colors = result.colors()

        assert result.mode is ColorMode.CLASSIFIED
        assert result.class_breaks == (25.0, 50.0, 75.0)
        assert colors["A"] == "#aa0000"
        assert colors["B"] == "#0000aa"

    def test_missing_breaks_logs_warning(self, abc_package, palette, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            ChoroplethCompiler(palette=palette).compile(abc_package, "score", "any")

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "score" in warnings[0].getMessage()

    def test_out_of_range_clamps_by_default(self, abc_package, palette, caplog) -> None:
        with caplog.at_level(logging.ERROR):
            result = ChoroplethCompiler(palette=palette).compile(
                abc_package, "score", "any"
            )

        assert result.colors()["C"] == "#0000aa"
        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "90.0" in errors[0].getMessage()
        assert "75.0" in errors[0].getMessage()

    def test_out_of_range_no_color(self, abc_package, palette) -> None:
        compiler = ChoroplethCompiler(palette=palette, out_of_range="no_color")
        result = compiler.compile(abc_package, "score", "any")

        assert result.colors()["C"] == DEFAULT_COLOR
        assert result.colors()["A"] == "#aa0000"

    def test_policy_name_is_case_insensitive(self, abc_package, palette) -> None:
        compiler = ChoroplethCompiler(palette=palette, out_of_range=" NO_COLOR ")

        assert compiler.out_of_range is OutOfRangePolicy.NO_COLOR
        assert compiler.compile(abc_package, "score", "any").colors()["C"] == DEFAULT_COLOR

    def test_out_of_range_strict_raises(self, abc_package, palette) -> None:
        compiler = ChoroplethCompiler(palette=palette, out_of_range=OutOfRangePolicy.STRICT)

        with pytest.raises(ClassBreakError, match="higher than the max class break"):
            compiler.compile(abc_package, "score", "any")

    def test_precomputed_breaks_used(self, classified_package, palette, caplog) -> None:
        """Test breaks from the package are used without a warning."""
        with caplog.at_level(logging.WARNING):
            result = ChoroplethCompiler(palette=palette).compile(
                classified_package, "income", "any"
            )

        assert not caplog.records
        assert result.foreign_key == "id"
        assert result.class_breaks == (20.0, 40.0, 60.0, 80.0)
        assert result.colors() == {
            "d1": "#aa0000",
            "d2": "#aa0000",
            "d3": "#00aa00",
            "d4": "#0000aa",
            "d5": "#000000",
        }

    def test_value_on_break_takes_lower_class(self, palette) -> None:
        package = DataPackage.from_json(
            {
                "idColumn": "units",
                "columns": {"units": ["x", "y"], "v": [50, 50.0001]},
                "summaries": {"v": {"classBreaks": [25, 50, 75, 100]}},
            }
        )
        result = ChoroplethCompiler(palette=palette).compile(package, "v", "any")

        assert result.colors() == {"x": "#00aa00", "y": "#0000aa"}

    def test_palette_sized_to_break_count(self, classified_package) -> None:
        requested = []

        def recording_palette(name, count):
            requested.append((name, count))
            return ["111111"] * count

        ChoroplethCompiler(palette=recording_palette).compile(
            classified_package, "income", "Greens"
        )
        assert requested == [("Greens", 4)]

    def test_short_palette_raises(self, classified_package) -> None:
        compiler = ChoroplethCompiler(palette=lambda name, count: ["111111"])

        with pytest.raises(ValueError, match="returned 1 colors for 4 classes"):
            compiler.compile(classified_package, "income", "any")

    def test_deterministic(self, classified_package, palette) -> None:
        compiler = ChoroplethCompiler(palette=palette)
        first = compiler.compile(classified_package, "income", "any")
        second = compiler.compile(classified_package, "income", "any")

        assert first == second
        assert first.to_json() == second.to_json()

    def test_real_palette(self, classified_package) -> None:
        result = ChoroplethCompiler().compile(classified_package, "income", "Blues")

        for color in result.colors().values():
            assert color.startswith("#")
            assert len(color) == 7


class TestCompileContinuous:
    """Tests for unclassified expressions."""

    def test_intensity_scaled_by_max(self, abc_package, palette) -> None:
        result = ChoroplethCompiler(palette=palette).compile(
            abc_package, "score", "any", classified=False
        )

        assert result.mode is ColorMode.CONTINUOUS
        assert result.class_breaks is None
        colors = result.colors()
        assert colors["A"] == pytest.approx(25.5)
        assert colors["B"] == pytest.approx(153.0)
        assert colors["C"] == pytest.approx(229.5)
        assert result.expression[-1] == DEFAULT_COLOR

    def test_no_palette_or_break_diagnostics(self, abc_package, caplog) -> None:
        def failing_palette(name, count):
            raise AssertionError("palette should not be requested")

        with caplog.at_level(logging.WARNING):
            ChoroplethCompiler(palette=failing_palette).compile(
                abc_package, "score", "any", classified=False
            )
        assert not caplog.records

    def test_zero_max(self, palette) -> None:
        package = DataPackage.from_json(
            {"idColumn": "ids", "columns": {"ids": ["a", "b"], "v": [0, 0]}}
        )
        result = ChoroplethCompiler(palette=palette).compile(
            package, "v", "any", classified=False
        )
        assert result.colors() == {"a": 0.0, "b": 0.0}


class TestCompileNoData:
    """Tests for attributes without renderable data."""

    def test_unknown_attribute_returns_none(self, abc_package, palette) -> None:
        assert ChoroplethCompiler(palette=palette).compile(abc_package, "nope", "any") is None

    def test_non_numeric_attribute_returns_none(self, classified_package, palette) -> None:
        compiler = ChoroplethCompiler(palette=palette)
        assert compiler.compile(classified_package, "label", "any") is None

    def test_misaligned_summary_raises(self, abc_package, palette) -> None:
        class MisalignedQuery(ColumnQuery):
            def get_column_summary(self, attribute_id):
                return ColumnSummary(
                    values=(1.0, 2.0),
                    ids=("A",),
                    stats={"MIN": 1.0, "MAX": 2.0, "RANGE": 1.0},
                )

        compiler = ChoroplethCompiler(palette=palette, query_factory=MisalignedQuery)
        with pytest.raises(SummaryMismatchError, match="2 values for 1 ids"):
            compiler.compile(abc_package, "score", "any")


class TestGetChoroplethExpression:
    """Tests for get_choropleth_expression."""

    def test_returns_flat_list(self, classified_package) -> None:
        expression = get_choropleth_expression(
            classified_package, "income", "Reds", map_config=MapConfig()
        )
        assert isinstance(expression, list)
        assert expression[:2] == ["match", ["get", "id"]]
        json.dumps(expression)

    def test_missing_attribute(self, classified_package) -> None:
        assert get_choropleth_expression(classified_package, "nope") is None

    def test_configured_policy_from_environment(self, abc_package, monkeypatch) -> None:
        monkeypatch.setenv("CHOROPLETH_OUT_OF_RANGE", "STRICT")

        with pytest.raises(ClassBreakError):
            get_choropleth_expression(abc_package, "score", "Blues", map_config=MapConfig())

    def test_configured_policy(self, abc_package) -> None:
        map_config = MapConfig(out_of_range="strict", default_palette="Blues")
        with pytest.raises(ClassBreakError):
            get_choropleth_expression(abc_package, "score", map_config=map_config)


class TestBaseMap:
    """Tests for get_base_map."""

    def test_development_background_style(self) -> None:
        style = get_base_map(MapConfig(environment="development"))

        assert style["version"] == 8
        assert style["layers"][0]["paint"]["background-color"] == "rgb(255, 246, 242)"

    def test_production_style_url(self) -> None:
        url = "mapbox://styles/example/streets"
        assert get_base_map(MapConfig(environment="production", mapbox_style_url=url)) == url


class TestBuildFillLayer:
    """Tests for build_fill_layer."""

    def test_layer_uses_expression(self, classified_package, palette) -> None:
        result = ChoroplethCompiler(palette=palette).compile(
            classified_package, "income", "any"
        )
        layer = build_fill_layer(result, "districts", source_layer="boundaries")

        assert layer["type"] == "fill"
        assert layer["source"] == "districts"
        assert layer["source-layer"] == "boundaries"
        assert layer["paint"]["fill-color"] == result.expression

    def test_invalid_opacity(self) -> None:
        with pytest.raises(ValueError, match="opacity"):
            build_fill_layer(["match"], "src", opacity=1.5)
