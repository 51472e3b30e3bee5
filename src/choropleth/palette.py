"""
Color palettes for classified choropleth maps.

Palettes are sampled from Matplotlib colormaps, or interpolated from
registered custom color lists, and returned as hex tokens without the
leading "#".
"""

from enum import Enum
from typing import Dict, List, Sequence

import matplotlib
import matplotlib.colors as mcolors
import numpy as np


class ColorScale(Enum):
    """Pre-defined color scales for map visualization."""
    VIRIDIS = "viridis"
    PLASMA = "plasma"
    INFERNO = "inferno"
    MAGMA = "magma"
    CIVIDIS = "cividis"
    BLUES = "Blues"
    GREENS = "Greens"
    REDS = "Reds"
    ORANGES = "Oranges"
    PURPLES = "Purples"
    GREYS = "Greys"
    YELLOW_GREEN_BLUE = "YlGnBu"
    YELLOW_ORANGE_RED = "YlOrRd"
    RED_YELLOW_GREEN = "RdYlGn"
    SPECTRAL = "Spectral"
    COOLWARM = "coolwarm"


# Custom palettes, light to dark
_custom_palettes: Dict[str, List[str]] = {
    "sand": ["fff6f2", "f9c9a8", "e8875a", "b8482b", "6b1d10"],
    "lagoon": ["f0f9f8", "a6dcd6", "4fb0b0", "1f7182", "0b3b52"],
}


def register_palette(name: str, colors: Sequence[str]):
    """Register a custom palette.

    Args:
        name: Palette name
        colors: At least two colors, any format Matplotlib understands
            (hex tokens may omit the "#")

    Raises:
        ValueError: If fewer than two colors are given
    """
    if len(colors) < 2:
        raise ValueError(f"Palette '{name}' needs at least two colors")
    _custom_palettes[name] = [c.lstrip("#") for c in colors]


def list_palettes() -> List[str]:
    """Names of all available palettes."""
    return sorted(_custom_palettes) + [cs.value for cs in ColorScale]


def _get_colormap(name: str) -> mcolors.Colormap:
    if name in _custom_palettes:
        return mcolors.LinearSegmentedColormap.from_list(
            name, ["#" + c for c in _custom_palettes[name]]
        )
    try:
        return matplotlib.colormaps[name]
    except KeyError:
        raise KeyError(
            f"Palette '{name}' not found. Available palettes: {list_palettes()}"
        ) from None


def generate_palette(name: str, count: int) -> List[str]:
    """Generate an ordered color palette.

    Args:
        name: Palette or Matplotlib colormap name (a ColorScale also works)
        count: Number of colors (one per class)

    Returns:
        List of lower-case hex colors without "#", light to dark for
        sequential scales

    Raises:
        KeyError: If the palette is unknown
        ValueError: If count is not positive
    """
    if isinstance(name, ColorScale):
        name = name.value
    if count < 1:
        raise ValueError(f"Palette size must be positive, got {count}")

    cmap = _get_colormap(name)
    positions = np.linspace(0.0, 1.0, count) if count > 1 else [0.5]
    return [mcolors.to_hex(cmap(float(p)))[1:] for p in positions]
