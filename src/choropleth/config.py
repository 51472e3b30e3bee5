"""Configuration and persisted application state for choropleth styling."""

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union


@dataclass
class MapConfig:
    """Map and styling configuration."""

    environment: str = field(
        default_factory=lambda: os.getenv("CHOROPLETH_ENV", "development")
    )
    mapbox_style_url: str = field(
        default_factory=lambda: os.getenv("MAPBOX_STYLE_URL", "")
    )
    background_color: str = "rgb(255, 246, 242)"

    # Data package conventions
    id_column: str = field(
        default_factory=lambda: os.getenv("CHOROPLETH_ID_COLUMN", "id2")
    )

    # Classification
    default_palette: str = field(
        default_factory=lambda: os.getenv("CHOROPLETH_PALETTE", "YlOrRd")
    )
    out_of_range: str = field(
        default_factory=lambda: os.getenv("CHOROPLETH_OUT_OF_RANGE", "clamp").lower()
    )

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@dataclass
class StateConfig:
    """Where application state is persisted."""

    state_path: str = field(
        default_factory=lambda: os.getenv(
            "CHOROPLETH_STATE_PATH", "./choropleth_state.json"
        )
    )


@dataclass
class Config:
    """Main configuration container."""

    map: MapConfig = field(default_factory=MapConfig)
    state: StateConfig = field(default_factory=StateConfig)


# Global config instance
config = Config()


def load_config_from_env() -> Config:
    """Load configuration from environment variables."""
    return Config(map=MapConfig(), state=StateConfig())


def foreign_key_name(id_column: str) -> str:
    """Singularize an id column name by dropping its last character."""
    return id_column[:-1]


@dataclass
class AppState:
    """Application state restored at startup.

    Attributes:
        spatial_unit: Spatial unit currently mapped (e.g. "districts")
        map_focus_boundary: Identifier of the boundary the map is zoomed to
    """
    spatial_unit: str = "districts"
    map_focus_boundary: Optional[str] = None

    @property
    def foreign_key(self) -> str:
        """Feature property name for the current spatial unit."""
        return foreign_key_name(self.spatial_unit)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_state(path: Optional[Union[str, Path]] = None) -> AppState:
    """Restore application state from a JSON file.

    Persisted keys are laid over the defaults. A missing file yields the
    default state; keys that are not state fields are ignored.

    Args:
        path: State file (defaults to the configured state path)

    Returns:
        Restored AppState

    Raises:
        ValueError: If the file does not hold a JSON object
    """
    path = Path(path or config.state.state_path)
    state = AppState()

    if not path.exists():
        return state

    with open(path, "r", encoding="utf-8") as f:
        persisted = json.load(f)

    if not isinstance(persisted, dict):
        raise ValueError(f"State file must contain a JSON object: {path}")

    known = {f.name for f in fields(AppState)}
    for key, value in persisted.items():
        if key in known:
            setattr(state, key, value)

    return state


def save_state(state: AppState, path: Optional[Union[str, Path]] = None) -> Path:
    """Persist application state as JSON.

    Returns:
        Path the state was written to
    """
    path = Path(path or config.state.state_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(state.to_dict(), f, indent=2)

    return path
