"""
Contribution City Configuration
===============================

This module handles configuration loading for the city renderer.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Named preset (``preset`` key or CITY_PRESET)
    4. Default values (lowest priority)

Environment Variable Mapping:
    GITHUB_TOKEN         -> github.token
    GITHUB_USERNAME      -> github.username
    CITY_PRESET          -> preset
    CITY_OUTPUT_PATH     -> output.path
    CITY_LABEL_STRATEGY  -> labels.strategy
    CITY_BUILDING_STYLE  -> building.style
    CITY_SEED            -> scene.seed
    CITY_LOG_LEVEL       -> logging.level

Presets:
    The historical generators differed only in canvas size, tile size,
    label strategy and day window. Each one is a preset here:
        - city:    2166x1280, 7 days, native text labels
        - compact: 800x400, 7 days, bitmap dot-font labels
        - six-day: city layout with a 6-day window

Example:
    from contribution_city.config import load_config

    settings = load_config(preset="compact")
    print(settings.canvas.width, settings.labels.strategy)
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from contribution_city.city.buildings import VEHICLE_HALF_GX, VEHICLE_HALF_GY, VEHICLE_HEIGHT
from contribution_city.geometry.projector import Projector
from contribution_city.models.tier import Tier


logger = logging.getLogger(__name__)


BUILDING_TIERS = [t.name for t in Tier if t.is_building]


def _require_tiers(mapping: dict, field: str) -> None:
    """Raise if a per-tier mapping lacks a building tier."""
    missing = [name for name in BUILDING_TIERS if name not in mapping]
    if missing:
        raise ValueError(f"{field} has no entry for tiers: {missing}")


# =============================================================================
# Configuration Models
# =============================================================================

class CanvasConfig(BaseModel):
    """Output document size in pixels."""

    width: int = Field(default=2166, gt=0, description="Canvas width")
    height: int = Field(default=1280, gt=0, description="Canvas height")


class ProjectionConfig(BaseModel):
    """Fixed isometric transform constants."""

    tile_w: float = Field(default=28.0, gt=0, description="Screen x per grid unit")
    tile_h: float = Field(default=16.0, gt=0, description="Screen y per grid unit")
    origin_x: float = Field(default=500.0, description="Screen x of grid origin")
    origin_y: float = Field(default=440.0, description="Screen y of grid origin")


class LayoutConfig(BaseModel):
    """
    Grid placement of the day slots and static fixtures.

    Parked cars are painted on the foreground band, above every day
    cluster, so a car must never share screen space with a day sign.
    Signs stand on the near side of the road (``base_gy + sign_offset_gy``
    beyond ``road_gy[1]``) and the screen overlap of cars and signs is
    checked against the projection when Settings are loaded.
    """

    days: int = Field(default=7, ge=6, le=7, description="Day window (6 or 7)")
    base_gx: float = Field(default=2.0, description="Grid x of the oldest day")
    base_gy: float = Field(default=-5.0, description="Grid y of the oldest day")
    stride_gx: float = Field(default=7.0, description="Grid x step per day")
    stride_gy: float = Field(default=0.0, description="Grid y step per day")
    sign_offset_gy: float = Field(
        default=10.0,
        description="Grid y offset from a day slot to its sign across the road",
    )
    road_gx: List[float] = Field(default=[-2.0, 52.0], description="Road extent along gx")
    road_gy: List[float] = Field(default=[-1.0, 3.0], description="Road extent along gy")
    ground_gx: List[float] = Field(default=[-6.0, 56.0], description="Ground extent along gx")
    ground_gy: List[float] = Field(default=[-12.0, 10.0], description="Ground extent along gy")
    vehicles: List[float] = Field(
        default=[15.5, 29.5],
        description="Grid x positions of parked cars on the road",
    )
    footprints: Dict[str, float] = Field(
        default={"XSMALL": 1.5, "SMALL": 1.8, "MEDIUM": 2.0, "LARGE": 2.3},
        description="Footprint half-size per tier (grid units)",
    )

    @model_validator(mode="after")
    def validate_stride(self) -> "LayoutConfig":
        """Later days must sit strictly nearer the viewer."""
        if self.stride_gx + self.stride_gy <= 0:
            raise ValueError("layout stride must increase gx + gy")
        return self

    @model_validator(mode="after")
    def validate_extents(self) -> "LayoutConfig":
        """Extents are [low, high] pairs and signs stand beyond the road."""
        for name in ("road_gx", "road_gy", "ground_gx", "ground_gy"):
            pair = getattr(self, name)
            if len(pair) != 2 or pair[0] >= pair[1]:
                raise ValueError(f"{name} must be [low, high], got {pair}")
        sign_gy = [self.sign_row_gy(i) for i in range(self.days)]
        if min(sign_gy) <= self.road_gy[1]:
            raise ValueError(
                f"day signs (gy {min(sign_gy)}) must stand beyond the road edge (gy {self.road_gy[1]})"
            )
        return self

    @model_validator(mode="after")
    def validate_footprints(self) -> "LayoutConfig":
        """Every building tier needs a footprint."""
        _require_tiers(self.footprints, "layout.footprints")
        return self

    def slot_position(self, index: int):
        """Grid (gx, gy) of the ``index``-th day."""
        return (
            self.base_gx + index * self.stride_gx,
            self.base_gy + index * self.stride_gy,
        )

    def sign_row_gy(self, index: int) -> float:
        """Grid y of the ``index``-th day sign."""
        return self.slot_position(index)[1] + self.sign_offset_gy

    def vehicle_lane_gy(self) -> float:
        """Grid y of the parked-car lane."""
        return self.road_gy[0] + 1.0


class TierThresholdsConfig(BaseModel):
    """Lower bound (inclusive) of each non-empty tier."""

    xsmall: int = Field(default=1, ge=1, description="First count of XSMALL")
    small: int = Field(default=4, description="First count of SMALL")
    medium: int = Field(default=7, description="First count of MEDIUM")
    large: int = Field(default=10, description="First count of LARGE")

    @model_validator(mode="after")
    def validate_partition(self) -> "TierThresholdsConfig":
        """Bounds must be strictly increasing so tiers never overlap."""
        if not (self.xsmall < self.small < self.medium < self.large):
            raise ValueError("tier thresholds must be strictly increasing")
        return self


class BuildingConfig(BaseModel):
    """Building height and window grid."""

    base_height: float = Field(default=60.0, ge=0, description="Height at count 0")
    height_slope: float = Field(default=22.0, gt=0, description="Height per contribution")
    max_height: float = Field(default=300.0, gt=0, description="Height cap")
    window_band: float = Field(default=24.0, gt=0, description="Height of one window row")
    window_margin: float = Field(default=18.0, ge=0, description="Unwindowed top/bottom margin")
    window_columns: int = Field(default=2, ge=1, description="Window columns per wall")
    lit_probability: float = Field(default=0.7, ge=0, le=1.0, description="Chance a window is lit")
    style: str = Field(
        default="prism",
        description="Building style: 'prism' (flat-colour geometry) or 'asset' (per-tier SVG artwork)",
    )
    asset_dir: str = Field(default="./assets", description="Directory of building artwork")
    asset_files: Dict[str, str] = Field(
        default={"XSMALL": "Xsmall.svg", "SMALL": "Small.svg", "MEDIUM": "Middle.svg", "LARGE": "Big.svg"},
        description="Artwork file per tier (asset style)",
    )
    asset_offsets: Dict[str, List[float]] = Field(
        default={},
        description="Screen [dx, dy] nudge of a tier's artwork from its slot",
    )
    asset_scale: float = Field(default=1.0, gt=0, description="Size multiplier of building artwork")
    base_file: Optional[str] = Field(
        default="Base.svg",
        description="Full-canvas backdrop drawn over the ground (asset style)",
    )

    @field_validator("style")
    @classmethod
    def validate_style(cls, v: str) -> str:
        """Ensure the style is a known building strategy."""
        if v not in ("prism", "asset"):
            raise ValueError(f"Unknown building style: {v}")
        return v

    @model_validator(mode="after")
    def validate_assets(self) -> "BuildingConfig":
        """Every building tier needs an artwork file; offsets are [dx, dy]."""
        _require_tiers(self.asset_files, "building.asset_files")
        for name, offset in self.asset_offsets.items():
            if len(offset) != 2:
                raise ValueError(f"building.asset_offsets.{name} must be [dx, dy], got {offset}")
        return self


class LampConfig(BaseModel):
    """Lamp post drawn for a day with no contributions."""

    post_height: float = Field(default=70.0, gt=0)
    post_width: float = Field(default=5.0, gt=0)
    head_radius: float = Field(default=8.0, gt=0)
    glow_rx: float = Field(default=34.0, gt=0)
    glow_ry: float = Field(default=14.0, gt=0)


class SignConfig(BaseModel):
    """Day sign (weekday name and count) next to the road."""

    post_height: float = Field(default=40.0, gt=0)
    board_height: float = Field(default=70.0, gt=0)
    board_span: float = Field(default=3.0, gt=0, description="Board width in grid units")
    day_font_size: float = Field(default=26.0, gt=0)
    count_font_size: float = Field(default=32.0, gt=0)


class DepthBands(BaseModel):
    """
    Depth keys of static fixtures.

    Data-driven objects use ``gx + gy`` of their slot, so background and
    ground bands must stay below every slot key and foreground/overlay
    above (checked when Settings are loaded).
    """

    background: float = Field(default=-1000.0)
    ground: float = Field(default=-900.0)
    road: float = Field(default=-800.0)
    foreground: float = Field(default=1000.0)
    overlay: float = Field(default=2000.0)

    @model_validator(mode="after")
    def validate_order(self) -> "DepthBands":
        """Bands must preserve background < ground < road < foreground < overlay."""
        ordered = [self.background, self.ground, self.road, self.foreground, self.overlay]
        if ordered != sorted(ordered) or len(set(ordered)) != len(ordered):
            raise ValueError("depth bands must be strictly increasing")
        return self


class PaletteConfig(BaseModel):
    """Flat colour palette."""

    sky_top: str = "#0d1117"
    sky_bottom: str = "#1b2333"
    star: str = "#ffffff"
    moon: str = "#f5f3ce"
    ground: str = "#16241b"
    road: str = "#2d333b"
    road_marking: str = "#e3b341"
    roofs: Dict[str, str] = Field(default={
        "XSMALL": "#7dd3fc", "SMALL": "#a5b4fc", "MEDIUM": "#c4b5fd", "LARGE": "#f0abfc",
    })
    walls_left: Dict[str, str] = Field(default={
        "XSMALL": "#38bdf8", "SMALL": "#818cf8", "MEDIUM": "#a78bfa", "LARGE": "#e879f9",
    })
    walls_right: Dict[str, str] = Field(default={
        "XSMALL": "#0284c7", "SMALL": "#4f46e5", "MEDIUM": "#7c3aed", "LARGE": "#c026d3",
    })
    shadow: str = "#000000"
    window_lit: str = "#ffd866"
    window_unlit: str = "#1f2933"
    lamp_post: str = "#8b949e"
    lamp_head: str = "#ffe58a"
    lamp_glow: str = "#ffe58a"
    sign_post: str = "#6e7681"
    sign_board: str = "#238636"
    sign_text: str = "#ffffff"
    vehicle_body: List[str] = Field(default=["#f85149", "#58a6ff"], min_length=1)
    headlight: str = "#fff7b0"
    stats_label: str = "#9CA3AF"
    stats_text: str = "#ffffff"

    @model_validator(mode="after")
    def validate_tier_colours(self) -> "PaletteConfig":
        """Every building tier needs a roof and two wall colours."""
        _require_tiers(self.roofs, "palette.roofs")
        _require_tiers(self.walls_left, "palette.walls_left")
        _require_tiers(self.walls_right, "palette.walls_right")
        return self


class LabelsConfig(BaseModel):
    """Label strategy and summary block placement."""

    strategy: str = Field(
        default="text",
        description="Label strategy: 'text', 'bitmap' or 'asset'",
    )
    font_family: str = Field(default="Galmuri11, monospace")
    font_path: Optional[str] = Field(
        default=None,
        description="Optional TTF embedded as @font-face",
    )
    glyph_dir: str = Field(
        default="./assets",
        description="Directory of per-character SVG glyphs (asset strategy)",
    )
    glyph_width: float = Field(default=18.0, gt=0)
    glyph_height: float = Field(default=30.0, gt=0)
    summary_x: float = Field(default=50.0)
    summary_y: float = Field(default=1180.0)
    summary_line_height: float = Field(default=50.0, gt=0)
    summary_value_offset: float = Field(default=170.0, ge=0)
    summary_label_size: float = Field(default=40.0, gt=0)
    summary_value_size: float = Field(default=48.0, gt=0)

    @field_validator("strategy")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        """Ensure the strategy is a known renderer."""
        if v not in ("text", "bitmap", "asset"):
            raise ValueError(f"Unknown label strategy: {v}")
        return v


class SceneConfig(BaseModel):
    """Cosmetic background and randomness."""

    star_count: int = Field(default=27, ge=0)
    star_band: float = Field(default=280.0, gt=0, description="Stars appear above this y")
    moon_x: float = Field(default=1900.0)
    moon_y: float = Field(default=150.0)
    moon_r: float = Field(default=55.0, gt=0)
    seed: Optional[int] = Field(
        default=None,
        description="RNG seed for windows and stars (None = time-based)",
    )


class GitHubConfig(BaseModel):
    """Contribution calendar source."""

    api_url: str = Field(default="https://api.github.com/graphql")
    username: str = Field(default="mna11")
    token: Optional[str] = Field(default=None, description="Personal access token")
    timeout_seconds: float = Field(default=15.0, gt=0)


class FallbackConfig(BaseModel):
    """Synthetic week used when the calendar cannot be fetched."""

    counts: List[int] = Field(default=[3, 4, 1, 10, 6, 5, 11])
    total_contributions: int = Field(default=1234, ge=0)
    randomize: bool = Field(default=False)
    max_random_count: int = Field(default=14, ge=0)


class OutputConfig(BaseModel):
    """Where the rendered document is written."""

    path: str = Field(default="contribution-city.svg")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the city renderer.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    preset: Optional[str] = Field(default=None, description="Applied preset name")
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    projection: ProjectionConfig = Field(default_factory=ProjectionConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    tiers: TierThresholdsConfig = Field(default_factory=TierThresholdsConfig)
    building: BuildingConfig = Field(default_factory=BuildingConfig)
    lamp: LampConfig = Field(default_factory=LampConfig)
    sign: SignConfig = Field(default_factory=SignConfig)
    depth: DepthBands = Field(default_factory=DepthBands)
    palette: PaletteConfig = Field(default_factory=PaletteConfig)
    labels: LabelsConfig = Field(default_factory=LabelsConfig)
    scene: SceneConfig = Field(default_factory=SceneConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    fallback: FallbackConfig = Field(default_factory=FallbackConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_depth_bands(self) -> "Settings":
        """Road must sit below every slot key and foreground above."""
        keys = [sum(self.layout.slot_position(i)) for i in range(self.layout.days)]
        if self.depth.road >= min(keys):
            raise ValueError(
                f"road band {self.depth.road} must be below every slot key (min {min(keys)})"
            )
        if self.depth.foreground <= max(keys):
            raise ValueError(
                f"foreground band {self.depth.foreground} must be above every slot key (max {max(keys)})"
            )
        return self

    @model_validator(mode="after")
    def validate_vehicle_clearance(self) -> "Settings":
        """
        Parked cars must not cover any day sign on screen.

        Cars are painted on the foreground band, after every sign.
        """
        projector = Projector.from_config(self.projection)
        layout = self.layout
        lane = layout.vehicle_lane_gy()
        car_height = self.projection.tile_h * VEHICLE_HEIGHT
        half = self.sign.board_span / 2
        sign_height = self.sign.post_height + self.sign.board_height

        signs = []
        for i in range(layout.days):
            gx = layout.slot_position(i)[0]
            gy = layout.sign_row_gy(i)
            signs.append((i, _screen_box(projector, gx - half, gx + half, gy, gy, sign_height)))

        for gx in layout.vehicles:
            car = _screen_box(
                projector,
                gx - VEHICLE_HALF_GX, gx + VEHICLE_HALF_GX,
                lane - VEHICLE_HALF_GY, lane + VEHICLE_HALF_GY,
                car_height,
            )
            for i, sign in signs:
                if _boxes_overlap(car, sign):
                    raise ValueError(
                        f"parked car at gx {gx} covers the sign of day {i} on screen"
                    )
        return self


def _screen_box(projector: Projector, gx0, gx1, gy0, gy1, height):
    """Screen bounding box (min_x, min_y, max_x, max_y) of a grid box."""
    corners = np.array([
        [gx, gy, gz] for gx in (gx0, gx1) for gy in (gy0, gy1) for gz in (0.0, height)
    ])
    points = projector.project_many(corners)
    return (*points.min(axis=0), *points.max(axis=0))


def _boxes_overlap(a, b) -> bool:
    return a[0] < b[2] and b[0] < a[2] and a[1] < b[3] and b[1] < a[3]


# =============================================================================
# Presets
# =============================================================================

PRESETS: Dict[str, Dict[str, Any]] = {
    "city": {},
    "compact": {
        "canvas": {"width": 800, "height": 400},
        "projection": {"tile_w": 7.0, "tile_h": 4.0, "origin_x": 150.0, "origin_y": 130.0},
        "building": {
            "base_height": 18.0,
            "height_slope": 7.0,
            "max_height": 90.0,
            "window_band": 8.0,
            "window_margin": 6.0,
        },
        "lamp": {
            "post_height": 22.0,
            "post_width": 2.0,
            "head_radius": 3.0,
            "glow_rx": 11.0,
            "glow_ry": 4.5,
        },
        "sign": {
            "post_height": 12.0,
            "board_height": 22.0,
            "day_font_size": 8.0,
            "count_font_size": 10.0,
        },
        "labels": {
            "strategy": "bitmap",
            "summary_x": 14.0,
            "summary_y": 350.0,
            "summary_line_height": 20.0,
            "summary_value_offset": 60.0,
            "summary_label_size": 12.0,
            "summary_value_size": 14.0,
        },
        "scene": {"star_count": 14, "star_band": 80.0, "moon_x": 720.0, "moon_y": 50.0, "moon_r": 18.0},
    },
    "six-day": {
        "layout": {"days": 6},
        "fallback": {"counts": [3, 4, 1, 10, 6, 5]},
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (copy)."""
    result = copy.deepcopy(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = copy.deepcopy(v)
    return result


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(
    config_path: Optional[str] = None,
    preset: Optional[str] = None,
) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Preset values
        4. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.
        preset: Preset name; overrides the ``preset`` key of the file.

    Returns:
        Settings: Loaded configuration

    Raises:
        ValueError: If the preset name is unknown, the file is not a mapping
            or a value fails validation
        yaml.YAMLError: If the file is not valid YAML
    """
    # Find config file
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    # Load from YAML if exists
    config_data: dict = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
        if not isinstance(config_data, dict):
            raise ValueError(f"{config_path} must hold a mapping, got {type(config_data).__name__}")
    else:
        logger.debug("No config file found, using defaults and environment variables")

    # Apply environment variable overrides
    _apply_env_overrides(config_data)

    # Merge file values over the selected preset
    preset_name = preset or config_data.get("preset")
    if preset_name:
        if preset_name not in PRESETS:
            raise ValueError(
                f"Unknown preset: {preset_name} (expected one of {sorted(PRESETS)})"
            )
        config_data = deep_merge(PRESETS[preset_name], config_data)
        config_data["preset"] = preset_name

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Source credentials
    if env_token := os.environ.get("GITHUB_TOKEN"):
        config_data.setdefault("github", {})["token"] = env_token
    if env_user := os.environ.get("GITHUB_USERNAME"):
        config_data.setdefault("github", {})["username"] = env_user

    # Rendering
    if env_preset := os.environ.get("CITY_PRESET"):
        config_data["preset"] = env_preset
    if env_output := os.environ.get("CITY_OUTPUT_PATH"):
        config_data.setdefault("output", {})["path"] = env_output
    if env_labels := os.environ.get("CITY_LABEL_STRATEGY"):
        config_data.setdefault("labels", {})["strategy"] = env_labels
    if env_style := os.environ.get("CITY_BUILDING_STYLE"):
        config_data.setdefault("building", {})["style"] = env_style
    if env_seed := os.environ.get("CITY_SEED"):
        config_data.setdefault("scene", {})["seed"] = int(env_seed)

    # Logging settings
    if env_log := os.environ.get("CITY_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


class JsonLogFormatter(logging.Formatter):
    """One JSON object per record: time, level, module and message."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)
    datefmt = "%Y-%m-%dT%H:%M:%S"

    if settings.logging.format == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonLogFormatter(datefmt=datefmt))
        logging.basicConfig(level=log_level, handlers=[handler])
    else:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt=datefmt,
        )
