"""YAML schema validation and config loading.

Provides centralized validation for all configuration files using pydantic:
    - Canvas schema (canvas.v1.yaml): grid size, cell pixels, raster options, logging
    - Scene schema (scene.v1.yaml): cells, agents and links to draw for one frame

All entrypoints must use these loaders for fail-fast error detection with
actionable messages (offending keys, expected ranges).

Units:
    - Grid coordinates: cells
    - Sizes: pixels
    - Colors: CSS-style strings (see utils.color)

Usage:
    from src.utils import validators

    canvas_cfg = validators.load_canvas_config("configs/canvas.v1.yaml")
    scene = validators.load_scene("configs/scenes/glider.yaml")
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .color import InvalidColorError, parse_color


def _check_color(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    try:
        parse_color(v)
    except InvalidColorError as e:
        raise ValueError(str(e)) from e
    return v


# ============================================================================
# LOGGING SECTION
# ============================================================================

class RotateConfig(BaseModel):
    """Log file rotation (passed to logging_config.setup_logging)."""
    mode: Literal["size", "time"] = "size"
    max_bytes: int = Field(default=50_000_000, gt=0)
    backup_count: int = Field(default=5, ge=0)
    when: str = "D"
    interval: int = Field(default=1, gt=0)


class LoggingConfig(BaseModel):
    """Logging settings shared by all entrypoints."""
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: Optional[str] = None
    json_format: bool = Field(default=False, alias="json")
    color: bool = True
    rotate: Optional[RotateConfig] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    def as_setup_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for logging_config.setup_logging()."""
        return {
            'log_level': self.log_level,
            'log_file': self.log_file,
            'json': self.json_format,
            'color': self.color,
            'rotate': self.rotate.model_dump() if self.rotate else None,
        }


# ============================================================================
# CANVAS SCHEMA V1
# ============================================================================

class CanvasConfigV1(BaseModel):
    """Grid canvas configuration (canvas.v1.yaml schema).

    Buffer size is grid_dimension * cell_px pixels on each axis.
    """
    schema_version: str = Field("canvas.v1", alias="schema", description="Schema version")
    grid_dimension: int = Field(..., gt=0, description="Cells per side (square grid)")
    cell_px: int = Field(default=20, gt=0, description="Cell edge length in pixels")
    antialias: bool = Field(default=False, description="Antialiased circles and lines")
    scale_interpolation: Literal["nearest", "linear"] = Field(
        default="nearest", description="Filter used when the display size differs"
    )
    background: Optional[str] = Field(
        default=None, description="Color the buffer is cleared to before drawing"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "canvas.v1":
            raise ValueError(f"Expected schema 'canvas.v1', got '{v}'")
        return v

    @field_validator('background')
    @classmethod
    def validate_background(cls, v: Optional[str]) -> Optional[str]:
        return _check_color(v)


# ============================================================================
# SCENE SCHEMA V1
# ============================================================================

class SceneCell(BaseModel):
    """One cell fill, optionally with an agent marker."""
    x: int
    y: int
    color: str
    agent: bool = False
    agent_color: str = "#000000"

    @field_validator('color', 'agent_color')
    @classmethod
    def validate_color(cls, v: str) -> str:
        return _check_color(v)


class SceneLink(BaseModel):
    """Line between the centers of two cells."""
    start: Tuple[int, int]
    end: Tuple[int, int]


class SceneV1(BaseModel):
    """One frame worth of draw requests (scene.v1.yaml schema).

    Cells are drawn in list order, then links, so links stay visible on top.
    """
    schema_version: str = Field("scene.v1", alias="schema", description="Schema version")
    grid_dimension: int = Field(..., gt=0)
    cell_px: Optional[int] = Field(default=None, gt=0)
    background: Optional[str] = None
    cells: List[SceneCell] = Field(default_factory=list)
    links: List[SceneLink] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "scene.v1":
            raise ValueError(f"Expected schema 'scene.v1', got '{v}'")
        return v

    @field_validator('background')
    @classmethod
    def validate_background(cls, v: Optional[str]) -> Optional[str]:
        return _check_color(v)

    @model_validator(mode='after')
    def validate_on_grid(self) -> 'SceneV1':
        """Cells must lie on the grid; the canvas itself would clip them silently."""
        n = self.grid_dimension
        for i, cell in enumerate(self.cells):
            if not (0 <= cell.x < n and 0 <= cell.y < n):
                raise ValueError(
                    f"cells[{i}] at ({cell.x}, {cell.y}) outside grid [0, {n})"
                )
        for i, link in enumerate(self.links):
            for name, (x, y) in (('start', link.start), ('end', link.end)):
                if not (0 <= x < n and 0 <= y < n):
                    raise ValueError(
                        f"links[{i}].{name} ({x}, {y}) outside grid [0, {n})"
                    )
        return self


# ============================================================================
# PUBLIC API
# ============================================================================

def load_canvas_config(path: Union[str, Path]) -> CanvasConfigV1:
    """Load and validate canvas config from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to canvas.v1.yaml file

    Returns
    -------
    CanvasConfigV1
        Validated canvas configuration

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Canvas config not found: {path}")

    data = fs.load_yaml(path)
    try:
        return CanvasConfigV1(**data)
    except Exception as e:
        raise ValueError(f"Canvas config validation failed at {path}: {e}") from e


def load_scene(path: Union[str, Path]) -> SceneV1:
    """Load and validate a scene file from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to scene YAML file

    Returns
    -------
    SceneV1
        Validated scene

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message including cell index)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scene file not found: {path}")

    data = fs.load_yaml(path)
    try:
        return SceneV1(**data)
    except Exception as e:
        raise ValueError(f"Scene validation failed at {path}: {e}") from e
