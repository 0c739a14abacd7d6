"""Test YAML schema validation and config loading.

Tests for src.utils.validators:
    - Load the shipped canvas and scene configs
    - Reject invalid values with actionable messages
    - Logging section maps onto setup_logging() kwargs
    - Off-grid cells and links are rejected at load time

Run:
    pytest tests/test_schemas.py -v
"""

from pathlib import Path

import pytest
import yaml

from src.utils import validators
from src.utils.validators import CanvasConfigV1, LoggingConfig, SceneV1

CONFIGS = Path(__file__).parent.parent / "configs"


def write_yaml(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data))
    return path


# ============================================================================
# CANVAS CONFIG
# ============================================================================

def test_load_shipped_canvas_config():
    cfg = validators.load_canvas_config(CONFIGS / "canvas.v1.yaml")
    assert cfg.schema_version == "canvas.v1"
    assert cfg.grid_dimension == 32
    assert cfg.cell_px == 20
    assert cfg.antialias is False
    assert cfg.scale_interpolation == "nearest"
    assert cfg.background == "#ffffff"
    assert cfg.logging.log_level == "INFO"


def test_canvas_config_defaults():
    cfg = CanvasConfigV1(grid_dimension=8)
    assert cfg.cell_px == 20
    assert cfg.background is None
    assert cfg.logging.log_file is None


@pytest.mark.parametrize("override,match", [
    ({'grid_dimension': 0}, "grid_dimension"),
    ({'cell_px': -1}, "cell_px"),
    ({'scale_interpolation': 'cubic'}, "scale_interpolation"),
    ({'background': 'not-a-color'}, "Unrecognized color"),
    ({'schema': 'canvas.v2'}, "canvas.v1"),
])
def test_canvas_config_invalid(tmp_path, override, match):
    data = {'schema': 'canvas.v1', 'grid_dimension': 4, **override}
    path = write_yaml(tmp_path / "canvas.yaml", data)
    with pytest.raises(ValueError, match=match):
        validators.load_canvas_config(path)


def test_canvas_config_error_names_file(tmp_path):
    path = write_yaml(tmp_path / "broken.yaml", {'grid_dimension': 'lots'})
    with pytest.raises(ValueError, match="broken.yaml"):
        validators.load_canvas_config(path)


def test_canvas_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Canvas config not found"):
        validators.load_canvas_config(tmp_path / "nope.yaml")


# ============================================================================
# LOGGING SECTION
# ============================================================================

def test_logging_config_setup_kwargs():
    cfg = LoggingConfig(**{
        'log_level': 'debug',
        'log_file': 'out/x.log',
        'json': True,
        'rotate': {'mode': 'size', 'max_bytes': 1000, 'backup_count': 2},
    })
    kwargs = cfg.as_setup_kwargs()
    assert kwargs['log_level'] == "DEBUG"
    assert kwargs['log_file'] == 'out/x.log'
    assert kwargs['json'] is True
    assert kwargs['rotate']['max_bytes'] == 1000


def test_logging_config_rejects_unknown_level():
    with pytest.raises(ValueError):
        LoggingConfig(log_level="CHATTY")


# ============================================================================
# SCENE
# ============================================================================

def test_load_shipped_scene():
    scene = validators.load_scene(CONFIGS / "scenes" / "glider.yaml")
    assert scene.grid_dimension == 10
    assert scene.cell_px == 20
    assert len(scene.cells) == 7
    assert sum(c.agent for c in scene.cells) == 2
    assert scene.links[0].start == (6, 6)
    assert scene.links[0].end == (8, 3)


def test_scene_defaults():
    scene = SceneV1(grid_dimension=3, cells=[{'x': 0, 'y': 0, 'color': 'red'}])
    assert scene.cell_px is None
    assert scene.cells[0].agent is False
    assert scene.cells[0].agent_color == "#000000"
    assert scene.links == []


def test_scene_cell_off_grid():
    with pytest.raises(ValueError, match=r"cells\[1\]"):
        SceneV1(grid_dimension=3, cells=[
            {'x': 0, 'y': 0, 'color': 'red'},
            {'x': 3, 'y': 0, 'color': 'red'},
        ])


def test_scene_link_off_grid():
    with pytest.raises(ValueError, match=r"links\[0\]\.end"):
        SceneV1(grid_dimension=3, links=[{'start': [0, 0], 'end': [0, -1]}])


def test_scene_bad_agent_color(tmp_path):
    path = write_yaml(tmp_path / "scene.yaml", {
        'schema': 'scene.v1',
        'grid_dimension': 2,
        'cells': [{'x': 0, 'y': 0, 'color': 'red', 'agent': True, 'agent_color': 'nope'}],
    })
    with pytest.raises(ValueError, match="Scene validation failed"):
        validators.load_scene(path)


def test_scene_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Scene file not found"):
        validators.load_scene(tmp_path / "missing.yaml")
