#!/usr/bin/env python3
"""Grid scene preview tool.

CLI tool that draws a scene file (cells, agents, links) into a GridCanvas
and flushes it to a PNG file and, optionally, an OpenCV window.

Usage:
    # Render a scene at buffer resolution
    python scripts/preview_grid.py --scene configs/scenes/glider.yaml --output_dir outputs/preview

    # Use canvas options (antialias, interpolation, logging) from a config
    python scripts/preview_grid.py --scene configs/scenes/glider.yaml \
        --config configs/canvas.v1.yaml --display_size 800,800

    # Show in a window until a key is pressed
    python scripts/preview_grid.py --scene configs/scenes/glider.yaml --window

Outputs:
    - <prefix>_buffer.png: the off-screen buffer, unscaled
    - <prefix>_display.png: the flushed display surface (scaled if --display_size)
    - <prefix>_metadata.yaml: sizes, counts and timings
"""

import argparse
import sys
import time
from pathlib import Path
from typing import List, Optional

import cv2
import yaml

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.grid_canvas import (
    FileSurface,
    GridCanvasError,
    SurfaceRegistry,
    WindowSurface,
    canvas_for_scene,
    draw_scene,
)
from src.utils import fs, logging_config, validators


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Preview a grid scene using the double-buffered canvas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--scene',
        type=str,
        required=True,
        help='Path to scene.v1 YAML file'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to canvas.v1 YAML file (raster and logging options)'
    )
    parser.add_argument(
        '--display_size',
        type=str,
        default=None,
        help='Display surface size W,H in pixels, default: buffer size'
    )
    parser.add_argument(
        '--output_dir',
        type=str,
        default='outputs/preview_grid',
        help='Output directory, default: outputs/preview_grid'
    )
    parser.add_argument(
        '--prefix',
        type=str,
        default='grid',
        help='Output filename prefix, default: grid'
    )
    parser.add_argument(
        '--window',
        action='store_true',
        help='Also show the frame in an OpenCV window (waits for a key)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    return parser.parse_args(argv)


def parse_size(text: str) -> tuple:
    """Parse "W,H" into a (width, height) tuple of positive ints."""
    try:
        w, h = (int(v) for v in text.split(','))
    except ValueError as e:
        raise ValueError(f"Size must be 'W,H', got {text!r}") from e
    if w <= 0 or h <= 0:
        raise ValueError(f"Size must be positive, got {w}×{h}")
    return w, h


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Default logging first so config errors are reported like any other
    logging_config.setup_logging(context={'app': 'preview'})
    logging_config.install_excepthook()
    logger = logging_config.get_logger(__name__)

    try:
        canvas_cfg = validators.load_canvas_config(args.config) if args.config else None
        if canvas_cfg is not None:
            logging_config.setup_logging(**canvas_cfg.logging.as_setup_kwargs())
        if args.verbose:
            logging_config.set_level("DEBUG")

        scene = validators.load_scene(args.scene)
        logging_config.push_context(scene=Path(args.scene).stem)

        registry = SurfaceRegistry()
        canvas = canvas_for_scene(scene, canvas_cfg, registry=registry)
        buf_w, buf_h = canvas.size_px
        disp_w, disp_h = parse_size(args.display_size) if args.display_size else (buf_w, buf_h)

        output_dir = fs.ensure_dir(args.output_dir)
        prefix = args.prefix
        registry.register('file', FileSurface(output_dir / f'{prefix}_display.png', disp_w, disp_h))
        if args.window:
            registry.register('window', WindowSurface('grid preview', disp_w, disp_h))

        start_time = time.time()
        n_calls = draw_scene(canvas, scene)
        draw_time = time.time() - start_time

        start_time = time.time()
        for surface_id in registry.ids():
            canvas.update(surface_id)
        flush_time = time.time() - start_time

        logger.info(
            f"Drew {n_calls} primitives in {draw_time * 1e3:.2f} ms, "
            f"flushed {len(registry)} surface(s) in {flush_time * 1e3:.2f} ms"
        )

        canvas.save(output_dir / f'{prefix}_buffer.png')
        metadata = {
            'scene': str(args.scene),
            'grid_dimension': canvas.grid_dimension,
            'cell_px': canvas.cell_px,
            'buffer_px': [buf_w, buf_h],
            'display_px': [disp_w, disp_h],
            'num_cells': len(scene.cells),
            'num_agents': sum(c.agent for c in scene.cells),
            'num_links': len(scene.links),
            'draw_time_s': float(draw_time),
            'flush_time_s': float(flush_time),
        }
        metadata_path = output_dir / f'{prefix}_metadata.yaml'
        fs.atomic_yaml_dump(metadata, metadata_path)
        logger.info(f"Saved metadata: {metadata_path}")

        if args.window:
            logger.info("Press any key in the preview window to exit")
            cv2.waitKey(0)
            registry.unregister('window').close()

    except (FileNotFoundError, ValueError, RuntimeError, yaml.YAMLError, GridCanvasError) as e:
        logger.error(f"Preview failed: {e}")
        return 1
    else:
        logger.info("Preview complete!")
        return 0
    finally:
        logging_config.pop_context(keys=['scene'])
        logging_config.shutdown()


if __name__ == '__main__':
    sys.exit(main())
