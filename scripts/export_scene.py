#!/usr/bin/env python3
"""Export the demo driving environment as a Wavefront OBJ.

Usage:
    PYTHONPATH=src:. python scripts/export_scene.py [output.obj]

Output:
    demo_terrain.obj and demo_terrain.mtl (or the given path) in the
    current directory
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from infrastructure.terrain import ObjTerrainExporter
from scenes.layouts import build_demo_environment

DEFAULT_OUTPUT = Path("demo_terrain.obj")


def main(argv: list[str]) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    output = Path(argv[1]) if len(argv) > 1 else DEFAULT_OUTPUT

    terrain = build_demo_environment()
    written = ObjTerrainExporter().export(terrain.mesh(), output)

    print(f"Wrote {written}")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
