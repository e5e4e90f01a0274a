"""
Application Initialization
==========================
This module parses the command line, configures logging and starts either the
Qt event loop or a headless scripted run.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Sets up logging before anything else logs.
2. Creates the Qt application and the main window (desktop mode), or
3. Builds a session on a manual clock, plays one impact and writes the map
   snapshot to disk (headless mode, no display required).
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from impactviz.app.session import SimulationSession
from impactviz.config import TOTAL_ANIMATION_MS
from impactviz.controller.scheduler import ManualScheduler
from impactviz.logging_config import setup_logging
from impactviz.model.state import PRESETS
from impactviz.view.surface import FoliumMapSurface

logger = logging.getLogger(__name__)

# Mid-shockwave: rings and debris are both on the map
DEFAULT_SNAPSHOT_MS = 4300


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="impactviz", description="Impact simulation visualizer")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="Also write the log to this file")
    parser.add_argument("--headless", action="store_true", help="Play one impact without opening a window")
    parser.add_argument("--snapshot", default="impact.html", help="Headless: output HTML file")
    parser.add_argument("--at-ms", type=int, default=DEFAULT_SNAPSHOT_MS,
                        help="Headless: animation time of the snapshot")
    parser.add_argument("--location", choices=sorted(PRESETS), default=None, help="Location preset")
    parser.add_argument("--radius", type=float, default=50.0, help="Body radius (m)")
    parser.add_argument("--velocity", type=float, default=20.0, help="Body velocity (m/s)")
    parser.add_argument("--material", default="rock")
    parser.add_argument("--crater-radius", type=float, default=None, help="Crater radius (m)")
    return parser


def run_headless(args: argparse.Namespace) -> int:
    scheduler = ManualScheduler()
    surface = FoliumMapSurface()
    session = SimulationSession(scheduler=scheduler, surface=surface)
    store = session.store

    store.update_parameters(radius=args.radius, velocity=args.velocity, material=args.material)
    if args.location:
        store.select_preset(args.location)
    session.begin_simulation(crater_radius=args.crater_radius)

    at_ms = max(0, min(args.at_ms, TOTAL_ANIMATION_MS))
    scheduler.advance(at_ms)
    logger.info(f"Snapshot at {at_ms} ms, phase: {session.controller.phase.value}")

    surface.save(args.snapshot)
    session.close()
    return 0


def run_desktop() -> int:
    # Imported here so the headless path never loads the web engine
    from impactviz.app.application import create_app
    from impactviz.app.main_window import MainWindow

    app = create_app()
    window = MainWindow()
    window.show()
    return app.exec()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_file=args.log_file)

    if args.headless:
        return run_headless(args)
    return run_desktop()


if __name__ == "__main__":
    sys.exit(main())
