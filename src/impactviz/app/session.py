"""
Simulation Session
==================
Dependency-injection root for one visualizer session.

Why is this file needed?
------------------------
It instantiates the store and every component that listens to it, in the
order the data flows (controller before renderers), and tears them down
together. Tests and the headless runner build a session with a
ManualScheduler; the desktop window builds one with a QtScheduler.
"""
from __future__ import annotations

import logging
from typing import Optional

from impactviz.app.state import ParameterStore
from impactviz.controller.animation import ImpactAnimationController
from impactviz.controller.scheduler import QtScheduler, Scheduler
from impactviz.view.camera import CameraSyncAdapter
from impactviz.view.overlay import GeospatialOverlayRenderer
from impactviz.view.surface import MapSurface

logger = logging.getLogger(__name__)


class SimulationSession:
    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        surface: Optional[MapSurface] = None,
        store: Optional[ParameterStore] = None,
    ) -> None:
        self.store = store or ParameterStore()
        self.scheduler = scheduler if scheduler is not None else QtScheduler()
        self.surface = surface

        # Subscription order matters: the controller reacts to the simulation
        # flag before the overlay redraws the static zones.
        self.controller = ImpactAnimationController(self.store, self.scheduler, surface)
        self.overlay = GeospatialOverlayRenderer(self.store, self.controller, surface)
        self.camera = CameraSyncAdapter(self.store, surface)
        self._closed = False
        logger.info("Simulation session created.")

    def attach_surface(self, surface: Optional[MapSurface]) -> None:
        self.surface = surface
        self.controller.attach_surface(surface)
        self.overlay.attach_surface(surface)
        self.camera.attach_surface(surface)

    def begin_simulation(self, crater_radius: Optional[float] = None) -> None:
        """What the external "Simulate" action does: publish the crater radius, then raise the flag."""
        if crater_radius is not None:
            self.store.set_crater_radius(crater_radius)
        self.store.set_simulating(True)

    def end_simulation(self) -> None:
        self.store.set_simulating(False)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.controller.teardown()
        self.overlay.teardown()
        self.camera.teardown()
        logger.info("Simulation session closed.")
