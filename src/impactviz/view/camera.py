from __future__ import annotations

import logging
from typing import Optional

from impactviz.app.state import ParameterStore
from impactviz.config import FOCUS_FLY_DURATION_S, FOCUS_ZOOM
from impactviz.model.state import LatLng
from impactviz.view.surface import MapSurface, RenderSurfaceUnavailable, surface_ready

logger = logging.getLogger(__name__)


class CameraSyncAdapter:
    """
    Flies the map camera to the focus location whenever it changes.

    Runs alongside the animation controller, which moves the same camera
    during FLASH. Neither source locks the camera; the transition issued last
    wins.

    Qt holds the ``focus_changed`` connection to a bound method weakly, so the
    caller must keep the adapter alive (``SimulationSession`` does).
    """

    def __init__(
        self,
        store: ParameterStore,
        surface: Optional[MapSurface] = None,
        zoom: float = FOCUS_ZOOM,
        duration_s: float = FOCUS_FLY_DURATION_S,
    ) -> None:
        self._store = store
        self._surface = surface
        self.zoom = zoom
        self.duration_s = duration_s
        store.focus_changed.connect(self._on_focus_changed)
        self._connected = True

    def attach_surface(self, surface: Optional[MapSurface]) -> None:
        self._surface = surface

    def teardown(self) -> None:
        if self._connected:
            self._connected = False
            self._store.focus_changed.disconnect(self._on_focus_changed)
        self._surface = None

    def _on_focus_changed(self, _location: LatLng) -> None:
        self.fly_to(self._store.get().view.resolved_focus())

    def fly_to(self, target: LatLng) -> None:
        surface = self._surface
        if not surface_ready(surface):
            logger.debug("Camera move skipped: map surface not mounted.")
            return
        lat, lng = target
        try:
            surface.fly_to(lat, lng, self.zoom, self.duration_s)
        except RenderSurfaceUnavailable:
            logger.debug("Camera move skipped: map surface went away.")
        except Exception as e:
            logger.warning(f"Animated camera move failed ({e}), jumping to target instead.")
            try:
                surface.set_view(lat, lng, self.zoom)
            except Exception:
                logger.exception("Camera jump failed")
