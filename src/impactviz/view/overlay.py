from __future__ import annotations

import logging
from typing import Optional

from impactviz.app.state import ParameterStore
from impactviz.config import PARTICLE_COLOR, PARTICLE_RADIUS_M, RING_COLOR
from impactviz.controller.animation import AnimationFrame, AnimationPhase, ImpactAnimationController
from impactviz.model.geo import zone_radii
from impactviz.model.state import LatLng, SessionState
from impactviz.view.surface import (
    CirclePrimitive,
    MapSurface,
    MarkerPrimitive,
    RenderSurfaceUnavailable,
    surface_ready,
)

logger = logging.getLogger(__name__)

ZONES_LAYER = "zones"
SHOCKWAVE_LAYER = "shockwave"
PARTICLES_LAYER = "particles"


def zone_circles(center: LatLng, crater_radius: Optional[float]) -> list[CirclePrimitive]:
    """The three nested static zones, outermost first so smaller ones draw on top."""
    radii = zone_radii(crater_radius)
    return [
        CirclePrimitive(
            center=center, radius=radii.impact, color="purple", fill_opacity=0.1,
            label=f"Calculated impact zone: {radii.impact:.0f} m",
        ),
        CirclePrimitive(
            center=center, radius=radii.severe, color="red", fill_opacity=0.2,
            label=f"Severe destruction zone: {radii.severe:.0f} m",
        ),
        CirclePrimitive(
            center=center, radius=radii.epicenter, color="black", fill_opacity=0.3,
            label=f"Epicenter: {radii.epicenter:.0f} m",
        ),
    ]


def shockwave_circles(frame: AnimationFrame) -> list[CirclePrimitive]:
    if frame.anchor is None:
        return []
    return [
        CirclePrimitive(
            center=frame.anchor, radius=ring.radius, color=RING_COLOR,
            opacity=ring.opacity, fill_opacity=0.15 * ring.opacity, weight=3.0,
        )
        for ring in frame.rings if ring.radius > 0
    ]


def particle_circles(frame: AnimationFrame) -> list[CirclePrimitive]:
    return [
        CirclePrimitive(
            center=(p.lat, p.lng), radius=PARTICLE_RADIUS_M, color=PARTICLE_COLOR,
            opacity=p.opacity, fill_opacity=p.opacity, weight=1.0,
        )
        for p in frame.particles if p.opacity > 0
    ]


class GeospatialOverlayRenderer:
    """
    Keeps the map surface in sync with the store and the animation controller.

    - Always: one marker at the focus location, placed once and then moved.
    - While simulating: the three static zones around the focus location.
    - While the shockwave runs: rings and debris particles on top.

    A draw that hits an unmounted surface is dropped; the next store change or
    animation frame redraws everything it needs.
    """

    def __init__(
        self,
        store: ParameterStore,
        controller: Optional[ImpactAnimationController] = None,
        surface: Optional[MapSurface] = None,
    ) -> None:
        self._store = store
        self._surface = surface
        self._marker: Optional[MarkerPrimitive] = None
        self._marker_draggable = False
        self._controller = controller

        self._unsubscribe = store.subscribe(self._on_store_changed)
        if controller is not None:
            controller.frame_ready.connect(self.on_frame)
        self.render()

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def attach_surface(self, surface: Optional[MapSurface]) -> None:
        self._surface = surface
        # A new surface has never seen our marker
        self._marker = None
        self.render()

    def render(self) -> None:
        self._draw(self._store.get())

    def on_frame(self, frame: AnimationFrame) -> None:
        if not self._store.get().view.is_simulating:
            return
        self._guarded(self._draw_animation, frame)

    def toggle_marker_draggable(self) -> bool:
        self._marker_draggable = not self._marker_draggable
        if self._marker is not None and surface_ready(self._surface):
            self._guarded(self._surface.set_marker_draggable, self._marker_draggable)
        return self._marker_draggable

    def teardown(self) -> None:
        self._unsubscribe()
        if self._controller is not None:
            self._controller.frame_ready.disconnect(self.on_frame)
            self._controller = None
        self._surface = None

    # ------------------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------------------

    def _on_store_changed(self, _state: SessionState) -> None:
        # A slot earlier in the chain may already have committed a newer state
        self._draw(self._store.get())

    def _on_marker_dragged(self, lat: float, lng: float) -> None:
        logger.debug(f"Marker dropped at {lat:.4f}, {lng:.4f}")
        self._store.set_focus_location(lat, lng)

    def _draw(self, state: SessionState) -> None:
        self._guarded(self._draw_static, state)

    def _draw_static(self, state: SessionState) -> None:
        surface = self._surface
        focus = state.view.resolved_focus()

        if self._marker is None:
            marker = MarkerPrimitive(
                position=focus,
                draggable=self._marker_draggable,
                on_drag_end=self._on_marker_dragged,
                tooltip="Impact point",
            )
            surface.place_marker(marker)
            self._marker = marker
        elif self._marker.position != focus:
            surface.move_marker(*focus)
            self._marker.position = focus

        if state.view.is_simulating:
            surface.set_layer(ZONES_LAYER, zone_circles(focus, state.view.crater_radius))
        else:
            surface.clear_layer(ZONES_LAYER)
            surface.clear_layer(SHOCKWAVE_LAYER)
            surface.clear_layer(PARTICLES_LAYER)

    def _draw_animation(self, frame: AnimationFrame) -> None:
        surface = self._surface
        if frame.phase is AnimationPhase.SHOCKWAVE and frame.rings:
            surface.set_layer(SHOCKWAVE_LAYER, shockwave_circles(frame))
            surface.set_layer(PARTICLES_LAYER, particle_circles(frame))
        else:
            surface.clear_layer(SHOCKWAVE_LAYER)
            surface.clear_layer(PARTICLES_LAYER)

    def _guarded(self, draw, *args) -> None:
        if not surface_ready(self._surface):
            logger.debug("Overlay draw skipped: map surface not mounted.")
            return
        try:
            draw(*args)
        except RenderSurfaceUnavailable:
            logger.debug("Overlay draw skipped: map surface went away.")
        except Exception:
            logger.exception("Overlay draw failed")
